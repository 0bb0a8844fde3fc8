"""Shared fixtures."""

import pytest

from remedy_core.types import IssueContext


@pytest.fixture
def issue() -> IssueContext:
    return IssueContext(
        issue_name="api-oom",
        namespace="prod",
        resource_kind="Deployment",
        resource_name="api",
        signal_type="oom_kill",
        severity="critical",
        description="api pods restarting with OOMKilled",
        risk_score=80,
        cluster_context="pods: 1/3 ready, last state OOMKilled",
    )
