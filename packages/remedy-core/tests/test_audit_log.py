"""Tests for the remediation audit log."""

import re
import sqlite3

import pytest

from remedy_core.actions import ActionName
from remedy_core.db.audit_log import StepAuditLog
from remedy_core.types import RemediationStep


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "audit.db"


def test_session_id_format(db_path):
    with StepAuditLog(db_path) as audit_log:
        session_id = audit_log.create_session("api-oom", "prod")

    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-[0-9a-f]{8}", session_id)


def test_new_session_is_running(db_path):
    with StepAuditLog(db_path) as audit_log:
        session_id = audit_log.create_session("api-oom", "prod")
        session = audit_log.get_session(session_id)

    assert session["status"] == "running"
    assert session["issue_name"] == "api-oom"
    assert session["namespace"] == "prod"
    assert session["ended_at"] is None


def test_steps_replay_in_order(db_path):
    """Recorded turns come back as an equal StepHistory."""
    steps = [
        RemediationStep(
            step_number=1,
            reasoning="raise memory",
            action=ActionName.ADJUST_RESOURCES,
            params={"memory_limit": "1Gi", "memory_request": "512Mi"},
            observation="SUCCESS: AdjustResources executed successfully: patched",
        ),
        RemediationStep(step_number=2, reasoning="wait for rollout"),
        RemediationStep(step_number=3, reasoning="healthy"),
    ]

    with StepAuditLog(db_path) as audit_log:
        session_id = audit_log.create_session("api-oom")
        for recorded in steps:
            audit_log.log_step(session_id, recorded)
        history = audit_log.get_session_history(session_id)

    assert list(history.steps) == steps
    assert history.next_step_number == 4


def test_complete_session(db_path):
    with StepAuditLog(db_path) as audit_log:
        session_id = audit_log.create_session("api-oom", "prod")
        audit_log.complete_session(session_id, "escalated", "Agentic loop exceeded max steps (10)")
        session = audit_log.get_session(session_id)

    assert session["status"] == "escalated"
    assert session["ended_at"] is not None
    assert session["outcome_summary"] == "Agentic loop exceeded max steps (10)"


def test_list_sessions_limit(db_path):
    with StepAuditLog(db_path) as audit_log:
        for name in ("a", "b", "c"):
            audit_log.create_session(name)
        assert len(audit_log.list_sessions(limit=2)) == 2
        assert {s["issue_name"] for s in audit_log.list_sessions()} == {"a", "b", "c"}


def test_unknown_session(db_path):
    with StepAuditLog(db_path) as audit_log:
        assert audit_log.get_session("missing") is None
        assert len(audit_log.get_session_history("missing")) == 0


def test_persists_across_connections(db_path):
    with StepAuditLog(db_path) as audit_log:
        session_id = audit_log.create_session("api-oom")
        audit_log.log_step(session_id, RemediationStep(step_number=1, reasoning="look"))

    conn = sqlite3.connect(db_path)
    count = conn.execute("SELECT COUNT(*) FROM remediation_steps").fetchone()[0]
    conn.close()
    assert count == 1


def test_use_outside_context_manager(db_path):
    audit_log = StepAuditLog(db_path)
    with pytest.raises(RuntimeError):
        audit_log.create_session("api-oom")
