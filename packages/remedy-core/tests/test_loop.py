"""Tests for the remediation loop driver."""

import asyncio

import pytest

from remedy_core.actions import ActionName
from remedy_core.config import Settings
from remedy_core.db.audit_log import StepAuditLog
from remedy_core.engine.errors import ReasoningModelError
from remedy_core.engine.prompt import TRUNCATION_MARKER
from remedy_core.loop import (
    DryRunActuator,
    LoopOutcome,
    LoopStatus,
    RemediationLoop,
    StaticContextProvider,
    summarize_failed_attempts,
)
from remedy_core.types import RemediationStep, StepHistory

from fakes import FakeReasoningClient, action_response, observe_response, resolved_response


class FailingActuator:
    """Actuator whose every call raises."""

    def __init__(self):
        self.calls = []

    async def execute(self, action, params):
        self.calls.append(action)
        raise RuntimeError("deployments.apps \"api\" not found")


class BrokenContextProvider:
    async def get_context(self) -> str:
        raise ConnectionError("kube-apiserver unreachable")


def _loop(client, actuator=None, context=None, settings=None, **kwargs) -> RemediationLoop:
    return RemediationLoop(
        client=client,
        context_provider=context or StaticContextProvider(["pods: 1/3 ready", "pods: 3/3 ready"]),
        actuator=actuator or DryRunActuator(),
        settings=settings or Settings(step_interval_s=0),
        **kwargs,
    )


class TestRemediationLoop:
    """Test suite for RemediationLoop.run."""

    @pytest.mark.asyncio
    async def test_act_then_resolve(self, issue):
        """Scale up, then declare resolved once the context shows recovery."""
        client = FakeReasoningClient([
            action_response("ScaleDeployment", {"replicas": "3"}),
            resolved_response(),
        ])
        actuator = DryRunActuator()

        outcome = await _loop(client, actuator).run(issue)

        assert outcome.status == LoopStatus.RESOLVED
        assert outcome.steps_taken == 2
        first, final = outcome.history.steps
        assert first.action == ActionName.SCALE_DEPLOYMENT
        assert first.params == {"replicas": "3"}
        assert first.observation.startswith("SUCCESS: ScaleDeployment executed successfully: dry-run")
        assert final.action is None
        assert outcome.postmortem.root_cause == "memory limit too low for peak traffic"
        assert actuator.executed == [(ActionName.SCALE_DEPLOYMENT, {"replicas": "3"})]

    @pytest.mark.asyncio
    async def test_context_and_observation_fed_back(self, issue):
        client = FakeReasoningClient([
            action_response("ScaleDeployment", {"replicas": "3"}),
            resolved_response(),
        ])

        await _loop(client).run(issue)

        assert "pods: 1/3 ready" in client.prompts[0]
        second = client.prompts[1]
        assert "pods: 3/3 ready" in second
        assert "This is step 2 of a maximum of 10 steps." in second
        assert "Observation: SUCCESS: ScaleDeployment executed successfully" in second

    @pytest.mark.asyncio
    async def test_observe_steps_record_no_action(self, issue):
        client = FakeReasoningClient([observe_response(), resolved_response()])
        actuator = DryRunActuator()

        outcome = await _loop(client, actuator).run(issue)

        observe_step = outcome.history.steps[0]
        assert observe_step.action is None
        assert observe_step.observation is None
        assert actuator.executed == []

    @pytest.mark.asyncio
    async def test_step_budget_exhausted(self, issue):
        client = FakeReasoningClient([observe_response()])

        outcome = await _loop(client, max_steps=3).run(issue)

        assert outcome.status == LoopStatus.ESCALATED
        assert outcome.reason == "Agentic loop exceeded max steps (3)"
        assert outcome.steps_taken == 3
        assert len(client.prompts) == 3
        assert "This is your LAST step." in client.prompts[2]

    @pytest.mark.asyncio
    async def test_wall_clock_timeout(self, issue):
        client = FakeReasoningClient([observe_response()])
        settings = Settings(step_interval_s=0, loop_timeout_s=-1)

        outcome = await _loop(client, settings=settings).run(issue)

        assert outcome.status == LoopStatus.ESCALATED
        assert "timed out" in outcome.reason
        assert client.prompts == []

    @pytest.mark.asyncio
    async def test_parse_failure_escalates(self, issue):
        client = FakeReasoningClient([observe_response("first look"), "I'd rather not say"])

        outcome = await _loop(client).run(issue)

        assert outcome.status == LoopStatus.ESCALATED
        assert outcome.reason.startswith("Unusable model output at step 2")
        assert outcome.last_reasoning.startswith("Failed to parse AI response")
        assert "I'd rather not say" in outcome.last_reasoning
        assert outcome.steps_taken == 1

    @pytest.mark.asyncio
    async def test_invalid_params_rejected_before_actuator(self, issue):
        client = FakeReasoningClient([
            action_response("ScaleDeployment", {"replicas": "0"}),
            resolved_response(),
        ])
        actuator = DryRunActuator()

        outcome = await _loop(client, actuator).run(issue)

        assert outcome.history.steps[0].observation.startswith(
            "REJECTED: Validation failed for ScaleDeployment"
        )
        assert actuator.executed == []
        assert "REJECTED" in client.prompts[1]

    @pytest.mark.asyncio
    async def test_actuator_failure_recorded(self, issue):
        client = FakeReasoningClient([action_response("RestartDeployment", {}), resolved_response()])
        actuator = FailingActuator()

        outcome = await _loop(client, actuator).run(issue)

        assert actuator.calls == [ActionName.RESTART_DEPLOYMENT]
        assert outcome.history.steps[0].observation == 'FAILED: deployments.apps "api" not found'
        assert outcome.status == LoopStatus.RESOLVED

    @pytest.mark.asyncio
    async def test_delete_last_pod_refused(self, issue):
        client = FakeReasoningClient([action_response("DeletePod", {"pod": "api-0"}), resolved_response()])
        actuator = DryRunActuator(pod_count=1)

        outcome = await _loop(client, actuator).run(issue)

        assert "refusing to delete" in outcome.history.steps[0].observation
        assert outcome.history.steps[0].observation.startswith("FAILED:")
        assert actuator.executed == []

    @pytest.mark.asyncio
    async def test_transport_error_fails_run(self, issue):
        client = FakeReasoningClient([ReasoningModelError("upstream 503")])

        outcome = await _loop(client).run(issue)

        assert outcome.status == LoopStatus.FAILED
        assert outcome.reason == "Reasoning model call failed: upstream 503"

    @pytest.mark.asyncio
    async def test_transport_error_reraised_when_requested(self, issue):
        client = FakeReasoningClient([ReasoningModelError("upstream 503")])

        with pytest.raises(ReasoningModelError):
            await _loop(client, raise_on_transport_error=True).run(issue)

    @pytest.mark.asyncio
    async def test_context_failure_leaves_context_empty(self, issue):
        client = FakeReasoningClient([resolved_response()])

        outcome = await _loop(client, context=BrokenContextProvider()).run(issue)

        assert outcome.status == LoopStatus.RESOLVED
        assert "## Live Cluster Context" not in client.prompts[0]

    @pytest.mark.asyncio
    async def test_context_truncated(self, issue):
        client = FakeReasoningClient([resolved_response()])
        settings = Settings(step_interval_s=0, max_context_chars=100)

        await _loop(client, context=StaticContextProvider("x" * 1000), settings=settings).run(issue)

        assert TRUNCATION_MARKER in client.prompts[0]
        assert "x" * 101 not in client.prompts[0]

    @pytest.mark.asyncio
    async def test_audit_log_records_run(self, issue, tmp_path):
        client = FakeReasoningClient([
            action_response("AdjustResources", {"memory_limit": "1Gi"}),
            resolved_response(),
        ])

        with StepAuditLog(tmp_path / "remedy.db") as audit_log:
            outcome = await _loop(client, audit_log=audit_log).run(issue)
            session = audit_log.get_session(outcome.session_id)
            history = audit_log.get_session_history(outcome.session_id)

        assert session["status"] == "resolved"
        assert session["issue_name"] == "api-oom"
        assert session["outcome_summary"] == "api pods were OOMKilled; memory limit raised"
        assert history == outcome.history

    @pytest.mark.asyncio
    async def test_cancelled_run_marked_failed(self, issue, tmp_path):
        """Cancelling a run mid-step closes its audit session as failed."""
        client = FakeReasoningClient([observe_response()], delay=10)

        with StepAuditLog(tmp_path / "remedy.db") as audit_log:
            task = asyncio.create_task(_loop(client, audit_log=audit_log).run(issue))
            while not client.prompts:
                await asyncio.sleep(0)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            sessions = audit_log.list_sessions()

        assert len(sessions) == 1
        assert sessions[0]["status"] == "failed"
        assert sessions[0]["ended_at"] is not None
        assert sessions[0]["outcome_summary"].startswith("Run aborted: CancelledError")

    @pytest.mark.asyncio
    async def test_reraised_transport_error_marked_failed(self, issue, tmp_path):
        client = FakeReasoningClient([ReasoningModelError("upstream 503")])

        with StepAuditLog(tmp_path / "remedy.db") as audit_log:
            with pytest.raises(ReasoningModelError):
                await _loop(client, audit_log=audit_log, raise_on_transport_error=True).run(issue)
            sessions = audit_log.list_sessions()

        assert sessions[0]["status"] == "failed"
        assert "upstream 503" in sessions[0]["outcome_summary"]


class TestLoopOutcome:
    """Test suite for escalation reporting helpers."""

    def _escalated(self) -> LoopOutcome:
        return LoopOutcome(
            status=LoopStatus.ESCALATED,
            issue_name="api-oom",
            history=StepHistory.of([
                RemediationStep(
                    step_number=1,
                    reasoning="restart to clear state",
                    action=ActionName.RESTART_DEPLOYMENT,
                    observation="SUCCESS: RestartDeployment executed successfully: restarted",
                ),
                RemediationStep(step_number=2, reasoning="still OOMKilled"),
            ]),
            last_reasoning="still OOMKilled",
            reason="Agentic loop exceeded max steps (2)",
        )

    def test_escalation_report(self):
        report = self._escalated().escalation_report()
        assert report.startswith("# Remediation escalated: api-oom")
        assert "**Reason:** Agentic loop exceeded max steps (2)" in report
        assert "## Last Reasoning\nstill OOMKilled" in report
        assert "### Step 1" in report
        assert "### Step 2" in report

    def test_summarize_failed_attempts(self):
        resolved = LoopOutcome(status=LoopStatus.RESOLVED, issue_name="api-oom")

        summary = summarize_failed_attempts([self._escalated(), resolved])

        assert "Attempt 1 (state=escalated):" in summary
        assert "  Result: Agentic loop exceeded max steps (2)" in summary
        assert "  Action: RestartDeployment params={}" in summary
        assert "    Observation: SUCCESS: RestartDeployment" in summary
        assert "Attempt 2" not in summary

    def test_no_failures_gives_empty_summary(self):
        assert summarize_failed_attempts([]) == ""
