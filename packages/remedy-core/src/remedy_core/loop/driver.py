"""
RemediationLoop: the caller-side driver of the agentic step engine.

This module implements the loop that:
- Refreshes cluster context before every step (bounded in characters)
- Calls the step engine once per turn with the full history
- Validates the chosen action against the catalog, then hands it to the actuator
- Records every turn as a RemediationStep (and in the audit log, if given)
- Stops on resolution, step budget, wall-clock timeout, unusable model
  output, or a reasoning-model failure

Escalations always carry the full history and the last reasoning text so a
human can pick up the investigation without losing information.
"""

import asyncio
import json
import logging
import time
from enum import Enum

from pydantic import BaseModel, Field

from remedy_core.actions.catalog import DEFAULT_CATALOG, ActionCatalog, ActionName
from remedy_core.actions.validation import ValidationError, validate_action
from remedy_core.config import Settings, settings as default_settings
from remedy_core.db.audit_log import StepAuditLog
from remedy_core.engine.client import ReasoningClient
from remedy_core.engine.errors import ReasoningModelError
from remedy_core.engine.parser import ParseFailure
from remedy_core.engine.postmortem import (
    PostmortemRecord,
    format_postmortem_markdown,
    synthesize_postmortem,
)
from remedy_core.engine.prompt import format_history, truncate_context
from remedy_core.engine.step import step
from remedy_core.loop.collaborators import Actuator, ContextProvider
from remedy_core.types import IssueContext, RemediationStep, StepHistory

logger = logging.getLogger(__name__)


class LoopStatus(str, Enum):
    """Terminal states of a driver run."""

    RESOLVED = "resolved"
    """The model declared the issue resolved; a postmortem is attached."""

    ESCALATED = "escalated"
    """Handed to a human with the full history attached."""

    FAILED = "failed"
    """The reasoning model could not be reached."""


class LoopOutcome(BaseModel):
    """
    Result of one driver run.

    Attributes:
        status: Terminal state
        issue_name: Issue the run addressed
        history: Every recorded turn
        last_reasoning: Reasoning text of the final decision (or diagnostic)
        reason: Why the run ended
        postmortem: Closure record, only for RESOLVED
        session_id: Audit log session, if audited
    """

    status: LoopStatus
    issue_name: str
    history: StepHistory = Field(default_factory=StepHistory)
    last_reasoning: str = ""
    reason: str = ""
    postmortem: PostmortemRecord | None = None
    session_id: str | None = None

    @property
    def steps_taken(self) -> int:
        return len(self.history)

    def escalation_report(self) -> str:
        """Markdown handoff for a human: status, reason, last reasoning, full history."""
        lines = [
            f"# Remediation {self.status.value}: {self.issue_name}",
            "",
            f"**Reason:** {self.reason}",
            f"**Steps taken:** {self.steps_taken}",
            "",
            "## Last Reasoning",
            self.last_reasoning or "-",
            "",
            format_history(self.history),
        ]
        if self.postmortem is not None:
            lines.append(format_postmortem_markdown(self.postmortem))
        return "\n".join(lines)


class RemediationLoop:
    """
    Drives one issue through the agentic step engine until it closes.

    Turns are strictly sequential; the loop holds the only copy of the
    history and rebinds it after every append.

    Example:
        loop = RemediationLoop(
            client=AnthropicReasoningClient(),
            context_provider=provider,
            actuator=actuator,
            max_steps=10,
        )
        outcome = await loop.run(issue)
        if outcome.status != LoopStatus.RESOLVED:
            print(outcome.escalation_report())
    """

    def __init__(
        self,
        client: ReasoningClient,
        context_provider: ContextProvider,
        actuator: Actuator,
        settings: Settings | None = None,
        max_steps: int | None = None,
        step_interval: float | None = None,
        catalog: ActionCatalog = DEFAULT_CATALOG,
        audit_log: StepAuditLog | None = None,
        raise_on_transport_error: bool = False,
    ) -> None:
        """
        Initialize the loop.

        Args:
            client: Reasoning model client
            context_provider: Source of live cluster context
            actuator: Executes chosen actions
            settings: Limits and timeouts (module settings if None)
            max_steps: Step budget override
            step_interval: Seconds to wait between turns so actions can take effect
            catalog: Action vocabulary
            audit_log: Optional open StepAuditLog to record the run
            raise_on_transport_error: Re-raise ReasoningModelError instead of
                returning a FAILED outcome
        """
        self.client = client
        self.context_provider = context_provider
        self.actuator = actuator
        self.settings = settings or default_settings
        self.max_steps = max_steps if max_steps is not None else self.settings.max_steps
        self.step_interval = (
            step_interval if step_interval is not None else self.settings.step_interval_s
        )
        self.catalog = catalog
        self.audit_log = audit_log
        self.raise_on_transport_error = raise_on_transport_error

    async def run(self, issue: IssueContext) -> LoopOutcome:
        """
        Run turns until the issue closes.

        Args:
            issue: The incident; its cluster_context is replaced every turn

        Returns:
            LoopOutcome describing how the run ended

        Raises:
            ReasoningModelError: Only if raise_on_transport_error is set
            asyncio.CancelledError: If the caller cancels the run

        A run that ends by exception (including cancellation) is recorded
        in the audit log as failed before the exception propagates.
        """
        session_id = None
        if self.audit_log is not None:
            session_id = self.audit_log.create_session(issue.issue_name, issue.namespace)

        logger.info(f"Remediation of {issue.issue_name} starting (max steps: {self.max_steps})")

        try:
            return await self._run_turns(issue, session_id)
        except BaseException as e:
            logger.error(f"Remediation of {issue.issue_name} aborted: {e!r}")
            if self.audit_log is not None and session_id is not None:
                self.audit_log.complete_session(
                    session_id, LoopStatus.FAILED.value, f"Run aborted: {e!r}"
                )
            raise

    async def _run_turns(self, issue: IssueContext, session_id: str | None) -> LoopOutcome:
        history = StepHistory()
        last_reasoning = ""
        started = time.monotonic()

        while True:
            step_number = history.next_step_number
            if step_number > self.max_steps:
                return self._finish(
                    issue, LoopStatus.ESCALATED, history, last_reasoning,
                    f"Agentic loop exceeded max steps ({self.max_steps})", session_id,
                )

            if time.monotonic() - started > self.settings.loop_timeout_s:
                return self._finish(
                    issue, LoopStatus.ESCALATED, history, last_reasoning,
                    f"Agentic loop timed out ({self.settings.loop_timeout_s:.0f}s)", session_id,
                )

            current = issue.with_cluster_context(await self._refresh_context())

            try:
                result = await step(
                    current,
                    history,
                    step_number,
                    self.max_steps,
                    client=self.client,
                    timeout=self.settings.request_timeout_s,
                    catalog=self.catalog,
                )
            except ReasoningModelError as e:
                logger.error(f"Reasoning model call failed at step {step_number}: {e}")
                if self.raise_on_transport_error:
                    raise
                return self._finish(
                    issue, LoopStatus.FAILED, history, last_reasoning,
                    f"Reasoning model call failed: {e}", session_id,
                )

            if isinstance(result, ParseFailure):
                return self._finish(
                    issue, LoopStatus.ESCALATED, history, result.decision.reasoning,
                    f"Unusable model output at step {step_number}: {result.cause}", session_id,
                )

            last_reasoning = result.reasoning

            if result.resolved:
                history = self._record(
                    history,
                    RemediationStep(step_number=step_number, reasoning=result.reasoning),
                    session_id,
                )
                return self._finish(
                    issue, LoopStatus.RESOLVED, history, last_reasoning,
                    f"Resolved at step {step_number}", session_id,
                    postmortem=synthesize_postmortem(result),
                )

            if result.next_action is None:
                history = self._record(
                    history,
                    RemediationStep(step_number=step_number, reasoning=result.reasoning),
                    session_id,
                )
            else:
                action = ActionName(result.next_action.action)
                params = dict(result.next_action.params)
                observation = await self._apply(action, params)
                history = self._record(
                    history,
                    RemediationStep(
                        step_number=step_number,
                        reasoning=result.reasoning,
                        action=action,
                        params=params,
                        observation=observation,
                    ),
                    session_id,
                )

            if self.step_interval > 0:
                await asyncio.sleep(self.step_interval)

    async def _refresh_context(self) -> str:
        """Fetch and bound live context; a failed refresh yields empty context."""
        try:
            context = await self.context_provider.get_context()
        except Exception as e:
            logger.warning(f"Failed to refresh cluster context: {e}")
            return ""
        return truncate_context(context, self.settings.max_context_chars)

    async def _apply(self, action: ActionName, params: dict[str, str]) -> str:
        """Validate and execute one action, returning the observation text."""
        try:
            validate_action(action, params, self.catalog)
        except ValidationError as e:
            logger.warning(f"Rejected {action.value}: {e}")
            return f"REJECTED: {e}"

        logger.info(f"Executing {action.value} {json.dumps(params, sort_keys=True)}")
        try:
            result = await self.actuator.execute(action, params)
        except Exception as e:
            logger.warning(f"{action.value} failed: {e}")
            return f"FAILED: {e}"
        return f"SUCCESS: {action.value} executed successfully: {result}"

    def _record(
        self, history: StepHistory, remediation_step: RemediationStep, session_id: str | None
    ) -> StepHistory:
        if self.audit_log is not None and session_id is not None:
            self.audit_log.log_step(session_id, remediation_step)
        return history.append(remediation_step)

    def _finish(
        self,
        issue: IssueContext,
        status: LoopStatus,
        history: StepHistory,
        last_reasoning: str,
        reason: str,
        session_id: str | None,
        postmortem: PostmortemRecord | None = None,
    ) -> LoopOutcome:
        logger.info(f"Remediation of {issue.issue_name} -> {status.value}: {reason}")
        if self.audit_log is not None and session_id is not None:
            summary = postmortem.summary if postmortem and postmortem.summary else reason
            self.audit_log.complete_session(session_id, status.value, summary)
        return LoopOutcome(
            status=status,
            issue_name=issue.issue_name,
            history=history,
            last_reasoning=last_reasoning,
            reason=reason,
            postmortem=postmortem,
            session_id=session_id,
        )


def summarize_failed_attempts(outcomes: list[LoopOutcome]) -> str:
    """
    Render unresolved outcomes as previous-failure context for a new attempt.

    Args:
        outcomes: Earlier runs against the same issue, oldest first

    Returns:
        Text for IssueContext.previous_failure_context ("" if none failed)
    """
    lines = []
    for attempt, outcome in enumerate(outcomes, 1):
        if outcome.status == LoopStatus.RESOLVED:
            continue
        lines.append(f"Attempt {attempt} (state={outcome.status.value}):")
        lines.append(f"  Result: {outcome.reason}")
        for recorded in outcome.history.steps:
            if recorded.action is None:
                continue
            params = json.dumps(recorded.params, sort_keys=True)
            lines.append(f"  Action: {recorded.action.value} params={params}")
            if recorded.observation:
                lines.append(f"    Observation: {recorded.observation}")
        lines.append("")
    return "\n".join(lines)
