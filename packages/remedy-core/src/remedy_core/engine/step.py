"""
The step engine: one prompt, one model response, one decision.

Both operations are module-level coroutines with no hidden state. History
and step counters are passed in explicitly on every call, which is what
lets a single process drive many issues concurrently.

The engine never executes actions, sleeps, retries, or enforces the step
budget. It only tells the model where it stands against the budget.
"""

import asyncio
import logging

from remedy_core.actions.catalog import DEFAULT_CATALOG, ActionCatalog
from remedy_core.engine.client import ReasoningClient
from remedy_core.engine.decision import IssueAnalysis
from remedy_core.engine.errors import StepTimeoutError
from remedy_core.engine.parser import (
    ParseFailure,
    StepResult,
    parse_analysis_response,
    parse_step_response,
)
from remedy_core.engine.prompt import build_analysis_prompt, build_step_prompt
from remedy_core.types import IssueContext, StepHistory

logger = logging.getLogger(__name__)


async def _complete(client: ReasoningClient, prompt: str, timeout: float | None) -> str:
    """Call the model under the caller's deadline."""
    try:
        return await asyncio.wait_for(client.complete(prompt, timeout=timeout), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise StepTimeoutError(timeout, cause=e) from e


async def step(
    issue: IssueContext,
    history: StepHistory,
    step_number: int,
    max_steps: int,
    *,
    client: ReasoningClient,
    timeout: float | None = None,
    catalog: ActionCatalog = DEFAULT_CATALOG,
) -> StepResult:
    """
    Produce exactly one decision for the current turn.

    Args:
        issue: The incident, with freshly refreshed cluster context
        history: All turns taken so far
        step_number: 1-based number of this turn
        max_steps: The caller's step budget (shown to the model, not enforced)
        client: Reasoning model client
        timeout: Deadline in seconds for the model call
        catalog: Action vocabulary offered to and enforced on the model

    Returns:
        StepDecision, or ParseFailure when the model's output was unusable

    Raises:
        ValueError: If step_number or max_steps is below 1
        StepTimeoutError: If the deadline is exceeded
        ReasoningModelError: If the model call fails
        asyncio.CancelledError: If the caller cancels the call
    """
    if step_number < 1:
        raise ValueError(f"step_number must be >= 1, got {step_number}")
    if max_steps < 1:
        raise ValueError(f"max_steps must be >= 1, got {max_steps}")

    prompt = build_step_prompt(issue, history, step_number, max_steps, catalog=catalog)
    response = await _complete(client, prompt, timeout)
    result = parse_step_response(response, catalog=catalog)

    if isinstance(result, ParseFailure):
        logger.warning(f"Step {step_number} for {issue.issue_name}: unusable model output ({result.cause})")
    elif result.resolved:
        logger.info(f"Step {step_number} for {issue.issue_name}: resolved")
    elif result.next_action is None:
        logger.info(f"Step {step_number} for {issue.issue_name}: observe")
    else:
        logger.info(f"Step {step_number} for {issue.issue_name}: {result.next_action.action}")
    return result


async def analyze_issue(
    issue: IssueContext,
    *,
    client: ReasoningClient,
    timeout: float | None = None,
    catalog: ActionCatalog = DEFAULT_CATALOG,
) -> IssueAnalysis:
    """
    Single-shot analysis: one recommendation, a confidence, suggested actions.

    Args:
        issue: The incident to analyze
        client: Reasoning model client
        timeout: Deadline in seconds for the model call
        catalog: Action vocabulary offered to the model

    Returns:
        IssueAnalysis with model and provider filled in

    Raises:
        StepTimeoutError: If the deadline is exceeded
        ReasoningModelError: If the model call fails
    """
    prompt = build_analysis_prompt(issue, catalog=catalog)
    response = await _complete(client, prompt, timeout)
    analysis = parse_analysis_response(response, catalog=catalog)
    return analysis.model_copy(update={"model": client.model_name, "provider": client.provider})
