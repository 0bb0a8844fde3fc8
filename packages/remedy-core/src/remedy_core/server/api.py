"""RPC endpoints backed by the step engine."""

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from remedy_core.config import Settings, get_settings
from remedy_core.engine.client import AnthropicReasoningClient, ReasoningClient
from remedy_core.engine.decision import ActionRequest
from remedy_core.engine.errors import ReasoningModelError, StepTimeoutError
from remedy_core.engine.parser import ParseFailure
from remedy_core.engine.prompt import truncate_context
from remedy_core.engine.step import analyze_issue, step
from remedy_core.types import IssueContext, RemediationStep, StepHistory

logger = logging.getLogger(__name__)

engine_router = APIRouter(prefix="/api/v1", tags=["engine"])


class AnalyzeIssueRequest(IssueContext):
    """Request for /api/v1/analyze: the issue facts."""


class AnalyzeIssueResponse(BaseModel):
    """Response from /api/v1/analyze."""

    analysis: str
    confidence: float
    recommendations: list[str]
    suggested_actions: list[ActionRequest]
    model: str
    provider: str


class AgenticStepRequest(IssueContext):
    """Request for /api/v1/agentic-step: issue facts, history and step bounds."""

    history: list[RemediationStep] = Field(default_factory=list)
    current_step: int | None = Field(
        default=None, ge=1, description="Defaults to the step after the last history entry"
    )
    max_steps: int | None = Field(default=None, ge=1, description="Defaults to REMEDY_MAX_STEPS")


class AgenticStepResponse(BaseModel):
    """
    Response from /api/v1/agentic-step.

    When the model's output was unusable, parse_failed is set, parse_error
    holds the cause and the decision fields carry the sentinel decision.
    """

    reasoning: str
    resolved: bool
    next_action: ActionRequest | None = None
    postmortem_summary: str = ""
    root_cause: str = ""
    impact: str = ""
    lessons_learned: list[str] = Field(default_factory=list)
    prevention_actions: list[str] = Field(default_factory=list)
    parse_failed: bool = False
    parse_error: str | None = None


@lru_cache
def get_reasoning_client() -> ReasoningClient:
    """Dependency returning the process-wide reasoning client."""
    settings = get_settings()
    return AnthropicReasoningClient(
        model=settings.model,
        max_tokens=settings.max_tokens,
        max_retries=settings.max_retries,
    )


def _require_issue_name(issue: IssueContext) -> None:
    if not issue.issue_name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="issue_name is required")


def _upstream_error(e: ReasoningModelError) -> HTTPException:
    if isinstance(e, StepTimeoutError):
        return HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(e))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"LLM call failed: {e}"
    )


def _issue_from_request(request: IssueContext, settings: Settings) -> IssueContext:
    return IssueContext.model_validate(
        request.model_dump(include=set(IssueContext.model_fields))
    ).with_cluster_context(truncate_context(request.cluster_context, settings.max_context_chars))


@engine_router.post("/analyze", response_model=AnalyzeIssueResponse)
async def analyze(
    request: AnalyzeIssueRequest,
    client: ReasoningClient = Depends(get_reasoning_client),
    settings: Settings = Depends(get_settings),
) -> AnalyzeIssueResponse:
    """Single-shot issue analysis."""
    _require_issue_name(request)
    issue = _issue_from_request(request, settings)

    try:
        analysis = await analyze_issue(issue, client=client, timeout=settings.request_timeout_s)
    except ReasoningModelError as e:
        logger.error(f"LLM analysis failed for {issue.issue_name}: {e}")
        raise _upstream_error(e) from e

    return AnalyzeIssueResponse(
        analysis=analysis.analysis,
        confidence=analysis.confidence,
        recommendations=analysis.recommendations,
        suggested_actions=analysis.actions,
        model=analysis.model,
        provider=analysis.provider,
    )


@engine_router.post("/agentic-step", response_model=AgenticStepResponse)
async def agentic_step(
    request: AgenticStepRequest,
    client: ReasoningClient = Depends(get_reasoning_client),
    settings: Settings = Depends(get_settings),
) -> AgenticStepResponse:
    """One turn of the agentic remediation loop."""
    _require_issue_name(request)
    issue = _issue_from_request(request, settings)

    try:
        history = StepHistory.of(request.history)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    step_number = request.current_step or history.next_step_number
    max_steps = request.max_steps or settings.max_steps

    try:
        result = await step(
            issue,
            history,
            step_number,
            max_steps,
            client=client,
            timeout=settings.request_timeout_s,
        )
    except ReasoningModelError as e:
        logger.error(f"Agentic step {step_number} failed for {issue.issue_name}: {e}")
        raise _upstream_error(e) from e

    if isinstance(result, ParseFailure):
        return AgenticStepResponse(
            **result.decision.model_dump(),
            parse_failed=True,
            parse_error=result.cause,
        )
    return AgenticStepResponse(**result.model_dump())
