"""
Response parsing for reasoning-model output.

parse_step_response never raises: output that cannot be turned into a
StepDecision becomes a ParseFailure value carrying the raw text, the
cause, and a sentinel decision for callers that only want the decision
shape. Callers must check for ParseFailure explicitly before acting.
"""

import logging

import pydantic
from pydantic import BaseModel, Field

from remedy_core.actions.catalog import DEFAULT_CATALOG, ActionCatalog, ActionName
from remedy_core.actions.validation import ValidationError, validate_turn_actions
from remedy_core.engine.decision import ActionRequest, IssueAnalysis, StepDecision

logger = logging.getLogger(__name__)

# Bound on raw model text embedded in diagnostics
MAX_RAW_IN_DIAGNOSTIC = 2000

FALLBACK_CONFIDENCE = 0.5
FALLBACK_RECOMMENDATION = "Review the issue manually - AI response could not be parsed"

_FENCE = "```"


class ParseFailure(BaseModel):
    """
    Model output that could not be turned into a StepDecision.

    Attributes:
        raw: The raw response text
        cause: Why parsing failed
    """

    raw: str = Field(..., description="Raw response text")
    cause: str = Field(..., description="Why parsing failed")

    @property
    def decision(self) -> StepDecision:
        """
        Sentinel decision: not resolved, no action, diagnostic reasoning.

        The reasoning embeds the cause and the raw text (truncated), so an
        escalation built from it loses no information a human needs.
        """
        raw = self.raw
        if len(raw) > MAX_RAW_IN_DIAGNOSTIC:
            raw = raw[:MAX_RAW_IN_DIAGNOSTIC] + f"... [{len(self.raw) - MAX_RAW_IN_DIAGNOSTIC} more chars]"
        return StepDecision(
            reasoning=f"Failed to parse AI response: {self.cause}\nRaw response: {raw}",
            resolved=False,
            next_action=None,
        )


StepResult = StepDecision | ParseFailure


def as_decision(result: StepResult) -> StepDecision:
    """The decision itself, or the sentinel decision of a ParseFailure."""
    return result.decision if isinstance(result, ParseFailure) else result


def strip_code_fence(text: str) -> str:
    """
    Remove one surrounding triple-backtick fence, with or without a language tag.

    Only a fence that opens the (whitespace-trimmed) text is removed,
    together with the last closing fence. Inner content is left untouched.

    Example:
        strip_code_fence('```json\\n{"a": 1}\\n```')  # '{"a": 1}'
    """
    cleaned = text.strip()
    if not cleaned.startswith(_FENCE):
        return cleaned
    cleaned = cleaned[len(_FENCE):]
    if cleaned.startswith("json"):
        cleaned = cleaned[len("json"):]
    closing = cleaned.rfind(_FENCE)
    if closing >= 0:
        cleaned = cleaned[:closing]
    return cleaned.strip()


def _short_validation_error(exc: pydantic.ValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error["loc"])
        parts.append(f"{loc}: {error['msg']}" if loc else error["msg"])
    return "; ".join(parts)


def parse_step_response(
    response: str,
    catalog: ActionCatalog | None = DEFAULT_CATALOG,
) -> StepResult:
    """
    Parse raw model output into a StepDecision.

    Normalizations applied to well-formed output:
    - next_action with an empty action or "Observe" becomes None (observe)
    - next_action on a resolved decision is dropped

    Args:
        response: Raw model output text
        catalog: Catalog the chosen action must belong to; None disables
            the membership check

    Returns:
        StepDecision, or ParseFailure if the text is not a valid decision
        or names an action outside the catalog
    """
    cleaned = strip_code_fence(response)

    try:
        decision = StepDecision.model_validate_json(cleaned)
    except pydantic.ValidationError as e:
        cause = _short_validation_error(e)
        logger.warning(f"Unparseable step response: {cause}")
        return ParseFailure(raw=response, cause=cause)

    action = decision.next_action
    if action is not None and action.action in ("", ActionName.OBSERVE.value):
        decision = decision.model_copy(update={"next_action": None})
    elif action is not None and decision.resolved:
        logger.warning(f"Dropping next_action {action.action!r} from resolved decision")
        decision = decision.model_copy(update={"next_action": None})
    elif action is not None and catalog is not None and not catalog.is_known(action.action):
        cause = (
            f"unknown action {action.action!r} "
            f"(catalog {catalog.version} allows: {', '.join(catalog.list_action_names())})"
        )
        logger.warning(f"Rejected step response: {cause}")
        return ParseFailure(raw=response, cause=cause)

    return decision


def parse_analysis_response(
    response: str,
    catalog: ActionCatalog | None = DEFAULT_CATALOG,
) -> IssueAnalysis:
    """
    Parse raw model output into an IssueAnalysis.

    Unparseable output falls back to the raw text as the analysis with
    a neutral confidence and a manual-review recommendation. Confidence
    is clamped to [0.0, 1.0]. Suggested actions that fail catalog
    validation are dropped, and only the first DeletePod is kept.

    Args:
        response: Raw model output text
        catalog: Catalog suggested actions are validated against; None keeps all

    Returns:
        IssueAnalysis (never raises)
    """
    cleaned = strip_code_fence(response)

    try:
        analysis = IssueAnalysis.model_validate_json(cleaned)
    except pydantic.ValidationError as e:
        logger.warning(f"Unparseable analysis response: {_short_validation_error(e)}")
        return IssueAnalysis(
            analysis=response,
            confidence=FALLBACK_CONFIDENCE,
            recommendations=[FALLBACK_RECOMMENDATION],
        )

    confidence = min(1.0, max(0.0, analysis.confidence))

    actions = analysis.actions
    if catalog is not None:
        actions = _valid_suggestions(analysis.actions, catalog)

    return analysis.model_copy(update={"confidence": confidence, "actions": actions})


def _valid_suggestions(actions: list[ActionRequest], catalog: ActionCatalog) -> list[ActionRequest]:
    """Keep, in order, the suggestions that still form a valid turn."""
    kept: list[ActionRequest] = []
    for action in actions:
        turn = [(a.action, a.params) for a in kept] + [(action.action, action.params)]
        try:
            validate_turn_actions(turn, catalog)
        except ValidationError as e:
            logger.warning(f"Dropped suggested action {action.action!r}: {e.errors[-1]}")
            continue
        kept.append(action)
    return kept
