"""
Pydantic models for the decision wire contract.

The reasoning model answers every agentic step with one JSON object in
one of three shapes:

    in progress, acting:  {"reasoning", "resolved": false, "next_action": {...}}
    in progress, waiting: {"reasoning", "resolved": false, "next_action": null}
    resolved:             {"reasoning", "resolved": true, "next_action": null,
                           "postmortem_summary", "root_cause", "impact",
                           "lessons_learned", "prevention_actions"}

The single-shot analysis sibling answers with IssueAnalysis instead.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator


def _stringify_params(value: Any) -> Any:
    """Coerce scalar parameter values to strings; models often emit numbers."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        return value
    coerced = {}
    for key, item in value.items():
        if isinstance(item, bool):
            coerced[key] = "true" if item else "false"
        elif isinstance(item, (int, float)):
            coerced[key] = str(item)
        else:
            coerced[key] = item
    return coerced


class ActionRequest(BaseModel):
    """
    An action chosen by the reasoning model.

    `action` stays a plain string at this level: catalog membership is
    checked by the parser, and parameter contracts by the caller.
    """

    name: str = Field(default="", description="Short human-readable label")
    action: str = Field(default="", description="Catalog action name")
    description: str = Field(default="", description="Why this action is chosen")
    params: dict[str, str] = Field(default_factory=dict, description="Wire-level parameters")

    @field_validator("params", mode="before")
    @classmethod
    def _coerce_params(cls, value: Any) -> Any:
        return _stringify_params(value)


class StepDecision(BaseModel):
    """
    The model's decision for one agentic step.

    Invariant: resolved=True implies next_action is None. resolved=False
    with next_action=None means "observe, don't act yet".
    """

    reasoning: str = Field(default="", description="Model reasoning for this step")
    resolved: bool = Field(default=False, description="Whether the issue is resolved")
    next_action: ActionRequest | None = Field(default=None, description="Action to take next")

    # Postmortem fields, meaningful only when resolved
    postmortem_summary: str = Field(default="", description="Incident summary")
    root_cause: str = Field(default="", description="Identified root cause")
    impact: str = Field(default="", description="User and system impact")
    lessons_learned: list[str] = Field(default_factory=list)
    prevention_actions: list[str] = Field(default_factory=list)

    @field_validator("lessons_learned", "prevention_actions", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("postmortem_summary", "root_cause", "impact", "reasoning", mode="before")
    @classmethod
    def _none_to_blank(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def is_observation(self) -> bool:
        """True when the model chose to wait rather than act."""
        return not self.resolved and self.next_action is None


class IssueAnalysis(BaseModel):
    """
    Single-shot assessment of an issue (the AnalyzeIssue sibling).

    Attributes:
        analysis: Root cause analysis and impact assessment
        confidence: Confidence in [0.0, 1.0]
        recommendations: Human-readable advice
        actions: Zero or more suggested catalog actions
        model: Model that produced the analysis (filled in by the engine)
        provider: Provider of that model (filled in by the engine)
    """

    analysis: str = Field(default="", description="Root cause analysis")
    confidence: float = Field(default=0.0, description="Confidence in [0.0, 1.0]")
    recommendations: list[str] = Field(default_factory=list)
    actions: list[ActionRequest] = Field(default_factory=list)
    model: str = Field(default="", description="Model that produced the analysis")
    provider: str = Field(default="", description="Provider of that model")

    @field_validator("recommendations", "actions", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value
