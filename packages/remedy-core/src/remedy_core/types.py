"""
Core data types for the agentic remediation loop.

This module defines the immutable inputs threaded through every step:
- IssueContext: The incident being remediated and its environment
- RemediationStep: One recorded turn of the loop
- StepHistory: Append-only sequence of recorded turns

Per project patterns:
- Pydantic BaseModel for validation and serialization
- Frozen models; "updates" return new instances
- Field() with descriptions for documentation
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from remedy_core.actions.catalog import ActionName


class IssueContext(BaseModel):
    """
    Immutable description of an incident.

    The caller builds a fresh IssueContext for every step, refreshing
    cluster_context from its context provider in between.

    Attributes:
        issue_name: Identity of the issue (required by the RPC surface)
        namespace: Kubernetes namespace of the affected resource
        resource_kind: Kind of the affected resource (e.g. "Deployment")
        resource_name: Name of the affected resource
        signal_type: Signal that raised the issue (e.g. "oom_kill")
        severity: Severity label (e.g. "critical")
        description: Free-text description of the symptoms
        risk_score: Risk estimate from 0 to 100
        cluster_context: Live cluster state text, produced externally
        previous_failure_context: Summary of earlier failed attempts
    """

    model_config = ConfigDict(frozen=True)

    issue_name: str = Field(default="", description="Identity of the issue")
    namespace: str = Field(default="", description="Namespace of the affected resource")
    resource_kind: str = Field(default="Deployment", description="Kind of the affected resource")
    resource_name: str = Field(default="", description="Name of the affected resource")
    signal_type: str = Field(default="", description="Signal that raised the issue")
    severity: str = Field(default="", description="Severity label")
    description: str = Field(default="", description="Free-text symptom description")
    risk_score: int = Field(default=0, ge=0, le=100, description="Risk estimate 0-100")
    cluster_context: str = Field(default="", description="Live cluster state text")
    previous_failure_context: str | None = Field(
        default=None, description="Summary of earlier failed remediation attempts"
    )

    def with_cluster_context(self, cluster_context: str) -> "IssueContext":
        """Return a copy carrying a refreshed cluster context."""
        return self.model_copy(update={"cluster_context": cluster_context})


class RemediationStep(BaseModel):
    """
    One recorded turn of the agentic loop.

    Attributes:
        step_number: 1-based turn number
        reasoning: The model's reasoning for this turn
        action: Action taken, None for observation-only and final turns
        params: Wire-level action parameters
        observation: Actuator result, None when nothing was executed
    """

    model_config = ConfigDict(frozen=True)

    step_number: int = Field(..., ge=1, description="1-based turn number")
    reasoning: str = Field(default="", description="Model reasoning for this turn")
    action: ActionName | None = Field(default=None, description="Action taken, if any")
    params: dict[str, str] = Field(default_factory=dict, description="Action parameters")
    observation: str | None = Field(default=None, description="Result of executing the action")

    @field_validator("params", mode="before")
    @classmethod
    def _none_params(cls, value: object) -> object:
        return {} if value is None else value


class StepHistory(BaseModel):
    """
    Append-only, ordered record of all turns taken on one issue.

    Never mutated in place: append() returns a new history. Step numbers
    must be strictly increasing.

    Example:
        history = StepHistory()
        history = history.append(RemediationStep(step_number=1, reasoning="..."))
        history.next_step_number  # 2
    """

    model_config = ConfigDict(frozen=True)

    steps: tuple[RemediationStep, ...] = Field(default=(), description="Recorded turns")

    @model_validator(mode="after")
    def _check_order(self) -> "StepHistory":
        for previous, current in zip(self.steps, self.steps[1:]):
            if current.step_number <= previous.step_number:
                raise ValueError(
                    f"step numbers must be strictly increasing "
                    f"(step {current.step_number} follows step {previous.step_number})"
                )
        return self

    @classmethod
    def of(cls, steps: list[RemediationStep]) -> "StepHistory":
        """Build a history from a list of steps."""
        return cls(steps=tuple(steps))

    def append(self, step: RemediationStep) -> "StepHistory":
        """Return a new history with `step` appended."""
        return StepHistory(steps=self.steps + (step,))

    @property
    def next_step_number(self) -> int:
        """Step number the next turn should use."""
        return self.steps[-1].step_number + 1 if self.steps else 1

    @property
    def last(self) -> RemediationStep | None:
        """Most recent step, or None for an empty history."""
        return self.steps[-1] if self.steps else None

    def __len__(self) -> int:
        return len(self.steps)
