"""
Postmortem synthesis for resolved issues.

A resolved StepDecision carries the closure fields inline; this module
lifts them into a PostmortemRecord and renders it for humans.
"""

from pydantic import BaseModel, Field

from remedy_core.engine.decision import StepDecision


class PostmortemRecord(BaseModel):
    """Structured closure record of a resolved issue."""

    summary: str = Field(default="", description="What happened and how it was fixed")
    root_cause: str = Field(default="", description="The underlying cause")
    impact: str = Field(default="", description="Who and what was affected")
    lessons_learned: list[str] = Field(default_factory=list)
    prevention_actions: list[str] = Field(default_factory=list)


def synthesize_postmortem(decision: StepDecision) -> PostmortemRecord | None:
    """
    Map a resolved decision's closure fields 1:1 into a PostmortemRecord.

    Returns:
        PostmortemRecord, or None when the decision is not resolved
    """
    if not decision.resolved:
        return None
    return PostmortemRecord(
        summary=decision.postmortem_summary,
        root_cause=decision.root_cause,
        impact=decision.impact,
        lessons_learned=list(decision.lessons_learned or []),
        prevention_actions=list(decision.prevention_actions or []),
    )


def format_postmortem_markdown(record: PostmortemRecord, title: str = "Postmortem") -> str:
    """Convert a PostmortemRecord to human-readable markdown."""
    lines = [f"## {title}", ""]

    lines.append("### Summary")
    lines.append(record.summary or "-")
    lines.append("")

    lines.append("### Root Cause")
    lines.append(record.root_cause or "-")
    lines.append("")

    lines.append("### Impact")
    lines.append(record.impact or "-")
    lines.append("")

    if record.lessons_learned:
        lines.append("### Lessons Learned")
        for lesson in record.lessons_learned:
            lines.append(f"- {lesson}")
        lines.append("")

    if record.prevention_actions:
        lines.append("### Prevention Actions")
        for action in record.prevention_actions:
            lines.append(f"- {action}")
        lines.append("")

    return "\n".join(lines)
