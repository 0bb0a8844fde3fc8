"""
System prompt and prompt builders for the agentic step engine.

Two builders share the same issue facts block and action catalog:
- build_step_prompt: one turn of the iterative remediation loop, with
  turn history and step budget
- build_analysis_prompt: single-shot analysis with a confidence score and
  suggested actions

Both are pure functions of their arguments. The prompt is the only channel
through which the model learns which actions exist, so the catalog section
is rendered from the ActionCatalog rather than written by hand.
"""

import json

from remedy_core.actions.catalog import DEFAULT_CATALOG, ActionCatalog, ActionName
from remedy_core.types import IssueContext, RemediationStep, StepHistory

SYSTEM_PROMPT = """You are an expert Kubernetes SRE operating an autonomous remediation loop.

You diagnose live incidents from the facts and cluster context you are given and
heal them one step at a time using only the remediation actions you are offered.
Prefer the least disruptive action that addresses the root cause. Never invent
actions or parameters. When you are unsure, observe instead of acting.

Always answer with exactly one JSON object and nothing else."""

TRUNCATION_MARKER = "\n... [truncated]"

STEP_RESPONSE_FORMAT = """## Response Format

Respond ONLY with a single JSON object (no markdown, no code blocks), in exactly one of these shapes.

To take an action:
{"reasoning": "What the evidence shows and why this action", "resolved": false, "next_action": {"name": "Scale up", "action": "ScaleDeployment", "description": "Add replicas to absorb load", "params": {"replicas": "3"}}}

To wait for the next context refresh without acting:
{"reasoning": "Why waiting is the right call", "resolved": false, "next_action": null}

When the issue is resolved:
{"reasoning": "Evidence that the issue is resolved", "resolved": true, "next_action": null, "postmortem_summary": "What happened and how it was fixed", "root_cause": "The underlying cause", "impact": "Who and what was affected", "lessons_learned": ["First lesson"], "prevention_actions": ["First prevention action"]}

Rules:
- Take at most ONE action per step; its result will be shown to you next step
- All param values are strings
- Only declare resolved when the live cluster context shows the resource is healthy
- Never set next_action when resolved is true"""

ANALYSIS_RESPONSE_FORMAT = """Respond ONLY with a JSON object (no markdown, no code blocks):
{
  "analysis": "Detailed root cause analysis and impact assessment",
  "confidence": 0.85,
  "recommendations": ["First recommendation", "Second recommendation"],
  "actions": [
    {"name": "Raise memory", "action": "AdjustResources", "description": "Pods are OOMKilled at the current limit", "params": {"memory_limit": "1Gi", "memory_request": "512Mi"}},
    {"name": "Scale up", "action": "ScaleDeployment", "description": "Add replicas to handle load", "params": {"replicas": "3"}}
  ]
}

Rules:
- confidence: float between 0.0 and 1.0
- recommendations: human-readable text advice
- actions: concrete remediation steps using ONLY the available actions listed above
- Each action must have a description explaining WHY it is recommended"""


def truncate_context(text: str, max_chars: int) -> str:
    """
    Bound cluster context to a character budget.

    Args:
        text: Context text from the context provider
        max_chars: Character budget (<= 0 disables truncation)

    Returns:
        The text, cut to max_chars with a trailing marker if it was longer
    """
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    # No room for the marker
    if max_chars <= len(TRUNCATION_MARKER):
        return text[:max_chars]
    return text[: max_chars - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


def format_issue_facts(issue: IssueContext) -> str:
    """Render the issue facts block shared by both prompts."""
    return f"""## Issue Details

- Name: {issue.issue_name}
- Namespace: {issue.namespace}
- Resource: {issue.resource_kind}/{issue.resource_name}
- Signal Type: {issue.signal_type}
- Severity: {issue.severity}
- Description: {issue.description}
- Risk Score: {issue.risk_score}/100
"""


def format_action_catalog(catalog: ActionCatalog = DEFAULT_CATALOG) -> str:
    """
    Render the catalog as the list of actions the model may choose from.

    Each line carries the action name, exact parameter keys and one line
    of guidance. Definition order is preserved.
    """
    lines = [f"## Available Remediation Actions (catalog {catalog.version}, use ONLY these)", ""]
    for definition in catalog.get_definitions():
        if definition.name == ActionName.OBSERVE:
            params = 'no params; send "next_action": null'
        elif definition.parameters:
            rendered = []
            for param_name, param_def in definition.parameters.items():
                required = "required" if param_def.required else "optional"
                rendered.append(f'"{param_name}" ({required}): {param_def.description}')
            params = "params: " + "; ".join(rendered)
            if definition.accepts_extra_params:
                params += '; plus any "key": "value" pairs to write'
        else:
            params = "no params needed"
        line = f"- {definition.name.value}: {definition.description} ({params})."
        if definition.guidance:
            line += f" {definition.guidance}"
        lines.append(line)
    lines.append("")
    return "\n".join(lines)


def _format_step(step: RemediationStep) -> str:
    lines = [f"### Step {step.step_number}", f"Reasoning: {step.reasoning}"]
    if step.action is None or step.action == ActionName.OBSERVE:
        lines.append("Action: (observation only)")
    else:
        params = json.dumps(step.params, sort_keys=True) if step.params else "{}"
        lines.append(f"Action: {step.action.value} {params}")
    if step.observation:
        lines.append(f"Observation: {step.observation}")
    else:
        lines.append("Observation: (none)")
    return "\n".join(lines)


def format_history(history: StepHistory) -> str:
    """Render the turn history, oldest first."""
    if len(history) == 0:
        return "## Previous Steps\n\nNo steps taken yet. This is the first step.\n"
    sections = ["## Previous Steps", ""]
    for step in history.steps:
        sections.append(_format_step(step))
        sections.append("")
    return "\n".join(sections)


def build_step_prompt(
    issue: IssueContext,
    history: StepHistory,
    step_number: int,
    max_steps: int,
    catalog: ActionCatalog = DEFAULT_CATALOG,
) -> str:
    """
    Build the instruction text for one agentic step.

    Sections, in order:
    - Role and step protocol
    - Issue facts
    - Live cluster context (if present)
    - Previous failed attempts (if present)
    - Action catalog with guidance
    - Turn history
    - Current step and budget
    - Response format with the three literal decision shapes

    Args:
        issue: The incident, with the freshly refreshed cluster context
        history: All turns taken so far
        step_number: The 1-based number of this step
        max_steps: The caller's step budget

    Returns:
        Prompt string for the reasoning model
    """
    sections = [
        "You are an autonomous Kubernetes SRE agent remediating a live incident. "
        "You work in steps: at each step you either take ONE remediation action, "
        "wait for the next observation, or declare the issue resolved.\n",
        format_issue_facts(issue),
    ]

    if issue.cluster_context:
        sections.append("## Live Cluster Context (refreshed at every step)\n")
        sections.append(issue.cluster_context.rstrip())
        sections.append("")

    if issue.previous_failure_context:
        sections.append("## Previous Failed Attempts\n")
        sections.append(issue.previous_failure_context.rstrip())
        sections.append("")
        sections.append(
            "These strategies already FAILED. Do NOT repeat them; choose a different approach.\n"
        )

    sections.append(format_action_catalog(catalog))
    sections.append(format_history(history))

    remaining = max_steps - step_number
    sections.append("## Current Step\n")
    sections.append(f"This is step {step_number} of a maximum of {max_steps} steps.")
    if remaining <= 0:
        sections.append(
            "This is your LAST step. If the issue is not resolved, explain in your "
            "reasoning what a human operator should investigate next."
        )
    elif remaining == 1:
        sections.append("Only one step remains after this one; prefer decisive actions.")
    sections.append("")

    sections.append(STEP_RESPONSE_FORMAT)
    return "\n".join(sections)


def build_analysis_prompt(issue: IssueContext, catalog: ActionCatalog = DEFAULT_CATALOG) -> str:
    """
    Build the single-shot AnalyzeIssue prompt.

    Reuses the facts block and action catalog, but asks for one
    assessment with a confidence score instead of iterative steps.

    Args:
        issue: The incident to analyze

    Returns:
        Prompt string for the reasoning model
    """
    sections = [
        "You are a Kubernetes SRE expert. Analyze the following issue and provide a "
        "structured assessment with concrete remediation actions.\n",
        format_issue_facts(issue),
    ]

    if issue.cluster_context:
        sections.append("## Live Cluster Context\n")
        sections.append(issue.cluster_context.rstrip())
        sections.append("")

    if issue.previous_failure_context:
        sections.append("## Previous Failed Attempts\n")
        sections.append(issue.previous_failure_context.rstrip())
        sections.append("")
        sections.append("Do NOT recommend strategies that already failed.\n")

    sections.append(format_action_catalog(catalog))
    sections.append(ANALYSIS_RESPONSE_FORMAT)
    return "\n".join(sections)
