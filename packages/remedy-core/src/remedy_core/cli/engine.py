"""Step engine CLI commands.

This module provides CLI commands for driving the engine by hand:
- catalog: Show the action catalog
- analyze: Single-shot analysis of an issue file
- step: One agentic step for an issue file and optional history file
- run: Full remediation loop in dry-run mode (nothing is applied)

Issue files are JSON objects with IssueContext fields. History files are
JSON arrays of RemediationStep objects.
"""

import asyncio
import json
from pathlib import Path

import pydantic
import typer
from pydantic import TypeAdapter
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from remedy_core.actions.catalog import DEFAULT_CATALOG
from remedy_core.config import settings
from remedy_core.db.audit_log import StepAuditLog
from remedy_core.engine.client import AnthropicReasoningClient
from remedy_core.engine.errors import ReasoningModelError
from remedy_core.engine.parser import ParseFailure
from remedy_core.engine.step import analyze_issue, step
from remedy_core.loop.collaborators import DryRunActuator, StaticContextProvider
from remedy_core.loop.driver import LoopStatus, RemediationLoop
from remedy_core.types import IssueContext, RemediationStep, StepHistory

engine_app = typer.Typer(help="Drive the agentic step engine")

_history_adapter = TypeAdapter(list[RemediationStep])


def _load_issue(issue_file: Path, context_file: Path | None) -> IssueContext:
    try:
        issue = IssueContext.model_validate_json(issue_file.read_text())
    except pydantic.ValidationError as e:
        print(f"{issue_file}: invalid issue file: {e}")
        raise typer.Exit(1)
    if context_file is not None:
        issue = issue.with_cluster_context(context_file.read_text())
    if not issue.issue_name:
        print(f"{issue_file}: issue_name is required")
        raise typer.Exit(1)
    return issue


def _make_client(model: str) -> AnthropicReasoningClient:
    return AnthropicReasoningClient(
        model=model,
        max_tokens=settings.max_tokens,
        max_retries=settings.max_retries,
    )


@engine_app.command("catalog")
def show_catalog() -> None:
    """Show the remediation actions offered to the model."""
    console = Console()
    table = Table(title=f"Action Catalog ({DEFAULT_CATALOG.version})")
    table.add_column("Action", style="cyan")
    table.add_column("Parameters")
    table.add_column("Risk", style="yellow")
    table.add_column("Guidance", style="dim")

    for definition in DEFAULT_CATALOG.get_definitions():
        params = ", ".join(
            f"{name}{'' if p.required else '?'}" for name, p in definition.parameters.items()
        )
        if definition.accepts_extra_params:
            params += ", <key>=<value>..."
        table.add_row(definition.name.value, params or "-", definition.risk_level, definition.guidance)

    console.print(table)


@engine_app.command("analyze")
def analyze(
    issue_file: Path = typer.Argument(..., exists=True, help="Issue JSON file"),
    context_file: Path = typer.Option(None, "--context", "-c", exists=True, help="Cluster context text file"),
    model: str = typer.Option(settings.model, "--model", "-m", help="Claude model for analysis"),
) -> None:
    """
    Analyze an issue once and print the assessment as JSON.

    Environment variables:
        ANTHROPIC_API_KEY: API key for Claude
    """
    issue = _load_issue(issue_file, context_file)
    print(f"Analyzing issue {issue.issue_name}...")

    try:
        analysis = asyncio.run(
            analyze_issue(issue, client=_make_client(model), timeout=settings.request_timeout_s)
        )
    except ReasoningModelError as e:
        print(f"Analysis failed: {e}")
        raise typer.Exit(1)

    Console().print_json(analysis.model_dump_json())


@engine_app.command("step")
def run_step(
    issue_file: Path = typer.Argument(..., exists=True, help="Issue JSON file"),
    history_file: Path = typer.Option(None, "--history", exists=True, help="History JSON file"),
    context_file: Path = typer.Option(None, "--context", "-c", exists=True, help="Cluster context text file"),
    step_number: int = typer.Option(None, "--step", help="Step number (default: after history)"),
    max_steps: int = typer.Option(settings.max_steps, "--max-steps", help="Step budget"),
    model: str = typer.Option(settings.model, "--model", "-m", help="Claude model"),
) -> None:
    """
    Run one agentic step and print the decision as JSON.

    Exits with status 2 when the model's output could not be parsed.
    """
    issue = _load_issue(issue_file, context_file)
    history = StepHistory()
    if history_file is not None:
        try:
            history = StepHistory.of(_history_adapter.validate_json(history_file.read_text()))
        except pydantic.ValidationError as e:
            print(f"{history_file}: invalid history file: {e}")
            raise typer.Exit(1)
    number = step_number or history.next_step_number

    try:
        result = asyncio.run(
            step(
                issue,
                history,
                number,
                max_steps,
                client=_make_client(model),
                timeout=settings.request_timeout_s,
            )
        )
    except ReasoningModelError as e:
        print(f"Step {number} failed: {e}")
        raise typer.Exit(1)

    console = Console()
    if isinstance(result, ParseFailure):
        console.print(f"[red]Unusable model output:[/red] {escape(result.cause)}")
        console.print_json(result.decision.model_dump_json())
        raise typer.Exit(2)
    console.print_json(result.model_dump_json())


@engine_app.command("run")
def run_loop(
    issue_file: Path = typer.Argument(..., exists=True, help="Issue JSON file"),
    context_file: Path = typer.Option(None, "--context", "-c", exists=True, help="Cluster context text file"),
    max_steps: int = typer.Option(settings.max_steps, "--max-steps", help="Step budget"),
    interval: float = typer.Option(0.0, "--interval", "-i", help="Seconds between steps"),
    pod_count: int = typer.Option(None, "--pods", help="Pod count used to refuse DeletePod"),
    db_path: Path = typer.Option(settings.db_path, "--db", help="Path to audit database"),
    model: str = typer.Option(settings.model, "--model", "-m", help="Claude model"),
) -> None:
    """
    Run the full remediation loop in dry-run mode.

    Actions are validated and recorded but never applied; the cluster
    context stays whatever --context provides.
    """
    issue = _load_issue(issue_file, context_file)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    actuator = DryRunActuator(pod_count=pod_count)

    print(f"Dry-run remediation of {issue.issue_name} (max steps: {max_steps})")

    with StepAuditLog(db_path) as audit_log:
        loop = RemediationLoop(
            client=_make_client(model),
            context_provider=StaticContextProvider(issue.cluster_context),
            actuator=actuator,
            max_steps=max_steps,
            step_interval=interval,
            audit_log=audit_log,
        )
        outcome = asyncio.run(loop.run(issue))

    console = Console()
    console.print(outcome.escalation_report(), markup=False)
    for action, params in actuator.executed:
        console.print(f"[dim]would apply[/dim] {action.value} {escape(json.dumps(params, sort_keys=True))}")
    print(f"Session: {outcome.session_id}")

    if outcome.status != LoopStatus.RESOLVED:
        raise typer.Exit(1)
