"""Remediation audit log CLI commands.

This module provides CLI commands for reviewing recorded driver runs:
- list: Display recent sessions in table format
- show: Display the full turn history of a session
"""

import json
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from remedy_core.config import settings
from remedy_core.db.audit_log import StepAuditLog

audit_app = typer.Typer(help="Review remediation audit logs")


def _format_timestamp(iso_str: str | None) -> str:
    """Format ISO timestamp to human-readable."""
    if not iso_str:
        return "-"
    try:
        dt = datetime.fromisoformat(iso_str)
        return dt.strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        return iso_str


def _open_log(db_path: Path, console: Console) -> StepAuditLog:
    if not db_path.exists():
        console.print(f"[red]No audit database at {db_path}[/red]")
        raise typer.Exit(1)
    return StepAuditLog(db_path)


@audit_app.command("list")
def list_sessions(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of sessions to show"),
    db_path: Path = typer.Option(settings.db_path, "--db", help="Path to database"),
) -> None:
    """List recent remediation sessions."""
    console = Console()

    with _open_log(db_path, console) as audit_log:
        sessions = audit_log.list_sessions(limit)

    if not sessions:
        console.print("[yellow]No sessions found[/yellow]")
        return

    table = Table(title="Remediation Sessions")
    table.add_column("Session ID", style="cyan")
    table.add_column("Issue")
    table.add_column("Namespace", style="dim")
    table.add_column("Status", style="green")
    table.add_column("Started", style="dim")
    table.add_column("Duration")
    table.add_column("Outcome")

    for session in sessions:
        duration = "-"
        if session["started_at"] and session["ended_at"]:
            try:
                start = datetime.fromisoformat(session["started_at"])
                end = datetime.fromisoformat(session["ended_at"])
                duration = f"{(end - start).total_seconds():.1f}s"
            except ValueError:
                pass

        # Truncate outcome for table
        outcome = session["outcome_summary"] or "-"
        if len(outcome) > 50:
            outcome = outcome[:47] + "..."

        table.add_row(
            session["session_id"],
            session["issue_name"],
            session["namespace"] or "-",
            session["status"] or "unknown",
            _format_timestamp(session["started_at"]),
            duration,
            outcome,
        )

    console.print(table)


@audit_app.command("show")
def show_session(
    session_id: str = typer.Argument(..., help="Session ID to display"),
    db_path: Path = typer.Option(settings.db_path, "--db", help="Path to database"),
) -> None:
    """Show every recorded turn of a remediation session."""
    console = Console()

    with _open_log(db_path, console) as audit_log:
        session = audit_log.get_session(session_id)
        if not session:
            console.print(f"[red]Session not found: {session_id}[/red]")
            raise typer.Exit(1)
        history = audit_log.get_session_history(session_id)

    metadata = f"""[bold]Session:[/bold] {session["session_id"]}
[bold]Issue:[/bold] {session["issue_name"]}
[bold]Namespace:[/bold] {session["namespace"] or "N/A"}
[bold]Status:[/bold] {session["status"]}
[bold]Started:[/bold] {_format_timestamp(session["started_at"])}
[bold]Ended:[/bold] {_format_timestamp(session["ended_at"])}"""

    console.print(Panel(metadata, title="Session Info", border_style="cyan"))
    console.print()

    if session["outcome_summary"]:
        console.print(Panel(
            escape(session["outcome_summary"]),
            title="Outcome Summary",
            border_style="green",
        ))
        console.print()

    console.print("[bold]Steps:[/bold]")
    console.print()

    for recorded in history.steps:
        console.print(f"[cyan][Step {recorded.step_number}][/cyan] {escape(recorded.reasoning)}")
        if recorded.action is None:
            console.print("    [dim](observation only)[/dim]")
        else:
            params = json.dumps(recorded.params, sort_keys=True)
            console.print(f"    [yellow]{recorded.action.value}[/yellow] {escape(params)}")
        if recorded.observation:
            console.print(f"    [green]{escape(recorded.observation)}[/green]")
        console.print()
