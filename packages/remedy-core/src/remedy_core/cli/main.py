"""Remedy CLI - agentic step engine for incident remediation."""

import logging

import typer
import uvicorn
from rich.logging import RichHandler

from remedy_core.cli.audit import audit_app
from remedy_core.cli.engine import engine_app
from remedy_core.config import settings

app = typer.Typer(
    name="remedy",
    help="Agentic step engine for autonomous incident remediation",
    no_args_is_help=True,
)

# Engine commands live at the top level: remedy catalog, remedy step, ...
app.add_typer(engine_app)
app.add_typer(audit_app, name="audit")


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )


@app.command("serve")
def serve(
    host: str = typer.Option(settings.host, "--host", help="Bind address"),
    port: int = typer.Option(settings.port, "--port", "-p", help="Bind port"),
) -> None:
    """Run the step engine RPC service."""
    print(f"Serving step engine on http://{host}:{port} (model: {settings.model})")
    uvicorn.run("remedy_core.server.app:app", host=host, port=port)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
