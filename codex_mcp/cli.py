"""codex-mcp CLI — run the MCP server or check the codex install."""

from __future__ import annotations

import asyncio
import logging
import sys

import typer
from rich.console import Console
from rich.panel import Panel

from codex_mcp.config import settings

app = typer.Typer(
    name="codex-mcp",
    help="codex-mcp -- run codex CLI agents in the background over MCP.",
)
console = Console()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.callback(invoke_without_command=True)
def main_callback(ctx: typer.Context):
    """Start the MCP server when no subcommand is given."""
    if ctx.invoked_subcommand is None:
        serve()


@app.command("serve")
def serve():
    """Serve the codex agent tools over MCP on stdio."""
    from codex_mcp.server import serve as run_server

    configure_logging(settings.log_level)
    try:
        asyncio.run(run_server(settings))
    except Exception:
        logging.getLogger(__name__).exception("Server error")
        raise typer.Exit(code=1)


@app.command("check")
def check():
    """Check that the codex binary is installed and runnable."""
    from codex_mcp.supervisor.manager import AgentSupervisor

    configure_logging("WARNING")
    supervisor = AgentSupervisor.from_settings(settings)
    result = asyncio.run(supervisor.probe_availability())

    if result.available:
        console.print(Panel(
            f"[green]codex is available[/green]\n\n"
            f"Binary:   {result.binary}\n"
            f"Version:  {result.version}",
            title="codex-mcp",
            border_style="cyan",
        ))
        return

    console.print(Panel(
        f"[red]codex is not available[/red]\n\n"
        f"Binary:   {result.binary}\n"
        f"Error:    {(result.error or '').strip()}\n\n"
        "Set the binary path with:\n"
        "  [bold]export CODEX_BIN=/path/to/codex[/bold]",
        title="codex-mcp",
        border_style="red",
    ))
    raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
