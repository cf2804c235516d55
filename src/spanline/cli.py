"""CLI interface for spanline.

Requires the 'cli' extra: pip install spanline[cli]
"""

from __future__ import annotations

import sys

try:
    import typer
    from rich.console import Console
    from rich.table import Table
except ImportError:
    print(
        "CLI dependencies not installed. Install with: pip install spanline[cli]",
        file=sys.stderr,
    )
    sys.exit(1)

from spanline import __version__
from spanline.client import SpanlineClient
from spanline.config import SpanlineConfig
from spanline.exceptions import SpanlineError

app = typer.Typer(
    name="spanline",
    help="Non-blocking telemetry for LLM applications.",
    add_completion=False,
)
console = Console()


@app.callback()
def main(
    version: bool = typer.Option(False, "--version", "-v", help="Show version"),
) -> None:
    if version:
        console.print(f"spanline {__version__}")
        raise typer.Exit()


@app.command()
def info() -> None:
    """Show the installed version and the configuration resolved from the environment."""
    table = Table(title="spanline info")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Version", __version__)
    table.add_row("Python", sys.version.split()[0])

    try:
        config = SpanlineConfig.from_env()
    except ValueError as exc:
        console.print(f"[red]Invalid configuration: {exc}[/red]")
        raise typer.Exit(code=1) from None

    for key, value in config.masked().items():
        table.add_row(key, "[dim]unset[/dim]" if value is None else str(value))

    for dep_name in ["httpx", "pydantic"]:
        try:
            mod = __import__(dep_name)
            ver = getattr(mod, "__version__", "installed")
            table.add_row(dep_name, str(ver))
        except ImportError:
            table.add_row(dep_name, "[red]not installed[/red]")

    console.print(table)


@app.command()
def ping(
    project: str = typer.Option(None, "--project", "-p", help="Project name override"),
) -> None:
    """Check that the configured endpoint accepts the configured credentials."""
    try:
        client = SpanlineClient(project_name=project)
    except (SpanlineError, ValueError) as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(code=1) from None

    with client:
        ok = client.auth_check()

    if not ok:
        console.print(f"[red]Authentication failed against {client.config.base_url}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Connected to {client.config.base_url}[/green]")


if __name__ == "__main__":
    app()
