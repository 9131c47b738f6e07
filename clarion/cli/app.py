"""Main Typer application — imports and registers all CLI commands.

Entry point: ``clarion`` (configured via pyproject.toml [project.scripts]).
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from clarion import __version__
from clarion.cli.commands.generate import generate_cmd
from clarion.cli.commands.send import send_cmd
from clarion.cli.commands.verify import verify_cmd
from clarion.config import settings
from clarion.logs import configure_logging

app = typer.Typer(
    name="clarion",
    help="Clarion: send notifications to e-mail, webhooks and more via service URLs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="send", help="Send a notification using service URLs.")(send_cmd)
app.command(name="verify", help="Verify the validity of a service URL.")(verify_cmd)
app.command(name="generate", help="Generate a service URL from properties.")(generate_cmd)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"clarion {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Clarion command-line interface."""
    configure_logging(settings.log_level)


@app.command(name="services", help="List the available notification services.")
def services_cmd() -> None:
    """List every registered service scheme."""
    from clarion.router import default_registry

    registry = default_registry()
    console = Console()
    table = Table(title="Available Services")
    table.add_column("Scheme", style="cyan")
    table.add_column("Default URL", style="dim")
    for scheme in registry.list_services():
        config_class = getattr(registry.new_service(scheme), "config_class", None)
        template = config_class.with_defaults().get_url() if config_class else ""
        table.add_row(scheme, template)
    console.print(table)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
