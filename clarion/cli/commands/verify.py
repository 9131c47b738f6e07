"""``clarion verify`` — check that a service URL resolves to a valid config.

On success the decoded configuration is shown as a table.  Error output
is deliberately vague so that credentials embedded in the URL never end
up in terminal scrollback or CI logs.
"""

from __future__ import annotations

import typer
from rich.console import Console

from clarion.format.render import config_table
from clarion.router import ServiceInitError, UnknownServiceError, default_registry

console = Console()


def sanitize_error(exc: Exception) -> str:
    """Map an error to a message that never echoes the URL."""
    if isinstance(exc, UnknownServiceError):
        return "service not recognized"
    text = str(exc).lower()
    if "parse" in text or "invalid" in text or "missing" in text:
        return "invalid URL format"
    return "unable to process URL"


def verify_cmd(
    url: str = typer.Option(
        ...,
        "--url",
        "-u",
        help="The notification service URL to verify.",
    ),
    show_secrets: bool = typer.Option(
        False,
        "--show-sensitive",
        "-x",
        help="Show secret values instead of masking them.",
    ),
) -> None:
    """Verify the validity of a notification service URL."""
    try:
        service = default_registry().locate(url)
    except (ServiceInitError, UnknownServiceError) as exc:
        console.print(f"[bold red]error verifying URL:[/bold red] {sanitize_error(exc)}")
        raise typer.Exit(code=1) from exc

    config = getattr(service, "config", None)
    if config is None:
        console.print(f"[green]{service.get_id()} URL is valid.[/green]")
        return
    console.print(config_table(config, show_secrets=show_secrets))
