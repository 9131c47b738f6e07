"""``clarion generate`` — build a service URL from key=value properties.

Starts from the service's declared defaults, applies each ``-p key=value``
through the property resolver and prints the resulting URL.  Secret
fields are masked unless ``--show-sensitive`` is given.
"""

from __future__ import annotations

import typer
from rich.console import Console

from clarion.cli import EX_USAGE
from clarion.format.codec import ConfigValidationError
from clarion.format.schema import InvalidValueError, UnknownKeyError
from clarion.router import UnknownServiceError, default_registry

console = Console()


def parse_properties(pairs: list[str]) -> tuple[list[tuple[str, str]], list[str]]:
    """Split ``key=value`` strings; returns the pairs and the rejected inputs."""
    parsed: list[tuple[str, str]] = []
    rejected: list[str] = []
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            rejected.append(pair)
            continue
        parsed.append((key.strip(), value))
    return parsed, rejected


def generate_cmd(
    service: str = typer.Argument(
        ...,
        help="Service to generate a URL for (e.g. smtp, generic).",
    ),
    properties: list[str] = typer.Option(
        [],
        "--property",
        "-p",
        help="Configuration property in key=value form.  May be repeated.",
    ),
    show_secrets: bool = typer.Option(
        False,
        "--show-sensitive",
        "-x",
        help="Show sensitive data in the generated URL.",
    ),
) -> None:
    """Generate a notification service URL from properties."""
    registry = default_registry()
    try:
        handle = registry.new_service(service)
    except UnknownServiceError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=EX_USAGE) from exc

    pairs, rejected = parse_properties(properties)
    for pair in rejected:
        console.print(f"Invalid property key/value pair: [yellow]{pair}[/yellow]")

    config = handle.config_class.with_defaults()  # type: ignore[attr-defined]
    try:
        config.resolver().apply_all(pairs)
        config.validate_url_config()
    except (UnknownKeyError, InvalidValueError, ConfigValidationError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(f"Generating URL for [cyan]{service}[/cyan]")
    url = config.get_url() if show_secrets else config.masked_url()
    console.print(f"URL: {url}", markup=False, highlight=False, soft_wrap=True)
