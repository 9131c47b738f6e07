"""``clarion send`` — send a notification to one or more service URLs."""

from __future__ import annotations

import sys

import typer
from rich.console import Console

from clarion.cli import EX_CONFIG, EX_UNAVAILABLE
from clarion.config import settings
from clarion.logs import stderr_logger
from clarion.router import ServiceInitError, ServiceRouter, UnknownServiceError
from clarion.router.router import remove_duplicates

err_console = Console(stderr=True)

MAX_MESSAGE_PREVIEW = 100


def ellipsis(text: str, max_length: int) -> str:
    """Shorten *text* to *max_length* characters, ending in ``...``."""
    if len(text) <= max_length:
        return text
    return text[: max(max_length - 3, 0)] + "..."


def send_cmd(
    urls: list[str] = typer.Option(
        ...,
        "--url",
        "-u",
        help="A notification service URL.  May be repeated.",
    ),
    message: str = typer.Option(
        ...,
        "--message",
        "-m",
        help="The message to send, or - to read it from stdin.",
    ),
    title: str = typer.Option(
        "",
        "--title",
        "-t",
        help="The title used for services that support it.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log service diagnostics to stderr.",
    ),
) -> None:
    """Send a notification using one or more service URLs."""
    urls = remove_duplicates(urls)

    if message == "-":
        err_console.print("Reading from STDIN...")
        message = sys.stdin.read()
        err_console.print(f"Read {len(message)} character(s)")

    service_logger = None
    if verbose or settings.verbose:
        for index, url in enumerate(urls):
            prefix = "URLs:" if index == 0 else "     "
            err_console.print(f"{prefix} {url}", markup=False, highlight=False)
        err_console.print(f"Message: {ellipsis(message, MAX_MESSAGE_PREVIEW)}", markup=False)
        if title:
            err_console.print(f"Title: {title}", markup=False)
        service_logger = stderr_logger()

    try:
        router = ServiceRouter(urls, service_logger=service_logger)
    except (ServiceInitError, UnknownServiceError) as exc:
        err_console.print(f"error invoking send: {exc}", style="bold red", markup=False)
        raise typer.Exit(code=EX_CONFIG) from exc

    params = {"title": title} if title else None

    failed = False
    for error in router.send_async(message, params):
        if error is not None:
            err_console.print(str(error), style="red", markup=False)
            failed = True
        else:
            err_console.print("Notification sent")

    if failed:
        raise typer.Exit(code=EX_UNAVAILABLE)
