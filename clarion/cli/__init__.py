"""Clarion CLI — Typer-based command-line interface.

Provides the ``clarion`` command with subcommands for sending a
notification, verifying a service URL, generating a URL from properties
and listing the available services.

Exit codes follow BSD ``sysexits.h``.
"""

EX_USAGE = 64
EX_UNAVAILABLE = 69
EX_CONFIG = 78
