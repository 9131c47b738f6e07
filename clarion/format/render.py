"""Rich rendering of a service config, used by ``clarion verify``."""

from __future__ import annotations

from rich.table import Table

from clarion.format.codec import ServiceConfig
from clarion.format.schema import FieldSpec

_SECRET_MASK = "********"


def _location(spec: FieldSpec) -> str:
    if spec.url_part is not None:
        return f"url:{spec.url_part.value}"
    return "query"


def config_table(config: ServiceConfig, *, show_secrets: bool = False) -> Table:
    """Build a table with one row per field of *config*."""
    table = Table(title=f"{config.scheme} configuration")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Type")
    table.add_column("Location", style="dim")
    table.add_column("Default", style="dim")
    table.add_column("Description")

    for spec, value in config.resolver().items():
        if spec.secret and value and not show_secrets:
            value = _SECRET_MASK
        kind = spec.kind.value
        legal = spec.legal_values()
        if legal and spec.enum is not None:
            kind = f"{kind} ({'/'.join(legal)})"
        keys = ", ".join(spec.lookup_keys) if spec.in_query else spec.name
        table.add_row(
            keys,
            value,
            kind,
            _location(spec),
            spec.default or "",
            spec.description,
        )
    return table
