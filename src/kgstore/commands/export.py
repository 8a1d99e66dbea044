"""Command: write the stored graph out as a JSONL file."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from kgstore.commands._base import KgCommand

if TYPE_CHECKING:
    from kgstore.commands._context import AppContext


@click.command(
    cls=KgCommand,
    examples="""\
  kgstore -b sqlite export backup.jsonl
  kgstore --json export snapshot.jsonl""",
)
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_obj
def export(app: AppContext, output: Path) -> None:
    """Export the configured backend's graph to OUTPUT in the JSONL format.

    OUTPUT is created if missing. An existing file is only overwritten
    if it already starts with the knowledge-graph safety marker.
    """
    app.emit(app.storage.export(output))
