"""Command: one-time migration from the text format into SQLite."""

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
  kgstore migrate
  kgstore -f ~/.aim/memory.jsonl migrate
  kgstore --json migrate --source old/memory.jsonl""",
)
@click.option(
    "--source",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Text-format file to migrate (defaults to the configured memory file).",
)
@click.pass_obj
def migrate(app: AppContext, source: Path | None) -> None:
    """Copy the JSONL graph into the SQLite store beside it (runs once)."""
    app.emit(app.storage.migrate(source))
