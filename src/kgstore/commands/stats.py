"""Command: report the size of the stored graph."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kgstore.commands._base import KgCommand

if TYPE_CHECKING:
    from kgstore.commands._context import AppContext


@click.command(
    cls=KgCommand,
    examples="""\
  kgstore stats
  kgstore -b sqlite --json stats""",
)
@click.pass_obj
def stats(app: AppContext) -> None:
    """Count entities, observations, and relations in the configured backend."""
    app.emit(app.storage.stats())
