"""Subcommand modules for kgstore.

Provides register_commands() which uses deferred imports to keep
``kgstore --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from kgstore.commands.export import export
    from kgstore.commands.migrate import migrate
    from kgstore.commands.stats import stats

    cli.add_command(migrate)
    cli.add_command(stats)
    cli.add_command(export)
