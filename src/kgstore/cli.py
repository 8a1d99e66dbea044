"""Root CLI group for kgstore with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from kgstore import __version__
from kgstore.commands import register_commands
from kgstore.commands._context import AppContext
from kgstore.config.settings import KgSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="kgstore")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option(
    "-f",
    "--file",
    "memory_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Graph file path (.jsonl). Overrides KGSTORE_MEMORY_FILE.",
)
@click.option(
    "-b",
    "--backend",
    "storage_backend",
    type=click.Choice(["jsonl", "sqlite"], case_sensitive=False),
    default=None,
    help="Storage backend. Overrides STORAGE_BACKEND.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    verbose: bool,
    log_json: bool,
    memory_file: Path | None,
    storage_backend: str | None,
) -> None:
    """kgstore: knowledge graph storage utility."""
    ctx.ensure_object(dict)
    settings = KgSettings.from_cli(
        json_output=json_output,
        verbose=verbose,
        log_json=log_json,
        memory_file=memory_file,
        storage_backend=storage_backend,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
