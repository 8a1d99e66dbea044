"""Human/JSON output helpers.

The CLI renders ServiceResult for humans (Rich markup, colors) or
machines (--json). The formatter layer adapts ServiceResult to the
requested output mode.
"""

from __future__ import annotations

import json as _json
from io import StringIO
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

if TYPE_CHECKING:
    from kgstore.services.result import ServiceResult

KG_THEME = Theme(
    {
        "kg.ok": "bold green",
        "kg.error": "bold red",
        "kg.op": "bold cyan",
        "kg.key": "dim",
    }
)


def _create_console(buffer: StringIO, width: int = 120) -> Console:
    """Console rendering into *buffer*; color is off outside a TTY."""
    return Console(file=buffer, theme=KG_THEME, highlight=False, width=width)


def _format_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return _json.dumps(value, separators=(",", ":"))
    return str(value)


def format_result(result: ServiceResult, *, json_output: bool = False) -> str:
    """Format a ServiceResult for display.

    Args:
        result: The service result to format.
        json_output: If True, return JSON; otherwise return human-readable text.
    """
    if json_output:
        return result.model_dump_json(indent=2)

    buffer = StringIO()
    console = _create_console(buffer)
    if result.ok:
        console.print(f"[kg.ok]OK:[/] [kg.op]{result.op}[/]", soft_wrap=True)
        for key, value in result.data.items():
            console.print(f"  [kg.key]{key}:[/] {escape(_format_value(value))}", soft_wrap=True)
    else:
        error_msg = result.error.message if result.error else "Unknown error"
        console.print(
            f"[kg.error]ERROR:[/] [kg.op]{result.op}[/] - {escape(error_msg)}",
            soft_wrap=True,
        )
    return buffer.getvalue().rstrip("\n")
