"""Result action handler for Cyclopts integration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.console import Console

from cli.exit_codes import ExitCode
from cli.result import CliResult
from serde_msgspec import dumps_json

if TYPE_CHECKING:
    from cyclopts import App


def render_result(result: CliResult, console: Console) -> None:
    """Print a command result in its requested output format."""
    if result.output_format == "json" and result.payload is not None:
        console.print_json(dumps_json(result.payload, pretty=True).decode("utf-8"))
    elif result.summary:
        console.print(result.summary, markup=False, highlight=False)
    for warning in result.warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}", highlight=False)


def cli_result_action(
    app: App,
    cmd: object,
    result: Any,
) -> int:
    """Handle command results and convert to exit codes.

    Parameters
    ----------
    app
        The Cyclopts application instance.
    cmd
        The resolved command that was executed.
    result
        The return value from the command function.

    Returns
    -------
    int
        Exit code for the process.
    """
    _ = app
    _ = cmd
    console = Console()

    if result is None:
        return ExitCode.SUCCESS

    if isinstance(result, int):
        return result

    if isinstance(result, CliResult):
        render_result(result, console)
        return int(result.exit_code)

    console.print(f"Unexpected command return type: {type(result).__name__} (value: {result!r})")
    return ExitCode.GENERAL_ERROR


__all__ = ["cli_result_action", "render_result"]
