"""Command dispatch with run-context injection."""

from __future__ import annotations

import logging

from cyclopts import App
from cyclopts.exceptions import CycloptsError
from rich.console import Console

from cli.config_loader import ConfigError
from cli.context import RunContext
from cli.exit_codes import ExitCode
from cli.result import CliResult
from cli.result_action import cli_result_action, render_result
from schema_model.errors import SchemaConfigurationError

_LOGGER = logging.getLogger(__name__)


def invoke_with_context(
    app: App,
    tokens: list[str] | None,
    *,
    run_context: RunContext,
) -> int:
    """Parse ``tokens``, inject ``run_context``, and run the selected command.

    Schema and config errors are reported as a one-line message with the
    matching exit code; anything else is logged with its traceback.

    Returns
    -------
    int
        Exit status code.
    """
    try:
        command, bound, ignored = app.parse_args(
            list(tokens or ()),
            exit_on_error=False,
            print_error=True,
        )
    except CycloptsError as exc:
        return ExitCode.from_exception(exc)

    for name, hint in ignored.items():
        if hint is RunContext or name == "run_context":
            bound.arguments[name] = run_context

    try:
        result = command(*bound.args, **bound.kwargs)
    except (SchemaConfigurationError, ConfigError) as exc:
        error = CliResult.from_exception(exc, summary=f"error: {exc}")
        render_result(error, Console(stderr=True))
        return error.exit_code
    except Exception as exc:
        _LOGGER.exception("Command execution failed.")
        return ExitCode.from_exception(exc)
    return cli_result_action(app, command, result)


__all__ = ["invoke_with_context"]
