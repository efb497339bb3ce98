"""Main application setup for the shapebind CLI."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated, Literal

from cyclopts import App, Parameter

from cli.commands.version import get_version
from cli.config_loader import load_binding_settings
from cli.context import RunContext
from cli.groups import binding_group, session_group
from cli.invoke import invoke_with_context
from cli.result_action import cli_result_action
from cli.validation import apply_setting_overrides

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_HELP_EPILOGUE = """
Examples:
  shapebind graph model.json --service example.widgets#WidgetService
  shapebind plan model.json --service WidgetService --format json
  shapebind plan model.json --operation example.widgets#GetWidget
  shapebind auth model.json --service WidgetService

Environment Variables:
  SHAPEBIND_LOG_LEVEL        Default log level (DEBUG, INFO, WARNING, ERROR)
  SHAPEBIND_FAILURE_KIND     Error raised when a required member is absent
  SHAPEBIND_LIST_SEPARATOR   Separator for list-valued query and header members

Config files:
  shapebind.toml, or [tool.shapebind] in pyproject.toml, searched upward
  from the current directory.
"""

app = App(
    name="shapebind",
    help="Inspect shape relationship graphs and request binding plans of a schema model.",
    help_format="rich",
    help_epilogue=_HELP_EPILOGUE,
    version=get_version(),
    version_flags=["--version", "-V"],
    default_parameter=Parameter(
        show_default=True,
        show_env_var=True,
    ),
    result_action=cli_result_action,
    exit_on_error=True,
    print_error=True,
    help_on_error=False,
)

app.meta.group_parameters = session_group


@dataclass(frozen=True)
class SessionOptions:
    """Session-level configuration parameters."""

    config_file: Annotated[
        str | None,
        Parameter(
            name="--config",
            help="Path to configuration file (overrides default search).",
            group=session_group,
        ),
    ] = None
    log_level: Annotated[
        Literal["DEBUG", "INFO", "WARNING", "ERROR"],
        Parameter(
            name="--log-level",
            help="Logging verbosity level.",
            env_var="SHAPEBIND_LOG_LEVEL",
            group=session_group,
        ),
    ] = "WARNING"


@dataclass(frozen=True)
class BindingOptions:
    """Command line overrides for binding settings."""

    failure_kind: Annotated[
        str | None,
        Parameter(
            name="--failure-kind",
            help="Error raised at request time when a required member is absent.",
            env_var="SHAPEBIND_FAILURE_KIND",
            group=binding_group,
        ),
    ] = None
    auth_failure_kind: Annotated[
        str | None,
        Parameter(
            name="--auth-failure-kind",
            help="Error raised when mandatory authentication is missing.",
            env_var="SHAPEBIND_AUTH_FAILURE_KIND",
            group=binding_group,
        ),
    ] = None
    list_separator: Annotated[
        str | None,
        Parameter(
            name="--list-separator",
            help="Separator used to split list-valued query and header members.",
            env_var="SHAPEBIND_LIST_SEPARATOR",
            group=binding_group,
        ),
    ] = None
    skip_failed_operations: Annotated[
        bool | None,
        Parameter(
            name="--skip-failed-operations",
            help="Report operations whose plan fails instead of aborting.",
            env_var="SHAPEBIND_SKIP_FAILED_OPERATIONS",
            group=binding_group,
        ),
    ] = None


_DEFAULT_SESSION_OPTIONS = SessionOptions()
_DEFAULT_BINDING_OPTIONS = BindingOptions()


@app.meta.default
def meta_launcher(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    session: Annotated[SessionOptions, Parameter(name="*")] = _DEFAULT_SESSION_OPTIONS,
    binding: Annotated[BindingOptions, Parameter(name="*")] = _DEFAULT_BINDING_OPTIONS,
) -> int:
    """Meta launcher for config selection and context injection.

    Returns
    -------
    int
        Exit status code from command execution.

    Raises
    ------
    ValueError
        Raised when the log level is invalid.
    """
    if session.log_level not in LOG_LEVELS:
        msg = f"Unsupported log level {session.log_level!r}."
        raise ValueError(msg)
    logging.basicConfig(level=session.log_level.upper())

    settings = apply_setting_overrides(
        load_binding_settings(session.config_file),
        {
            "failure_kind": binding.failure_kind,
            "auth_failure_kind": binding.auth_failure_kind,
            "list_separator": binding.list_separator,
            "skip_failed_operations": binding.skip_failed_operations,
        },
    )
    run_context = RunContext(
        log_level=session.log_level,
        settings=settings,
        config_file=session.config_file,
    )
    return invoke_with_context(app, list(tokens), run_context=run_context)


app.command("cli.commands.graph:graph_command", name="graph", alias="g")
app.command("cli.commands.plan:plan_command", name="plan", alias="p")
app.command("cli.commands.auth:auth_command", name="auth", alias="a")
app.command("cli.commands.version:version_command", name="version", alias="v")


def main() -> None:
    """Run the shapebind CLI."""
    app.meta()


__all__ = ["app", "main"]
