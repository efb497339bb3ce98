"""Authentication binding summary command."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from cyclopts import Parameter, validators

from binding.auth import collect_service_auth
from binding.reports import auth_payload, render_auth_text
from cli.context import RunContext, resolve_run_context
from cli.converters import resolve_shape_id
from cli.groups import output_group, selection_group
from cli.result import CliResult
from core_types import OutputFormat


def auth_command(
    model: Annotated[
        Path,
        Parameter(validator=validators.Path(exists=True, dir_okay=False)),
    ],
    *,
    service: Annotated[
        str,
        Parameter(
            name="--service",
            help="Service whose operations are scanned for authentication.",
            group=selection_group,
        ),
    ],
    output_format: Annotated[
        OutputFormat,
        Parameter(
            name="--format",
            help="Output format for the summary.",
            env_var="SHAPEBIND_OUTPUT_FORMAT",
            group=output_group,
        ),
    ] = "text",
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> CliResult:
    """Summarize authentication mechanisms and credential payloads of a service.

    Returns
    -------
    CliResult
        Rendered summary.
    """
    context = resolve_run_context(run_context).generation_context(model)
    service_id = resolve_shape_id(context.model, service)
    summary = collect_service_auth(context, service_id)
    payload = auth_payload(summary)
    payload["service"] = str(service_id)
    return CliResult.success(
        summary=render_auth_text(summary),
        payload=payload,
        output_format=output_format,
    )


__all__ = ["auth_command"]
