"""Input binding plan command."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

from cyclopts import Parameter, validators

from binding.plans import PlanOutcome, plan_service_operations, try_assemble_input_plan
from binding.reports import outcome_payload, render_plan_text
from cli.config_loader import settings_payload
from cli.context import RunContext, resolve_run_context
from cli.converters import resolve_shape_id
from cli.exit_codes import ExitCode
from cli.groups import output_group, selection_group
from cli.result import CliResult
from core_types import OutputFormat
from schema_model.shapes import ShapeKind

logger = logging.getLogger(__name__)


def plan_command(
    model: Annotated[
        Path,
        Parameter(validator=validators.Path(exists=True, dir_okay=False)),
    ],
    *,
    service: Annotated[
        str | None,
        Parameter(
            name="--service",
            help="Plan every operation reachable from this service.",
            group=selection_group,
        ),
    ] = None,
    operation: Annotated[
        str | None,
        Parameter(
            name="--operation",
            help="Plan a single operation.",
            group=selection_group,
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        Parameter(
            name="--format",
            help="Output format for the plans.",
            env_var="SHAPEBIND_OUTPUT_FORMAT",
            group=output_group,
        ),
    ] = "text",
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> CliResult:
    """Show how operation inputs bind to the incoming request.

    With ``skip_failed_operations`` enabled, operations whose plan fails are
    reported as warnings and the remaining plans are still shown.

    Returns
    -------
    CliResult
        Rendered plans, or the first plan failure.
    """
    match service, operation:
        case str() as target, None:
            target_kind = ShapeKind.SERVICE
        case None, str() as target:
            target_kind = ShapeKind.OPERATION
        case _:
            return CliResult.error(
                ExitCode.VALIDATION_ERROR,
                summary="error: pass exactly one of --service or --operation.",
            )
    resolved = resolve_run_context(run_context)
    context = resolved.generation_context(model)
    target_id = resolve_shape_id(context.model, target)
    outcomes: tuple[PlanOutcome, ...]
    if target_kind is ShapeKind.OPERATION:
        context.model.expect_kind(target_id, ShapeKind.OPERATION)
        outcomes = (try_assemble_input_plan(context, target_id),)
    else:
        outcomes = plan_service_operations(context, target_id)
    scope = str(target_id)

    failures = [(outcome.operation, outcome.error) for outcome in outcomes if outcome.error is not None]
    if failures and not resolved.settings.skip_failed_operations:
        error = failures[0][1]
        return CliResult.from_exception(error, summary=f"error: {error}")

    warnings = []
    for failed_operation, error in failures:
        logger.warning("Skipping %s: %s", failed_operation, error)
        warnings.append(f"skipped {failed_operation}: {error}")

    text = "\n\n".join(render_plan_text(outcome.plan) for outcome in outcomes if outcome.plan)
    return CliResult.success(
        summary=text or "No operations planned.",
        payload={
            "scope": scope,
            "settings": settings_payload(resolved.settings),
            "operations": [outcome_payload(item) for item in outcomes],
        },
        output_format=output_format,
        warnings=tuple(warnings),
        metrics={"planned": len(outcomes) - len(failures), "failed": len(failures)},
    )


__all__ = ["plan_command"]
