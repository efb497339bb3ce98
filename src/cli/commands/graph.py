"""Shape relationship graph inspection command."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from cyclopts import Parameter, validators

from cli.context import RunContext, resolve_run_context
from cli.converters import resolve_shape_id
from cli.groups import output_group, selection_group
from cli.result import CliResult
from core_types import JsonDict, OutputFormat
from shape_graph.graph import ShapeGraph


def graph_command(
    model: Annotated[
        Path,
        Parameter(validator=validators.Path(exists=True, dir_okay=False)),
    ],
    *,
    service: Annotated[
        str,
        Parameter(
            name="--service",
            help="Service shape to build the graph for (absolute id or bare name).",
            group=selection_group,
        ),
    ],
    output_format: Annotated[
        OutputFormat,
        Parameter(
            name="--format",
            help="Output format for the graph.",
            env_var="SHAPEBIND_OUTPUT_FORMAT",
            group=output_group,
        ),
    ] = "text",
    run_context: Annotated[RunContext | None, Parameter(parse=False)] = None,
) -> CliResult:
    """Show the relationship graph of one service.

    Text output is an indented walk from the service; JSON output lists the
    tagged edges.

    Returns
    -------
    CliResult
        Rendered graph.
    """
    context = resolve_run_context(run_context).generation_context(model)
    service_id = resolve_shape_id(context.model, service)
    graph = context.cache.get(service_id)
    return CliResult.success(
        summary=graph.describe(),
        payload=graph_payload(graph),
        output_format=output_format,
        metrics={"vertices": graph.vertex_count, "edges": graph.edge_count},
    )


def graph_payload(graph: ShapeGraph) -> JsonDict:
    """Return a JSON-ready mapping of a service graph."""
    return {
        "service": str(graph.service_id),
        "vertices": [str(shape_id) for shape_id in graph.shape_ids],
        "edges": [
            {"source": str(source), "target": str(target), "tag": str(tag)}
            for source, target, tag in graph.edges()
        ],
    }


__all__ = ["graph_command", "graph_payload"]
