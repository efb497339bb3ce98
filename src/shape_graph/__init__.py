"""Schema relationship graph, edge tagging, and the per-run graph cache."""

from __future__ import annotations

from shape_graph.cache import GraphBuildTracker, GraphCache
from shape_graph.graph import EdgeRecord, ShapeGraph, ShapeRef, build_shape_graph, shape_ref_id
from shape_graph.relations import CrudlOperation, RelationTag, tag_operation_for_resource

__all__ = [
    "CrudlOperation",
    "EdgeRecord",
    "GraphBuildTracker",
    "GraphCache",
    "RelationTag",
    "ShapeGraph",
    "ShapeRef",
    "build_shape_graph",
    "shape_ref_id",
    "tag_operation_for_resource",
]
