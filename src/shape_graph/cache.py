"""Run-scoped cache of per-service shape graphs."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from schema_model.errors import InconsistentSchemaError
from shape_graph.graph import ShapeGraph, ShapeRef, build_shape_graph, shape_ref_id

if TYPE_CHECKING:
    from schema_model.ids import ShapeId
    from schema_model.model import SchemaModel
    from schema_model.shapes import Shape

logger = logging.getLogger(__name__)


@dataclass
class GraphBuildTracker:
    """Count graph constructions and edge-tagging calls per service.

    Tests use the counts to check that cached graphs are never rebuilt.
    """

    _builds: Counter[ShapeId] = field(default_factory=Counter, init=False, repr=False)
    _edge_tags: Counter[ShapeId] = field(default_factory=Counter, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def record_build(self, service_id: ShapeId) -> None:
        with self._lock:
            self._builds[service_id] += 1

    def record_edge_tag(self, service_id: ShapeId) -> None:
        with self._lock:
            self._edge_tags[service_id] += 1

    def build_count(self, service_id: ShapeId | None = None) -> int:
        """Return builds for one service, or across all services."""
        with self._lock:
            if service_id is None:
                return sum(self._builds.values())
            return self._builds[service_id]

    def edge_tag_count(self, service_id: ShapeId | None = None) -> int:
        """Return edge-tagging calls for one service, or across all services."""
        with self._lock:
            if service_id is None:
                return sum(self._edge_tags.values())
            return self._edge_tags[service_id]


@dataclass
class _GraphHolder:
    service_id: ShapeId
    graph: ShapeGraph | None = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class GraphCache:
    """Build each service graph at most once for the lifetime of a run.

    Each service gets its own holder guarded by a lock, so concurrent callers
    asking for the same service observe a single construction and share the
    resulting instance.
    """

    def __init__(self, model: SchemaModel, *, tracker: GraphBuildTracker | None = None) -> None:
        self._model = model
        self.tracker = tracker if tracker is not None else GraphBuildTracker()
        self._holders: dict[ShapeId, _GraphHolder] = {}
        self._holders_lock = threading.Lock()

    @property
    def model(self) -> SchemaModel:
        return self._model

    def get(self, service_id: ShapeId) -> ShapeGraph:
        """Return the graph for a service, building it on first access.

        Returns
        -------
        ShapeGraph
            Cached graph instance for ``service_id``.
        """
        holder = self._holder(service_id)
        with holder.lock:
            if holder.graph is None:
                logger.debug("Shape graph cache miss for %s", service_id)
                holder.graph = build_shape_graph(service_id, self._model, tracker=self.tracker)
            else:
                logger.debug("Shape graph cache hit for %s", service_id)
            return holder.graph

    def cached_graphs(self) -> tuple[ShapeGraph, ...]:
        with self._holders_lock:
            holders = sorted(self._holders.values(), key=lambda holder: holder.service_id)
        return tuple(holder.graph for holder in holders if holder.graph is not None)

    def graph_containing(self, ref: ShapeRef) -> ShapeGraph:
        """Return a graph that contains ``ref``.

        Already-built graphs are scanned first; when none contains the shape,
        graphs are built for every service in the model.

        Returns
        -------
        ShapeGraph
            First graph, in service id order, that contains the shape.

        Raises
        ------
        InconsistentSchemaError
            Raised when no service reaches the shape.
        """
        for graph in self.cached_graphs():
            if graph.contains(ref):
                return graph
        for service in self._model.service_shapes():
            graph = self.get(service.id)
            if graph.contains(ref):
                return graph
        shape_id = shape_ref_id(ref)
        msg = "Shape is not reachable from any service."
        raise InconsistentSchemaError(msg, shape_id=shape_id)

    def services_for(self, ref: ShapeRef) -> tuple[Shape, ...]:
        """Return every service whose graph contains ``ref``."""
        return tuple(
            service
            for service in self._model.service_shapes()
            if self.get(service.id).contains(ref)
        )

    def service_for_operation(self, ref: ShapeRef) -> Shape:
        """Return the unique service reaching an operation across the model.

        Returns
        -------
        Shape
            Service shape whose graph contains the operation.

        Raises
        ------
        InconsistentSchemaError
            Raised when zero or several services reach the operation.
        """
        services = self.services_for(ref)
        shape_id = shape_ref_id(ref)
        if not services:
            msg = "Operation is not reachable from any service."
            raise InconsistentSchemaError(msg, shape_id=shape_id)
        if len(services) > 1:
            found = ", ".join(str(service.id) for service in services)
            msg = f"Operation is reachable from several services: {found}."
            raise InconsistentSchemaError(msg, shape_id=shape_id)
        return self.get(services[0].id).service_for_operation(ref)

    def _holder(self, service_id: ShapeId) -> _GraphHolder:
        with self._holders_lock:
            holder = self._holders.get(service_id)
            if holder is None:
                holder = _GraphHolder(service_id=service_id)
                self._holders[service_id] = holder
            return holder


__all__ = ["GraphBuildTracker", "GraphCache"]
