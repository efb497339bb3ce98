"""Rustworkx-backed relationship graph over the shapes of one service."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

import rustworkx as rx

from schema_model.errors import InconsistentSchemaError
from schema_model.ids import UNIT_ID, ShapeId
from schema_model.shapes import GraphShape, MemberShape, Shape, ShapeKind
from shape_graph.relations import RelationTag, tag_operation_for_resource

if TYPE_CHECKING:
    from schema_model.model import SchemaModel
    from shape_graph.cache import GraphBuildTracker

logger = logging.getLogger(__name__)

type ShapeRef = ShapeId | Shape | MemberShape
type EdgeRecord = tuple[ShapeId, ShapeId, RelationTag]


def shape_ref_id(ref: ShapeRef) -> ShapeId:
    if isinstance(ref, ShapeId):
        return ref
    return ref.id


class ShapeGraph:
    """Directed, tagged graph of every shape reachable from one service.

    The graph is immutable once built. Edge tags are looked up by the
    unordered pair of endpoints, so ``relation(a, b)`` and ``relation(b, a)``
    agree; traversal queries follow edge direction.
    """

    def __init__(
        self,
        *,
        service: Shape,
        graph: rx.PyDiGraph,
        node_index: Mapping[ShapeId, int],
        shapes: Mapping[ShapeId, GraphShape],
        tags: Mapping[frozenset[int], RelationTag],
    ) -> None:
        self._service = service
        self._graph = graph
        self._node_index = MappingProxyType(dict(node_index))
        self._shapes = MappingProxyType(dict(shapes))
        self._tags = MappingProxyType(dict(tags))

    @property
    def service(self) -> Shape:
        return self._service

    @property
    def service_id(self) -> ShapeId:
        return self._service.id

    @property
    def vertex_count(self) -> int:
        return self._graph.num_nodes()

    @property
    def edge_count(self) -> int:
        return self._graph.num_edges()

    @property
    def shape_ids(self) -> tuple[ShapeId, ...]:
        return tuple(sorted(self._node_index))

    def __contains__(self, ref: object) -> bool:
        if isinstance(ref, (ShapeId, Shape, MemberShape)):
            return self.contains(ref)
        return False

    def contains(self, ref: ShapeRef) -> bool:
        return shape_ref_id(ref) in self._node_index

    def shape(self, ref: ShapeRef) -> GraphShape:
        """Return the shape registered for a vertex.

        Returns
        -------
        GraphShape
            Shape or member registered in the graph.

        Raises
        ------
        InconsistentSchemaError
            Raised when the shape is not part of this graph.
        """
        shape_id = shape_ref_id(ref)
        shape = self._shapes.get(shape_id)
        if shape is None:
            msg = f"Shape is not reachable from service {self.service_id}."
            raise InconsistentSchemaError(msg, shape_id=shape_id)
        return shape

    def children(self, ref: ShapeRef) -> tuple[GraphShape, ...]:
        """Return the immediate successors of a shape."""
        index = self._index_of(ref)
        return self._shapes_for(self._graph.successor_indices(index))

    def parents(self, ref: ShapeRef) -> tuple[GraphShape, ...]:
        """Return the immediate predecessors of a shape."""
        index = self._index_of(ref)
        return self._shapes_for(self._graph.predecessor_indices(index))

    def closure(self, ref: ShapeRef) -> tuple[GraphShape, ...]:
        """Return every shape reachable from ``ref`` along forward edges.

        The shape itself is excluded. Recursive schemas terminate because the
        traversal visits each vertex once.
        """
        index = self._index_of(ref)
        return self._shapes_for(rx.descendants(self._graph, index))

    def reverse_closure(self, ref: ShapeRef) -> tuple[GraphShape, ...]:
        """Return every shape from which ``ref`` is reachable."""
        index = self._index_of(ref)
        return self._shapes_for(rx.ancestors(self._graph, index))

    def filtered_closure(
        self,
        ref: ShapeRef,
        predicate: Callable[[GraphShape], bool],
    ) -> tuple[GraphShape, ...]:
        return tuple(shape for shape in self.closure(ref) if predicate(shape))

    def filtered_reverse_closure(
        self,
        ref: ShapeRef,
        predicate: Callable[[GraphShape], bool],
    ) -> tuple[GraphShape, ...]:
        return tuple(shape for shape in self.reverse_closure(ref) if predicate(shape))

    def transformed_closure[T](
        self,
        ref: ShapeRef,
        transform: Callable[[GraphShape], T | None],
    ) -> tuple[T, ...]:
        """Map the closure through ``transform``, dropping ``None`` results."""
        results: list[T] = []
        for shape in self.closure(ref):
            value = transform(shape)
            if value is not None:
                results.append(value)
        return tuple(results)

    def relation(self, left: ShapeRef, right: ShapeRef) -> RelationTag | None:
        """Return the tag of the edge between two shapes, in either direction."""
        left_index = self._node_index.get(shape_ref_id(left))
        right_index = self._node_index.get(shape_ref_id(right))
        if left_index is None or right_index is None:
            return None
        return self._tags.get(frozenset((left_index, right_index)))

    def edges(self) -> tuple[EdgeRecord, ...]:
        """Return every directed edge with its tag, sorted by endpoints."""
        records = [
            (self._graph[source], self._graph[target], tag)
            for source, target, tag in self._graph.weighted_edge_list()
        ]
        return tuple(sorted(records, key=lambda record: (record[0], record[1])))

    def operations(self) -> tuple[Shape, ...]:
        """Return every operation reachable from the service."""
        return tuple(
            shape
            for shape in self.closure(self._service)
            if isinstance(shape, Shape) and shape.kind is ShapeKind.OPERATION
        )

    def service_for_operation(self, ref: ShapeRef) -> Shape:
        """Return the unique service whose graph reaches an operation.

        Returns
        -------
        Shape
            Service shape found in the operation's reverse closure.

        Raises
        ------
        InconsistentSchemaError
            Raised when zero or several services reach the operation.
        """
        operation_id = shape_ref_id(ref)
        if not self.contains(operation_id):
            msg = f"Operation is not reachable from service {self.service_id}."
            raise InconsistentSchemaError(msg, shape_id=operation_id)
        services = self.filtered_reverse_closure(
            operation_id,
            lambda shape: shape.kind is ShapeKind.SERVICE,
        )
        if len(services) != 1:
            found = ", ".join(str(shape.id) for shape in services) or "none"
            msg = f"Expected exactly one service for operation, found: {found}."
            raise InconsistentSchemaError(msg, shape_id=operation_id)
        service = services[0]
        if not isinstance(service, Shape):
            msg = "Service vertex resolved to a member shape."
            raise InconsistentSchemaError(msg, shape_id=operation_id)
        return service

    def describe(self) -> str:
        """Render the graph depth-first as indented ``kind [tag] id`` lines.

        Shapes already printed higher up are marked ``(seen)`` and not
        expanded again.
        """
        lines: list[str] = []
        root = self._node_index[self.service_id]
        seen: set[int] = set()
        stack: list[tuple[int, int, RelationTag | None]] = [(root, 0, None)]
        while stack:
            index, depth, tag = stack.pop()
            shape: GraphShape = self._shapes[self._graph[index]]
            label = f"{'  ' * depth}{shape.kind}"
            if tag is not None:
                label = f"{label} [{tag}]"
            label = f"{label} {shape.id}"
            if index in seen:
                lines.append(f"{label} (seen)")
                continue
            seen.add(index)
            lines.append(label)
            children = sorted(
                self._graph.successor_indices(index),
                key=lambda child: self._graph[child],
                reverse=True,
            )
            stack.extend(
                (child, depth + 1, self._graph.get_edge_data(index, child)) for child in children
            )
        return "\n".join(lines)

    def _index_of(self, ref: ShapeRef) -> int:
        shape_id = shape_ref_id(ref)
        index = self._node_index.get(shape_id)
        if index is None:
            msg = f"Shape is not reachable from service {self.service_id}."
            raise InconsistentSchemaError(msg, shape_id=shape_id)
        return index

    def _shapes_for(self, indices: Iterable[int]) -> tuple[GraphShape, ...]:
        ids = sorted(self._graph[index] for index in indices)
        return tuple(self._shapes[shape_id] for shape_id in ids)


class _GraphBuilder:
    def __init__(
        self,
        model: SchemaModel,
        service: Shape,
        tracker: GraphBuildTracker | None,
    ) -> None:
        self._model = model
        self._service = service
        self._tracker = tracker
        self._graph = rx.PyDiGraph(multigraph=False)
        self._node_index: dict[ShapeId, int] = {}
        self._shapes: dict[ShapeId, GraphShape] = {}
        self._tags: dict[frozenset[int], RelationTag] = {}
        self._expanded: set[ShapeId] = set()
        self._queue: deque[GraphShape] = deque()

    def build(self) -> ShapeGraph:
        self._vertex(self._service)
        self._queue.append(self._service)
        while self._queue:
            shape = self._queue.popleft()
            if shape.id in self._expanded:
                continue
            self._expanded.add(shape.id)
            self._expand(shape)
        return ShapeGraph(
            service=self._service,
            graph=self._graph,
            node_index=self._node_index,
            shapes=self._shapes,
            tags=self._tags,
        )

    def _expand(self, shape: GraphShape) -> None:
        if isinstance(shape, MemberShape):
            self._link(shape, self._model.member_target(shape), RelationTag.TARGET_OF_MEMBER)
            return
        match shape.kind:
            case ShapeKind.SERVICE:
                for resource_id in shape.resources:
                    self._link(shape, self._expect(resource_id), RelationTag.RESOURCE_FOR_SERVICE)
                for operation_id in shape.operations:
                    self._link(shape, self._expect(operation_id), RelationTag.OPERATION_FOR_SERVICE)
            case ShapeKind.RESOURCE:
                for resource_id in shape.resources:
                    self._link(shape, self._expect(resource_id), RelationTag.RESOURCE_FOR_RESOURCE)
                for operation_id in shape.all_operations():
                    tag = tag_operation_for_resource(shape, operation_id)
                    self._link(shape, self._expect(operation_id), tag)
            case ShapeKind.OPERATION:
                if shape.input is not None and shape.input != UNIT_ID:
                    self._link(shape, self._expect(shape.input), RelationTag.INPUT_FOR_OPERATION)
                if shape.output is not None and shape.output != UNIT_ID:
                    self._link(shape, self._expect(shape.output), RelationTag.OUTPUT_FOR_OPERATION)
                for error_id in shape.errors:
                    self._link(shape, self._expect(error_id), RelationTag.ERROR_FOR_OPERATION)
            case _:
                for member in shape.members:
                    self._link(shape, member, RelationTag.MEMBER_OF_SHAPE)

    def _expect(self, shape_id: ShapeId) -> Shape:
        return self._model.expect_shape(shape_id)

    def _vertex(self, shape: GraphShape) -> int:
        index = self._node_index.get(shape.id)
        if index is None:
            index = self._graph.add_node(shape.id)
            self._node_index[shape.id] = index
            self._shapes[shape.id] = shape
        return index

    def _link(self, parent: GraphShape, child: GraphShape, tag: RelationTag) -> None:
        parent_index = self._vertex(parent)
        child_index = self._vertex(child)
        key = frozenset((parent_index, child_index))
        if key not in self._tags:
            self._tags[key] = tag
            if self._tracker is not None:
                self._tracker.record_edge_tag(self._service.id)
        if not self._graph.has_edge(parent_index, child_index):
            self._graph.add_edge(parent_index, child_index, tag)
        if child.id not in self._expanded:
            self._queue.append(child)


def build_shape_graph(
    service_id: ShapeId,
    model: SchemaModel,
    *,
    tracker: GraphBuildTracker | None = None,
) -> ShapeGraph:
    """Build the relationship graph for one service.

    Parameters
    ----------
    service_id
        Service whose resources and operations seed the walk.
    model
        Shape index used to resolve every reference.
    tracker
        Optional probe counting builds and edge-tagging calls.

    Returns
    -------
    ShapeGraph
        Immutable graph of every shape reachable from the service.
    """
    service = model.expect_kind(service_id, ShapeKind.SERVICE)
    if tracker is not None:
        tracker.record_build(service_id)
    graph = _GraphBuilder(model, service, tracker).build()
    logger.debug(
        "Built shape graph for %s: %d vertices, %d edges",
        service_id,
        graph.vertex_count,
        graph.edge_count,
    )
    return graph


__all__ = ["EdgeRecord", "ShapeGraph", "ShapeRef", "build_shape_graph", "shape_ref_id"]
