"""Tests for shape relationship graph construction and queries."""

from __future__ import annotations

from collections.abc import Iterable

import pytest

from schema_model.errors import InconsistentSchemaError
from schema_model.ids import ShapeId
from schema_model.model import SchemaModel
from schema_model.shapes import GraphShape, Shape, ShapeKind
from shape_graph.graph import ShapeGraph, build_shape_graph
from shape_graph.relations import RelationTag
from tests.test_helpers.model_builders import (
    STRING,
    member,
    operation,
    service,
    sid,
    structure,
    widget_model,
)

WIDGET_SERVICE = sid("WidgetService")
WIDGET_OPERATION_COUNT = 8


def _ids(shapes: Iterable[GraphShape]) -> set[ShapeId]:
    return {shape.id for shape in shapes}


@pytest.fixture
def graph(model: SchemaModel) -> ShapeGraph:
    return build_shape_graph(WIDGET_SERVICE, model)


def test_service_edges_are_tagged(graph: ShapeGraph) -> None:
    """Tag service resources and direct operations."""
    assert graph.relation(WIDGET_SERVICE, sid("Widget")) is RelationTag.RESOURCE_FOR_SERVICE
    assert graph.relation(WIDGET_SERVICE, sid("Ping")) is RelationTag.OPERATION_FOR_SERVICE
    assert graph.relation(sid("Widget"), sid("Part")) is RelationTag.RESOURCE_FOR_RESOURCE


def test_resource_operations_are_tagged_by_lifecycle(graph: ShapeGraph) -> None:
    """Tag lifecycle operations by slot and other operations generically."""
    widget = sid("Widget")
    assert graph.relation(widget, sid("CreateWidget")) is RelationTag.CREATE_OPERATION_FOR_RESOURCE
    assert graph.relation(widget, sid("GetWidget")) is RelationTag.READ_OPERATION_FOR_RESOURCE
    assert graph.relation(widget, sid("UpdateWidget")) is RelationTag.UPDATE_OPERATION_FOR_RESOURCE
    assert graph.relation(widget, sid("DeleteWidget")) is RelationTag.DELETE_OPERATION_FOR_RESOURCE
    assert graph.relation(widget, sid("ListWidgets")) is RelationTag.LIST_OPERATION_FOR_RESOURCE
    assert graph.relation(widget, sid("ArchiveWidget")) is RelationTag.OPERATION_FOR_RESOURCE
    assert graph.relation(sid("Part"), sid("GetPart")) is RelationTag.READ_OPERATION_FOR_RESOURCE


def test_operation_and_member_edges_are_tagged(graph: ShapeGraph) -> None:
    """Tag operation inputs, outputs, errors, members, and member targets."""
    get_widget = sid("GetWidget")
    assert graph.relation(get_widget, sid("GetWidgetInput")) is RelationTag.INPUT_FOR_OPERATION
    assert graph.relation(get_widget, sid("WidgetData")) is RelationTag.OUTPUT_FOR_OPERATION
    assert graph.relation(get_widget, sid("NotFound")) is RelationTag.ERROR_FOR_OPERATION
    label = sid("GetWidgetInput", "id")
    assert graph.relation(sid("GetWidgetInput"), label) is RelationTag.MEMBER_OF_SHAPE
    assert graph.relation(label, STRING) is RelationTag.TARGET_OF_MEMBER
    assert graph.relation(STRING, label) is RelationTag.TARGET_OF_MEMBER
    assert graph.relation(WIDGET_SERVICE, STRING) is None


def test_closure_reaches_every_nested_shape(graph: ShapeGraph) -> None:
    """Follow resources, operations, members, and targets transitively."""
    reachable = _ids(graph.closure(WIDGET_SERVICE))
    assert WIDGET_SERVICE not in reachable
    assert {sid("GetPartInput", "partId"), sid("Node", "next"), STRING} <= reachable
    assert sid("Token") not in reachable
    assert set(graph.shape_ids) == reachable | {WIDGET_SERVICE}


def test_closure_is_transitive_from_the_service(graph: ShapeGraph) -> None:
    """Every closure member's closure stays inside the service closure."""
    reachable = _ids(graph.closure(WIDGET_SERVICE))
    for shape_id in reachable:
        assert _ids(graph.closure(shape_id)) <= reachable


def test_children_and_parents_are_inverse(graph: ShapeGraph) -> None:
    """``b`` is a child of ``a`` exactly when ``a`` is a parent of ``b``."""
    for parent_id in graph.shape_ids:
        for child in graph.children(parent_id):
            assert parent_id in _ids(graph.parents(child))
        for parent in graph.parents(parent_id):
            assert parent_id in _ids(graph.children(parent))


def test_recursive_structures_terminate(graph: ShapeGraph) -> None:
    """Self-referencing members link back without re-expanding."""
    node, next_member = sid("Node"), sid("Node", "next")
    assert graph.relation(node, next_member) is RelationTag.MEMBER_OF_SHAPE
    assert node in _ids(graph.children(next_member))
    assert _ids(graph.closure(node)) == {next_member, sid("Node", "value"), STRING}
    assert next_member in _ids(graph.reverse_closure(node))


def test_self_targeting_member_graph_builds() -> None:
    """A structure whose member targets the structure itself builds once."""
    model = SchemaModel(
        (
            service("Loop", operations=("Walk",)),
            operation("Walk", input_name="Tree"),
            structure("Tree", member("Tree", "child", sid("Tree"))),
        )
    )
    graph = build_shape_graph(sid("Loop"), model)
    assert graph.vertex_count == len({sid("Loop"), sid("Walk"), sid("Tree"), sid("Tree", "child")})
    assert sid("Tree") in _ids(graph.reverse_closure(sid("Tree", "child")))


def test_queries_accept_shapes_and_ids(graph: ShapeGraph, model: SchemaModel) -> None:
    """Shapes and ids resolve to the same vertex."""
    widget = model.expect_shape(sid("Widget"))
    assert graph.children(widget) == graph.children(sid("Widget"))
    assert widget in graph
    assert graph.contains(sid("Widget", "missing")) is False
    assert "not-a-shape" not in graph
    assert graph.shape(sid("Node", "next")) == model.expect_member(sid("Node", "next"))


def test_unknown_shapes_raise(graph: ShapeGraph) -> None:
    """Queries about shapes outside the graph report the id."""
    with pytest.raises(InconsistentSchemaError, match="not reachable"):
        graph.children(sid("Token"))
    with pytest.raises(InconsistentSchemaError):
        graph.shape(sid("Token"))
    assert graph.relation(sid("Token"), STRING) is None


def test_filtered_and_transformed_closures(graph: ShapeGraph) -> None:
    """Filter and map closures in shape id order."""
    resources = graph.filtered_closure(WIDGET_SERVICE, lambda shape: shape.kind is ShapeKind.RESOURCE)
    assert _ids(resources) == {sid("Widget"), sid("Part")}
    names = graph.transformed_closure(
        sid("Widget"),
        lambda shape: shape.id.name if shape.kind is ShapeKind.OPERATION else None,
    )
    assert names == tuple(sorted(names))
    assert "GetPart" in names
    owners = graph.filtered_reverse_closure(STRING, lambda shape: shape.kind is ShapeKind.OPERATION)
    assert sid("GetWidget") in _ids(owners)


def test_operations_are_sorted_and_complete(graph: ShapeGraph) -> None:
    """List every operation reachable from the service."""
    operations = graph.operations()
    assert len(operations) == WIDGET_OPERATION_COUNT
    assert [shape.id for shape in operations] == sorted(shape.id for shape in operations)


def test_service_for_operation(graph: ShapeGraph) -> None:
    """Resolve the owning service from an operation."""
    assert graph.service_for_operation(sid("GetPart")).id == WIDGET_SERVICE
    assert graph.service_for_operation(sid("GetPart")) is graph.service_for_operation(sid("GetPart"))
    with pytest.raises(InconsistentSchemaError, match="not reachable"):
        graph.service_for_operation(sid("Token"))


def test_edges_are_sorted_records(graph: ShapeGraph) -> None:
    """Report directed edges with their tags."""
    edges = graph.edges()
    assert len(edges) == graph.edge_count
    assert edges == tuple(sorted(edges, key=lambda record: (record[0], record[1])))
    assert (sid("Node", "next"), sid("Node"), RelationTag.TARGET_OF_MEMBER) in edges
    assert (WIDGET_SERVICE, sid("Widget"), RelationTag.RESOURCE_FOR_SERVICE) in edges


def test_describe_renders_depth_first(graph: ShapeGraph) -> None:
    """Render the service first and mark repeated shapes."""
    lines = graph.describe().splitlines()
    assert lines[0] == "service example.widgets#WidgetService"
    assert lines[1] == "  operation [operation-for-service] example.widgets#Ping"
    assert "  resource [resource-for-service] example.widgets#Widget" in lines
    assert any(line.endswith("(seen)") for line in lines)


def test_build_rejects_non_services(model: SchemaModel) -> None:
    """Only service shapes seed a graph."""
    with pytest.raises(InconsistentSchemaError, match="kind service"):
        build_shape_graph(sid("Widget"), model)


def test_build_rejects_dangling_references() -> None:
    """References to undefined shapes are inconsistent."""
    model = SchemaModel((service("Broken", operations=("Missing",)),))
    with pytest.raises(InconsistentSchemaError) as excinfo:
        build_shape_graph(sid("Broken"), model)
    assert excinfo.value.shape_id == sid("Missing")


def test_graphs_are_rebuilt_independently() -> None:
    """Two builds of the same model produce equal vertex sets."""
    model = widget_model()
    first = build_shape_graph(WIDGET_SERVICE, model)
    second = build_shape_graph(WIDGET_SERVICE, model)
    assert first is not second
    assert first.shape_ids == second.shape_ids
    assert first.edges() == second.edges()
    assert isinstance(first.service, Shape)
