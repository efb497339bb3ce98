"""Tests for relation tags and lifecycle classification."""

from __future__ import annotations

import pytest

from schema_model.shapes import Lifecycle, Shape, ShapeKind
from shape_graph.relations import CrudlOperation, RelationTag, tag_operation_for_resource
from tests.test_helpers.model_builders import sid

OP = sid("Op")


def _resource(lifecycle: Lifecycle) -> Shape:
    return Shape(id=sid("Thing"), kind=ShapeKind.RESOURCE, lifecycle=lifecycle)


@pytest.mark.parametrize(
    ("lifecycle", "expected"),
    [
        (Lifecycle(read=OP, update=OP), RelationTag.UPDATE_OPERATION_FOR_RESOURCE),
        (Lifecycle(read=OP, put=OP), RelationTag.READ_OPERATION_FOR_RESOURCE),
        (Lifecycle(put=OP, create=OP), RelationTag.PUT_OPERATION_FOR_RESOURCE),
        (Lifecycle(create=OP, list=OP), RelationTag.CREATE_OPERATION_FOR_RESOURCE),
        (Lifecycle(list=OP, delete=OP), RelationTag.LIST_OPERATION_FOR_RESOURCE),
        (Lifecycle(delete=OP), RelationTag.DELETE_OPERATION_FOR_RESOURCE),
        (Lifecycle(read=sid("Other")), RelationTag.OPERATION_FOR_RESOURCE),
    ],
)
def test_lifecycle_precedence(lifecycle: Lifecycle, expected: RelationTag) -> None:
    """Pick the highest-precedence lifecycle slot an operation fills."""
    assert tag_operation_for_resource(_resource(lifecycle), OP) is expected


@pytest.mark.parametrize(
    ("tag", "expected"),
    [
        (RelationTag.CREATE_OPERATION_FOR_RESOURCE, CrudlOperation.CREATE),
        (RelationTag.PUT_OPERATION_FOR_RESOURCE, CrudlOperation.CREATE),
        (RelationTag.READ_OPERATION_FOR_RESOURCE, CrudlOperation.READ),
        (RelationTag.UPDATE_OPERATION_FOR_RESOURCE, CrudlOperation.UPDATE),
        (RelationTag.DELETE_OPERATION_FOR_RESOURCE, CrudlOperation.DELETE),
        (RelationTag.LIST_OPERATION_FOR_RESOURCE, CrudlOperation.LIST),
        (RelationTag.OPERATION_FOR_RESOURCE, CrudlOperation.OTHER),
        (RelationTag.OPERATION_FOR_SERVICE, CrudlOperation.OTHER),
        (RelationTag.MEMBER_OF_SHAPE, None),
    ],
)
def test_crudl_roles(tag: RelationTag, expected: CrudlOperation | None) -> None:
    """Map operation tags to lifecycle roles."""
    assert tag.crudl() is expected


def test_operation_tag_predicates() -> None:
    """Service operations are operations but not resource operations."""
    assert RelationTag.OPERATION_FOR_SERVICE.is_operation
    assert not RelationTag.OPERATION_FOR_SERVICE.is_resource_operation
    assert RelationTag.LIST_OPERATION_FOR_RESOURCE.is_resource_operation
    assert not RelationTag.INPUT_FOR_OPERATION.is_operation
    assert str(RelationTag.TARGET_OF_MEMBER) == "target-of-member"
