"""Relationship taxonomy for shape graph edges."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from schema_model.ids import ShapeId
    from schema_model.shapes import Shape


class CrudlOperation(StrEnum):
    """Lifecycle role an operation plays for its resource."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    LIST = "list"
    OTHER = "other"


class RelationTag(StrEnum):
    """Typed classification of an edge between two shapes."""

    RESOURCE_FOR_SERVICE = "resource-for-service"
    RESOURCE_FOR_RESOURCE = "resource-for-resource"
    OPERATION_FOR_RESOURCE = "operation-for-resource"
    CREATE_OPERATION_FOR_RESOURCE = "create-operation-for-resource"
    READ_OPERATION_FOR_RESOURCE = "read-operation-for-resource"
    UPDATE_OPERATION_FOR_RESOURCE = "update-operation-for-resource"
    DELETE_OPERATION_FOR_RESOURCE = "delete-operation-for-resource"
    PUT_OPERATION_FOR_RESOURCE = "put-operation-for-resource"
    LIST_OPERATION_FOR_RESOURCE = "list-operation-for-resource"
    INPUT_FOR_OPERATION = "input-for-operation"
    OUTPUT_FOR_OPERATION = "output-for-operation"
    ERROR_FOR_OPERATION = "error-for-operation"
    MEMBER_OF_SHAPE = "member-of-shape"
    TARGET_OF_MEMBER = "target-of-member"
    OPERATION_FOR_SERVICE = "operation-for-service"

    def crudl(self) -> CrudlOperation | None:
        """Return the lifecycle role for operation tags, ``None`` otherwise."""
        return _CRUDL_FOR_TAG.get(self)

    @property
    def is_resource_operation(self) -> bool:
        return self in _RESOURCE_OPERATION_TAGS

    @property
    def is_operation(self) -> bool:
        return self in _CRUDL_FOR_TAG


_CRUDL_FOR_TAG: dict[RelationTag, CrudlOperation] = {
    RelationTag.CREATE_OPERATION_FOR_RESOURCE: CrudlOperation.CREATE,
    RelationTag.PUT_OPERATION_FOR_RESOURCE: CrudlOperation.CREATE,
    RelationTag.READ_OPERATION_FOR_RESOURCE: CrudlOperation.READ,
    RelationTag.UPDATE_OPERATION_FOR_RESOURCE: CrudlOperation.UPDATE,
    RelationTag.DELETE_OPERATION_FOR_RESOURCE: CrudlOperation.DELETE,
    RelationTag.LIST_OPERATION_FOR_RESOURCE: CrudlOperation.LIST,
    RelationTag.OPERATION_FOR_RESOURCE: CrudlOperation.OTHER,
    RelationTag.OPERATION_FOR_SERVICE: CrudlOperation.OTHER,
}

_RESOURCE_OPERATION_TAGS = frozenset(
    tag for tag in _CRUDL_FOR_TAG if tag is not RelationTag.OPERATION_FOR_SERVICE
)


def tag_operation_for_resource(resource: Shape, operation_id: ShapeId) -> RelationTag:
    """Classify an operation bound to a resource.

    An operation filling several lifecycle slots takes the first match in the
    order update, read, put, create, list, delete.

    Returns
    -------
    RelationTag
        Lifecycle tag, or the generic resource operation tag.
    """
    lifecycle = resource.lifecycle
    slots = (
        (lifecycle.update, RelationTag.UPDATE_OPERATION_FOR_RESOURCE),
        (lifecycle.read, RelationTag.READ_OPERATION_FOR_RESOURCE),
        (lifecycle.put, RelationTag.PUT_OPERATION_FOR_RESOURCE),
        (lifecycle.create, RelationTag.CREATE_OPERATION_FOR_RESOURCE),
        (lifecycle.list, RelationTag.LIST_OPERATION_FOR_RESOURCE),
        (lifecycle.delete, RelationTag.DELETE_OPERATION_FOR_RESOURCE),
    )
    for bound, tag in slots:
        if bound == operation_id:
            return tag
    return RelationTag.OPERATION_FOR_RESOURCE


__all__ = ["CrudlOperation", "RelationTag", "tag_operation_for_resource"]
