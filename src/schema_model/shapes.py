"""Shape and member records of a loaded schema model."""

from __future__ import annotations

from enum import StrEnum

from schema_model.ids import ShapeId
from schema_model.traits import NO_TRAITS, Traits
from serde_msgspec import StructBaseStrict


class ShapeKind(StrEnum):
    """Closed set of schema node kinds."""

    SERVICE = "service"
    RESOURCE = "resource"
    OPERATION = "operation"
    STRUCTURE = "structure"
    UNION = "union"
    LIST = "list"
    SET = "set"
    MAP = "map"
    ENUM = "enum"
    INT_ENUM = "intEnum"
    STRING = "string"
    BLOB = "blob"
    BOOLEAN = "boolean"
    BYTE = "byte"
    SHORT = "short"
    INTEGER = "integer"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    BIG_INTEGER = "bigInteger"
    BIG_DECIMAL = "bigDecimal"
    TIMESTAMP = "timestamp"
    DOCUMENT = "document"
    MEMBER = "member"
    UNIT = "unit"

    @property
    def is_integer_family(self) -> bool:
        return self in _INTEGER_FAMILY

    @property
    def is_floating(self) -> bool:
        return self in {ShapeKind.FLOAT, ShapeKind.DOUBLE}

    @property
    def is_numeric_family(self) -> bool:
        return self.is_integer_family or self.is_floating

    @property
    def is_collection(self) -> bool:
        return self in {ShapeKind.LIST, ShapeKind.SET}


_INTEGER_FAMILY = frozenset({ShapeKind.BYTE, ShapeKind.SHORT, ShapeKind.INTEGER, ShapeKind.LONG})


class Lifecycle(StructBaseStrict, frozen=True):
    """Lifecycle operation bindings of a resource."""

    create: ShapeId | None = None
    put: ShapeId | None = None
    read: ShapeId | None = None
    update: ShapeId | None = None
    delete: ShapeId | None = None
    list: ShapeId | None = None

    def operations(self) -> tuple[ShapeId, ...]:
        """Return bound lifecycle operations in declaration order."""
        bound = (self.create, self.put, self.read, self.update, self.delete, self.list)
        return tuple(op for op in bound if op is not None)


NO_LIFECYCLE = Lifecycle()


class MemberShape(StructBaseStrict, frozen=True):
    """Named, typed field of an aggregate shape."""

    id: ShapeId
    target: ShapeId
    traits: Traits = NO_TRAITS

    @property
    def name(self) -> str:
        return self.id.member

    @property
    def kind(self) -> ShapeKind:
        return ShapeKind.MEMBER

    @property
    def container(self) -> ShapeId:
        return self.id.container


class Shape(StructBaseStrict, frozen=True):
    """Schema node with kind-specific references.

    Services and resources use ``resources`` and ``operations``; resources also
    carry ``lifecycle`` and ``collection_operations``; operations use ``input``,
    ``output`` and ``errors``. Aggregates keep their members in declaration
    order.
    """

    id: ShapeId
    kind: ShapeKind
    members: tuple[MemberShape, ...] = ()
    traits: Traits = NO_TRAITS
    resources: tuple[ShapeId, ...] = ()
    operations: tuple[ShapeId, ...] = ()
    collection_operations: tuple[ShapeId, ...] = ()
    lifecycle: Lifecycle = NO_LIFECYCLE
    input: ShapeId | None = None
    output: ShapeId | None = None
    errors: tuple[ShapeId, ...] = ()

    def member(self, name: str) -> MemberShape | None:
        for member in self.members:
            if member.name == name:
                return member
        return None

    def member_names(self) -> tuple[str, ...]:
        return tuple(member.name for member in self.members)

    def all_operations(self) -> tuple[ShapeId, ...]:
        """Return every operation bound to a service or resource, deduplicated.

        Lifecycle operations come first, then instance operations, then
        collection operations.
        """
        seen: dict[ShapeId, None] = {}
        for op in (*self.lifecycle.operations(), *self.operations, *self.collection_operations):
            seen.setdefault(op, None)
        return tuple(seen)

    def enum_constant_for(self, value: object) -> str | None:
        """Return the constant (member) name whose enum value matches ``value``."""
        for member in self.members:
            declared = member.traits.enum_value
            if declared is None:
                declared = member.name
            if declared == value and type(declared) is type(value):
                return member.name
        return None


type GraphShape = Shape | MemberShape

__all__ = [
    "NO_LIFECYCLE",
    "GraphShape",
    "Lifecycle",
    "MemberShape",
    "Shape",
    "ShapeKind",
]
