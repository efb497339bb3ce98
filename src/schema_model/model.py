"""Shape index over a loaded schema model."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from schema_model.errors import InconsistentSchemaError
from schema_model.ids import ShapeId
from schema_model.shapes import GraphShape, MemberShape, Shape, ShapeKind

_PRELUDE_KINDS: Mapping[str, ShapeKind] = {
    "String": ShapeKind.STRING,
    "Blob": ShapeKind.BLOB,
    "Boolean": ShapeKind.BOOLEAN,
    "PrimitiveBoolean": ShapeKind.BOOLEAN,
    "Byte": ShapeKind.BYTE,
    "PrimitiveByte": ShapeKind.BYTE,
    "Short": ShapeKind.SHORT,
    "PrimitiveShort": ShapeKind.SHORT,
    "Integer": ShapeKind.INTEGER,
    "PrimitiveInteger": ShapeKind.INTEGER,
    "Long": ShapeKind.LONG,
    "PrimitiveLong": ShapeKind.LONG,
    "Float": ShapeKind.FLOAT,
    "PrimitiveFloat": ShapeKind.FLOAT,
    "Double": ShapeKind.DOUBLE,
    "PrimitiveDouble": ShapeKind.DOUBLE,
    "BigInteger": ShapeKind.BIG_INTEGER,
    "BigDecimal": ShapeKind.BIG_DECIMAL,
    "Timestamp": ShapeKind.TIMESTAMP,
    "Document": ShapeKind.DOCUMENT,
    "Unit": ShapeKind.UNIT,
}


def prelude_shapes() -> tuple[Shape, ...]:
    """Return the built-in scalar shapes every model can target.

    Returns
    -------
    tuple[Shape, ...]
        Prelude shapes.
    """
    return tuple(
        Shape(id=ShapeId.prelude(name), kind=kind) for name, kind in _PRELUDE_KINDS.items()
    )


class SchemaModel:
    """Flat, read-only map from shape id to shape.

    Built once from the loaded shapes (plus the prelude) and never mutated.
    Members are indexed under their member ids so graph queries can resolve
    them like any other vertex.
    """

    def __init__(self, shapes: Iterable[Shape], *, include_prelude: bool = True) -> None:
        index: dict[ShapeId, Shape] = {}
        if include_prelude:
            index.update((shape.id, shape) for shape in prelude_shapes())
        members: dict[ShapeId, MemberShape] = {}
        for shape in shapes:
            if shape.id.is_member:
                msg = "Top-level shapes cannot use member ids."
                raise InconsistentSchemaError(msg, shape_id=shape.id)
            index[shape.id] = shape
            for member in shape.members:
                if member.id.container != shape.id:
                    msg = f"Member {member.id} does not belong to {shape.id}."
                    raise InconsistentSchemaError(msg, shape_id=member.id)
                members[member.id] = member
        self._shapes: Mapping[ShapeId, Shape] = MappingProxyType(index)
        self._members: Mapping[ShapeId, MemberShape] = MappingProxyType(members)

    def __contains__(self, shape_id: object) -> bool:
        return shape_id in self._shapes or shape_id in self._members

    def __iter__(self) -> Iterator[Shape]:
        return iter(self._shapes.values())

    def __len__(self) -> int:
        return len(self._shapes)

    def get_shape(self, shape_id: ShapeId) -> GraphShape | None:
        if shape_id.is_member:
            return self._members.get(shape_id)
        return self._shapes.get(shape_id)

    def expect_shape(self, shape_id: ShapeId) -> Shape:
        """Return a top-level shape.

        Returns
        -------
        Shape
            Shape registered under ``shape_id``.

        Raises
        ------
        InconsistentSchemaError
            Raised when the id is unknown or names a member.
        """
        shape = self._shapes.get(shape_id)
        if shape is None:
            msg = "Shape is not defined in the model."
            raise InconsistentSchemaError(msg, shape_id=shape_id)
        return shape

    def expect_kind(self, shape_id: ShapeId, *kinds: ShapeKind) -> Shape:
        """Return a shape after checking that it has one of ``kinds``.

        Returns
        -------
        Shape
            Shape registered under ``shape_id``.

        Raises
        ------
        InconsistentSchemaError
            Raised when the shape exists with a different kind.
        """
        shape = self.expect_shape(shape_id)
        if shape.kind not in kinds:
            expected = ", ".join(str(kind) for kind in kinds)
            msg = f"Expected a shape of kind {expected}, found {shape.kind}."
            raise InconsistentSchemaError(msg, shape_id=shape_id)
        return shape

    def expect_member(self, member_id: ShapeId) -> MemberShape:
        member = self._members.get(member_id)
        if member is None:
            msg = "Member is not defined in the model."
            raise InconsistentSchemaError(msg, shape_id=member_id)
        return member

    def member_target(self, member: MemberShape) -> Shape:
        return self.expect_shape(member.target)

    def shapes_of_kind(self, kind: ShapeKind) -> tuple[Shape, ...]:
        return tuple(
            sorted(
                (shape for shape in self._shapes.values() if shape.kind is kind),
                key=lambda shape: shape.id,
            )
        )

    def service_shapes(self) -> tuple[Shape, ...]:
        return self.shapes_of_kind(ShapeKind.SERVICE)

    def operation_shapes(self) -> tuple[Shape, ...]:
        return self.shapes_of_kind(ShapeKind.OPERATION)


__all__ = ["SchemaModel", "prelude_shapes"]
