"""Declaration policies: required, defaulted, or nullable members."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import TYPE_CHECKING, Any, NoReturn

from schema_model.errors import InconsistentSchemaError, UnsupportedConstructError
from schema_model.shapes import ShapeKind
from serde_msgspec import StructBaseStrict

if TYPE_CHECKING:
    from collections.abc import Mapping

    from binding.settings import BindingSettings
    from schema_model.ids import ShapeId
    from schema_model.shapes import MemberShape, Shape


class PolicyKind(StrEnum):
    """Closed set of declaration policies."""

    REQUIRED_OR_FAIL = "required-or-fail"
    WITH_DEFAULT = "with-default"
    NULLABLE = "nullable"


class LiteralKind(StrEnum):
    """How a default value is written as a literal."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    BIG_INTEGER = "big-integer"
    BIG_DECIMAL = "big-decimal"
    ENUM_CONSTANT = "enum-constant"
    TIMESTAMP = "timestamp"
    EMPTY_COLLECTION = "empty-collection"


class RequiredOrFail(StructBaseStrict, frozen=True, tag="required-or-fail", tag_field="policy"):
    """Absent values fail the request with ``failure_kind``."""

    failure_kind: str

    @property
    def kind(self) -> PolicyKind:
        return PolicyKind.REQUIRED_OR_FAIL

    @property
    def value_optional(self) -> bool:
        return False


class WithDefault(StructBaseStrict, frozen=True, tag="with-default", tag_field="policy"):
    """Absent values are replaced by a literal built at plan-assembly time."""

    value: Any
    literal: LiteralKind

    @property
    def kind(self) -> PolicyKind:
        return PolicyKind.WITH_DEFAULT

    @property
    def value_optional(self) -> bool:
        return False


class Nullable(StructBaseStrict, frozen=True, tag="nullable", tag_field="policy"):
    """Absent values stay absent."""

    @property
    def kind(self) -> PolicyKind:
        return PolicyKind.NULLABLE

    @property
    def value_optional(self) -> bool:
        return True


type Policy = RequiredOrFail | WithDefault | Nullable

NULLABLE = Nullable()

_INTEGER_BOUNDS: Mapping[ShapeKind, tuple[int, int]] = {
    ShapeKind.BYTE: (-(2**7), 2**7 - 1),
    ShapeKind.SHORT: (-(2**15), 2**15 - 1),
    ShapeKind.INTEGER: (-(2**31), 2**31 - 1),
    ShapeKind.LONG: (-(2**63), 2**63 - 1),
}


def select_policy(member: MemberShape, target: Shape, settings: BindingSettings) -> Policy:
    """Choose the declaration policy of an input member.

    A default on the member, or failing that on its target, wins over a
    required annotation.

    Returns
    -------
    Policy
        ``WithDefault``, ``RequiredOrFail`` or ``NULLABLE``.
    """
    default = member.traits.default or target.traits.default
    if default is not None and default.value is not None:
        value, literal = construct_default_literal(default.value, target, owner=member.id)
        return WithDefault(value=value, literal=literal)
    if member.traits.required:
        return RequiredOrFail(failure_kind=settings.failure_kind)
    return NULLABLE


def construct_default_literal(  # noqa: C901, PLR0911, PLR0912
    value: object,
    target: Shape,
    *,
    owner: ShapeId,
) -> tuple[Any, LiteralKind]:
    """Coerce a default annotation value to the target kind.

    Parameters
    ----------
    value
        Raw default value from the schema.
    target
        Shape the defaulted member targets.
    owner
        Member reported in error messages.

    Returns
    -------
    tuple[Any, LiteralKind]
        Coerced value and its literal kind.

    Raises
    ------
    InconsistentSchemaError
        Raised when the value does not fit the target kind.
    UnsupportedConstructError
        Raised when the target kind has no literal construction rule.
    """
    kind = target.kind
    match kind:
        case ShapeKind.STRING:
            if not isinstance(value, str):
                _mismatch(value, kind, owner)
            return value, LiteralKind.STRING
        case ShapeKind.BYTE | ShapeKind.SHORT | ShapeKind.INTEGER | ShapeKind.LONG:
            if not isinstance(value, int) or isinstance(value, bool):
                _mismatch(value, kind, owner)
            low, high = _INTEGER_BOUNDS[kind]
            if not low <= value <= high:
                msg = f"Default {value} is outside the {kind} range [{low}, {high}]."
                raise InconsistentSchemaError(msg, shape_id=owner)
            return value, LiteralKind.INTEGER
        case ShapeKind.FLOAT | ShapeKind.DOUBLE:
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                _mismatch(value, kind, owner)
            literal = LiteralKind.FLOAT if kind is ShapeKind.FLOAT else LiteralKind.DOUBLE
            return float(value), literal
        case ShapeKind.BOOLEAN:
            if not isinstance(value, bool):
                _mismatch(value, kind, owner)
            return value, LiteralKind.BOOLEAN
        case ShapeKind.BIG_INTEGER:
            try:
                return int(str(value)), LiteralKind.BIG_INTEGER
            except ValueError:
                _mismatch(value, kind, owner)
        case ShapeKind.BIG_DECIMAL:
            try:
                return Decimal(str(value)), LiteralKind.BIG_DECIMAL
            except InvalidOperation:
                _mismatch(value, kind, owner)
        case ShapeKind.ENUM:
            constant = target.enum_constant_for(value)
            if constant is None:
                msg = f"Default {value!r} is not a value of enum {target.id}."
                raise InconsistentSchemaError(msg, shape_id=owner)
            return constant, LiteralKind.ENUM_CONSTANT
        case ShapeKind.TIMESTAMP:
            return _timestamp_literal(value, owner), LiteralKind.TIMESTAMP
        case ShapeKind.LIST | ShapeKind.SET:
            if value != []:
                msg = "Only empty list defaults can be constructed."
                raise UnsupportedConstructError(msg, shape_id=owner)
            return [], LiteralKind.EMPTY_COLLECTION
        case _:
            msg = f"No default literal can be constructed for {kind} shapes."
            raise UnsupportedConstructError(msg, shape_id=owner)
    _mismatch(value, kind, owner)


def _timestamp_literal(value: object, owner: ShapeId) -> datetime:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=UTC)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError as exc:
            msg = f"Default {value!r} is not an ISO-8601 timestamp."
            raise InconsistentSchemaError(msg, shape_id=owner) from exc
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed
    _mismatch(value, ShapeKind.TIMESTAMP, owner)


def _mismatch(value: object, kind: ShapeKind, owner: ShapeId) -> NoReturn:
    msg = f"Default {value!r} does not match target kind {kind}."
    raise InconsistentSchemaError(msg, shape_id=owner)


__all__ = [
    "NULLABLE",
    "LiteralKind",
    "Nullable",
    "Policy",
    "PolicyKind",
    "RequiredOrFail",
    "WithDefault",
    "construct_default_literal",
    "select_policy",
]
