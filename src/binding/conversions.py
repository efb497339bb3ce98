"""Type conversion chains from raw request text to member types."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from binding.origins import NoOrigin, OriginType, PayloadOrigin, UriQueryOrigin
from schema_model.errors import InconsistentSchemaError, UnsupportedConstructError
from schema_model.ids import ShapeId
from schema_model.shapes import ShapeKind
from serde_msgspec import StructBaseStrict

if TYPE_CHECKING:
    from binding.origins import Origin
    from binding.settings import BindingSettings, TimestampFormat
    from schema_model.model import SchemaModel
    from schema_model.shapes import MemberShape, Shape


class ConversionKind(StrEnum):
    """Closed set of conversion steps."""

    IDENTITY = "identity"
    CAST_NUMERIC = "cast-numeric"
    PARSE_BIG_INTEGER = "parse-big-integer"
    PARSE_BIG_DECIMAL = "parse-big-decimal"
    PARSE_TIMESTAMP = "parse-timestamp"
    SPLIT_LIST = "split-list"
    SPLIT_SET = "split-set"
    PARSE_BOOLEAN = "parse-boolean"
    CONSTRUCT = "construct"
    ENUM_CONSTANT = "enum-constant"
    INT_ENUM = "int-enum"


class ConversionStep(StructBaseStrict, frozen=True):
    """One step of a conversion chain.

    Only the fields relevant to ``kind`` are set: ``numeric_family`` for
    numeric casts, ``timestamp_format`` for timestamp parsing, ``separator``
    and ``element`` for splits, ``target`` for constructors and enums.
    """

    kind: ConversionKind
    numeric_family: ShapeKind | None = None
    timestamp_format: str | None = None
    separator: str | None = None
    target: ShapeId | None = None
    element: tuple[ConversionStep, ...] = ()

    def describe(self) -> str:
        """Render the step as ``kind(argument)``."""
        match self.kind:
            case ConversionKind.CAST_NUMERIC:
                return f"{self.kind}({self.numeric_family})"
            case ConversionKind.PARSE_TIMESTAMP:
                return f"{self.kind}({self.timestamp_format})"
            case ConversionKind.SPLIT_LIST | ConversionKind.SPLIT_SET:
                inner = " -> ".join(step.describe() for step in self.element)
                return f"{self.kind}({self.separator!r}: {inner})"
            case ConversionKind.CONSTRUCT | ConversionKind.ENUM_CONSTANT | ConversionKind.INT_ENUM:
                return f"{self.kind}({self.target})"
            case _:
                return str(self.kind)


type ConversionChain = tuple[ConversionStep, ...]

IDENTITY_STEP = ConversionStep(kind=ConversionKind.IDENTITY)


class NumericQueryRange(StructBaseStrict, frozen=True):
    """Advisory range metadata for a numeric query parameter."""

    key: str
    allows_negative: bool
    is_decimal: bool


def describe_chain(chain: ConversionChain) -> str:
    return " -> ".join(step.describe() for step in chain) or "-"


def resolve_conversion(
    member: MemberShape,
    target: Shape,
    origin: Origin,
    *,
    model: SchemaModel,
    settings: BindingSettings,
) -> ConversionChain:
    """Select the conversion chain for a member bound to ``origin``.

    Parameters
    ----------
    member
        Input member being bound.
    target
        Shape the member targets.
    origin
        Origin the member was classified into.
    model
        Shape index used to resolve collection elements.
    settings
        Separator and default timestamp formats.

    Returns
    -------
    ConversionChain
        Ordered steps; a single identity step for payload origins and an empty
        chain when the member has no origin.

    Raises
    ------
    UnsupportedConstructError
        Raised when the target kind cannot be bound to the origin.
    """
    if isinstance(origin, NoOrigin):
        return ()
    if isinstance(origin, PayloadOrigin):
        return (IDENTITY_STEP,)
    resolver = _ChainResolver(
        member=member,
        origin_type=origin.origin_type,
        model=model,
        settings=settings,
    )
    return resolver.chain(target, nested=False)


class _ChainResolver:
    def __init__(
        self,
        *,
        member: MemberShape,
        origin_type: OriginType,
        model: SchemaModel,
        settings: BindingSettings,
    ) -> None:
        self._member = member
        self._origin_type = origin_type
        self._model = model
        self._settings = settings

    def chain(self, target: Shape, *, nested: bool) -> ConversionChain:  # noqa: PLR0911
        kind = target.kind
        match kind:
            case ShapeKind.STRING:
                return self._wrapped((IDENTITY_STEP,), target)
            case (
                ShapeKind.BYTE
                | ShapeKind.SHORT
                | ShapeKind.INTEGER
                | ShapeKind.LONG
                | ShapeKind.FLOAT
                | ShapeKind.DOUBLE
            ):
                return (ConversionStep(kind=ConversionKind.CAST_NUMERIC, numeric_family=kind),)
            case ShapeKind.BIG_INTEGER:
                return (ConversionStep(kind=ConversionKind.PARSE_BIG_INTEGER),)
            case ShapeKind.BIG_DECIMAL:
                return (ConversionStep(kind=ConversionKind.PARSE_BIG_DECIMAL),)
            case ShapeKind.BOOLEAN:
                return (ConversionStep(kind=ConversionKind.PARSE_BOOLEAN),)
            case ShapeKind.TIMESTAMP:
                return (
                    ConversionStep(
                        kind=ConversionKind.PARSE_TIMESTAMP,
                        timestamp_format=self._timestamp_format(target),
                    ),
                )
            case ShapeKind.ENUM:
                return (ConversionStep(kind=ConversionKind.ENUM_CONSTANT, target=target.id),)
            case ShapeKind.INT_ENUM:
                return (ConversionStep(kind=ConversionKind.INT_ENUM, target=target.id),)
            case _ if kind.is_collection and not nested:
                return self._wrapped((self._split(target),), target)
            case _ if kind.is_collection:
                msg = f"Nested collections cannot be bound to {self._origin_type} origins."
                raise UnsupportedConstructError(msg, shape_id=self._member.id)
            case _:
                msg = f"{kind} shapes cannot be bound to {self._origin_type} origins."
                raise UnsupportedConstructError(msg, shape_id=self._member.id)

    def _split(self, target: Shape) -> ConversionStep:
        element_member = target.member("member")
        if element_member is None:
            msg = "Collection shape has no element member."
            raise InconsistentSchemaError(msg, shape_id=target.id)
        element = self._model.member_target(element_member)
        split_kind = (
            ConversionKind.SPLIT_SET if target.kind is ShapeKind.SET else ConversionKind.SPLIT_LIST
        )
        return ConversionStep(
            kind=split_kind,
            separator=self._settings.list_separator,
            element=self.chain(element, nested=True),
        )

    @staticmethod
    def _wrapped(chain: ConversionChain, target: Shape) -> ConversionChain:
        if target.id.is_prelude:
            return chain
        return (*chain, ConversionStep(kind=ConversionKind.CONSTRUCT, target=target.id))

    def _timestamp_format(self, target: Shape) -> TimestampFormat:
        declared = self._member.traits.timestamp_format or target.traits.timestamp_format
        if declared is not None:
            return declared
        if self._origin_type is OriginType.HTTP_HEADER:
            return self._settings.header_timestamp_format
        return self._settings.path_timestamp_format


def numeric_query_range(
    member: MemberShape,
    target: Shape,
    origin: Origin,
) -> NumericQueryRange | None:
    """Return range metadata for numeric query members, ``None`` otherwise.

    Negative values are allowed when no range is declared or when either
    declared bound is below zero.
    """
    if not isinstance(origin, UriQueryOrigin) or not target.kind.is_numeric_family:
        return None
    declared = member.traits.range or target.traits.range
    if declared is None:
        allows_negative = True
    else:
        allows_negative = any(bound is not None and bound < 0 for bound in (declared.min, declared.max))
    return NumericQueryRange(
        key=origin.key,
        allows_negative=allows_negative,
        is_decimal=target.kind.is_floating,
    )


__all__ = [
    "IDENTITY_STEP",
    "ConversionChain",
    "ConversionKind",
    "ConversionStep",
    "NumericQueryRange",
    "describe_chain",
    "numeric_query_range",
    "resolve_conversion",
]
