"""Decode a JSON abstract syntax tree into a ``SchemaModel``.

The accepted document is the Smithy-style JSON AST::

    {"smithy": "2.0", "shapes": {"example#Widget": {"type": "structure", ...}}}

The AST is treated as already-parsed input. Only the annotations the graph and
binding layers understand are kept; every other trait is dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import msgspec

from core_types import PathLike
from schema_model.errors import SchemaLoadError
from schema_model.ids import UNIT_ID, ShapeId
from schema_model.model import SchemaModel
from schema_model.shapes import Lifecycle, MemberShape, Shape, ShapeKind
from schema_model.traits import (
    DEFAULT_AUTH_MECHANISM,
    NO_TRAITS,
    AuthenticatedTrait,
    DefaultTrait,
    HttpTrait,
    RangeTrait,
    Traits,
    UriPattern,
)
from serde_msgspec import StructBaseCompat, loads_json, validation_error_payload

logger = logging.getLogger(__name__)

_AUTHENTICATED_TRAIT_NAME = "authenticated"

_KIND_FOR_TYPE: Mapping[str, ShapeKind] = {
    "service": ShapeKind.SERVICE,
    "resource": ShapeKind.RESOURCE,
    "operation": ShapeKind.OPERATION,
    "structure": ShapeKind.STRUCTURE,
    "union": ShapeKind.UNION,
    "list": ShapeKind.LIST,
    "set": ShapeKind.SET,
    "map": ShapeKind.MAP,
    "enum": ShapeKind.ENUM,
    "intEnum": ShapeKind.INT_ENUM,
    "string": ShapeKind.STRING,
    "blob": ShapeKind.BLOB,
    "boolean": ShapeKind.BOOLEAN,
    "byte": ShapeKind.BYTE,
    "short": ShapeKind.SHORT,
    "integer": ShapeKind.INTEGER,
    "long": ShapeKind.LONG,
    "float": ShapeKind.FLOAT,
    "double": ShapeKind.DOUBLE,
    "bigInteger": ShapeKind.BIG_INTEGER,
    "bigDecimal": ShapeKind.BIG_DECIMAL,
    "timestamp": ShapeKind.TIMESTAMP,
    "document": ShapeKind.DOCUMENT,
}


class _TargetRef(StructBaseCompat, frozen=True):
    target: str


class _RawMember(StructBaseCompat, frozen=True):
    target: str
    traits: dict[str, Any] = {}


class _RawShape(StructBaseCompat, frozen=True, rename="camel"):
    type: str
    members: dict[str, _RawMember] = {}
    member: _RawMember | None = None
    key: _RawMember | None = None
    value: _RawMember | None = None
    traits: dict[str, Any] = {}
    operations: tuple[_TargetRef, ...] = ()
    resources: tuple[_TargetRef, ...] = ()
    collection_operations: tuple[_TargetRef, ...] = ()
    create: _TargetRef | None = None
    put: _TargetRef | None = None
    read: _TargetRef | None = None
    update: _TargetRef | None = None
    delete: _TargetRef | None = None
    list: _TargetRef | None = None
    input: _TargetRef | None = None
    output: _TargetRef | None = None
    errors: tuple[_TargetRef, ...] = ()


class _RawModel(StructBaseCompat, frozen=True):
    smithy: str = "2.0"
    shapes: dict[str, _RawShape] = {}


def load_schema_model(path: PathLike) -> SchemaModel:
    """Load a JSON AST model file.

    Parameters
    ----------
    path
        Path to the JSON document.

    Returns
    -------
    SchemaModel
        Shape index for the document.

    Raises
    ------
    SchemaLoadError
        Raised when the file does not exist.
    """
    model_path = Path(path)
    if not model_path.exists():
        msg = f"Model file not found: {str(model_path)!r}."
        raise SchemaLoadError(msg)
    return schema_model_from_json(model_path.read_bytes(), location=str(model_path))


def schema_model_from_json(payload: bytes | str, *, location: str = "<memory>") -> SchemaModel:
    """Decode a JSON AST payload.

    Parameters
    ----------
    payload
        JSON document bytes or text.
    location
        Human-readable source for error messages.

    Returns
    -------
    SchemaModel
        Shape index for the document.

    Raises
    ------
    SchemaLoadError
        Raised when the payload does not match the AST layout.
    """
    try:
        raw = loads_json(payload, target_type=_RawModel)
    except msgspec.ValidationError as exc:
        details = validation_error_payload(exc)
        msg = f"Model validation failed for {location}: {details}"
        raise SchemaLoadError(msg) from exc
    except msgspec.DecodeError as exc:
        msg = f"Model at {location} is not valid JSON: {exc}"
        raise SchemaLoadError(msg) from exc
    shapes = tuple(
        shape
        for name, raw_shape in raw.shapes.items()
        if (shape := _convert_shape(_parse_id(name), raw_shape)) is not None
    )
    logger.debug("Loaded %d shapes from %s", len(shapes), location)
    return SchemaModel(shapes)


def _parse_id(text: str, *, owner: ShapeId | None = None) -> ShapeId:
    try:
        return ShapeId.parse(text)
    except ValueError as exc:
        raise SchemaLoadError(str(exc), shape_id=owner) from exc


def _ref(ref: _TargetRef | None, *, owner: ShapeId) -> ShapeId | None:
    if ref is None:
        return None
    target = _parse_id(ref.target, owner=owner)
    if target == UNIT_ID:
        return None
    return target


def _refs(refs: tuple[_TargetRef, ...], *, owner: ShapeId) -> tuple[ShapeId, ...]:
    return tuple(_parse_id(ref.target, owner=owner) for ref in refs)


def _convert_shape(shape_id: ShapeId, raw: _RawShape) -> Shape | None:
    if raw.type == "apply":
        return None
    kind = _KIND_FOR_TYPE.get(raw.type)
    if kind is None:
        msg = f"Unknown shape type {raw.type!r}."
        raise SchemaLoadError(msg, shape_id=shape_id)
    shape_traits = _convert_traits(raw.traits, owner=shape_id)
    if kind is ShapeKind.LIST and shape_traits.unique_items:
        kind = ShapeKind.SET
    return Shape(
        id=shape_id,
        kind=kind,
        members=_convert_members(shape_id, raw),
        traits=shape_traits,
        resources=_refs(raw.resources, owner=shape_id),
        operations=_refs(raw.operations, owner=shape_id),
        collection_operations=_refs(raw.collection_operations, owner=shape_id),
        lifecycle=Lifecycle(
            create=_ref(raw.create, owner=shape_id),
            put=_ref(raw.put, owner=shape_id),
            read=_ref(raw.read, owner=shape_id),
            update=_ref(raw.update, owner=shape_id),
            delete=_ref(raw.delete, owner=shape_id),
            list=_ref(raw.list, owner=shape_id),
        ),
        input=_ref(raw.input, owner=shape_id),
        output=_ref(raw.output, owner=shape_id),
        errors=_refs(raw.errors, owner=shape_id),
    )


def _convert_members(shape_id: ShapeId, raw: _RawShape) -> tuple[MemberShape, ...]:
    named: list[tuple[str, _RawMember]] = list(raw.members.items())
    for name, member in (("member", raw.member), ("key", raw.key), ("value", raw.value)):
        if member is not None:
            named.append((name, member))
    result: list[MemberShape] = []
    for name, member in named:
        member_id = shape_id.with_member(name)
        result.append(
            MemberShape(
                id=member_id,
                target=_parse_id(member.target, owner=member_id),
                traits=_convert_traits(member.traits, owner=member_id),
            )
        )
    return tuple(result)


def _convert_traits(raw: Mapping[str, Any], *, owner: ShapeId) -> Traits:
    if not raw:
        return NO_TRAITS
    values: dict[str, object] = {}
    for trait_id, value in raw.items():
        handler = _TRAIT_HANDLERS.get(trait_id)
        if handler is None and trait_id.rpartition("#")[2] == _AUTHENTICATED_TRAIT_NAME:
            handler = _authenticated_values
        if handler is None:
            logger.debug("Ignoring trait %s on %s", trait_id, owner)
            continue
        values.update(handler(value, owner))
    nested = {key: item for key, item in values.items() if isinstance(item, msgspec.Struct)}
    scalars = {key: item for key, item in values.items() if key not in nested}
    try:
        converted = msgspec.convert(scalars, type=Traits)
    except msgspec.ValidationError as exc:
        details = validation_error_payload(exc)
        msg = f"Invalid trait values: {details}"
        raise SchemaLoadError(msg, shape_id=owner) from exc
    return msgspec.structs.replace(converted, **nested)


def _flag(field: str) -> Callable[[object, ShapeId], dict[str, object]]:
    def _handler(_value: object, _owner: ShapeId) -> dict[str, object]:
        return {field: True}

    return _handler


def _scalar(field: str) -> Callable[[object, ShapeId], dict[str, object]]:
    def _handler(value: object, _owner: ShapeId) -> dict[str, object]:
        return {field: value}

    return _handler


def _default_values(value: object, _owner: ShapeId) -> dict[str, object]:
    return {"default": DefaultTrait(value=value)}


def _http_values(value: object, owner: ShapeId) -> dict[str, object]:
    if not isinstance(value, Mapping):
        msg = "The http trait must be an object."
        raise SchemaLoadError(msg, shape_id=owner)
    method = value.get("method")
    uri = value.get("uri")
    if not isinstance(method, str) or not isinstance(uri, str):
        msg = "The http trait requires string 'method' and 'uri' values."
        raise SchemaLoadError(msg, shape_id=owner)
    try:
        pattern = UriPattern.parse(uri)
    except ValueError as exc:
        raise SchemaLoadError(str(exc), shape_id=owner) from exc
    code = value.get("code", 200)
    if not isinstance(code, int) or isinstance(code, bool):
        msg = f"The http trait 'code' must be an integer, got {code!r}."
        raise SchemaLoadError(msg, shape_id=owner)
    return {"http": HttpTrait(method=method.upper(), uri=pattern, code=code)}


def _range_values(value: object, owner: ShapeId) -> dict[str, object]:
    if not isinstance(value, Mapping):
        msg = "The range trait must be an object."
        raise SchemaLoadError(msg, shape_id=owner)
    return {"range": RangeTrait(min=_decimal(value.get("min"), owner), max=_decimal(value.get("max"), owner))}


def _decimal(value: object, owner: ShapeId) -> Decimal | None:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        msg = f"Range bound {value!r} is not numeric."
        raise SchemaLoadError(msg, shape_id=owner) from exc


def _authenticated_values(value: object, owner: ShapeId) -> dict[str, object]:
    if value is None or value == {}:
        return {"authenticated": AuthenticatedTrait()}
    if isinstance(value, str):
        return {"authenticated": AuthenticatedTrait(mechanism=value)}
    if isinstance(value, Mapping):
        payload = value.get("payload")
        trait = AuthenticatedTrait(
            mechanism=str(value.get("mechanism", DEFAULT_AUTH_MECHANISM)),
            optional=bool(value.get("optional", False)),
        )
        if payload is not None:
            trait = msgspec.structs.replace(trait, payload=_parse_id(str(payload), owner=owner))
        return {"authenticated": trait}
    msg = "The authenticated trait takes a string, an object, or nothing."
    raise SchemaLoadError(msg, shape_id=owner)


_TRAIT_HANDLERS: Mapping[str, Callable[[object, ShapeId], dict[str, object]]] = {
    "smithy.api#required": _flag("required"),
    "smithy.api#default": _default_values,
    "smithy.api#http": _http_values,
    "smithy.api#httpLabel": _flag("http_label"),
    "smithy.api#httpQuery": _scalar("http_query"),
    "smithy.api#httpHeader": _scalar("http_header"),
    "smithy.api#httpPayload": _flag("http_payload"),
    "smithy.api#range": _range_values,
    "smithy.api#uniqueItems": _flag("unique_items"),
    "smithy.api#enumValue": _scalar("enum_value"),
    "smithy.api#timestampFormat": _scalar("timestamp_format"),
}

__all__ = ["load_schema_model", "schema_model_from_json"]
