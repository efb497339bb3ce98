"""Schema model: shape ids, annotations, shapes, and the model index."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from schema_model.errors import (
        BindingConflictError,
        InconsistentSchemaError,
        SchemaConfigurationError,
        SchemaLoadError,
        UnsupportedConstructError,
    )
    from schema_model.ids import UNIT_ID, ShapeId
    from schema_model.loader import load_schema_model, schema_model_from_json
    from schema_model.model import SchemaModel, prelude_shapes
    from schema_model.shapes import GraphShape, Lifecycle, MemberShape, Shape, ShapeKind
    from schema_model.traits import (
        AuthenticatedTrait,
        DefaultTrait,
        HttpTrait,
        RangeTrait,
        Traits,
        UriPattern,
        traits,
    )

_EXPORT_MAP: dict[str, tuple[str, str]] = {
    "AuthenticatedTrait": ("schema_model.traits", "AuthenticatedTrait"),
    "BindingConflictError": ("schema_model.errors", "BindingConflictError"),
    "DefaultTrait": ("schema_model.traits", "DefaultTrait"),
    "GraphShape": ("schema_model.shapes", "GraphShape"),
    "HttpTrait": ("schema_model.traits", "HttpTrait"),
    "InconsistentSchemaError": ("schema_model.errors", "InconsistentSchemaError"),
    "Lifecycle": ("schema_model.shapes", "Lifecycle"),
    "MemberShape": ("schema_model.shapes", "MemberShape"),
    "RangeTrait": ("schema_model.traits", "RangeTrait"),
    "SchemaConfigurationError": ("schema_model.errors", "SchemaConfigurationError"),
    "SchemaLoadError": ("schema_model.errors", "SchemaLoadError"),
    "SchemaModel": ("schema_model.model", "SchemaModel"),
    "Shape": ("schema_model.shapes", "Shape"),
    "ShapeId": ("schema_model.ids", "ShapeId"),
    "ShapeKind": ("schema_model.shapes", "ShapeKind"),
    "Traits": ("schema_model.traits", "Traits"),
    "UNIT_ID": ("schema_model.ids", "UNIT_ID"),
    "UnsupportedConstructError": ("schema_model.errors", "UnsupportedConstructError"),
    "UriPattern": ("schema_model.traits", "UriPattern"),
    "load_schema_model": ("schema_model.loader", "load_schema_model"),
    "prelude_shapes": ("schema_model.model", "prelude_shapes"),
    "schema_model_from_json": ("schema_model.loader", "schema_model_from_json"),
    "traits": ("schema_model.traits", "traits"),
}


def __getattr__(name: str) -> object:
    target = _EXPORT_MAP.get(name)
    if target is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    module_path, attr_name = target
    module = importlib.import_module(module_path)
    return getattr(module, attr_name)


def __dir__() -> list[str]:
    return sorted(list(globals()) + list(_EXPORT_MAP))


__all__ = [
    "UNIT_ID",
    "AuthenticatedTrait",
    "BindingConflictError",
    "DefaultTrait",
    "GraphShape",
    "HttpTrait",
    "InconsistentSchemaError",
    "Lifecycle",
    "MemberShape",
    "RangeTrait",
    "SchemaConfigurationError",
    "SchemaLoadError",
    "SchemaModel",
    "Shape",
    "ShapeId",
    "ShapeKind",
    "Traits",
    "UnsupportedConstructError",
    "UriPattern",
    "load_schema_model",
    "prelude_shapes",
    "schema_model_from_json",
    "traits",
]
