"""Configuration error types raised while analyzing a schema model."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from schema_model.ids import ShapeId


class SchemaConfigurationError(Exception):
    """Base class for schema configuration errors.

    Every error carries the offending shape identifier, when one is known, so
    callers can report it back to the schema author alongside the message.
    """

    def __init__(self, message: str, *, shape_id: ShapeId | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.shape_id = shape_id

    def __str__(self) -> str:
        if self.shape_id is None:
            return self.message
        return f"{self.message} [{self.shape_id}]"


class InconsistentSchemaError(SchemaConfigurationError, ValueError):
    """Raised when shapes reference each other inconsistently."""


class UnsupportedConstructError(SchemaConfigurationError, TypeError):
    """Raised when a shape kind has no binding or literal-construction rule."""


class BindingConflictError(SchemaConfigurationError, ValueError):
    """Raised when origin annotations cannot resolve to a single binding."""


class SchemaLoadError(SchemaConfigurationError, ValueError):
    """Raised when a serialized schema model cannot be decoded."""


__all__ = [
    "BindingConflictError",
    "InconsistentSchemaError",
    "SchemaConfigurationError",
    "SchemaLoadError",
    "UnsupportedConstructError",
]
