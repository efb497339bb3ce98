"""Type converters for CLI inputs."""

from __future__ import annotations

from schema_model.ids import ShapeId
from schema_model.model import SchemaModel


def resolve_shape_id(model: SchemaModel, value: str) -> ShapeId:
    """Resolve an absolute or bare shape name against a model.

    A bare name such as ``WidgetService`` matches the single shape with that
    name in any non-prelude namespace.

    Parameters
    ----------
    model
        Model to search.
    value
        Absolute shape id or bare shape name.

    Returns
    -------
    ShapeId
        Resolved identifier.

    Raises
    ------
    ValueError
        Raised when the name is unknown or ambiguous.
    """
    text = value.strip()
    if "#" in text:
        return ShapeId.parse(text)
    matches = sorted(
        shape.id for shape in model if shape.id.name == text and not shape.id.is_prelude
    )
    if not matches:
        msg = f"No shape named {text!r} in the model."
        raise ValueError(msg)
    if len(matches) > 1:
        found = ", ".join(str(shape_id) for shape_id in matches)
        msg = f"Shape name {text!r} is ambiguous: {found}."
        raise ValueError(msg)
    return matches[0]


__all__ = ["resolve_shape_id"]
