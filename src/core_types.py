"""Shared type aliases and small typing helpers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Literal

type PathLike = str | Path
type OutputFormat = Literal["text", "json"]

type JsonPrimitive = str | int | float | bool | None
type JsonValue = JsonPrimitive | Mapping[str, JsonValue] | Sequence[JsonValue]
type JsonDict = dict[str, JsonValue]

PRELUDE_NAMESPACE = "smithy.api"

__all__ = [
    "PRELUDE_NAMESPACE",
    "JsonDict",
    "JsonPrimitive",
    "JsonValue",
    "OutputFormat",
    "PathLike",
]
