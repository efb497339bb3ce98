"""Typed annotations attached to shapes and members."""

from __future__ import annotations

from decimal import Decimal
from enum import StrEnum
from typing import Any, Literal

import msgspec

from schema_model.ids import ShapeId
from serde_msgspec import StructBaseStrict

DEFAULT_AUTH_MECHANISM = "basic"
DEFAULT_AUTH_PAYLOAD = ShapeId.prelude("String")


class SegmentKind(StrEnum):
    """Kinds of URI path segment."""

    LITERAL = "literal"
    LABEL = "label"
    GREEDY_LABEL = "greedy_label"


class UriSegment(StructBaseStrict, frozen=True):
    """One ``/``-delimited segment of a URI pattern."""

    content: str
    kind: SegmentKind = SegmentKind.LITERAL

    @property
    def is_label(self) -> bool:
        return self.kind is not SegmentKind.LITERAL


class UriPattern(StructBaseStrict, frozen=True):
    """Parsed URI pattern such as ``/widgets/{id}/parts/{path+}?mode=full``."""

    text: str
    segments: tuple[UriSegment, ...] = ()
    query_literals: tuple[tuple[str, str], ...] = ()

    @classmethod
    def parse(cls, text: str) -> UriPattern:
        """Parse a URI pattern into path segments and literal query entries.

        Returns
        -------
        UriPattern
            Parsed pattern.

        Raises
        ------
        ValueError
            Raised when the pattern is not absolute or a label is malformed.
        """
        if not text.startswith("/"):
            msg = f"URI pattern must start with '/': {text!r}."
            raise ValueError(msg)
        path, _, query = text.partition("?")
        segments = tuple(_parse_segment(part, text) for part in path.split("/") if part)
        literals: list[tuple[str, str]] = []
        for entry in query.split("&"):
            if not entry:
                continue
            key, _, value = entry.partition("=")
            literals.append((key, value))
        return cls(text=text, segments=segments, query_literals=tuple(literals))

    def labels(self) -> tuple[str, ...]:
        """Return label names in path order."""
        return tuple(segment.content for segment in self.segments if segment.is_label)

    def label_index(self, name: str) -> int | None:
        """Return the ordinal of a label among the label segments."""
        for index, label in enumerate(self.labels()):
            if label == name:
                return index
        return None

    def segment_index(self, name: str) -> int | None:
        """Return the position of a label among all path segments."""
        for index, segment in enumerate(self.segments):
            if segment.is_label and segment.content == name:
                return index
        return None


def _parse_segment(part: str, text: str) -> UriSegment:
    if not (part.startswith("{") or part.endswith("}")):
        return UriSegment(content=part)
    if not (part.startswith("{") and part.endswith("}")) or len(part) < 3:  # noqa: PLR2004
        msg = f"Malformed label segment {part!r} in URI pattern {text!r}."
        raise ValueError(msg)
    name = part[1:-1]
    if name.endswith("+"):
        return UriSegment(content=name[:-1], kind=SegmentKind.GREEDY_LABEL)
    return UriSegment(content=name, kind=SegmentKind.LABEL)


class HttpTrait(StructBaseStrict, frozen=True):
    """HTTP binding of an operation."""

    method: str
    uri: UriPattern
    code: int = 200


class RangeTrait(StructBaseStrict, frozen=True):
    """Inclusive numeric range constraint."""

    min: Decimal | None = None
    max: Decimal | None = None


class DefaultTrait(StructBaseStrict, frozen=True):
    """Default value declared on a member or its target."""

    value: Any = None


class AuthenticatedTrait(StructBaseStrict, frozen=True):
    """Authentication requirement declared on an operation."""

    mechanism: str = DEFAULT_AUTH_MECHANISM
    optional: bool = False
    payload: ShapeId = DEFAULT_AUTH_PAYLOAD


class Traits(StructBaseStrict, frozen=True):
    """Annotation bundle for a shape or member.

    Only the annotations that drive graph construction and binding are typed
    here; anything else in the source model is dropped on load.
    """

    required: bool = False
    default: DefaultTrait | None = None
    http: HttpTrait | None = None
    http_label: bool = False
    http_query: str | None = None
    http_header: str | None = None
    http_payload: bool = False
    range: RangeTrait | None = None
    authenticated: AuthenticatedTrait | None = None
    unique_items: bool = False
    enum_value: str | int | None = None
    timestamp_format: Literal["date-time", "http-date", "epoch-seconds"] | None = None

    def origin_annotations(self) -> tuple[str, ...]:
        """Return the names of request-origin annotations that are present."""
        present: list[str] = []
        if self.http_payload:
            present.append("httpPayload")
        if self.http_label:
            present.append("httpLabel")
        if self.http_query is not None:
            present.append("httpQuery")
        if self.http_header is not None:
            present.append("httpHeader")
        return tuple(present)


NO_TRAITS = Traits()


def traits(**values: object) -> Traits:
    """Build a ``Traits`` bundle from keyword values.

    Returns
    -------
    Traits
        Trait bundle with the given annotations.
    """
    return msgspec.structs.replace(NO_TRAITS, **values)


__all__ = [
    "DEFAULT_AUTH_MECHANISM",
    "DEFAULT_AUTH_PAYLOAD",
    "NO_TRAITS",
    "AuthenticatedTrait",
    "DefaultTrait",
    "HttpTrait",
    "RangeTrait",
    "SegmentKind",
    "Traits",
    "UriPattern",
    "UriSegment",
    "traits",
]
