"""Origin classification: where in a request each input member comes from."""

from __future__ import annotations

from enum import StrEnum

from schema_model.errors import BindingConflictError, InconsistentSchemaError
from schema_model.ids import ShapeId
from schema_model.shapes import MemberShape, Shape
from schema_model.traits import HttpTrait, SegmentKind
from serde_msgspec import StructBaseStrict


class OriginType(StrEnum):
    """Part of an inbound request a member value is extracted from."""

    URI_PATH = "uri-path"
    URI_QUERY = "uri-query"
    HTTP_HEADER = "http-header"
    PAYLOAD = "payload"
    NONE = "none"


class UriPathOrigin(StructBaseStrict, frozen=True, tag="uri-path", tag_field="origin"):
    """Member fills a ``{label}`` segment of the operation URI.

    ``index`` is the label's ordinal among the label segments; ``segment_index``
    is its position among all path segments.
    """

    label: str
    index: int
    segment_index: int
    greedy: bool = False

    @property
    def origin_type(self) -> OriginType:
        return OriginType.URI_PATH

    @property
    def qualifier(self) -> str:
        return self.label


class UriQueryOrigin(StructBaseStrict, frozen=True, tag="uri-query", tag_field="origin"):
    """Member is a named query parameter."""

    key: str

    @property
    def origin_type(self) -> OriginType:
        return OriginType.URI_QUERY

    @property
    def qualifier(self) -> str:
        return self.key


class HttpHeaderOrigin(StructBaseStrict, frozen=True, tag="http-header", tag_field="origin"):
    """Member is a request header, keyed by its wire name."""

    name: str

    @property
    def origin_type(self) -> OriginType:
        return OriginType.HTTP_HEADER

    @property
    def qualifier(self) -> str:
        return self.name


class PayloadOrigin(StructBaseStrict, frozen=True, tag="payload", tag_field="origin"):
    """Member is the entire request body."""

    payload_type: ShapeId

    @property
    def origin_type(self) -> OriginType:
        return OriginType.PAYLOAD

    @property
    def qualifier(self) -> str:
        return str(self.payload_type)


class NoOrigin(StructBaseStrict, frozen=True, tag="none", tag_field="origin"):
    """Member cannot be extracted individually."""

    @property
    def origin_type(self) -> OriginType:
        return OriginType.NONE

    @property
    def qualifier(self) -> str:
        return ""


type Origin = UriPathOrigin | UriQueryOrigin | HttpHeaderOrigin | PayloadOrigin | NoOrigin

NO_ORIGIN = NoOrigin()


def classify_origin(member: MemberShape, http: HttpTrait | None) -> Origin:
    """Select the request origin of one input member.

    Parameters
    ----------
    member
        Input structure member.
    http
        HTTP binding of the owning operation, if any.

    Returns
    -------
    Origin
        Origin of the member; ``NO_ORIGIN`` when it carries no origin
        annotation or the operation has no HTTP binding.

    Raises
    ------
    BindingConflictError
        Raised when the member carries more than one origin annotation.
    InconsistentSchemaError
        Raised when a path label has no matching URI segment.
    """
    annotations = member.traits.origin_annotations()
    if len(annotations) > 1:
        found = ", ".join(annotations)
        msg = f"Member carries conflicting origin annotations: {found}."
        raise BindingConflictError(msg, shape_id=member.id)
    if http is None or not annotations:
        return NO_ORIGIN
    traits = member.traits
    match annotations[0]:
        case "httpPayload":
            return PayloadOrigin(payload_type=member.target)
        case "httpLabel":
            return _path_origin(member, http)
        case "httpQuery":
            return UriQueryOrigin(key=traits.http_query or member.name)
        case "httpHeader":
            return HttpHeaderOrigin(name=traits.http_header or member.name)
        case other:
            msg = f"Unknown origin annotation {other!r}."
            raise InconsistentSchemaError(msg, shape_id=member.id)


def _path_origin(member: MemberShape, http: HttpTrait) -> UriPathOrigin:
    uri = http.uri
    index = uri.label_index(member.name)
    segment_index = uri.segment_index(member.name)
    if index is None or segment_index is None:
        msg = f"URI pattern {uri.text!r} has no {{{member.name}}} label for this member."
        raise InconsistentSchemaError(msg, shape_id=member.id)
    segment = uri.segments[segment_index]
    return UriPathOrigin(
        label=member.name,
        index=index,
        segment_index=segment_index,
        greedy=segment.kind is SegmentKind.GREEDY_LABEL,
    )


def check_uri_labels(operation: Shape, input_shape: Shape | None, http: HttpTrait) -> None:
    """Check that every URI label is filled by a label-annotated input member.

    Raises
    ------
    InconsistentSchemaError
        Raised when a label has no corresponding annotated member.
    """
    for label in http.uri.labels():
        member = input_shape.member(label) if input_shape is not None else None
        if member is None or not member.traits.http_label:
            msg = f"URI pattern {http.uri.text!r} declares {{{label}}} with no matching label member."
            raise InconsistentSchemaError(msg, shape_id=operation.id)


__all__ = [
    "NO_ORIGIN",
    "HttpHeaderOrigin",
    "NoOrigin",
    "Origin",
    "OriginType",
    "PayloadOrigin",
    "UriPathOrigin",
    "UriQueryOrigin",
    "check_uri_labels",
    "classify_origin",
]
