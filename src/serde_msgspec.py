"""Shared msgspec struct bases and JSON helpers."""

from __future__ import annotations

import re
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any, cast

import msgspec


class StructBaseStrict(
    msgspec.Struct,
    frozen=True,
    kw_only=True,
    omit_defaults=True,
    repr_omit_defaults=True,
    forbid_unknown_fields=True,
):
    """Base struct for strict contracts."""


class StructBaseCompat(
    msgspec.Struct,
    frozen=True,
    kw_only=True,
    omit_defaults=True,
    repr_omit_defaults=True,
    forbid_unknown_fields=False,
):
    """Base struct for forward-compatible decoded inputs."""


_VALIDATION_RE = re.compile(r"^(?P<summary>.*?)(?:\s+-\s+at\s+`(?P<path>[^`]+)`)?$")


def _json_enc_hook(obj: object) -> object:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Mapping):
        return dict(obj)
    raise TypeError


def _dec_hook(type_hint: Any, obj: object) -> object:
    if isinstance(obj, str) and type_hint is Path:
        return Path(obj)
    return obj


JSON_ENCODER = msgspec.json.Encoder(
    enc_hook=_json_enc_hook,
    order="deterministic",
    decimal_format="string",
)
JSON_ENCODER_SORTED = msgspec.json.Encoder(
    enc_hook=_json_enc_hook,
    order="sorted",
    decimal_format="string",
)


def validation_error_payload(exc: msgspec.ValidationError) -> dict[str, str]:
    """Normalize a msgspec ValidationError for diagnostics.

    Parameters
    ----------
    exc
        ValidationError raised by msgspec decoding/conversion.

    Returns
    -------
    dict[str, str]
        Normalized error payload containing type, summary, and optional path.
    """
    message = str(exc).strip()
    match = _VALIDATION_RE.match(message)
    payload: dict[str, str] = {"type": exc.__class__.__name__}
    if match:
        summary = (match.group("summary") or "").strip()
        if summary:
            payload["summary"] = summary
        path = match.group("path")
        if path:
            payload["path"] = path
        return payload
    payload["summary"] = message
    return payload


def dumps_json(obj: object, *, pretty: bool = False) -> bytes:
    """Serialize an object to JSON bytes, preserving mapping order.

    Returns
    -------
    bytes
        JSON payload.
    """
    raw = JSON_ENCODER.encode(obj)
    if not pretty:
        return raw
    return msgspec.json.format(raw, indent=2)


def dumps_json_sorted(obj: object, *, pretty: bool = False) -> bytes:
    """Serialize an object to JSON bytes with sorted keys.

    Returns
    -------
    bytes
        JSON payload with sorted keys.
    """
    raw = JSON_ENCODER_SORTED.encode(obj)
    if not pretty:
        return raw
    return msgspec.json.format(raw, indent=2)


def loads_json[T](buf: bytes | str, *, target_type: type[T], strict: bool = True) -> T:
    """Deserialize JSON bytes into the requested type.

    Parameters
    ----------
    buf
        JSON payload.
    target_type
        Target type for decoding.
    strict
        Whether to enforce strict decoding.

    Returns
    -------
    T
        Decoded payload.
    """
    decoder = msgspec.json.Decoder(
        type=target_type,
        dec_hook=_dec_hook,
        strict=strict,
    )
    return decoder.decode(buf)


def convert_mapping[T](
    payload: Mapping[str, object],
    *,
    target_type: type[T],
    strict: bool = True,
) -> T:
    """Convert a builtin mapping into the requested type.

    Returns
    -------
    T
        Converted payload.
    """
    return cast("T", msgspec.convert(dict(payload), type=target_type, strict=strict, dec_hook=_dec_hook))


__all__ = [
    "JSON_ENCODER",
    "JSON_ENCODER_SORTED",
    "StructBaseCompat",
    "StructBaseStrict",
    "convert_mapping",
    "dumps_json",
    "dumps_json_sorted",
    "loads_json",
    "validation_error_payload",
]
