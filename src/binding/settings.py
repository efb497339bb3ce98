"""Settings that parameterize binding-plan synthesis."""

from __future__ import annotations

from typing import Literal

from serde_msgspec import StructBaseStrict

type TimestampFormat = Literal["date-time", "http-date", "epoch-seconds"]

DEFAULT_FAILURE_KIND = "InvalidInputException"
DEFAULT_AUTH_FAILURE_KIND = "UnauthorizedException"


class BindingSettings(StructBaseStrict, frozen=True):
    """Run-wide binding options.

    ``failure_kind`` names the error raised at request time when a required
    member is absent; ``auth_failure_kind`` plays the same role for mandatory
    authentication.
    """

    failure_kind: str = DEFAULT_FAILURE_KIND
    auth_failure_kind: str = DEFAULT_AUTH_FAILURE_KIND
    list_separator: str = ","
    path_timestamp_format: TimestampFormat = "date-time"
    header_timestamp_format: TimestampFormat = "http-date"
    skip_failed_operations: bool = False


DEFAULT_SETTINGS = BindingSettings()

__all__ = [
    "DEFAULT_AUTH_FAILURE_KIND",
    "DEFAULT_FAILURE_KIND",
    "DEFAULT_SETTINGS",
    "BindingSettings",
    "TimestampFormat",
]
