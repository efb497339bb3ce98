"""Config loading for binding settings."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import cast

import msgspec

from binding.settings import BindingSettings
from core_types import JsonValue
from serde_msgspec import convert_mapping, validation_error_payload

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "shapebind.toml"
_TOOL_KEY = "shapebind"


class ConfigError(ValueError):
    """Raised when a config file is missing or does not validate."""


def load_binding_settings(config_file: str | None) -> BindingSettings:
    """Load settings from shapebind.toml / pyproject.toml or explicit --config.

    Parameters
    ----------
    config_file
        Optional explicit config file path.

    Returns
    -------
    BindingSettings
        Decoded settings, or the defaults when no config file is found.

    Raises
    ------
    ConfigError
        Raised when an explicit config path does not exist.
    """
    if config_file:
        path = Path(config_file)
        if not path.exists():
            msg = f"Config file not found: {config_file!r}."
            raise ConfigError(msg)
        raw, location = _resolve_explicit_payload(path)
        return _decode_settings(raw, location=location)

    shapebind_path = _find_in_parents(CONFIG_FILENAME)
    if shapebind_path is not None:
        return _decode_settings(_read_toml(shapebind_path), location=str(shapebind_path))

    pyproject_path = _find_in_parents("pyproject.toml")
    if pyproject_path is not None:
        nested = _extract_tool_config(_read_toml(pyproject_path))
        if nested is not None:
            return _decode_settings(nested, location=f"{pyproject_path}:tool.{_TOOL_KEY}")

    logger.debug("No config file found; using default binding settings")
    return BindingSettings()


def settings_payload(settings: BindingSettings) -> dict[str, JsonValue]:
    """Return settings as a plain mapping, defaults included."""
    return {
        field: cast("JsonValue", getattr(settings, field))
        for field in settings.__struct_fields__
    }


def _find_in_parents(filename: str) -> Path | None:
    path = Path.cwd()
    while True:
        candidate = path / filename
        if candidate.exists():
            return candidate
        if path.parent == path:
            return None
        path = path.parent


def _read_toml(path: Path) -> dict[str, JsonValue]:
    try:
        payload = msgspec.toml.decode(path.read_text(encoding="utf-8"), type=object, strict=True)
    except msgspec.DecodeError as exc:
        msg = f"Config file {path} is not valid TOML: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(payload, dict):
        msg = f"Expected TOML mapping in {path}, got {type(payload).__name__}."
        raise ConfigError(msg)
    return cast("dict[str, JsonValue]", payload)


def _decode_settings(raw: Mapping[str, JsonValue], *, location: str) -> BindingSettings:
    try:
        settings = convert_mapping(raw, target_type=BindingSettings)
    except msgspec.ValidationError as exc:
        details = validation_error_payload(exc)
        msg = f"Config validation failed for {location}: {details}"
        raise ConfigError(msg) from exc
    if not settings.list_separator:
        msg = f"Config validation failed for {location}: list_separator must not be empty."
        raise ConfigError(msg)
    logger.debug("Loaded binding settings from %s", location)
    return settings


def _resolve_explicit_payload(path: Path) -> tuple[Mapping[str, JsonValue], str]:
    if path.suffix == ".json":
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            msg = f"Config validation failed for {path}: {exc}"
            raise ConfigError(msg) from exc
        if not isinstance(raw, dict):
            msg = f"Config validation failed for {path}: JSON root must be an object."
            raise ConfigError(msg)
        return cast("Mapping[str, JsonValue]", raw), str(path)
    raw = _read_toml(path)
    if path.name == "pyproject.toml":
        nested = _extract_tool_config(raw)
        if nested is None:
            msg = f"Config validation failed for {path}: missing [tool.{_TOOL_KEY}] section."
            raise ConfigError(msg)
        return nested, f"{path}:tool.{_TOOL_KEY}"
    return raw, str(path)


def _extract_tool_config(raw: Mapping[str, JsonValue]) -> dict[str, JsonValue] | None:
    tool_section = raw.get("tool")
    if not isinstance(tool_section, dict):
        return None
    nested = tool_section.get(_TOOL_KEY)
    if not isinstance(nested, dict):
        return None
    return cast("dict[str, JsonValue]", nested)


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "load_binding_settings",
    "settings_payload",
]
