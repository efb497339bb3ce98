"""Validation helpers for CLI option payloads."""

from __future__ import annotations

import msgspec

from binding.settings import BindingSettings
from cli.config_loader import ConfigError


def apply_setting_overrides(
    settings: BindingSettings,
    overrides: dict[str, object | None],
) -> BindingSettings:
    """Overlay non-``None`` command line values on loaded settings.

    Returns
    -------
    BindingSettings
        Settings with the overrides applied.

    Raises
    ------
    ConfigError
        Raised when an override leaves the list separator empty.
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return settings
    updated = msgspec.structs.replace(settings, **changes)
    if not updated.list_separator:
        msg = "Config error: --list-separator must not be empty."
        raise ConfigError(msg)
    return updated


__all__ = ["apply_setting_overrides"]
