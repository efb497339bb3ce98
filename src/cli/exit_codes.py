"""Exit code taxonomy for the shapebind CLI."""

from __future__ import annotations

from enum import IntEnum

from schema_model.errors import SchemaConfigurationError, SchemaLoadError


class ExitCode(IntEnum):
    """Standard exit codes for CLI commands.

    - 0: Success
    - 1: Unexpected failure
    - 2: Command line or model document could not be parsed
    - 3: Model is inconsistent or cannot be bound
    - 4: Configuration file missing or invalid
    """

    SUCCESS = 0
    GENERAL_ERROR = 1
    PARSE_ERROR = 2
    VALIDATION_ERROR = 3
    CONFIG_ERROR = 4

    @classmethod
    def from_exception(cls, exc: BaseException) -> ExitCode:
        """Map an exception to an appropriate exit code.

        Parameters
        ----------
        exc
            Exception to classify.

        Returns
        -------
        ExitCode
            Exit code appropriate for the exception type.
        """
        cyclopts_code = _exit_code_for_cyclopts(exc)
        if cyclopts_code is not None:
            return cyclopts_code

        schema_code = _exit_code_for_schema_error(exc)
        if schema_code is not None:
            return schema_code

        name_code = _exit_code_for_exception_name(exc)
        if name_code is not None:
            return name_code

        type_code = _exit_code_for_exception_type(exc)
        if type_code is not None:
            return type_code

        return cls.GENERAL_ERROR


def _exit_code_for_cyclopts(exc: BaseException) -> ExitCode | None:
    module = exc.__class__.__module__
    if not module.startswith("cyclopts"):
        return None
    if exc.__class__.__name__ == "ValidationError":
        return ExitCode.VALIDATION_ERROR
    return ExitCode.PARSE_ERROR


def _exit_code_for_schema_error(exc: BaseException) -> ExitCode | None:
    if isinstance(exc, SchemaLoadError):
        return ExitCode.PARSE_ERROR
    if isinstance(exc, SchemaConfigurationError):
        return ExitCode.VALIDATION_ERROR
    return None


def _exit_code_for_exception_name(exc: BaseException) -> ExitCode | None:
    if exc.__class__.__name__ in {"ConfigError", "TOMLDecodeError"}:
        return ExitCode.CONFIG_ERROR
    return None


def _exit_code_for_exception_type(exc: BaseException) -> ExitCode | None:
    if isinstance(exc, (ValueError, TypeError)):
        return ExitCode.VALIDATION_ERROR
    if isinstance(exc, (FileNotFoundError, PermissionError)):
        return ExitCode.CONFIG_ERROR
    return None


__all__ = ["ExitCode"]
