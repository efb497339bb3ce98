"""Run context for CLI command injection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from binding.context import GenerationContext
from binding.settings import DEFAULT_SETTINGS, BindingSettings
from schema_model.loader import load_schema_model

if TYPE_CHECKING:
    from core_types import PathLike


@dataclass(frozen=True)
class RunContext:
    """Injected run context for CLI commands.

    Parameters
    ----------
    log_level
        Logging level applied to the invocation.
    settings
        Binding settings resolved from config files and the environment.
    config_file
        Explicit config path, when one was given.
    """

    log_level: str = "WARNING"
    settings: BindingSettings = field(default=DEFAULT_SETTINGS)
    config_file: str | None = None

    def generation_context(self, model_path: PathLike) -> GenerationContext:
        """Load a model file and wrap it in a generation context.

        Returns
        -------
        GenerationContext
            Context carrying this run's binding settings.
        """
        model = load_schema_model(model_path)
        return GenerationContext.for_model(model, settings=self.settings)


def resolve_run_context(run_context: RunContext | None) -> RunContext:
    """Return ``run_context`` or a default context for direct calls.

    Returns
    -------
    RunContext
        Context to use for the command.
    """
    return run_context if run_context is not None else RunContext()


__all__ = ["RunContext", "resolve_run_context"]
