"""Run-scoped context shared by the binding components."""

from __future__ import annotations

from dataclasses import dataclass, field

from binding.settings import DEFAULT_SETTINGS, BindingSettings
from schema_model.model import SchemaModel
from shape_graph.cache import GraphCache


@dataclass(frozen=True)
class GenerationContext:
    """Model, graph cache, and settings for one schema-processing run."""

    model: SchemaModel
    cache: GraphCache
    settings: BindingSettings = field(default=DEFAULT_SETTINGS)

    @classmethod
    def for_model(
        cls,
        model: SchemaModel,
        *,
        settings: BindingSettings | None = None,
    ) -> GenerationContext:
        """Create a context with a fresh graph cache.

        Returns
        -------
        GenerationContext
            Context scoped to a single run over ``model``.
        """
        return cls(
            model=model,
            cache=GraphCache(model),
            settings=settings if settings is not None else DEFAULT_SETTINGS,
        )


__all__ = ["GenerationContext"]
