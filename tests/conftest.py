"""Shared pytest fixtures for shapebind tests."""

from __future__ import annotations

import logging
from pathlib import Path

import msgspec
import pytest

from binding.context import GenerationContext
from schema_model.model import SchemaModel
from shape_graph.cache import GraphCache
from tests.test_helpers.model_builders import widget_ast, widget_model


@pytest.fixture
def model() -> SchemaModel:
    """Widget service model built in memory."""
    return widget_model()


@pytest.fixture
def cache(model: SchemaModel) -> GraphCache:
    return GraphCache(model)


@pytest.fixture
def context(model: SchemaModel) -> GenerationContext:
    """Run-scoped generation context over the widget model."""
    return GenerationContext.for_model(model)


@pytest.fixture
def model_file(tmp_path: Path) -> Path:
    """Widget JSON AST written to a temporary file."""
    path = tmp_path / "model.json"
    path.write_bytes(msgspec.json.encode(widget_ast()))
    return path


@pytest.fixture(autouse=True)
def _debug_logging(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG)
