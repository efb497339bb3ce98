"""Tests for the graph, plan, and auth commands and their dispatch."""

from __future__ import annotations

from pathlib import Path
from typing import Any, cast

import msgspec
import pytest

from binding.settings import BindingSettings
from cli.app import BindingOptions, SessionOptions, app, meta_launcher
from cli.commands.auth import auth_command
from cli.commands.graph import graph_command
from cli.commands.plan import plan_command
from cli.commands.version import get_version_info
from cli.context import RunContext
from cli.converters import resolve_shape_id
from cli.exit_codes import ExitCode
from cli.invoke import invoke_with_context
from cli.result import CliResult
from schema_model.errors import InconsistentSchemaError, SchemaLoadError
from tests.test_helpers.model_builders import sid, widget_ast, widget_model

WIDGET_AST_OPERATIONS = 4


def _payload(result: CliResult) -> dict[str, Any]:
    assert isinstance(result.payload, dict)
    return cast("dict[str, Any]", result.payload)


@pytest.fixture
def broken_model_file(tmp_path: Path) -> Path:
    """Widget AST whose GetWidget URI label has no matching member."""
    document = widget_ast()
    traits = document["shapes"]["example.widgets#GetWidget"]["traits"]
    traits["smithy.api#http"] = {"method": "GET", "uri": "/widgets/{widgetId}"}
    path = tmp_path / "broken.json"
    path.write_bytes(msgspec.json.encode(document))
    return path


class TestGraphCommand:
    """Relationship graph output."""

    def test_text_and_payload(self, model_file: Path) -> None:
        """The graph renders as text and lists vertices and edges."""
        result = graph_command(model_file, service="WidgetService", run_context=RunContext())
        assert result.ok
        assert result.summary is not None
        assert result.summary.splitlines()[0] == "service example.widgets#WidgetService"
        payload = _payload(result)
        assert payload["service"] == "example.widgets#WidgetService"
        assert "example.widgets#GetWidget" in payload["vertices"]
        assert {"source", "target", "tag"} == set(payload["edges"][0])
        assert result.metrics["vertices"] == len(payload["vertices"])
        assert result.metrics["edges"] == len(payload["edges"])

    def test_absolute_service_id(self, model_file: Path) -> None:
        """Absolute ids select the service directly."""
        result = graph_command(
            model_file,
            service="example.widgets#WidgetService",
            output_format="json",
        )
        assert result.output_format == "json"
        assert _payload(result)["service"] == "example.widgets#WidgetService"

    def test_non_service_is_rejected(self, model_file: Path) -> None:
        """Only services root a graph."""
        with pytest.raises(InconsistentSchemaError):
            graph_command(model_file, service="GetWidget")


class TestPlanCommand:
    """Input plan output."""

    def test_service_plans(self, model_file: Path) -> None:
        """Every operation of the service is planned."""
        result = plan_command(model_file, service="WidgetService", run_context=RunContext())
        assert result.ok
        payload = _payload(result)
        assert payload["scope"] == "example.widgets#WidgetService"
        assert len(payload["operations"]) == WIDGET_AST_OPERATIONS
        assert all(item["ok"] for item in payload["operations"])
        assert payload["settings"]["failure_kind"] == "InvalidInputException"
        assert result.metrics == {"planned": WIDGET_AST_OPERATIONS, "failed": 0}
        assert result.summary is not None
        assert "example.widgets#GetWidget  GET /widgets/{id}" in result.summary

    def test_single_operation(self, model_file: Path) -> None:
        """One operation can be planned by name."""
        result = plan_command(model_file, operation="ListWidgets")
        payload = _payload(result)
        assert payload["scope"] == "example.widgets#ListWidgets"
        [outcome] = payload["operations"]
        names = [item["member"] for item in outcome["plan"]["declarations"]]
        assert names == ["limit", "tags"]

    def test_operation_must_be_an_operation(self, model_file: Path) -> None:
        """Non-operation shapes are rejected."""
        with pytest.raises(InconsistentSchemaError, match="kind operation"):
            plan_command(model_file, operation="Widget")

    @pytest.mark.parametrize(
        ("service", "operation"),
        [(None, None), ("WidgetService", "GetWidget")],
    )
    def test_exactly_one_selector(
        self,
        model_file: Path,
        service: str | None,
        operation: str | None,
    ) -> None:
        """Exactly one of --service and --operation is required."""
        result = plan_command(model_file, service=service, operation=operation)
        assert result.exit_code == ExitCode.VALIDATION_ERROR
        assert result.summary == "error: pass exactly one of --service or --operation."

    def test_failure_aborts_by_default(self, broken_model_file: Path) -> None:
        """The first failing plan becomes the command result."""
        result = plan_command(broken_model_file, service="WidgetService")
        assert result.exit_code == ExitCode.VALIDATION_ERROR
        assert result.summary is not None
        assert result.summary.startswith("error: URI pattern '/widgets/{widgetId}'")

    def test_failures_can_be_skipped(self, broken_model_file: Path) -> None:
        """Skipped failures become warnings next to the other plans."""
        run_context = RunContext(settings=BindingSettings(skip_failed_operations=True))
        result = plan_command(broken_model_file, service="WidgetService", run_context=run_context)
        assert result.ok
        assert result.metrics == {"planned": WIDGET_AST_OPERATIONS - 1, "failed": 1}
        [warning] = result.warnings
        assert warning.startswith("skipped example.widgets#GetWidget:")
        failed = [item for item in _payload(result)["operations"] if not item["ok"]]
        assert failed[0]["error"]["type"] == "InconsistentSchemaError"


def test_auth_command(model_file: Path) -> None:
    """The auth summary groups operations by payload."""
    result = auth_command(model_file, service="WidgetService", output_format="json")
    payload = _payload(result)
    assert payload["service"] == "example.widgets#WidgetService"
    assert payload["mechanisms"] == ["bearer"]
    assert payload["optional_payload_types"] == ["example.widgets#Token"]
    assert result.summary is not None
    assert result.summary.startswith("mechanisms: bearer")


def test_missing_model_file_is_a_load_error(tmp_path: Path) -> None:
    """Commands called directly surface loader errors."""
    with pytest.raises(SchemaLoadError, match="not found"):
        graph_command(tmp_path / "absent.json", service="WidgetService")


class TestResolveShapeId:
    """Bare and absolute shape names on the command line."""

    def test_bare_and_absolute_names(self) -> None:
        """Bare names resolve within the model's namespaces."""
        model = widget_model()
        assert resolve_shape_id(model, "WidgetService") == sid("WidgetService")
        assert resolve_shape_id(model, " example.widgets#Ping ") == sid("Ping")

    def test_unknown_name(self) -> None:
        """Unknown bare names are rejected."""
        with pytest.raises(ValueError, match="No shape named"):
            resolve_shape_id(widget_model(), "Gadget")

    def test_prelude_names_are_not_candidates(self) -> None:
        """Bare names never resolve to prelude shapes."""
        with pytest.raises(ValueError, match="No shape named"):
            resolve_shape_id(widget_model(), "String")


class TestExitCodes:
    """Exception to exit code mapping."""

    def test_schema_errors(self) -> None:
        """Load errors are parse errors; other schema errors are validation errors."""
        assert ExitCode.from_exception(SchemaLoadError("bad")) == ExitCode.PARSE_ERROR
        assert ExitCode.from_exception(InconsistentSchemaError("bad")) == ExitCode.VALIDATION_ERROR

    def test_generic_errors(self) -> None:
        """Builtin exceptions fall back to type-based codes."""
        assert ExitCode.from_exception(ValueError("bad")) == ExitCode.VALIDATION_ERROR
        assert ExitCode.from_exception(FileNotFoundError("gone")) == ExitCode.CONFIG_ERROR
        assert ExitCode.from_exception(RuntimeError("boom")) == ExitCode.GENERAL_ERROR

    def test_results_from_exceptions(self) -> None:
        """Error results default their summary to the message."""
        result = CliResult.from_exception(InconsistentSchemaError("bad", shape_id=sid("Ping")))
        assert result.exit_code == ExitCode.VALIDATION_ERROR
        assert result.summary == "bad [example.widgets#Ping]"
        assert not result.ok


class TestDispatch:
    """Parsing, context injection, and result rendering."""

    def test_graph_through_the_app(self, model_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """The app parses tokens and prints the command summary."""
        code = invoke_with_context(
            app,
            ["graph", str(model_file), "--service", "WidgetService"],
            run_context=RunContext(),
        )
        assert code == ExitCode.SUCCESS
        assert "service example.widgets#WidgetService" in capsys.readouterr().out

    def test_alias_and_json_output(self, model_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Command aliases work and JSON output is printed."""
        code = invoke_with_context(
            app,
            ["a", str(model_file), "--service", "WidgetService", "--format", "json"],
            run_context=RunContext(),
        )
        assert code == ExitCode.SUCCESS
        assert '"mechanisms"' in capsys.readouterr().out

    def test_schema_errors_are_reported(
        self,
        broken_model_file: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Plan failures print one error line and exit with a validation code."""
        code = invoke_with_context(
            app,
            ["plan", str(broken_model_file), "--operation", "GetWidget"],
            run_context=RunContext(),
        )
        assert code == ExitCode.VALIDATION_ERROR
        assert "error: URI pattern" in capsys.readouterr().out

    def test_raised_schema_errors_go_to_stderr(
        self,
        model_file: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Errors raised by a command are rendered on stderr."""
        code = invoke_with_context(
            app,
            ["graph", str(model_file), "--service", "GetWidget"],
            run_context=RunContext(),
        )
        assert code == ExitCode.VALIDATION_ERROR
        assert "Expected a shape of kind service" in capsys.readouterr().err

    def test_unknown_command_is_a_parse_error(self) -> None:
        """Unknown commands fail during parsing."""
        code = invoke_with_context(app, ["frobnicate"], run_context=RunContext())
        assert code == ExitCode.PARSE_ERROR

    def test_meta_launcher_applies_overrides(
        self,
        model_file: Path,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Config files and option overrides reach the command."""
        config = tmp_path / "shapebind.toml"
        config.write_text('failure_kind = "FromConfig"\n', encoding="utf-8")
        code = meta_launcher(
            "plan",
            str(model_file),
            "--operation",
            "GetWidget",
            session=SessionOptions(config_file=str(config)),
            binding=BindingOptions(list_separator=";"),
        )
        assert code == ExitCode.SUCCESS
        assert "fails with FromConfig" in capsys.readouterr().out

    def test_meta_launcher_rejects_unknown_log_levels(self) -> None:
        """Log levels outside the supported set are rejected."""
        with pytest.raises(ValueError, match="log level"):
            meta_launcher(session=SessionOptions(log_level=cast("Any", "TRACE")))


def test_version_info_lists_dependencies() -> None:
    """Version output names the runtime stack."""
    info = get_version_info()
    assert set(cast("dict[str, object]", info["dependencies"])) == {
        "cyclopts",
        "msgspec",
        "rich",
        "rustworkx",
    }
