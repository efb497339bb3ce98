"""End-to-end tests for input plan assembly."""

from __future__ import annotations

import logging

import pytest

from binding.context import GenerationContext
from binding.conversions import IDENTITY_STEP, ConversionKind, ConversionStep
from binding.origins import HttpHeaderOrigin, PayloadOrigin, UriPathOrigin, UriQueryOrigin
from binding.plans import assemble_input_plan, plan_service_operations, try_assemble_input_plan
from binding.policies import NULLABLE, LiteralKind, RequiredOrFail, WithDefault
from binding.settings import BindingSettings
from schema_model.errors import (
    BindingConflictError,
    InconsistentSchemaError,
    SchemaConfigurationError,
    UnsupportedConstructError,
)
from schema_model.ids import UNIT_ID
from schema_model.model import SchemaModel
from schema_model.shapes import MemberShape, Shape, ShapeKind
from schema_model.traits import DefaultTrait
from tests.test_helpers.model_builders import (
    INTEGER,
    PROBE_ID,
    STRING,
    member,
    operation,
    service,
    sid,
    single_operation_model,
    structure,
    widget_shapes,
)

DEFAULT_LIMIT = 20
WIDGET_OPERATION_COUNT = 8


def _probe_context(
    *members: MemberShape,
    uri: str = "/items",
    extra_shapes: tuple[Shape, ...] = (),
) -> GenerationContext:
    return GenerationContext.for_model(single_operation_model(*members, uri=uri, extra_shapes=extra_shapes))


class TestScenarios:
    """Path, query, and whole-payload inputs of the widget service."""

    def test_path_label_plan(self, context: GenerationContext) -> None:
        """A required string label binds to the first path label."""
        plan = assemble_input_plan(context, sid("GetWidget"))
        assert plan.http_method == "GET"
        assert plan.uri == "/widgets/{id}"
        assert plan.is_whole_payload is False
        assert plan.consumes_payload is False
        assert len(plan.declarations) == 1
        declaration = plan.declarations[0]
        assert declaration.member_name == "id"
        assert declaration.origin == UriPathOrigin(label="id", index=0, segment_index=1)
        assert declaration.policy == RequiredOrFail(failure_kind="InvalidInputException")
        assert declaration.conversion == (IDENTITY_STEP,)
        assert declaration.target == STRING
        assert declaration.target_kind is ShapeKind.STRING
        assert declaration.value_optional is False

    def test_query_default_plan(self, context: GenerationContext) -> None:
        """An integer query with a default casts and carries range metadata."""
        plan = assemble_input_plan(context, sid("ListWidgets"))
        limit = plan.declaration("limit")
        assert limit is not None
        assert limit.origin == UriQueryOrigin(key="limit")
        assert limit.policy == WithDefault(value=DEFAULT_LIMIT, literal=LiteralKind.INTEGER)
        assert limit.conversion == (
            ConversionStep(kind=ConversionKind.CAST_NUMERIC, numeric_family=ShapeKind.INTEGER),
        )
        assert limit.query_range is not None
        assert limit.query_range.allows_negative is True
        assert limit.value_optional is False

    def test_query_plan_keeps_declaration_order(self, context: GenerationContext) -> None:
        """Members are planned in declaration order with per-kind chains."""
        plan = assemble_input_plan(context, sid("ListWidgets"))
        assert [item.member_name for item in plan.declarations] == ["limit", "tags", "since", "status"]
        tags = plan.declaration("tags")
        assert tags is not None
        assert tags.origin == UriQueryOrigin(key="tag")
        assert [step.kind for step in tags.conversion] == [
            ConversionKind.SPLIT_LIST,
            ConversionKind.CONSTRUCT,
        ]
        since = plan.declaration("since")
        assert since is not None
        assert since.origin == HttpHeaderOrigin(name="X-Since")
        assert since.conversion[0].timestamp_format == "http-date"
        assert since.policy is NULLABLE
        status = plan.declaration("status")
        assert status is not None
        assert status.conversion[0].kind is ConversionKind.ENUM_CONSTANT
        summary = plan.numeric_query_summary()
        assert summary.keys == ("limit",)
        assert summary.any_negative is True
        assert summary.any_decimal is False

    def test_whole_payload_plan(self, context: GenerationContext) -> None:
        """An input with no origin annotations is consumed whole."""
        plan = assemble_input_plan(context, sid("CreateWidget"))
        assert plan.is_whole_payload is True
        assert plan.declarations == ()
        assert plan.payload_type == sid("CreateWidgetInput")
        assert plan.consumes_payload is True

    def test_operation_without_input_or_http(self, context: GenerationContext) -> None:
        """Operations without input have an empty whole-payload plan."""
        plan = assemble_input_plan(context, sid("Ping"))
        assert plan.is_whole_payload is True
        assert plan.input_shape is None
        assert plan.payload_type is None
        assert plan.http_method is None

    def test_unit_input_is_treated_as_no_input(self) -> None:
        """An operation whose input is the prelude unit plans like one without input."""
        model = SchemaModel(
            (
                service("UnitService", operations=("Touch",)),
                Shape(id=sid("Touch"), kind=ShapeKind.OPERATION, input=UNIT_ID),
            )
        )
        plan = assemble_input_plan(GenerationContext.for_model(model), sid("Touch"))
        assert plan.is_whole_payload is True
        assert plan.input_shape is None
        assert plan.payload_type is None

    def test_uri_query_literals_are_recorded(self) -> None:
        """Fixed query entries of the URI pattern are kept on the plan."""
        context = _probe_context(
            member("ProbeInput", "limit", INTEGER, http_query="limit"),
            uri="/items?mode=all&verbose",
        )
        plan = assemble_input_plan(context, PROBE_ID)
        assert plan.query_literals == (("mode", "all"), ("verbose", ""))

    def test_payload_member_alongside_label(self, context: GenerationContext) -> None:
        """A payload member may be combined with path labels."""
        plan = assemble_input_plan(context, sid("UpdateWidget"))
        assert plan.payload_type == sid("WidgetData")
        body = plan.declaration("body")
        assert body is not None
        assert body.origin == PayloadOrigin(payload_type=sid("WidgetData"))
        assert body.conversion == (IDENTITY_STEP,)
        assert body.value_optional is True

    def test_range_annotation_restricts_negatives(self, context: GenerationContext) -> None:
        """A positive minimum forbids negative query values."""
        plan = assemble_input_plan(context, sid("ArchiveWidget"))
        summary = plan.numeric_query_summary()
        assert summary.keys == ("days",)
        assert summary.any_negative is False

    def test_failure_kind_comes_from_settings(self, model: SchemaModel) -> None:
        """Required members fail with the configured error kind."""
        settings = BindingSettings(failure_kind="BadRequestException")
        context = GenerationContext.for_model(model, settings=settings)
        plan = assemble_input_plan(context, sid("GetWidget"))
        assert plan.declarations[0].policy == RequiredOrFail(failure_kind="BadRequestException")

    def test_assembly_logs_debug_line(
        self,
        context: GenerationContext,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Log one line per assembled plan."""
        with caplog.at_level(logging.DEBUG, logger="binding.plans"):
            assemble_input_plan(context, sid("GetWidget"))
        assert any("Assembled input plan" in record.getMessage() for record in caplog.records)


class TestConfigurationErrors:
    """Schemas that cannot be bound fail at assembly time."""

    def test_two_payload_members_conflict(self) -> None:
        """Only one member may be the body."""
        context = _probe_context(
            member("ProbeInput", "first", STRING, http_payload=True),
            member("ProbeInput", "second", STRING, http_payload=True),
        )
        with pytest.raises(BindingConflictError, match="Only one member"):
            assemble_input_plan(context, PROBE_ID)

    def test_payload_with_unbound_members_conflicts(self) -> None:
        """Unbound members cannot share the body with a payload member."""
        context = _probe_context(
            member("ProbeInput", "body", STRING, http_payload=True),
            member("ProbeInput", "note", STRING),
        )
        with pytest.raises(BindingConflictError, match="note") as excinfo:
            assemble_input_plan(context, PROBE_ID)
        assert excinfo.value.shape_id == sid("ProbeInput")

    def test_member_with_two_origins_conflicts(self) -> None:
        """A member cannot be both a query parameter and a header."""
        context = _probe_context(
            member("ProbeInput", "token", STRING, http_query="token", http_header="X-Token"),
        )
        with pytest.raises(BindingConflictError, match="conflicting origin"):
            assemble_input_plan(context, PROBE_ID)

    def test_unmatched_uri_label_is_inconsistent(self) -> None:
        """URI labels need label members."""
        context = _probe_context(member("ProbeInput", "name", STRING), uri="/items/{id}")
        with pytest.raises(InconsistentSchemaError, match="\\{id\\}"):
            assemble_input_plan(context, PROBE_ID)

    def test_map_query_is_unsupported(self) -> None:
        """Maps cannot be query parameters."""
        context = _probe_context(
            member("ProbeInput", "labels", sid("Labels"), http_query="labels"),
            extra_shapes=(Shape(id=sid("Labels"), kind=ShapeKind.MAP),),
        )
        with pytest.raises(UnsupportedConstructError, match="map shapes"):
            assemble_input_plan(context, PROBE_ID)

    def test_bad_default_is_inconsistent(self) -> None:
        """Defaults must match the member target."""
        context = _probe_context(
            member("ProbeInput", "limit", INTEGER, http_query="limit", default=DefaultTrait(value="ten")),
        )
        with pytest.raises(InconsistentSchemaError, match="does not match"):
            assemble_input_plan(context, PROBE_ID)

    def test_unreachable_operation_is_inconsistent(self) -> None:
        """Operations no service reaches cannot be planned."""
        model = SchemaModel(
            (
                service("Empty"),
                operation("Orphan", input_name="OrphanInput"),
                structure("OrphanInput"),
            )
        )
        context = GenerationContext.for_model(model)
        with pytest.raises(InconsistentSchemaError, match="not reachable"):
            assemble_input_plan(context, sid("Orphan"))

    def test_non_operations_are_rejected(self, context: GenerationContext) -> None:
        """Only operation shapes have input plans."""
        with pytest.raises(InconsistentSchemaError, match="kind operation"):
            assemble_input_plan(context, sid("Widget"))


class TestPlanOutcomes:
    """Result-typed assembly."""

    def test_try_assemble_captures_errors(self) -> None:
        """Errors are returned, not raised, and re-raised on unwrap."""
        context = _probe_context(member("ProbeInput", "name", STRING), uri="/items/{id}")
        outcome = try_assemble_input_plan(context, PROBE_ID)
        assert outcome.ok is False
        assert outcome.plan is None
        assert isinstance(outcome.error, InconsistentSchemaError)
        with pytest.raises(SchemaConfigurationError):
            outcome.unwrap()

    def test_try_assemble_returns_plans(self, context: GenerationContext) -> None:
        """Successful outcomes unwrap to their plan."""
        outcome = try_assemble_input_plan(context, sid("GetWidget"))
        assert outcome.ok is True
        assert outcome.unwrap().operation == sid("GetWidget")

    def test_plan_service_operations_is_sorted(self, context: GenerationContext) -> None:
        """Plan every operation of a service in id order."""
        outcomes = plan_service_operations(context, sid("WidgetService"))
        assert len(outcomes) == WIDGET_OPERATION_COUNT
        assert all(outcome.ok for outcome in outcomes)
        operations = [outcome.operation for outcome in outcomes]
        assert operations == sorted(operations)

    def test_one_failure_does_not_stop_the_service(self) -> None:
        """Failed operations are reported alongside successful ones."""
        shapes = [shape for shape in widget_shapes() if shape.id != sid("WidgetService")]
        shapes.extend(
            (
                service("WidgetService", resources=("Widget",), operations=("Ping", "Broken")),
                operation("Broken", input_name="BrokenInput"),
                structure(
                    "BrokenInput",
                    member("BrokenInput", "token", STRING, http_query="t", http_header="X-T"),
                ),
            )
        )
        context = GenerationContext.for_model(SchemaModel(shapes))
        outcomes = {
            outcome.operation: outcome
            for outcome in plan_service_operations(context, sid("WidgetService"))
        }
        assert isinstance(outcomes[sid("Broken")].error, BindingConflictError)
        assert outcomes[sid("GetWidget")].ok is True
