"""Declaration plan assembly for operation inputs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from binding.conversions import (
    ConversionChain,
    NumericQueryRange,
    numeric_query_range,
    resolve_conversion,
)
from binding.origins import NoOrigin, Origin, PayloadOrigin, check_uri_labels, classify_origin
from binding.policies import Policy, select_policy
from schema_model.errors import BindingConflictError, SchemaConfigurationError
from schema_model.ids import UNIT_ID, ShapeId
from schema_model.shapes import ShapeKind
from serde_msgspec import StructBaseStrict

if TYPE_CHECKING:
    from binding.context import GenerationContext
    from schema_model.shapes import MemberShape, Shape

logger = logging.getLogger(__name__)


class DeclarationPlan(StructBaseStrict, frozen=True):
    """How one input member is extracted, defaulted, and converted."""

    member_name: str
    member_id: ShapeId
    origin: Origin
    policy: Policy
    conversion: ConversionChain
    target: ShapeId
    target_kind: ShapeKind
    value_optional: bool
    query_range: NumericQueryRange | None = None


class NumericQuerySummary(StructBaseStrict, frozen=True):
    """Aggregate of the numeric query ranges of one input plan."""

    keys: tuple[str, ...] = ()
    any_decimal: bool = False
    any_negative: bool = False


class InputPlan(StructBaseStrict, frozen=True):
    """Declaration plans for one operation input.

    ``is_whole_payload`` is set when no member has an individual origin; the
    entire request body is then the operation input. ``query_literals`` holds the
    fixed query entries written into the URI pattern.
    """

    operation: ShapeId
    input_shape: ShapeId | None = None
    declarations: tuple[DeclarationPlan, ...] = ()
    is_whole_payload: bool = False
    payload_type: ShapeId | None = None
    http_method: str | None = None
    uri: str | None = None
    query_literals: tuple[tuple[str, str], ...] = ()

    @property
    def consumes_payload(self) -> bool:
        return self.payload_type is not None

    def declaration(self, member_name: str) -> DeclarationPlan | None:
        for declaration in self.declarations:
            if declaration.member_name == member_name:
                return declaration
        return None

    def numeric_query_summary(self) -> NumericQuerySummary:
        ranges = [
            declaration.query_range
            for declaration in self.declarations
            if declaration.query_range is not None
        ]
        return NumericQuerySummary(
            keys=tuple(item.key for item in ranges),
            any_decimal=any(item.is_decimal for item in ranges),
            any_negative=any(item.allows_negative for item in ranges),
        )


@dataclass(frozen=True)
class PlanOutcome:
    """Either an input plan or the configuration error that prevented it."""

    operation: ShapeId
    plan: InputPlan | None = None
    error: SchemaConfigurationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> InputPlan:
        """Return the plan, re-raising the captured error on failure.

        Returns
        -------
        InputPlan
            Assembled plan.

        Raises
        ------
        SchemaConfigurationError
            The error captured during assembly.
        """
        if self.error is not None:
            raise self.error
        if self.plan is None:
            msg = "Plan outcome holds neither a plan nor an error."
            raise SchemaConfigurationError(msg, shape_id=self.operation)
        return self.plan


def assemble_input_plan(context: GenerationContext, operation_id: ShapeId) -> InputPlan:
    """Assemble the input plan of an operation.

    Members are visited in declaration order. Each member with an origin
    contributes one declaration plan; when none has an origin the plan is
    whole-payload.

    Parameters
    ----------
    context
        Run-scoped model, graph cache, and settings.
    operation_id
        Operation to plan.

    Returns
    -------
    InputPlan
        Plan for the operation input.

    Raises
    ------
    InconsistentSchemaError
        Raised when the operation is unreachable or its URI labels do not
        match the input members.
    UnsupportedConstructError
        Raised when a member kind cannot be bound or defaulted.
    BindingConflictError
        Raised when origins cannot resolve to a single binding.
    """
    model = context.model
    operation = model.expect_kind(operation_id, ShapeKind.OPERATION)
    # Raises InconsistentSchemaError when no service reaches the operation.
    context.cache.graph_containing(operation.id)
    http = operation.traits.http
    input_shape = (
        model.expect_kind(operation.input, ShapeKind.STRUCTURE)
        if operation.input is not None and operation.input != UNIT_ID
        else None
    )
    if http is not None:
        check_uri_labels(operation, input_shape, http)
    declarations: list[DeclarationPlan] = []
    unbound: list[MemberShape] = []
    for member in input_shape.members if input_shape is not None else ():
        origin = classify_origin(member, http)
        if isinstance(origin, NoOrigin):
            unbound.append(member)
            continue
        declarations.append(_declaration(context, member, origin))
    payload_type = _check_payload_conflicts(input_shape, declarations, unbound)
    plan = InputPlan(
        operation=operation.id,
        input_shape=input_shape.id if input_shape is not None else None,
        declarations=tuple(declarations),
        is_whole_payload=not declarations,
        payload_type=payload_type,
        http_method=http.method if http is not None else None,
        uri=http.uri.text if http is not None else None,
        query_literals=http.uri.query_literals if http is not None else (),
    )
    logger.debug(
        "Assembled input plan for %s: %d declarations, whole_payload=%s",
        operation.id,
        len(plan.declarations),
        plan.is_whole_payload,
    )
    return plan


def try_assemble_input_plan(context: GenerationContext, operation_id: ShapeId) -> PlanOutcome:
    """Assemble an input plan, capturing configuration errors in the outcome.

    Returns
    -------
    PlanOutcome
        Outcome holding the plan or the error.
    """
    try:
        plan = assemble_input_plan(context, operation_id)
    except SchemaConfigurationError as exc:
        logger.debug("Input plan for %s failed: %s", operation_id, exc)
        return PlanOutcome(operation=operation_id, error=exc)
    return PlanOutcome(operation=operation_id, plan=plan)


def plan_service_operations(
    context: GenerationContext,
    service_id: ShapeId,
) -> tuple[PlanOutcome, ...]:
    """Assemble plans for every operation reachable from a service.

    Returns
    -------
    tuple[PlanOutcome, ...]
        One outcome per operation, ordered by operation id.
    """
    graph = context.cache.get(service_id)
    return tuple(try_assemble_input_plan(context, operation.id) for operation in graph.operations())


def _declaration(
    context: GenerationContext,
    member: MemberShape,
    origin: Origin,
) -> DeclarationPlan:
    target = context.model.member_target(member)
    policy = select_policy(member, target, context.settings)
    conversion = resolve_conversion(
        member,
        target,
        origin,
        model=context.model,
        settings=context.settings,
    )
    return DeclarationPlan(
        member_name=member.name,
        member_id=member.id,
        origin=origin,
        policy=policy,
        conversion=conversion,
        target=target.id,
        target_kind=target.kind,
        value_optional=policy.value_optional,
        query_range=numeric_query_range(member, target, origin),
    )


def _check_payload_conflicts(
    input_shape: Shape | None,
    declarations: list[DeclarationPlan],
    unbound: list[MemberShape],
) -> ShapeId | None:
    if input_shape is None:
        return None
    payloads = [item for item in declarations if isinstance(item.origin, PayloadOrigin)]
    if len(payloads) > 1:
        names = ", ".join(item.member_name for item in payloads)
        msg = f"Only one member can be bound to the request payload, found: {names}."
        raise BindingConflictError(msg, shape_id=input_shape.id)
    if not declarations:
        return input_shape.id
    if payloads and unbound:
        names = ", ".join(member.name for member in unbound)
        msg = (
            f"Member {payloads[0].member_name} is the request payload, "
            f"so members without an origin cannot be read from the body: {names}."
        )
        raise BindingConflictError(msg, shape_id=input_shape.id)
    if payloads:
        return payloads[0].target
    return None


__all__ = [
    "DeclarationPlan",
    "InputPlan",
    "NumericQuerySummary",
    "PlanOutcome",
    "assemble_input_plan",
    "plan_service_operations",
    "try_assemble_input_plan",
]
