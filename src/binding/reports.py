"""JSON-ready payloads and text renderings of binding results."""

from __future__ import annotations

from typing import TYPE_CHECKING

import msgspec

from binding.conversions import ConversionStep, describe_chain
from binding.origins import NoOrigin
from binding.policies import Nullable, RequiredOrFail, WithDefault

if TYPE_CHECKING:
    from binding.auth import AuthBindingSummary
    from binding.plans import DeclarationPlan, InputPlan, PlanOutcome
    from binding.policies import Policy
    from core_types import JsonDict, JsonValue


def _step_payload(step: ConversionStep) -> JsonDict:
    payload: JsonDict = {"kind": str(step.kind)}
    if step.numeric_family is not None:
        payload["numeric_family"] = str(step.numeric_family)
    if step.timestamp_format is not None:
        payload["timestamp_format"] = step.timestamp_format
    if step.separator is not None:
        payload["separator"] = step.separator
    if step.target is not None:
        payload["target"] = str(step.target)
    if step.element:
        payload["element"] = [_step_payload(inner) for inner in step.element]
    return payload


def policy_payload(policy: Policy) -> JsonDict:
    match policy:
        case RequiredOrFail(failure_kind=failure_kind):
            return {"policy": str(policy.kind), "failure_kind": failure_kind}
        case WithDefault(value=value, literal=literal):
            rendered: JsonValue = msgspec.to_builtins(value)
            return {"policy": str(policy.kind), "value": rendered, "literal": str(literal)}
        case Nullable():
            return {"policy": str(policy.kind)}


def declaration_payload(declaration: DeclarationPlan) -> JsonDict:
    payload: JsonDict = {
        "member": declaration.member_name,
        "origin": str(declaration.origin.origin_type),
        "qualifier": declaration.origin.qualifier,
        "policy": policy_payload(declaration.policy),
        "conversion": [_step_payload(step) for step in declaration.conversion],
        "target": str(declaration.target),
        "target_kind": str(declaration.target_kind),
        "value_optional": declaration.value_optional,
    }
    if declaration.query_range is not None:
        payload["query_range"] = {
            "key": declaration.query_range.key,
            "allows_negative": declaration.query_range.allows_negative,
            "is_decimal": declaration.query_range.is_decimal,
        }
    return payload


def plan_payload(plan: InputPlan) -> JsonDict:
    """Return a JSON-ready mapping for an input plan."""
    return {
        "operation": str(plan.operation),
        "input": str(plan.input_shape) if plan.input_shape is not None else None,
        "http_method": plan.http_method,
        "uri": plan.uri,
        "query_literals": [list(entry) for entry in plan.query_literals],
        "is_whole_payload": plan.is_whole_payload,
        "payload_type": str(plan.payload_type) if plan.payload_type is not None else None,
        "declarations": [declaration_payload(item) for item in plan.declarations],
    }


def outcome_payload(outcome: PlanOutcome) -> JsonDict:
    if outcome.plan is not None:
        return {"operation": str(outcome.operation), "ok": True, "plan": plan_payload(outcome.plan)}
    error = outcome.error
    return {
        "operation": str(outcome.operation),
        "ok": False,
        "error": {
            "type": type(error).__name__,
            "message": error.message if error is not None else "",
            "shape_id": str(error.shape_id) if error is not None and error.shape_id else None,
        },
    }


def auth_payload(summary: AuthBindingSummary) -> JsonDict:
    """Return a JSON-ready mapping for an auth binding summary."""
    return {
        "mechanisms": list(summary.mechanisms),
        "operations": [
            {
                "operation": str(item.operation),
                "mechanism": item.mechanism,
                "payload": str(item.payload),
                "optional": item.optional,
            }
            for item in summary.operations
        ],
        "payload_bindings": [
            {
                "payload": str(binding.payload),
                "operations": [str(op) for op in binding.operations],
                "optional": binding.optional,
            }
            for binding in summary.payload_bindings
        ],
        "optional_payload_types": [str(payload) for payload in summary.optional_payload_types],
    }


def _policy_text(policy: Policy) -> str:
    match policy:
        case RequiredOrFail(failure_kind=failure_kind):
            return f"required (fails with {failure_kind})"
        case WithDefault(value=value, literal=literal):
            return f"default {value!r} ({literal})"
        case Nullable():
            return "nullable"


def render_plan_text(plan: InputPlan) -> str:
    """Render an input plan as indented text lines."""
    header = str(plan.operation)
    if plan.http_method is not None:
        header = f"{header}  {plan.http_method} {plan.uri}"
    lines = [header]
    if plan.query_literals:
        literals = ", ".join(f"{key}={value}" if value else key for key, value in plan.query_literals)
        lines.append(f"  query literals: {literals}")
    if plan.is_whole_payload:
        body = str(plan.payload_type) if plan.payload_type is not None else "no input"
        lines.append(f"  whole payload: {body}")
        return "\n".join(lines)
    for item in plan.declarations:
        origin = str(item.origin.origin_type)
        if not isinstance(item.origin, NoOrigin) and item.origin.qualifier:
            origin = f"{origin}({item.origin.qualifier})"
        lines.append(
            f"  {item.member_name}: {origin}, {_policy_text(item.policy)}, "
            f"{describe_chain(item.conversion)}"
        )
    summary = plan.numeric_query_summary()
    if summary.keys:
        lines.append(
            f"  numeric query keys: {', '.join(summary.keys)} "
            f"(decimal={summary.any_decimal}, negatives={summary.any_negative})"
        )
    return "\n".join(lines)


def render_auth_text(summary: AuthBindingSummary) -> str:
    if summary.is_empty:
        return "No authenticated operations."
    lines = [f"mechanisms: {', '.join(summary.mechanisms)}"]
    for binding in summary.payload_bindings:
        marker = " (optional)" if binding.optional else ""
        lines.append(f"payload {binding.payload}{marker}")
        lines.extend(f"  {op}" for op in binding.operations)
    return "\n".join(lines)


__all__ = [
    "auth_payload",
    "declaration_payload",
    "outcome_payload",
    "plan_payload",
    "policy_payload",
    "render_auth_text",
    "render_plan_text",
]
