"""Binding-strategy synthesis: origins, policies, conversions, and plans."""

from __future__ import annotations

from binding.auth import (
    AuthBindingSummary,
    AuthDeclaration,
    OperationAuth,
    PayloadBinding,
    auth_declaration,
    collect_auth_bindings,
    collect_service_auth,
)
from binding.context import GenerationContext
from binding.conversions import (
    ConversionChain,
    ConversionKind,
    ConversionStep,
    NumericQueryRange,
    numeric_query_range,
    resolve_conversion,
)
from binding.origins import (
    NO_ORIGIN,
    HttpHeaderOrigin,
    NoOrigin,
    Origin,
    OriginType,
    PayloadOrigin,
    UriPathOrigin,
    UriQueryOrigin,
    classify_origin,
)
from binding.plans import (
    DeclarationPlan,
    InputPlan,
    NumericQuerySummary,
    PlanOutcome,
    assemble_input_plan,
    plan_service_operations,
    try_assemble_input_plan,
)
from binding.policies import (
    NULLABLE,
    LiteralKind,
    Nullable,
    Policy,
    PolicyKind,
    RequiredOrFail,
    WithDefault,
    construct_default_literal,
    select_policy,
)
from binding.settings import BindingSettings

__all__ = [
    "NO_ORIGIN",
    "NULLABLE",
    "AuthBindingSummary",
    "AuthDeclaration",
    "BindingSettings",
    "ConversionChain",
    "ConversionKind",
    "ConversionStep",
    "DeclarationPlan",
    "GenerationContext",
    "HttpHeaderOrigin",
    "InputPlan",
    "LiteralKind",
    "NoOrigin",
    "Nullable",
    "NumericQueryRange",
    "NumericQuerySummary",
    "OperationAuth",
    "Origin",
    "OriginType",
    "PayloadBinding",
    "PayloadOrigin",
    "PlanOutcome",
    "Policy",
    "PolicyKind",
    "RequiredOrFail",
    "UriPathOrigin",
    "UriQueryOrigin",
    "WithDefault",
    "assemble_input_plan",
    "auth_declaration",
    "classify_origin",
    "collect_auth_bindings",
    "collect_service_auth",
    "construct_default_literal",
    "numeric_query_range",
    "plan_service_operations",
    "resolve_conversion",
    "select_policy",
    "try_assemble_input_plan",
]
