"""Authentication binding summaries across a service's operations."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from binding.policies import NULLABLE, Policy, RequiredOrFail
from schema_model.ids import ShapeId
from serde_msgspec import StructBaseStrict

if TYPE_CHECKING:
    from binding.context import GenerationContext
    from binding.settings import BindingSettings
    from schema_model.shapes import Shape


class OperationAuth(StructBaseStrict, frozen=True):
    """Authentication requirement of one operation."""

    operation: ShapeId
    mechanism: str
    payload: ShapeId
    optional: bool = False


class PayloadBinding(StructBaseStrict, frozen=True):
    """Operations authenticating into the same payload shape."""

    payload: ShapeId
    operations: tuple[ShapeId, ...]
    optional: bool = False


class AuthDeclaration(StructBaseStrict, frozen=True):
    """Injection policy for the authenticated payload of one operation."""

    operation: ShapeId
    mechanism: str
    payload: ShapeId
    policy: Policy


class AuthBindingSummary(StructBaseStrict, frozen=True):
    """Mechanisms and payload groupings for a set of operations.

    Operations are ordered case-insensitively by shape name; payload bindings
    by payload id.
    """

    mechanisms: tuple[str, ...] = ()
    operations: tuple[OperationAuth, ...] = ()
    payload_bindings: tuple[PayloadBinding, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.operations

    @property
    def has_optional(self) -> bool:
        return any(item.optional for item in self.operations)

    @property
    def needs_mechanism_selector(self) -> bool:
        """Whether callers must be told which of several mechanisms applies."""
        return len(self.mechanisms) > 1

    @property
    def optional_payload_types(self) -> tuple[ShapeId, ...]:
        return tuple(binding.payload for binding in self.payload_bindings if binding.optional)

    def operations_for_payload(self, payload: ShapeId) -> tuple[ShapeId, ...]:
        for binding in self.payload_bindings:
            if binding.payload == payload:
                return binding.operations
        return ()

    def mechanisms_for_payload(self, payload: ShapeId) -> tuple[str, ...]:
        return tuple(
            sorted({item.mechanism for item in self.operations if item.payload == payload})
        )

    def auth_for(self, operation: ShapeId) -> OperationAuth | None:
        for item in self.operations:
            if item.operation == operation:
                return item
        return None


def collect_auth_bindings(operations: Iterable[Shape]) -> AuthBindingSummary:
    """Group authenticated operations by mechanism and payload shape.

    Parameters
    ----------
    operations
        Operation shapes to scan; shapes without an authentication
        annotation are skipped.

    Returns
    -------
    AuthBindingSummary
        Summary of mechanisms, per-operation requirements, and payload groups.
    """
    entries: list[OperationAuth] = []
    for operation in operations:
        trait = operation.traits.authenticated
        if trait is None:
            continue
        entries.append(
            OperationAuth(
                operation=operation.id,
                mechanism=trait.mechanism.lower(),
                payload=trait.payload,
                optional=trait.optional,
            )
        )
    entries.sort(key=lambda item: (item.operation.name.lower(), item.operation))
    grouped: dict[ShapeId, list[OperationAuth]] = {}
    for entry in entries:
        grouped.setdefault(entry.payload, []).append(entry)
    bindings = tuple(
        PayloadBinding(
            payload=payload,
            operations=tuple(item.operation for item in group),
            optional=any(item.optional for item in group),
        )
        for payload, group in sorted(grouped.items())
    )
    return AuthBindingSummary(
        mechanisms=tuple(sorted({entry.mechanism for entry in entries})),
        operations=tuple(entries),
        payload_bindings=bindings,
    )


def collect_service_auth(context: GenerationContext, service_id: ShapeId) -> AuthBindingSummary:
    """Collect authentication bindings for every operation of a service.

    Returns
    -------
    AuthBindingSummary
        Summary over the operations in the service graph.
    """
    graph = context.cache.get(service_id)
    return collect_auth_bindings(graph.operations())


def auth_declaration(operation_auth: OperationAuth, settings: BindingSettings) -> AuthDeclaration:
    """Return the injection policy for an authenticated payload.

    Optional authentication yields ``Nullable``; mandatory authentication
    fails the request with ``settings.auth_failure_kind``.

    Returns
    -------
    AuthDeclaration
        Declaration for the operation's authenticated payload.
    """
    policy: Policy
    if operation_auth.optional:
        policy = NULLABLE
    else:
        policy = RequiredOrFail(failure_kind=settings.auth_failure_kind)
    return AuthDeclaration(
        operation=operation_auth.operation,
        mechanism=operation_auth.mechanism,
        payload=operation_auth.payload,
        policy=policy,
    )


__all__ = [
    "AuthBindingSummary",
    "AuthDeclaration",
    "OperationAuth",
    "PayloadBinding",
    "auth_declaration",
    "collect_auth_bindings",
    "collect_service_auth",
]
