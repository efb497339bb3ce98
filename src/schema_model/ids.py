"""Shape identifiers."""

from __future__ import annotations

import re

import msgspec

from core_types import PRELUDE_NAMESPACE

_SHAPE_ID_RE = re.compile(
    r"^(?P<namespace>[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*)"
    r"#(?P<name>[A-Za-z_][A-Za-z0-9_]*)"
    r"(?:\$(?P<member>[A-Za-z_][A-Za-z0-9_]*))?$"
)


class ShapeId(msgspec.Struct, frozen=True, order=True, omit_defaults=True):
    """Absolute identifier of a schema node.

    Identifiers order by namespace, then shape name, then member name, which
    gives every collection of shapes a stable iteration order.
    """

    namespace: str
    name: str
    member: str = ""

    @classmethod
    def parse(cls, text: str) -> ShapeId:
        """Parse an absolute shape id such as ``example.widgets#Widget$id``.

        Returns
        -------
        ShapeId
            Parsed identifier.

        Raises
        ------
        ValueError
            Raised when the text is not an absolute shape id.
        """
        match = _SHAPE_ID_RE.match(text.strip())
        if match is None:
            msg = f"Invalid shape id: {text!r}."
            raise ValueError(msg)
        return cls(
            namespace=match.group("namespace"),
            name=match.group("name"),
            member=match.group("member") or "",
        )

    @classmethod
    def prelude(cls, name: str) -> ShapeId:
        """Return the id of a prelude shape such as ``smithy.api#String``.

        Returns
        -------
        ShapeId
            Prelude shape identifier.
        """
        return cls(namespace=PRELUDE_NAMESPACE, name=name)

    @property
    def is_member(self) -> bool:
        return bool(self.member)

    @property
    def is_prelude(self) -> bool:
        return self.namespace == PRELUDE_NAMESPACE

    @property
    def container(self) -> ShapeId:
        """Return the id without its member component."""
        if not self.member:
            return self
        return ShapeId(namespace=self.namespace, name=self.name)

    def with_member(self, member: str) -> ShapeId:
        return ShapeId(namespace=self.namespace, name=self.name, member=member)

    def __str__(self) -> str:
        base = f"{self.namespace}#{self.name}"
        if self.member:
            return f"{base}${self.member}"
        return base


UNIT_ID = ShapeId.prelude("Unit")

__all__ = ["UNIT_ID", "ShapeId"]
