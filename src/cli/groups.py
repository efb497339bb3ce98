"""Shared help-panel groups for the shapebind CLI."""

from __future__ import annotations

from cyclopts import Group

session_group = Group(
    "Session",
    help="Session, logging, and config file options.",
    sort_key=0,
)

selection_group = Group(
    "Selection",
    help="Choose the service or operation to inspect.",
    sort_key=1,
)

binding_group = Group(
    "Binding",
    help="Override binding settings from the config file.",
    sort_key=2,
)

output_group = Group(
    "Output",
    help="Configure output format.",
    sort_key=3,
)

__all__ = [
    "binding_group",
    "output_group",
    "selection_group",
    "session_group",
]
