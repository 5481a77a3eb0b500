"""Mapping from structure tree roles to semantic containers."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Mapping

_LOGGER = logging.getLogger("taggedpdf.roles")


class RoleBehavior(str, Enum):
    """How the compiler treats a node carrying a role."""

    CONTAINER = "container"
    PASS_THROUGH = "pass_through"
    SKIP_SUBTREE = "skip_subtree"
    FIGURE = "figure"
    NOTE = "note"
    UNSUPPORTED = "unsupported"


class ContainerKind(str, Enum):
    """Semantic container kinds emitted into the compiled tree."""

    DIVISION = "division"
    HEADING = "heading"
    LIST = "list"
    LIST_ITEM = "list_item"
    TABLE = "table"
    TABLE_ROW = "table_row"
    TABLE_HEADER_CELL = "table_header_cell"
    TABLE_DATA_CELL = "table_data_cell"
    LINK = "link"
    NOTE = "note"
    FORM = "form"
    FIGURE = "figure"
    FORMULA = "formula"
    GENERIC = "generic"
    PAGE = "page"



@dataclass(frozen=True, slots=True)
class RoleRule:
    """Table entry describing what a role compiles to."""

    behavior: RoleBehavior
    kind: ContainerKind | None = None
    tag: str | None = None
    level: int | None = None

    @property
    def creates_container(self) -> bool:
        return self.behavior in {RoleBehavior.CONTAINER, RoleBehavior.FIGURE, RoleBehavior.NOTE}


def _container(kind: ContainerKind, tag: str | None = None, level: int | None = None) -> RoleRule:
    return RoleRule(RoleBehavior.CONTAINER, kind, tag, level)


PASS_THROUGH = RoleRule(RoleBehavior.PASS_THROUGH)
SKIP_SUBTREE = RoleRule(RoleBehavior.SKIP_SUBTREE)
UNSUPPORTED = RoleRule(RoleBehavior.UNSUPPORTED)
FIGURE = RoleRule(RoleBehavior.FIGURE, ContainerKind.FIGURE, "figure")
NOTE = RoleRule(RoleBehavior.NOTE, ContainerKind.NOTE, "aside")

ROLE_TABLE: dict[str, RoleRule] = {
    # Document level
    "Root": PASS_THROUGH,
    "Document": PASS_THROUGH,
    "DocumentFragment": PASS_THROUGH,
    # Grouping
    "Part": PASS_THROUGH,
    "NonStruct": PASS_THROUGH,
    "Sub": PASS_THROUGH,
    "LBody": PASS_THROUGH,
    "Artifact": PASS_THROUGH,
    "Sect": _container(ContainerKind.DIVISION, "section"),
    "Div": _container(ContainerKind.DIVISION, "div"),
    "Aside": _container(ContainerKind.DIVISION, "aside"),
    # Headings; numbered H<n> is resolved by pattern
    "H": _container(ContainerKind.HEADING),
    "Title": _container(ContainerKind.HEADING, level=1),
    # Notes
    "FENote": NOTE,
    "Note": NOTE,
    "Annot": NOTE,
    # Inline
    "Lbl": SKIP_SUBTREE,
    "Link": _container(ContainerKind.LINK, "a"),
    "Form": _container(ContainerKind.FORM, "form"),
    # Ruby and Warichu
    "Ruby": UNSUPPORTED,
    "RB": UNSUPPORTED,
    "RT": UNSUPPORTED,
    "RP": UNSUPPORTED,
    "Warichu": UNSUPPORTED,
    "WT": UNSUPPORTED,
    "WP": UNSUPPORTED,
    # Lists
    "TOC": _container(ContainerKind.LIST, "ol"),
    "TOCI": _container(ContainerKind.LIST_ITEM, "li"),
    "L": _container(ContainerKind.LIST, "ul"),
    "LI": _container(ContainerKind.LIST_ITEM, "li"),
    # Tables
    "Table": _container(ContainerKind.TABLE, "table"),
    "TR": _container(ContainerKind.TABLE_ROW, "tr"),
    "TH": _container(ContainerKind.TABLE_HEADER_CELL, "th"),
    "TD": _container(ContainerKind.TABLE_DATA_CELL, "td"),
    # Illustrations
    "Figure": FIGURE,
    "Formula": _container(ContainerKind.FORMULA, "pre"),
}

HEADING_PATTERN = re.compile(r"^H(\d+)$")


def resolve_role(role: str | None, overrides: Mapping[str, RoleRule] | None = None) -> RoleRule:
    """Return the :class:`RoleRule` for *role*.

    Nodes without a role are pure grouping nodes. Unknown roles become
    generic containers tagged with the lowercase role name so their content
    is kept.
    """

    if role is None:
        return PASS_THROUGH
    if overrides and role in overrides:
        return overrides[role]
    rule = ROLE_TABLE.get(role)
    if rule is not None:
        return rule
    match = HEADING_PATTERN.match(role)
    if match:
        return _container(ContainerKind.HEADING, level=int(match.group(1)))
    _LOGGER.debug("Unmapped role %r compiled as generic container", role)
    return _container(ContainerKind.GENERIC, role.lower())


def register_role(role: str, rule: RoleRule) -> None:
    """Add or replace the table entry for *role*."""

    ROLE_TABLE[role] = rule


__all__ = [
    "ContainerKind",
    "FIGURE",
    "HEADING_PATTERN",
    "NOTE",
    "PASS_THROUGH",
    "ROLE_TABLE",
    "RoleBehavior",
    "RoleRule",
    "SKIP_SUBTREE",
    "UNSUPPORTED",
    "register_role",
    "resolve_role",
]
