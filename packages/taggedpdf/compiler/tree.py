"""Structure tree → semantic tree compilation."""

from __future__ import annotations

import logging

from ..exceptions import MissingContentRecord, MissingFigureImage
from ..ir import SemanticNode
from ..primitives import NodeKind, StructureNode
from .roles import ContainerKind, RoleBehavior, RoleRule, resolve_role
from .types import PageState

_LOGGER = logging.getLogger("taggedpdf.compiler")

__all__ = ["compile_node", "compile_tree", "new_page_container"]


def new_page_container() -> SemanticNode:
    return SemanticNode(kind=ContainerKind.PAGE.value, tag="div")


def compile_tree(root: StructureNode, state: PageState) -> SemanticNode:
    """Compile *root* into a fresh page container."""

    container = new_page_container()
    compile_node(root, container, state)
    return container


def compile_node(node: StructureNode, parent: SemanticNode, state: PageState) -> None:
    """Compile *node* and its subtree, appending the result under *parent*.

    Traversal is depth-first in declared child order. The content record
    map in *state* is only read.
    """

    rule = resolve_role(node.role, state.role_overrides)
    if rule.behavior is RoleBehavior.SKIP_SUBTREE:
        return

    container = _open_container(node, rule, parent, state)

    if node.kind is NodeKind.CONTENT:
        record = state.records.get(node.content_id) if node.content_id is not None else None
        if record is None:
            state.report(MissingContentRecord(node.content_id))
        elif record.text:
            container.append_text(record.text)
    elif node.kind is NodeKind.OBJECT:
        _LOGGER.debug("Object reference %s is not rendered", node.object_id)

    for child in node.children:
        compile_node(child, container, state)


def _open_container(
    node: StructureNode,
    rule: RoleRule,
    parent: SemanticNode,
    state: PageState,
) -> SemanticNode:
    if rule.behavior is RoleBehavior.UNSUPPORTED:
        _LOGGER.debug("Role %s is unsupported; content attached to parent", node.role)
        return parent
    if not rule.creates_container or rule.kind is None:
        return parent

    container = SemanticNode(kind=rule.kind.value, tag=rule.tag, role=node.role, level=rule.level)
    if rule.behavior is RoleBehavior.FIGURE:
        _bind_figure(container, node, state)
    return parent.append(container)


def _bind_figure(figure: SemanticNode, node: StructureNode, state: PageState) -> None:
    index, image = state.next_image()
    if image is None and index > len(state.images):
        state.report(MissingFigureImage(state.image_id(index)))
    figure.image = image
    if node.alt_text:
        figure.alt_text = node.alt_text
        figure.caption = node.alt_text
