"""Render a :class:`~taggedpdf.ir.SemanticDocument` as accessible HTML."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET

from ..compiler.metadata import dublin_core_entries
from ..compiler.roles import ContainerKind
from ..exceptions import UntaggedDocument
from ..ir import SemanticDocument, SemanticNode

__all__ = ["render_html", "render_untagged_notice", "node_to_element"]

DOCTYPE = "<!DOCTYPE html>"
DEFAULT_TITLE = "Document"
MAX_HEADING_LEVEL = 6

_ELEMENT_NAME = re.compile(r"^[a-z][a-z0-9-]*$")
# Lowercased role names that would change the meaning of the page if emitted.
_RESERVED_ELEMENTS = frozenset(
    {"html", "head", "body", "title", "meta", "link", "script", "style", "iframe", "object", "embed", "base"}
)


def render_html(document: SemanticDocument, *, embed_images: bool = True, standalone: bool = True) -> str:
    pages = [_page_element(page.page_number, page.root, embed_images) for page in document.pages]
    if not standalone:
        return "\n".join(_serialise(element) for element in pages)

    html = _document_shell(document)
    body = ET.SubElement(html, "body")
    body.extend(pages)
    return f"{DOCTYPE}\n{_serialise(html)}\n"


def render_untagged_notice(*, standalone: bool = True) -> str:
    """Markup shown in place of a document without a structure tree."""

    heading = ET.Element("h1")
    heading.text = str(UntaggedDocument())
    if not standalone:
        return _serialise(heading)
    html = ET.Element("html")
    head = ET.SubElement(html, "head")
    ET.SubElement(head, "meta", {"charset": "utf-8"})
    title = ET.SubElement(head, "title")
    title.text = heading.text
    body = ET.SubElement(html, "body")
    body.append(heading)
    return f"{DOCTYPE}\n{_serialise(html)}\n"


def node_to_element(node: SemanticNode, *, embed_images: bool = True) -> ET.Element:
    if node.kind == ContainerKind.FIGURE.value:
        return _figure_element(node, embed_images)

    element = _element_for(node)
    if node.text:
        element.text = node.text
    for child in node.children:
        element.append(node_to_element(child, embed_images=embed_images))
    return element


def _document_shell(document: SemanticDocument) -> ET.Element:
    metadata = document.metadata
    attributes = {"lang": metadata.language} if metadata.language else {}
    html = ET.Element("html", attributes)
    head = ET.SubElement(html, "head")
    ET.SubElement(head, "meta", {"charset": "utf-8"})
    title = ET.SubElement(head, "title")
    title.text = metadata.title or DEFAULT_TITLE
    for name, content in dublin_core_entries(metadata):
        ET.SubElement(head, "meta", {"name": name, "content": content})
    return html


def _page_element(page_number: int, root: SemanticNode, embed_images: bool) -> ET.Element:
    element = ET.Element("div", {"data-page-number": str(page_number)})
    if root.text:
        element.text = root.text
    for child in root.children:
        element.append(node_to_element(child, embed_images=embed_images))
    return element


def _element_for(node: SemanticNode) -> ET.Element:
    kind = node.kind
    if kind == ContainerKind.HEADING.value:
        level = node.level
        if level is not None and 1 <= level <= MAX_HEADING_LEVEL:
            return ET.Element(f"h{level}")
        attributes = {"role": "heading"}
        if level is not None:
            attributes["aria-level"] = str(level)
        return ET.Element("p", attributes)
    if kind == ContainerKind.NOTE.value:
        return ET.Element("aside", {"role": "note"})
    if kind == ContainerKind.PAGE.value:
        return ET.Element("div")

    tag = (node.tag or "").lower()
    if _ELEMENT_NAME.match(tag) and tag not in _RESERVED_ELEMENTS:
        return ET.Element(tag)
    attributes = {"data-role": node.role} if node.role else {}
    return ET.Element("span", attributes)


def _figure_element(node: SemanticNode, embed_images: bool) -> ET.Element:
    figure = ET.Element("figure")
    last: ET.Element | None = None
    if node.image is not None:
        if embed_images:
            last = ET.SubElement(
                figure,
                "img",
                {
                    "src": node.image.to_data_uri(),
                    "alt": node.alt_text or "",
                    "width": str(node.image.width),
                    "height": str(node.image.height),
                },
            )
        else:
            figure.set("data-image-id", node.image.id)
    if node.text:
        if last is None:
            figure.text = node.text
        else:
            last.tail = node.text
    for child in node.children:
        figure.append(node_to_element(child, embed_images=embed_images))
    if node.caption:
        caption = ET.SubElement(figure, "figcaption")
        caption.text = node.caption
    return figure


def _serialise(element: ET.Element) -> str:
    return ET.tostring(element, encoding="unicode", method="html")
