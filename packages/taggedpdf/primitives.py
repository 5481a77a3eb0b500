"""Input primitives handed to the compiler by a document source."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator


class NodeKind(str, Enum):
    """Leaf payload carried by a structure tree node."""

    CONTENT = "content"
    OBJECT = "object"
    NONE = "none"


class EncodingKind(str, Enum):
    """Packed pixel layouts understood by the pixel decoder."""

    GRAY = "gray"
    RGB = "rgb"
    OTHER = "other"


@dataclass(slots=True)
class StructureNode:
    """Node of a page's structure tree."""

    role: str | None = None
    kind: NodeKind = NodeKind.NONE
    content_id: str | None = None
    object_id: str | None = None
    alt_text: str | None = None
    children: list["StructureNode"] = field(default_factory=list)

    def iter_nodes(self) -> Iterator["StructureNode"]:
        yield self
        for child in self.children:
            yield from child.iter_nodes()


@dataclass(slots=True)
class TextFragment:
    """Atomic piece of shown text or a marked-content boundary."""

    text: str = ""
    marked_content_id: str | None = None
    ends_marked_content: bool = False
    tag: str | None = None


@dataclass(slots=True)
class RasterImageObject:
    """Undecoded image payload painted on a page."""

    object_id: str
    width: int
    height: int
    encoding: EncodingKind
    data: bytes


def content(content_id: str) -> StructureNode:
    """Shorthand for a leaf that references a marked-content span."""

    return StructureNode(kind=NodeKind.CONTENT, content_id=content_id)


def element(role: str | None, *children: StructureNode, alt_text: str | None = None) -> StructureNode:
    """Shorthand for a role-bearing node with *children*."""

    return StructureNode(role=role, alt_text=alt_text, children=list(children))


__all__ = [
    "EncodingKind",
    "NodeKind",
    "RasterImageObject",
    "StructureNode",
    "TextFragment",
    "content",
    "element",
]
