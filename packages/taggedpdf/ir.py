"""Semantic tree produced by the taggedpdf compiler."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Iterator


@dataclass(slots=True)
class ContentRecord:
    """Text reassembled for one marked-content identifier."""

    text: str = ""
    tag: str | None = None


@dataclass(slots=True)
class ImageResource:
    """Decoded RGBA bitmap addressable by a generated identifier."""

    id: str
    width: int
    height: int
    pixels: bytes

    def to_png(self) -> bytes:
        from .compiler.pixels import encode_png

        return encode_png(self.width, self.height, self.pixels)

    def to_data_uri(self) -> str:
        from .compiler.pixels import data_uri

        return data_uri(self.to_png())


@dataclass(slots=True)
class SemanticNode:
    """Container in the compiled, presentation-independent tree."""

    kind: str
    tag: str | None = None
    role: str | None = None
    level: int | None = None
    text: str = ""
    children: list["SemanticNode"] = field(default_factory=list)
    image: ImageResource | None = None
    alt_text: str | None = None
    caption: str | None = None

    def append(self, child: "SemanticNode") -> "SemanticNode":
        self.children.append(child)
        return child

    def append_text(self, text: str) -> None:
        self.text += text

    def iter_nodes(self) -> Iterator["SemanticNode"]:
        yield self
        for child in self.children:
            yield from child.iter_nodes()

    def text_content(self) -> str:
        return self.text + "".join(child.text_content() for child in self.children)

    def find_all(self, kind: str) -> list["SemanticNode"]:
        return [node for node in self.iter_nodes() if node.kind == kind]


@dataclass(slots=True)
class Diagnostic:
    """Non-fatal problem observed while compiling a page."""

    code: str
    message: str
    page_number: int | None = None


@dataclass(slots=True)
class DocumentMetadata:
    """Metadata describing the source document."""

    title: str | None = None
    author: str | None = None
    subject: str | None = None
    keywords: list[str] = field(default_factory=list)
    language: str | None = None
    created: datetime | None = None
    modified: datetime | None = None


@dataclass(slots=True)
class PageResult:
    """One compiled page."""

    page_number: int
    root: SemanticNode
    images: list[ImageResource] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


@dataclass(slots=True)
class SemanticDocument:
    """Compiled pages of a whole document ready for rendering."""

    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    pages: list[PageResult] = field(default_factory=list)
    skipped_pages: list[int] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def iter_pages(self) -> Iterable[PageResult]:
        return iter(self.pages)

    def iter_nodes(self) -> Iterator[SemanticNode]:
        for page in self.pages:
            yield from page.root.iter_nodes()

    def all_diagnostics(self) -> list[Diagnostic]:
        collected = list(self.diagnostics)
        for page in self.pages:
            collected.extend(page.diagnostics)
        return collected

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def image_count(self) -> int:
        return sum(len(page.images) for page in self.pages)


__all__ = [
    "ContentRecord",
    "Diagnostic",
    "DocumentMetadata",
    "ImageResource",
    "PageResult",
    "SemanticDocument",
    "SemanticNode",
]
