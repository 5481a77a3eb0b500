"""Document source interface consumed by the page orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Protocol, Sequence, runtime_checkable

from ..exceptions import PageOutOfRange
from ..primitives import RasterImageObject, StructureNode, TextFragment

__all__ = ["DocumentSource", "MemoryDocumentSource", "MemoryPage"]


@runtime_checkable
class DocumentSource(Protocol):
    """Per-page access to the parsed inputs of a tagged document.

    Page numbers are 1-based. Image objects are returned in the order the
    page's paint operations encounter them.
    """

    page_count: int

    def get_structure_tree(self, page_number: int) -> StructureNode | None:
        ...

    def get_text_fragments(self, page_number: int) -> Sequence[TextFragment]:
        ...

    def get_raster_image_objects(self, page_number: int) -> Sequence[RasterImageObject]:
        ...

    def get_document_metadata(self) -> Mapping[str, str | None]:
        ...


@dataclass(slots=True)
class MemoryPage:
    """Pre-parsed inputs for one page."""

    structure_tree: StructureNode | None = None
    fragments: list[TextFragment] = field(default_factory=list)
    images: list[RasterImageObject] = field(default_factory=list)


class MemoryDocumentSource:
    """:class:`DocumentSource` over inputs that are already in memory."""

    def __init__(
        self,
        pages: Sequence[MemoryPage],
        metadata: Mapping[str, str | None] | None = None,
    ) -> None:
        self._pages = list(pages)
        self._metadata = dict(metadata or {})

    @property
    def page_count(self) -> int:
        return len(self._pages)

    def get_structure_tree(self, page_number: int) -> StructureNode | None:
        return self._page(page_number).structure_tree

    def get_text_fragments(self, page_number: int) -> Sequence[TextFragment]:
        return list(self._page(page_number).fragments)

    def get_raster_image_objects(self, page_number: int) -> Sequence[RasterImageObject]:
        return list(self._page(page_number).images)

    def get_document_metadata(self) -> Mapping[str, str | None]:
        return dict(self._metadata)

    def _page(self, page_number: int) -> MemoryPage:
        if page_number < 1 or page_number > len(self._pages):
            raise PageOutOfRange(page_number, len(self._pages))
        return self._pages[page_number - 1]
