"""Page orchestration: drive the per-page compilation in document order."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Sequence

from ..core.source import DocumentSource
from ..exceptions import ImageDecodeError, PageOutOfRange, UntaggedDocument
from ..ir import Diagnostic, DocumentMetadata, PageResult, SemanticDocument
from ..primitives import RasterImageObject, StructureNode, TextFragment
from .marked_content import assemble_content_records
from .metadata import metadata_from_mapping
from .pixels import decode_image
from .tree import compile_tree
from .types import CompileOptions, PageState, ensure_options

_LOGGER = logging.getLogger("taggedpdf.compiler")

ProgressCallback = Callable[[int, int], None]
CancelCallback = Callable[[], bool]

__all__ = ["DocumentCompiler", "compile_document"]


class DocumentCompiler:
    """Compile the pages of a :class:`DocumentSource` one at a time.

    The compiler owns the running page counter that feeds image
    identifiers. Everything else a page needs lives in a fresh
    :class:`PageState`, so a failing page leaves its successors untouched.
    """

    def __init__(self, source: DocumentSource, options: CompileOptions | None = None) -> None:
        self.source = source
        self.options = ensure_options(options)
        self.page_counter = 0

    def compile_page(
        self,
        page_number: int,
        fragments: Sequence[TextFragment],
        structure_tree: StructureNode | None,
        image_objects: Sequence[RasterImageObject],
    ) -> PageResult:
        try:
            if structure_tree is None:
                raise UntaggedDocument(page_number)
            state = PageState(
                page_number=page_number,
                page_counter=self.page_counter,
                role_overrides=self.options.role_overrides or None,
            )
            for index, image_object in enumerate(image_objects, start=1):
                try:
                    state.images.append(decode_image(image_object, state.image_id(index)))
                except ImageDecodeError as exc:
                    state.images.append(None)
                    state.report(exc)
            state.records = assemble_content_records(fragments)
            root = compile_tree(structure_tree, state)
            _LOGGER.info(
                "Compiled page %s (%s records, %s images)",
                page_number,
                len(state.records),
                len(state.images),
            )
            return PageResult(
                page_number=page_number,
                root=root,
                images=[image for image in state.images if image is not None],
                diagnostics=state.diagnostics,
            )
        finally:
            self.page_counter += 1

    def fetch_page(self, page_number: int) -> PageResult:
        """Pull the inputs of *page_number* from the source and compile them."""

        fragments = self.source.get_text_fragments(page_number)
        structure_tree = self.source.get_structure_tree(page_number)
        image_objects = self.source.get_raster_image_objects(page_number)
        return self.compile_page(page_number, fragments, structure_tree, image_objects)

    def compile(
        self,
        start: int | None = None,
        end: int | None = None,
        *,
        progress_callback: ProgressCallback | None = None,
        should_cancel: CancelCallback | None = None,
    ) -> SemanticDocument:
        page_numbers = self._resolve_page_numbers(start, end)
        document = SemanticDocument(metadata=self._metadata())
        total = len(page_numbers)
        for position, page_number in enumerate(page_numbers):
            if should_cancel is not None and should_cancel():
                _LOGGER.info("Compilation cancelled before page %s", page_number)
                break
            try:
                result = self.fetch_page(page_number)
            except UntaggedDocument as exc:
                if position == 0 and self.options.fail_on_untagged:
                    raise UntaggedDocument() from exc
                _LOGGER.warning("Skipping page %s: %s", page_number, exc)
                document.skipped_pages.append(page_number)
                document.diagnostics.append(
                    Diagnostic(code=exc.code, message=str(exc), page_number=page_number)
                )
            else:
                document.pages.append(result)
            if progress_callback is not None:
                progress_callback(position + 1, total)
        return document

    def _metadata(self) -> DocumentMetadata:
        if not self.options.include_metadata:
            return DocumentMetadata()
        return metadata_from_mapping(self.source.get_document_metadata())

    def _resolve_page_numbers(self, start: int | None, end: int | None) -> list[int]:
        page_count = self.source.page_count
        if start is None and end is None and self.options.page_numbers is not None:
            result: list[int] = []
            for page in self.options.page_numbers:
                if page < 1 or page > page_count:
                    raise PageOutOfRange(page, page_count)
                result.append(page)
            return sorted(set(result))
        first = start if start is not None else self.options.start_page
        last = end if end is not None else self.options.end_page
        if last is None:
            last = page_count
        if first < 1 or first > page_count:
            raise PageOutOfRange(first, page_count)
        if last < first or last > page_count:
            raise PageOutOfRange(last, page_count)
        return list(range(first, last + 1))


def compile_document(
    source: DocumentSource | str | Path,
    options: CompileOptions | None = None,
    **kwargs,
) -> SemanticDocument:
    """Compile *source* (a :class:`DocumentSource` or a PDF path)."""

    if isinstance(source, (str, Path)):
        from ..core.reader import PypdfDocumentSource

        source = PypdfDocumentSource(source)
    return DocumentCompiler(source, options).compile(**kwargs)
