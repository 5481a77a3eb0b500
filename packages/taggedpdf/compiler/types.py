"""Shared type definitions for the compiler."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

from ..exceptions import TaggedPdfError
from ..ir import ContentRecord, Diagnostic, ImageResource
from .roles import RoleRule

__all__ = [
    "CompileOptions",
    "CompileResult",
    "PageState",
    "ensure_options",
]

_LOGGER = logging.getLogger("taggedpdf.compiler")


@dataclass(slots=True)
class CompileOptions:
    """Options controlling which pages are compiled and how."""

    start_page: int = 1
    end_page: int | None = None
    page_numbers: Sequence[int] | None = None
    embed_images: bool = True
    include_metadata: bool = True
    fail_on_untagged: bool = True
    role_overrides: Mapping[str, RoleRule] = field(default_factory=dict)


@dataclass(slots=True)
class CompileResult:
    """Information about a produced HTML document."""

    output_path: Path | None
    page_count: int
    image_count: int
    diagnostic_count: int
    tagged_pdf: bool
    skipped_pages: tuple[int, ...] = ()
    log: tuple[str, ...] = ()


@dataclass(slots=True)
class PageState:
    """Page-scoped state threaded through the structure tree compiler.

    ``page_counter`` is the orchestrator's running page counter and only
    feeds image identifiers. ``images`` holds one slot per painted image in
    encounter order; a slot is ``None`` when decoding failed.
    """

    page_number: int
    page_counter: int = 0
    records: Mapping[str, ContentRecord] = field(default_factory=dict)
    images: list[ImageResource | None] = field(default_factory=list)
    image_cursor: int = 1
    diagnostics: list[Diagnostic] = field(default_factory=list)
    role_overrides: Mapping[str, RoleRule] | None = None

    def image_id(self, index: int) -> str:
        return f"img_p{self.page_counter}_{index}"

    def next_image(self) -> tuple[int, ImageResource | None]:
        index = self.image_cursor
        self.image_cursor += 1
        if index > len(self.images):
            return index, None
        return index, self.images[index - 1]

    def report(self, error: TaggedPdfError) -> Diagnostic:
        diagnostic = Diagnostic(code=error.code, message=str(error), page_number=self.page_number)
        self.diagnostics.append(diagnostic)
        _LOGGER.warning("Page %s: %s", self.page_number, error)
        return diagnostic


def ensure_options(value: Any) -> CompileOptions:
    if value is None:
        return CompileOptions()
    if isinstance(value, CompileOptions):
        return value
    if isinstance(value, Mapping):
        return CompileOptions(**value)
    raise TypeError("options must be a CompileOptions instance or mapping")
