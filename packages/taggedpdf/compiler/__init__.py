"""Tagged PDF → semantic tree compilation pipeline."""

from __future__ import annotations

import logging
from pathlib import Path

from ..core.source import DocumentSource
from ..core.validator import ensure_output_parent
from ..exceptions import UntaggedDocument
from .marked_content import assemble_content_records
from .metadata import dublin_core_entries, metadata_from_mapping, parse_pdf_date
from .pages import DocumentCompiler, compile_document
from .pixels import data_uri, decode_image, decode_pixels, encode_png
from .roles import ROLE_TABLE, ContainerKind, RoleBehavior, RoleRule, register_role, resolve_role
from .tree import compile_node, compile_tree
from .types import CompileOptions, CompileResult, PageState, ensure_options

__all__ = [
    "CompileOptions",
    "CompileResult",
    "ContainerKind",
    "DocumentCompiler",
    "PageState",
    "ROLE_TABLE",
    "RoleBehavior",
    "RoleRule",
    "assemble_content_records",
    "compile_document",
    "compile_node",
    "compile_tree",
    "convert_pdf_to_html",
    "data_uri",
    "decode_image",
    "decode_pixels",
    "dublin_core_entries",
    "encode_png",
    "ensure_options",
    "metadata_from_mapping",
    "parse_pdf_date",
    "register_role",
    "resolve_role",
]

_LOGGER = logging.getLogger("taggedpdf.compiler")


def convert_pdf_to_html(
    input_document: str | Path | DocumentSource,
    output_path: str | Path | None = None,
    *,
    options: CompileOptions | None = None,
    standalone: bool = True,
    progress_callback=None,
) -> CompileResult:
    """Compile *input_document* and write the rendered HTML to *output_path*.

    An untagged document still produces a file: it holds the
    "Not a Tagged PDF." notice and the result reports ``tagged_pdf=False``.
    """

    from ..render.html import render_html, render_untagged_notice

    options = ensure_options(options)
    destination = ensure_output_parent(_resolve_output_path(input_document, output_path))

    if isinstance(input_document, (str, Path)):
        from ..core.reader import PypdfDocumentSource

        source: DocumentSource = PypdfDocumentSource(input_document)
    else:
        source = input_document

    compiler = DocumentCompiler(source, options)
    try:
        document = compiler.compile(progress_callback=progress_callback)
    except UntaggedDocument as exc:
        _LOGGER.warning("%s", exc)
        destination.write_text(render_untagged_notice(standalone=standalone), encoding="utf-8")
        return CompileResult(
            output_path=destination,
            page_count=0,
            image_count=0,
            diagnostic_count=0,
            tagged_pdf=False,
            log=(str(exc),),
        )

    markup = render_html(document, embed_images=options.embed_images, standalone=standalone)
    destination.write_text(markup, encoding="utf-8")
    diagnostics = document.all_diagnostics()
    return CompileResult(
        output_path=destination,
        page_count=document.page_count,
        image_count=document.image_count,
        diagnostic_count=len(diagnostics),
        tagged_pdf=True,
        skipped_pages=tuple(document.skipped_pages),
        log=tuple(diagnostic.message for diagnostic in diagnostics),
    )


def _resolve_output_path(source: str | Path | DocumentSource, destination: str | Path | None) -> Path:
    if destination is not None:
        return Path(destination)
    if isinstance(source, (str, Path)):
        return Path(source).with_suffix(".html")
    raise ValueError("output_path must be provided when converting from a DocumentSource")
