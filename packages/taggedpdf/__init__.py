"""Compile tagged PDFs into semantic, accessible markup."""

from __future__ import annotations

from .compiler import (
    CompileOptions,
    CompileResult,
    DocumentCompiler,
    RoleRule,
    compile_document,
    convert_pdf_to_html,
    decode_pixels,
    register_role,
    resolve_role,
)
from .core import DocumentSource, MemoryDocumentSource, MemoryPage, PypdfDocumentSource
from .exceptions import (
    ImageDecodeError,
    InvalidImageDimensions,
    MissingContentRecord,
    MissingFigureImage,
    PageOutOfRange,
    SourceError,
    TaggedPdfError,
    TruncatedImageData,
    UnsupportedImageEncoding,
    UntaggedDocument,
)
from .ir import (
    ContentRecord,
    Diagnostic,
    DocumentMetadata,
    ImageResource,
    PageResult,
    SemanticDocument,
    SemanticNode,
)
from .primitives import EncodingKind, NodeKind, RasterImageObject, StructureNode, TextFragment
from .render import render_html, render_untagged_notice

__version__ = "0.1.0"

__all__ = [
    "CompileOptions",
    "CompileResult",
    "ContentRecord",
    "Diagnostic",
    "DocumentCompiler",
    "DocumentMetadata",
    "DocumentSource",
    "EncodingKind",
    "ImageDecodeError",
    "ImageResource",
    "InvalidImageDimensions",
    "MemoryDocumentSource",
    "MemoryPage",
    "MissingContentRecord",
    "MissingFigureImage",
    "NodeKind",
    "PageOutOfRange",
    "PageResult",
    "PypdfDocumentSource",
    "RasterImageObject",
    "RoleRule",
    "SemanticDocument",
    "SemanticNode",
    "SourceError",
    "StructureNode",
    "TaggedPdfError",
    "TextFragment",
    "TruncatedImageData",
    "UnsupportedImageEncoding",
    "UntaggedDocument",
    "compile_document",
    "convert_pdf_to_html",
    "decode_pixels",
    "register_role",
    "render_html",
    "render_untagged_notice",
    "resolve_role",
]
