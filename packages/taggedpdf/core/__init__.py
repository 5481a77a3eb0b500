"""Document access for taggedpdf."""

from .reader import PypdfDocumentSource
from .source import DocumentSource, MemoryDocumentSource, MemoryPage
from .utils import get_logger, resolve_path
from .validator import ValidationError, ensure_output_parent, ensure_pdf_exists

__all__ = [
    "DocumentSource",
    "MemoryDocumentSource",
    "MemoryPage",
    "PypdfDocumentSource",
    "ValidationError",
    "ensure_output_parent",
    "ensure_pdf_exists",
    "get_logger",
    "resolve_path",
]
