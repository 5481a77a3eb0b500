"""Custom exceptions raised by :mod:`taggedpdf`."""

from __future__ import annotations


class TaggedPdfError(Exception):
    """Base exception for all errors raised by :mod:`taggedpdf`."""

    code = "error"


class SourceError(TaggedPdfError):
    """Raised when the source document cannot be opened or read."""

    code = "source-error"


class PageOutOfRange(TaggedPdfError):
    """Raised when a requested page does not exist in the source document."""

    code = "page-out-of-range"

    def __init__(self, page_number: int, page_count: int) -> None:
        self.page_number = page_number
        self.page_count = page_count
        super().__init__(f"Page {page_number} out of bounds for document with {page_count} pages")


class ImageDecodeError(TaggedPdfError):
    """Raised when a raster image object cannot be decoded."""

    code = "image-decode-error"


class UnsupportedImageEncoding(ImageDecodeError):
    """Raised for pixel encodings the decoder does not unpack."""

    code = "unsupported-image-encoding"

    def __init__(self, encoding: object) -> None:
        self.encoding = encoding
        super().__init__(f"Unsupported image encoding: {encoding!r}")


class TruncatedImageData(ImageDecodeError):
    """Raised when the pixel buffer is shorter than its declared dimensions need."""

    code = "truncated-image-data"

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Image data truncated: expected at least {expected} bytes, got {actual}")


class InvalidImageDimensions(ImageDecodeError):
    """Raised when an image declares a non-positive width or height."""

    code = "invalid-image-dimensions"

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        super().__init__(f"Invalid image dimensions: {width}x{height}")


class MissingContentRecord(TaggedPdfError):
    """A content node references a marked-content id with no assembled text."""

    code = "missing-content-record"

    def __init__(self, content_id: str | None) -> None:
        self.content_id = content_id
        super().__init__(f"No text recorded for marked content {content_id!r}")


class MissingFigureImage(TaggedPdfError):
    """A figure found no decoded image at its position on the page."""

    code = "missing-figure-image"

    def __init__(self, image_id: str) -> None:
        self.image_id = image_id
        super().__init__(f"No decoded image available for figure {image_id}")


class UntaggedDocument(TaggedPdfError):
    """Raised when a page carries no structure tree."""

    code = "untagged-document"

    def __init__(self, page_number: int | None = None) -> None:
        self.page_number = page_number
        if page_number is None:
            message = "Not a Tagged PDF."
        else:
            message = f"Page {page_number} has no structure tree; not a Tagged PDF."
        super().__init__(message)


__all__ = [
    "ImageDecodeError",
    "InvalidImageDimensions",
    "MissingContentRecord",
    "MissingFigureImage",
    "PageOutOfRange",
    "SourceError",
    "TaggedPdfError",
    "TruncatedImageData",
    "UnsupportedImageEncoding",
    "UntaggedDocument",
]
