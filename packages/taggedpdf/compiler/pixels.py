"""Pixel decoding and PNG materialisation of raster image objects."""

from __future__ import annotations

import base64
import struct
import zlib

from ..exceptions import InvalidImageDimensions, TruncatedImageData, UnsupportedImageEncoding
from ..ir import ImageResource
from ..primitives import EncodingKind, RasterImageObject

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
OPAQUE = 255

# The reference object layout carries one leading byte before gray samples.
GRAY_SOURCE_OFFSET = 1

__all__ = [
    "GRAY_SOURCE_OFFSET",
    "data_uri",
    "decode_image",
    "decode_pixels",
    "encode_png",
    "required_length",
]


def required_length(width: int, height: int, encoding: EncodingKind | str) -> int:
    """Return the minimum number of source bytes for *encoding*."""

    kind = _coerce_encoding(encoding)
    if kind is EncodingKind.GRAY:
        return width * height + GRAY_SOURCE_OFFSET
    if kind is EncodingKind.RGB:
        return width * height * 3
    raise UnsupportedImageEncoding(encoding)


def decode_pixels(width: int, height: int, encoding: EncodingKind | str, data: bytes) -> bytes:
    """Unpack *data* into an RGBA buffer of ``width * height * 4`` bytes.

    Gray sources replicate one byte into the colour channels, starting at
    source index ``GRAY_SOURCE_OFFSET``. RGB sources copy three bytes per
    pixel in order. Alpha is always fully opaque.
    """

    if width <= 0 or height <= 0:
        raise InvalidImageDimensions(width, height)
    kind = _coerce_encoding(encoding)
    expected = required_length(width, height, kind)
    if len(data) < expected:
        raise TruncatedImageData(expected, len(data))

    count = width * height
    pixels = bytearray(count * 4)
    if kind is EncodingKind.GRAY:
        samples = data[GRAY_SOURCE_OFFSET : GRAY_SOURCE_OFFSET + count]
        pixels[0::4] = samples
        pixels[1::4] = samples
        pixels[2::4] = samples
    else:
        pixels[0::4] = data[0 : count * 3 : 3]
        pixels[1::4] = data[1 : count * 3 : 3]
        pixels[2::4] = data[2 : count * 3 : 3]
    pixels[3::4] = bytes([OPAQUE]) * count
    return bytes(pixels)


def decode_image(image: RasterImageObject, resource_id: str) -> ImageResource:
    """Decode *image* into an :class:`ImageResource` named *resource_id*."""

    pixels = decode_pixels(image.width, image.height, image.encoding, image.data)
    return ImageResource(id=resource_id, width=image.width, height=image.height, pixels=pixels)


def encode_png(width: int, height: int, rgba: bytes) -> bytes:
    """Encode an RGBA buffer as a PNG file."""

    if width <= 0 or height <= 0:
        raise InvalidImageDimensions(width, height)

    def chunk(tag: bytes, data: bytes) -> bytes:
        return (
            struct.pack(">I", len(data))
            + tag
            + data
            + struct.pack(">I", zlib.crc32(tag + data) & 0xFFFFFFFF)
        )

    rows = bytearray()
    row_stride = width * 4
    for row in range(height):
        start = row * row_stride
        rows.append(0)
        rows.extend(rgba[start : start + row_stride])

    header = chunk(b"IHDR", struct.pack(">IIBBBBB", width, height, 8, 6, 0, 0, 0))
    data = chunk(b"IDAT", zlib.compress(bytes(rows)))
    end = chunk(b"IEND", b"")
    return PNG_SIGNATURE + header + data + end


def data_uri(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def _coerce_encoding(encoding: EncodingKind | str) -> EncodingKind:
    if isinstance(encoding, EncodingKind):
        kind = encoding
    else:
        try:
            kind = EncodingKind(encoding)
        except ValueError as exc:
            raise UnsupportedImageEncoding(encoding) from exc
    if kind is EncodingKind.OTHER:
        raise UnsupportedImageEncoding(encoding)
    return kind
