from __future__ import annotations

import base64
import struct
import zlib

import pytest

from taggedpdf.compiler.pixels import (
    GRAY_SOURCE_OFFSET,
    data_uri,
    decode_image,
    decode_pixels,
    encode_png,
    required_length,
)
from taggedpdf.exceptions import (
    ImageDecodeError,
    InvalidImageDimensions,
    TruncatedImageData,
    UnsupportedImageEncoding,
)
from taggedpdf.primitives import EncodingKind, RasterImageObject


def test_gray_pixels_skip_leading_byte_and_replicate_channels() -> None:
    data = bytes([0x99, 0x10, 0x80, 0xFF])

    pixels = decode_pixels(3, 1, EncodingKind.GRAY, data)

    assert pixels == bytes([0x10, 0x10, 0x10, 255, 0x80, 0x80, 0x80, 255, 0xFF, 0xFF, 0xFF, 255])


def test_gray_buffer_size_and_alpha() -> None:
    width, height = 4, 3
    data = bytes(range(width * height + GRAY_SOURCE_OFFSET))

    pixels = decode_pixels(width, height, "gray", data)

    assert len(pixels) == width * height * 4
    assert set(pixels[3::4]) == {255}


def test_rgb_pixels_copied_in_order() -> None:
    data = bytes([1, 2, 3, 4, 5, 6])

    pixels = decode_pixels(2, 1, EncodingKind.RGB, data)

    assert pixels == bytes([1, 2, 3, 255, 4, 5, 6, 255])


def test_rgb_extra_bytes_are_ignored() -> None:
    pixels = decode_pixels(1, 1, EncodingKind.RGB, bytes([7, 8, 9, 10, 11]))

    assert pixels == bytes([7, 8, 9, 255])


@pytest.mark.parametrize(
    "encoding, data",
    [
        (EncodingKind.GRAY, bytes(4)),
        (EncodingKind.RGB, bytes(11)),
    ],
)
def test_short_buffers_are_rejected(encoding: EncodingKind, data: bytes) -> None:
    with pytest.raises(TruncatedImageData) as excinfo:
        decode_pixels(2, 2, encoding, data)

    assert excinfo.value.expected == required_length(2, 2, encoding)
    assert excinfo.value.actual == len(data)


def test_unsupported_encoding() -> None:
    with pytest.raises(UnsupportedImageEncoding):
        decode_pixels(1, 1, EncodingKind.OTHER, bytes(16))
    with pytest.raises(UnsupportedImageEncoding):
        decode_pixels(1, 1, "cmyk", bytes(16))


def test_non_positive_dimensions() -> None:
    with pytest.raises(InvalidImageDimensions):
        decode_pixels(0, 4, EncodingKind.RGB, bytes(48))


def test_decode_errors_share_a_base_class() -> None:
    for error in (UnsupportedImageEncoding, TruncatedImageData, InvalidImageDimensions):
        assert issubclass(error, ImageDecodeError)


def test_decode_image_builds_resource() -> None:
    image = RasterImageObject("Im1", 1, 2, EncodingKind.RGB, bytes([10, 20, 30, 40, 50, 60]))

    resource = decode_image(image, "img_p0_1")

    assert resource.id == "img_p0_1"
    assert (resource.width, resource.height) == (1, 2)
    assert resource.pixels == bytes([10, 20, 30, 255, 40, 50, 60, 255])


def test_encode_png_writes_rgba_header_and_rows() -> None:
    rgba = bytes([255, 0, 0, 255, 0, 0, 255, 255])

    png = encode_png(2, 1, rgba)

    assert png.startswith(b"\x89PNG\r\n\x1a\n")
    width, height, depth, color_type = struct.unpack(">IIBB", png[16:26])
    assert (width, height, depth, color_type) == (2, 1, 8, 6)
    idat_length = struct.unpack(">I", png[33:37])[0]
    assert png[37:41] == b"IDAT"
    assert zlib.decompress(png[41 : 41 + idat_length]) == b"\x00" + rgba


def test_data_uri_is_base64_png() -> None:
    png = encode_png(1, 1, bytes([0, 0, 0, 255]))

    uri = data_uri(png)

    assert uri.startswith("data:image/png;base64,")
    assert base64.b64decode(uri.split(",", 1)[1]) == png
