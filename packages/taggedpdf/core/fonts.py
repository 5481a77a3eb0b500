"""Font decoding helpers for text shown in page content streams."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from pypdf import _cmap
from pypdf.generic import ArrayObject, DictionaryObject, IndirectObject, NameObject

__all__ = [
    "FontDecoder",
    "apply_translation_map",
    "collect_font_dictionaries",
    "font_decoders",
    "operand_bytes",
]


@dataclass(slots=True)
class FontDecoder:
    """Translate raw string operands shown with one font into text."""

    mapping: dict[str, str] = field(default_factory=dict)
    max_key_length: int = 1
    byte_width: int = 1

    def decode(self, raw: bytes) -> str:
        if self.byte_width == 2:
            even = raw[: len(raw) - (len(raw) % 2)]
            text = even.decode("utf-16-be", "surrogatepass")
        else:
            text = raw.decode("latin-1")
        return apply_translation_map(text, self.mapping, self.max_key_length)


LATIN1_DECODER = FontDecoder()


def _glyph_name_to_unicode(name: str) -> str | None:
    if not name:
        return None
    if not name.startswith("/"):
        name = f"/{name}"
    glyphs = getattr(_cmap, "adobe_glyphs", None)
    if not isinstance(glyphs, Mapping):
        return None
    return glyphs.get(name)


def _build_font_decoder(font_dict: DictionaryObject) -> FontDecoder:
    translation: dict[str, str] = {}
    byte_width = 1
    try:
        encoding, cmap = _cmap.get_encoding(font_dict)
    except Exception:
        encoding, cmap = None, {}
    if isinstance(cmap, dict) and cmap:
        width = cmap.get(-1)
        if width == 2:
            byte_width = 2
        for key, value in cmap.items():
            if key == -1 or not isinstance(key, str):
                continue
            if isinstance(value, bytes):
                try:
                    mapped_value = value.decode("utf-16-be", "surrogatepass")
                except UnicodeDecodeError:
                    mapped_value = value.decode("latin-1", "ignore")
            else:
                mapped_value = str(value)
            translation[key] = mapped_value
    if encoding == "utf-16-be":
        byte_width = 2
    if isinstance(encoding, (list, tuple)):
        encoding = dict(enumerate(encoding))
    if not translation and isinstance(encoding, dict):
        for raw_code, glyph_name in encoding.items():
            if isinstance(raw_code, int):
                try:
                    key = chr(raw_code)
                except ValueError:
                    continue
            elif isinstance(raw_code, str):
                key = raw_code
            else:
                continue
            if not isinstance(glyph_name, str):
                continue
            if len(glyph_name) == 1:
                mapped = glyph_name
            else:
                mapped = _glyph_name_to_unicode(glyph_name) or glyph_name.lstrip("/")
            if mapped:
                translation[key] = mapped
    max_key_length = max((len(key) for key in translation), default=1)
    return FontDecoder(mapping=translation, max_key_length=max_key_length, byte_width=byte_width)


def collect_font_dictionaries(font_obj: DictionaryObject) -> list[DictionaryObject]:
    dictionaries = [font_obj]
    descendants = font_obj.get(NameObject("/DescendantFonts"))
    if isinstance(descendants, IndirectObject):
        descendants = descendants.get_object()
    if isinstance(descendants, ArrayObject):
        for entry in descendants:
            resolved = entry.get_object() if isinstance(entry, IndirectObject) else entry
            if isinstance(resolved, DictionaryObject):
                dictionaries.append(resolved)
    return dictionaries


def font_decoders(resources: DictionaryObject | None) -> dict[str, FontDecoder]:
    """Build a decoder per font resource name found in *resources*."""

    decoders: dict[str, FontDecoder] = {}
    if not isinstance(resources, DictionaryObject):
        return decoders
    fonts = resources.get(NameObject("/Font"))
    if isinstance(fonts, IndirectObject):
        fonts = fonts.get_object()
    if not isinstance(fonts, DictionaryObject):
        return decoders
    for name, font in fonts.items():
        resolved_font = font.get_object() if isinstance(font, IndirectObject) else font
        if not isinstance(resolved_font, DictionaryObject):
            continue
        decoder = _build_font_decoder(resolved_font)
        if not decoder.mapping:
            # Type0 fonts may only carry an encoding on a descendant.
            for dictionary in collect_font_dictionaries(resolved_font)[1:]:
                candidate = _build_font_decoder(dictionary)
                if candidate.mapping:
                    candidate.byte_width = max(candidate.byte_width, decoder.byte_width)
                    decoder = candidate
                    break
        decoders[str(name)] = decoder
    return decoders


def operand_bytes(operand: object) -> bytes:
    """Return the undecoded bytes of a string operand."""

    if isinstance(operand, (bytes, bytearray)):
        return bytes(operand)
    original = getattr(operand, "original_bytes", None)
    if isinstance(original, (bytes, bytearray)):
        return bytes(original)
    return str(operand).encode("latin-1", "ignore")


def apply_translation_map(text: str, mapping: Mapping[str, str], max_key_length: int) -> str:
    if not mapping:
        return text
    if max_key_length <= 1:
        return "".join(mapping.get(char, char) for char in text)
    result: list[str] = []
    index = 0
    length = len(text)
    while index < length:
        matched = False
        max_window = min(max_key_length, length - index)
        for window in range(max_window, 0, -1):
            segment = text[index : index + window]
            mapped = mapping.get(segment)
            if mapped is not None:
                result.append(mapped)
                index += window
                matched = True
                break
        if not matched:
            result.append(text[index])
            index += 1
    return "".join(result)
