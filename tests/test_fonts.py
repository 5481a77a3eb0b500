from __future__ import annotations

from pypdf.generic import DictionaryObject, NameObject, NumberObject, StreamObject

from taggedpdf.core.fonts import LATIN1_DECODER, FontDecoder, apply_translation_map, font_decoders, operand_bytes


def test_apply_translation_map_prefers_longest_sequence() -> None:
    mapping = {"ab": "X", "a": "A", "c": "see"}

    assert apply_translation_map("abc", mapping, max_key_length=2) == "Xsee"


def test_font_decoder_reads_tounicode_stream() -> None:
    to_unicode_stream = StreamObject()
    cmap_data = b"""/CIDInit /ProcSet findresource begin\n12 dict begin\nbegincmap\n/CIDSystemInfo\n<< /Registry (Adobe)\n/Ordering (UCS)\n/Supplement 0\n>> def\n/CMapName /Adobe-Identity-UCS def\n/CMapType 2 def\n1 begincodespacerange\n<01> <01>\nendcodespacerange\n1 beginbfchar\n<01> <03A9>\nendbfchar\nendcmap\nCMapName currentdict /CMap defineresource pop\nend\nend\n"""
    to_unicode_stream._data = cmap_data
    to_unicode_stream[NameObject("/Length")] = NumberObject(len(cmap_data))
    font = DictionaryObject(
        {
            NameObject("/Type"): NameObject("/Font"),
            NameObject("/Subtype"): NameObject("/Type0"),
            NameObject("/BaseFont"): NameObject("/Custom"),
            NameObject("/ToUnicode"): to_unicode_stream,
        }
    )
    resources = DictionaryObject({NameObject("/Font"): DictionaryObject({NameObject("/F1"): font})})

    decoders = font_decoders(resources)

    assert decoders["/F1"].decode(b"\x01") == "Ω"


def test_two_byte_decoder() -> None:
    decoder = FontDecoder(mapping={"A": "a"}, byte_width=2)

    assert decoder.decode(b"\x00\x41\x00\x42\x00") == "aB"


def test_fallbacks() -> None:
    assert font_decoders(None) == {}
    assert LATIN1_DECODER.decode(b"caf\xe9") == "café"
    assert operand_bytes(b"raw") == b"raw"
    assert operand_bytes("text") == b"text"
