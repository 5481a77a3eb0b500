"""pypdf-backed :class:`~taggedpdf.core.source.DocumentSource`.

The reader walks the catalog's ``/StructTreeRoot`` to build one pruned
structure tree per page, replays page content streams to produce the text
fragment stream with its marked-content boundaries, and collects painted
image XObjects in the order their ``Do`` operators run.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from pathlib import Path
from typing import Any, Iterator, Mapping, Sequence

from pypdf import PdfReader
from pypdf._page import ContentStream
from pypdf.errors import PdfReadError
from pypdf.generic import (
    ArrayObject,
    DictionaryObject,
    FloatObject,
    IndirectObject,
    NameObject,
    NumberObject,
    StreamObject,
)

from ..exceptions import PageOutOfRange, SourceError
from ..primitives import EncodingKind, NodeKind, RasterImageObject, StructureNode, TextFragment
from .fonts import LATIN1_DECODER, FontDecoder, font_decoders, operand_bytes
from .validator import ensure_pdf_exists

_LOGGER = logging.getLogger("taggedpdf.reader")

__all__ = ["PypdfDocumentSource"]

_LINE_MOVE_OPS = {b"T*", b"'", b'"', b"Tm"}
_UNDECODED_FILTERS = {"DCTDecode", "JPXDecode", "JBIG2Decode", "CCITTFaxDecode"}
_MAX_FORM_DEPTH = 8
_MAX_ROLE_MAP_DEPTH = 16
# TJ adjustments at or beyond this many thousandths of an em read as a word gap.
_TJ_SPACE_THRESHOLD = 250


def _resolve(obj: object | None) -> object | None:
    if isinstance(obj, IndirectObject):
        try:
            return obj.get_object()
        except Exception:
            return None
    return obj


def _clean_name(name: object) -> str:
    raw = str(name)
    return raw[1:] if raw.startswith("/") else raw


class PypdfDocumentSource:
    """Serve structure trees, text fragments and images from a PDF file."""

    def __init__(
        self,
        source: str | Path | PdfReader,
        *,
        password: str | None = None,
        use_role_map: bool = False,
        insert_line_spaces: bool = True,
    ) -> None:
        self.path: Path | None = None
        if isinstance(source, PdfReader):
            self.reader = source
        else:
            self.path = ensure_pdf_exists(source)
            try:
                self.reader = PdfReader(str(self.path))
                if self.reader.is_encrypted:
                    self.reader.decrypt(password or "")
            except (OSError, PdfReadError) as exc:
                raise SourceError(f"Unable to read {self.path}: {exc}") from exc
        self.use_role_map = use_role_map
        self.insert_line_spaces = insert_line_spaces
        self._page_keys: dict[int, int] = {}
        self._trees: dict[int, StructureNode] | None = None
        self._tagged: bool | None = None

    # -- DocumentSource ------------------------------------------------------

    @property
    def page_count(self) -> int:
        return len(self.reader.pages)

    @property
    def tagged(self) -> bool:
        if self._tagged is None:
            self._tagged = self._struct_tree_root() is not None
        return self._tagged

    def get_structure_tree(self, page_number: int) -> StructureNode | None:
        index = self._page_index(page_number)
        if not self.tagged:
            return None
        if self._trees is None:
            self._trees = self._build_structure_trees()
        tree = self._trees.get(index)
        if tree is None:
            return StructureNode(role="Root")
        return tree

    def get_text_fragments(self, page_number: int) -> list[TextFragment]:
        index = self._page_index(page_number)
        page = self.reader.pages[index]
        key = self._page_key(index)
        fragments: list[TextFragment] = []
        state = _TextState()
        resources = _resolve(page.get(NameObject("/Resources")))
        try:
            contents = page.get_contents()
            if contents is None:
                return fragments
            operations = ContentStream(contents, self.reader).operations
        except Exception as exc:
            _LOGGER.warning("Page %s: unable to read content stream: %s", page_number, exc)
            return fragments
        self._replay_text(operations, resources, key, fragments, state, depth=0)
        return fragments

    def get_raster_image_objects(self, page_number: int) -> list[RasterImageObject]:
        index = self._page_index(page_number)
        page = self.reader.pages[index]
        images: list[RasterImageObject] = []
        resources = _resolve(page.get(NameObject("/Resources")))
        try:
            contents = page.get_contents()
            if contents is None:
                return images
            operations = ContentStream(contents, self.reader).operations
        except Exception as exc:
            _LOGGER.warning("Page %s: unable to read content stream: %s", page_number, exc)
            return images
        self._collect_images(operations, resources, images, depth=0)
        return images

    def get_document_metadata(self) -> Mapping[str, str | None]:
        info: dict[str, str | None] = {}
        metadata = self.reader.metadata
        if metadata:
            for key, value in metadata.items():
                info[_clean_name(key)] = str(value) if value is not None else None
        catalog = _resolve(self.reader.trailer.get(NameObject("/Root")))
        if isinstance(catalog, DictionaryObject):
            language = catalog.get(NameObject("/Lang"))
            if language is not None:
                info["Lang"] = str(language)
        return info

    # -- Structure tree ------------------------------------------------------

    def _struct_tree_root(self) -> DictionaryObject | None:
        catalog = _resolve(self.reader.trailer.get(NameObject("/Root")))
        if not isinstance(catalog, DictionaryObject):
            return None
        root = _resolve(catalog.get(NameObject("/StructTreeRoot")))
        if not isinstance(root, DictionaryObject):
            return None
        return root

    def _build_structure_trees(self) -> dict[int, StructureNode]:
        root = self._struct_tree_root()
        if root is None:
            return {}
        role_map = _resolve(root.get(NameObject("/RoleMap"))) if self.use_role_map else None
        page_lookup: dict[int, int] = {}
        for index, page in enumerate(self.reader.pages):
            ref = getattr(page, "indirect_reference", None)
            if isinstance(ref, IndirectObject):
                page_lookup[ref.idnum] = index
        builder = _StructureBuilder(
            page_lookup=page_lookup,
            page_key=self._page_key,
            role_map=role_map if isinstance(role_map, DictionaryObject) else None,
        )
        per_page = builder.kids(root.get(NameObject("/K")), None)
        trees: dict[int, StructureNode] = {}
        for index, nodes in per_page.items():
            trees[index] = StructureNode(role="Root", children=nodes)
        return trees

    # -- Content streams -----------------------------------------------------

    def _replay_text(
        self,
        operations: Sequence[tuple[list[Any], bytes]],
        resources: object | None,
        key: str,
        fragments: list[TextFragment],
        state: "_TextState",
        depth: int,
    ) -> None:
        resources = resources if isinstance(resources, DictionaryObject) else None
        decoders = font_decoders(resources)
        decoder: FontDecoder = LATIN1_DECODER
        for operands, operator in operations:
            if operator in {b"BDC", b"BMC", b"EMC"}:
                # Line spaces only join text within one span.
                state.last_char = None
            if operator == b"BDC" and operands:
                tag = _clean_name(operands[0])
                properties = self._marked_content_properties(operands, resources)
                mcid = properties.get(NameObject("/MCID")) if properties is not None else None
                if isinstance(mcid, (int, NumberObject)):
                    fragments.append(TextFragment(marked_content_id=f"{key}_mc{int(mcid)}", tag=tag))
                else:
                    fragments.append(TextFragment(tag=tag))
            elif operator == b"BMC" and operands:
                fragments.append(TextFragment(tag=_clean_name(operands[0])))
            elif operator == b"EMC":
                fragments.append(TextFragment(ends_marked_content=True))
            elif operator == b"Tf" and operands:
                decoder = decoders.get(str(operands[0]), LATIN1_DECODER)
            elif operator == b"BT":
                state.line_break = False
            elif operator in {b"Td", b"TD"} and len(operands) >= 2:
                try:
                    if float(operands[1]) != 0.0:
                        state.line_break = True
                except (TypeError, ValueError):
                    pass
            elif operator in _LINE_MOVE_OPS:
                state.line_break = True

            if operator in {b"Tj", b"'"} and operands:
                self._emit_text(decoder.decode(operand_bytes(operands[0])), fragments, state)
            elif operator == b'"' and len(operands) >= 3:
                self._emit_text(decoder.decode(operand_bytes(operands[2])), fragments, state)
            elif operator == b"TJ" and operands:
                parts: list[str] = []
                for item in operands[0]:
                    if isinstance(item, (int, float, NumberObject, FloatObject)):
                        if float(item) <= -_TJ_SPACE_THRESHOLD and parts and not parts[-1].endswith(" "):
                            parts.append(" ")
                        continue
                    parts.append(decoder.decode(operand_bytes(item)))
                self._emit_text("".join(parts), fragments, state)
            elif operator == b"Do" and operands and depth < _MAX_FORM_DEPTH:
                form = self._form_xobject(operands[0], resources)
                if form is not None:
                    inner_resources = _resolve(form.get(NameObject("/Resources"))) or resources
                    try:
                        inner = ContentStream(form, self.reader).operations
                    except Exception as exc:
                        _LOGGER.debug("Skipping unreadable form XObject: %s", exc)
                        continue
                    self._replay_text(inner, inner_resources, key, fragments, state, depth + 1)

    def _emit_text(self, text: str, fragments: list[TextFragment], state: "_TextState") -> None:
        if not text:
            return
        if (
            self.insert_line_spaces
            and state.line_break
            and state.last_char is not None
            and not state.last_char.isspace()
            and not text[0].isspace()
        ):
            text = " " + text
        state.line_break = False
        state.last_char = text[-1]
        fragments.append(TextFragment(text=text))

    def _marked_content_properties(
        self, operands: Sequence[object], resources: DictionaryObject | None
    ) -> DictionaryObject | None:
        if len(operands) < 2:
            return None
        properties = _resolve(operands[1])
        if isinstance(properties, NameObject) and resources is not None:
            named = _resolve(resources.get(NameObject("/Properties")))
            if isinstance(named, DictionaryObject):
                properties = _resolve(named.get(properties))
        if isinstance(properties, DictionaryObject):
            return properties
        return None

    def _collect_images(
        self,
        operations: Sequence[tuple[list[Any], bytes]],
        resources: object | None,
        images: list[RasterImageObject],
        depth: int,
    ) -> None:
        resources = resources if isinstance(resources, DictionaryObject) else None
        xobjects = _resolve(resources.get(NameObject("/XObject"))) if resources is not None else None
        if not isinstance(xobjects, DictionaryObject):
            return
        for operands, operator in operations:
            if operator != b"Do" or not operands:
                continue
            name = operands[0]
            stream = _resolve(xobjects.get(name))
            if not isinstance(stream, StreamObject):
                continue
            subtype = stream.get(NameObject("/Subtype"))
            if subtype == NameObject("/Image"):
                images.append(_raster_image(_clean_name(name), stream, resources))
            elif subtype == NameObject("/Form") and depth < _MAX_FORM_DEPTH:
                inner_resources = _resolve(stream.get(NameObject("/Resources"))) or resources
                try:
                    inner = ContentStream(stream, self.reader).operations
                except Exception as exc:
                    _LOGGER.debug("Skipping unreadable form XObject %s: %s", name, exc)
                    continue
                self._collect_images(inner, inner_resources, images, depth + 1)

    def _form_xobject(self, name: object, resources: DictionaryObject | None) -> StreamObject | None:
        if resources is None:
            return None
        xobjects = _resolve(resources.get(NameObject("/XObject")))
        if not isinstance(xobjects, DictionaryObject):
            return None
        stream = _resolve(xobjects.get(name))
        if isinstance(stream, StreamObject) and stream.get(NameObject("/Subtype")) == NameObject("/Form"):
            return stream
        return None

    # -- Pages ---------------------------------------------------------------

    def _page_index(self, page_number: int) -> int:
        if page_number < 1 or page_number > self.page_count:
            raise PageOutOfRange(page_number, self.page_count)
        return page_number - 1

    def _page_key(self, index: int) -> str:
        cached = self._page_keys.get(index)
        if cached is None:
            ref = getattr(self.reader.pages[index], "indirect_reference", None)
            cached = ref.idnum if isinstance(ref, IndirectObject) else -(index + 1)
            self._page_keys[index] = cached
        return f"p{cached}R"


class _TextState:
    __slots__ = ("line_break", "last_char")

    def __init__(self) -> None:
        self.line_break = False
        self.last_char: str | None = None


class _StructureBuilder:
    """Split the document structure tree into per-page subtrees."""

    def __init__(self, page_lookup: Mapping[int, int], page_key, role_map: DictionaryObject | None) -> None:
        self.page_lookup = page_lookup
        self.page_key = page_key
        self.role_map = role_map
        self._visiting: set[int] = set()

    def kids(self, kids: object | None, page: int | None) -> dict[int, list[StructureNode]]:
        per_page: dict[int, list[StructureNode]] = defaultdict(list)
        for kid in self._iter_kids(kids):
            for index, nodes in self.kid(kid, page).items():
                per_page[index].extend(nodes)
        return per_page

    def kid(self, kid: object, page: int | None) -> dict[int, list[StructureNode]]:
        if isinstance(kid, (int, NumberObject)):
            if page is None:
                return {}
            return {page: [self._content(page, int(kid))]}
        identity = kid.idnum if isinstance(kid, IndirectObject) else None
        node = _resolve(kid)
        if not isinstance(node, DictionaryObject):
            return {}
        node_type = node.get(NameObject("/Type"))
        own_page = self._page_of(node.get(NameObject("/Pg")), page)
        if node_type == NameObject("/MCR"):
            mcid = node.get(NameObject("/MCID"))
            if own_page is None or mcid is None or node.get(NameObject("/Stm")) is not None:
                return {}
            return {own_page: [self._content(own_page, int(mcid))]}
        if node_type == NameObject("/OBJR"):
            if own_page is None:
                return {}
            obj = node.get(NameObject("/Obj"))
            object_id = f"{obj.idnum}R" if isinstance(obj, IndirectObject) else None
            return {own_page: [StructureNode(kind=NodeKind.OBJECT, object_id=object_id)]}
        if node.get(NameObject("/S")) is None:
            return {}
        if identity is not None:
            if identity in self._visiting:
                _LOGGER.warning("Cyclic structure element %s ignored", identity)
                return {}
            self._visiting.add(identity)
        try:
            return self._element(node, own_page)
        finally:
            if identity is not None:
                self._visiting.discard(identity)

    def _element(self, node: DictionaryObject, page: int | None) -> dict[int, list[StructureNode]]:
        role = self._role(node.get(NameObject("/S")))
        alt = node.get(NameObject("/Alt"))
        alt_text = str(alt) if alt is not None else None
        raw_kids = node.get(NameObject("/K"))
        children = self.kids(raw_kids, page)
        if not children:
            if raw_kids is None and page is not None:
                return {page: [StructureNode(role=role, alt_text=alt_text)]}
            return {}
        return {
            index: [StructureNode(role=role, alt_text=alt_text, children=nodes)]
            for index, nodes in children.items()
        }

    def _role(self, value: object) -> str:
        role = _clean_name(_resolve(value))
        if self.role_map is None:
            return role
        from ..compiler.roles import HEADING_PATTERN, ROLE_TABLE

        seen: set[str] = set()
        while role not in ROLE_TABLE and not HEADING_PATTERN.match(role) and role not in seen:
            if len(seen) >= _MAX_ROLE_MAP_DEPTH:
                break
            seen.add(role)
            mapped = self.role_map.get(NameObject(f"/{role}"))
            if mapped is None:
                break
            role = _clean_name(_resolve(mapped))
        return role

    def _content(self, page: int, mcid: int) -> StructureNode:
        return StructureNode(kind=NodeKind.CONTENT, content_id=f"{self.page_key(page)}_mc{mcid}")

    def _page_of(self, reference: object | None, inherited: int | None) -> int | None:
        if isinstance(reference, IndirectObject):
            return self.page_lookup.get(reference.idnum, inherited)
        return inherited

    @staticmethod
    def _iter_kids(kids: object | None) -> Iterator[object]:
        resolved = _resolve(kids) if isinstance(kids, IndirectObject) else kids
        if isinstance(resolved, ArrayObject):
            yield from resolved
        elif resolved is not None:
            # A single struct element is reached through its reference.
            yield kids


# -- Raster images -------------------------------------------------------------


def _raster_image(name: str, stream: StreamObject, resources: DictionaryObject | None) -> RasterImageObject:
    width = int(stream.get(NameObject("/Width"), 0) or 0)
    height = int(stream.get(NameObject("/Height"), 0) or 0)
    filters = _normalise_filters(stream.get(NameObject("/Filter")))
    if filters & _UNDECODED_FILTERS or stream.get(NameObject("/ImageMask")):
        return RasterImageObject(name, width, height, EncodingKind.OTHER, b"")
    try:
        raw = stream.get_data()
    except Exception as exc:
        _LOGGER.warning("Unable to decode image %s: %s", name, exc)
        return RasterImageObject(name, width, height, EncodingKind.OTHER, b"")
    bits = int(stream.get(NameObject("/BitsPerComponent"), 8) or 8)
    color_space = _resolve_color_space(stream.get(NameObject("/ColorSpace")), resources)
    encoding, data = _normalise_samples(raw, color_space, bits, width, height)
    return RasterImageObject(name, width, height, encoding, data)


def _normalise_filters(filter_obj: object | None) -> set[str]:
    filter_obj = _resolve(filter_obj)
    if filter_obj is None:
        return set()
    if isinstance(filter_obj, ArrayObject):
        return {_clean_name(item) for item in filter_obj}
    return {_clean_name(filter_obj)}


def _resolve_color_space(color_space: object | None, resources: DictionaryObject | None) -> object | None:
    color_space = _resolve(color_space)
    if (
        isinstance(color_space, NameObject)
        and not color_space.startswith("/Device")
        and resources is not None
    ):
        named = _resolve(resources.get(NameObject("/ColorSpace")))
        if isinstance(named, DictionaryObject) and color_space in named:
            return _resolve(named.get(color_space))
    return color_space


def _components(color_space: object | None) -> tuple[str, int] | None:
    """Return ``(family, components)`` for supported colour spaces."""

    if isinstance(color_space, NameObject):
        return {
            "/DeviceGray": ("gray", 1),
            "/DeviceRGB": ("rgb", 3),
            "/DeviceCMYK": ("cmyk", 4),
        }.get(str(color_space))
    if isinstance(color_space, ArrayObject) and color_space:
        family = str(color_space[0])
        if family == "/CalGray":
            return ("gray", 1)
        if family == "/CalRGB":
            return ("rgb", 3)
        if family == "/ICCBased" and len(color_space) > 1:
            profile = _resolve(color_space[1])
            n = int(profile.get(NameObject("/N"), 3) or 3) if isinstance(profile, StreamObject) else 3
            return {1: ("gray", 1), 3: ("rgb", 3), 4: ("cmyk", 4)}.get(n)
        if family == "/Indexed":
            return ("indexed", 1)
    return None


def _normalise_samples(
    raw: bytes,
    color_space: object | None,
    bits: int,
    width: int,
    height: int,
) -> tuple[EncodingKind, bytes]:
    family = _components(color_space)
    if family is None:
        return EncodingKind.OTHER, raw
    name, _ = family
    if name == "gray":
        if bits == 8:
            # Gray samples follow one leading byte in the decoder's layout.
            return EncodingKind.GRAY, b"\x00" + raw
        if bits == 1:
            return EncodingKind.GRAY, b"\x00" + _expand_bits(raw, width, height)
        return EncodingKind.OTHER, raw
    if bits != 8:
        return EncodingKind.OTHER, raw
    if name == "rgb":
        return EncodingKind.RGB, raw
    if name == "cmyk":
        return EncodingKind.RGB, bytes(_convert_cmyk_to_rgb(raw))
    palette = _extract_palette(color_space)
    if palette is None:
        return EncodingKind.OTHER, raw
    return EncodingKind.RGB, bytes(_apply_palette(raw, palette))


def _expand_bits(raw: bytes, width: int, height: int) -> bytes:
    stride = (width + 7) // 8
    expanded = bytearray()
    for row in range(height):
        line = raw[row * stride : (row + 1) * stride]
        for column in range(width):
            byte = line[column // 8] if column // 8 < len(line) else 0
            expanded.append(255 if (byte >> (7 - column % 8)) & 1 else 0)
    return bytes(expanded)


def _convert_cmyk_to_rgb(raw: bytes) -> Iterator[int]:
    for index in range(0, len(raw) - 3, 4):
        c, m, y, k = raw[index : index + 4]
        yield 255 - min(255, c + k)
        yield 255 - min(255, m + k)
        yield 255 - min(255, y + k)


def _extract_palette(color_space: object) -> list[tuple[int, int, int]] | None:
    if not isinstance(color_space, ArrayObject) or len(color_space) < 4:
        return None
    base = _resolve(color_space[1])
    if isinstance(base, ArrayObject) and base:
        base = base[0]
    if base not in {NameObject("/DeviceRGB"), NameObject("/DeviceGray")}:
        return None
    hival = int(color_space[2])
    lookup = _resolve(color_space[3])
    if isinstance(lookup, StreamObject):
        data = lookup.get_data()
    elif isinstance(lookup, (bytes, bytearray)):
        data = bytes(lookup)
    else:
        data = operand_bytes(lookup) if lookup is not None else b""
    step = 3 if base == NameObject("/DeviceRGB") else 1
    palette: list[tuple[int, int, int]] = []
    for index in range(0, min(len(data), (hival + 1) * step), step):
        if step == 3:
            if index + 2 >= len(data):
                break
            palette.append((data[index], data[index + 1], data[index + 2]))
        else:
            value = data[index]
            palette.append((value, value, value))
    return palette or None


def _apply_palette(raw: bytes, palette: Sequence[tuple[int, int, int]]) -> Iterator[int]:
    limit = len(palette)
    for index in raw:
        entry = palette[index if index < limit else -1]
        yield from entry
