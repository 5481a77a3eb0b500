from __future__ import annotations

from pathlib import Path
from typing import Callable
import sys

import pytest
from pypdf import PdfWriter
from pypdf.generic import (
    ArrayObject,
    BooleanObject,
    DictionaryObject,
    NameObject,
    NumberObject,
    StreamObject,
    TextStringObject,
)

PROJECT_ROOT = Path(__file__).resolve().parents[1]
PACKAGES_ROOT = PROJECT_ROOT / "packages"
if str(PACKAGES_ROOT) not in sys.path:
    sys.path.insert(0, str(PACKAGES_ROOT))


def _stream(data: bytes, entries: dict | None = None) -> StreamObject:
    stream = StreamObject()
    if entries:
        stream.update(entries)
    stream._data = data
    stream[NameObject("/Length")] = NumberObject(len(data))
    return stream


def image_stream(width: int, height: int, samples: bytes, color_space: str = "/DeviceRGB", bits: int = 8) -> StreamObject:
    return _stream(
        samples,
        {
            NameObject("/Type"): NameObject("/XObject"),
            NameObject("/Subtype"): NameObject("/Image"),
            NameObject("/Width"): NumberObject(width),
            NameObject("/Height"): NumberObject(height),
            NameObject("/ColorSpace"): NameObject(color_space),
            NameObject("/BitsPerComponent"): NumberObject(bits),
        },
    )


class TaggedPdfBuilder:
    """Assemble small tagged PDFs from content streams and struct elements."""

    def __init__(self) -> None:
        self.writer = PdfWriter()
        font = DictionaryObject(
            {
                NameObject("/Type"): NameObject("/Font"),
                NameObject("/Subtype"): NameObject("/Type1"),
                NameObject("/BaseFont"): NameObject("/Helvetica"),
                NameObject("/Encoding"): NameObject("/WinAnsiEncoding"),
            }
        )
        self.font_ref = self.writer._add_object(font)

    def add_page(self, content: bytes, *, images: dict[str, StreamObject] | None = None) -> int:
        self.writer.add_blank_page(width=200, height=200)
        index = len(self.writer.pages) - 1
        page = self.writer.pages[index]
        resources = DictionaryObject({NameObject("/Font"): DictionaryObject({NameObject("/F1"): self.font_ref})})
        if images:
            resources[NameObject("/XObject")] = DictionaryObject(
                {NameObject(name): self.writer._add_object(stream) for name, stream in images.items()}
            )
        page[NameObject("/Resources")] = resources
        page[NameObject("/Contents")] = self.writer._add_object(_stream(content))
        return index

    def page_ref(self, index: int):
        return self.writer.pages[index].indirect_reference

    def element(self, role: str, page: int | None, *kids, alt: str | None = None) -> DictionaryObject:
        node = DictionaryObject(
            {
                NameObject("/Type"): NameObject("/StructElem"),
                NameObject("/S"): NameObject(f"/{role}"),
            }
        )
        if page is not None:
            node[NameObject("/Pg")] = self.page_ref(page)
        if kids:
            node[NameObject("/K")] = ArrayObject(
                NumberObject(kid) if isinstance(kid, int) else kid for kid in kids
            )
        if alt is not None:
            node[NameObject("/Alt")] = TextStringObject(alt)
        return node

    def write(
        self,
        path: Path,
        *children: DictionaryObject,
        metadata: dict[str, str] | None = None,
        language: str | None = None,
        role_map: dict[str, str] | None = None,
        tagged: bool = True,
    ) -> Path:
        root = self.writer._root_object
        if tagged:
            document = self.element("Document", None, *children)
            struct_root = DictionaryObject(
                {
                    NameObject("/Type"): NameObject("/StructTreeRoot"),
                    NameObject("/K"): ArrayObject([document]),
                }
            )
            if role_map:
                struct_root[NameObject("/RoleMap")] = DictionaryObject(
                    {NameObject(f"/{key}"): NameObject(f"/{value}") for key, value in role_map.items()}
                )
            root[NameObject("/StructTreeRoot")] = self.writer._add_object(struct_root)
            root[NameObject("/MarkInfo")] = DictionaryObject({NameObject("/Marked"): BooleanObject(True)})
        if language is not None:
            root[NameObject("/Lang")] = TextStringObject(language)
        if metadata:
            self.writer.add_metadata(metadata)
        with path.open("wb") as handle:
            self.writer.write(handle)
        return path


@pytest.fixture()
def pdf_builder() -> TaggedPdfBuilder:
    return TaggedPdfBuilder()


@pytest.fixture()
def tagged_pdf(tmp_path: Path, pdf_builder: TaggedPdfBuilder) -> Path:
    """Two-page tagged PDF: a heading and paragraph, then a figure and a list."""

    pixels = bytes([255, 0, 0, 0, 255, 0, 0, 0, 255, 255, 255, 255])
    first = pdf_builder.add_page(
        b"/H1 <</MCID 0>> BDC BT /F1 18 Tf 20 170 Td (Annual Report) Tj ET EMC "
        b"/P <</MCID 1>> BDC BT /F1 12 Tf 20 140 Td (Revenue grew.) Tj ET EMC"
    )
    second = pdf_builder.add_page(
        b"/Figure <</MCID 0>> BDC q 50 0 0 50 20 100 cm /Im1 Do Q EMC "
        b"/LBody <</MCID 1>> BDC BT /F1 12 Tf 20 60 Td (First item) Tj ET EMC "
        b"/Artifact BMC BT /F1 8 Tf 20 10 Td (Page 2) Tj ET EMC",
        images={"/Im1": image_stream(2, 2, pixels)},
    )
    heading = pdf_builder.element("H1", first, 0)
    paragraph = pdf_builder.element("P", first, 1)
    figure = pdf_builder.element("Figure", second, alt="Quarterly chart")
    item = pdf_builder.element(
        "LI",
        second,
        pdf_builder.element("Lbl", second),
        pdf_builder.element("LBody", second, 1),
    )
    listing = pdf_builder.element("L", second, item)
    return pdf_builder.write(
        tmp_path / "report.pdf",
        heading,
        paragraph,
        figure,
        listing,
        metadata={"/Title": "Annual Report", "/Author": "Finance Team", "/Keywords": "report, finance"},
        language="en-GB",
    )


@pytest.fixture()
def untagged_pdf(tmp_path: Path, pdf_builder: TaggedPdfBuilder) -> Path:
    pdf_builder.add_page(b"BT /F1 12 Tf 20 100 Td (Plain text) Tj ET")
    return pdf_builder.write(tmp_path / "plain.pdf", tagged=False)


@pytest.fixture()
def pdf_factory(tmp_path: Path) -> Callable[..., Path]:
    def _create(filename: str, content: bytes, role: str = "P") -> Path:
        builder = TaggedPdfBuilder()
        page = builder.add_page(content)
        return builder.write(tmp_path / filename, builder.element(role, page, 0))

    return _create
