from __future__ import annotations

from datetime import datetime, timedelta, timezone

from taggedpdf.compiler.metadata import dublin_core_entries, metadata_from_mapping, parse_pdf_date
from taggedpdf.ir import DocumentMetadata


def test_metadata_from_pdf_info_keys() -> None:
    metadata = metadata_from_mapping(
        {
            "/Title": " Field Guide ",
            "/Author": "R. Ortiz",
            "/Subject": "Birds",
            "/Keywords": "owls, hawks,, ",
            "/CreationDate": "D:20240102030405Z",
            "Lang": "es",
        }
    )

    assert metadata.title == "Field Guide"
    assert metadata.author == "R. Ortiz"
    assert metadata.subject == "Birds"
    assert metadata.keywords == ["owls", "hawks"]
    assert metadata.language == "es"
    assert metadata.created == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_metadata_from_empty_mapping() -> None:
    assert metadata_from_mapping(None) == DocumentMetadata()
    assert metadata_from_mapping({"/Title": "   "}).title is None


def test_parse_pdf_date_with_offset() -> None:
    parsed = parse_pdf_date("D:20230615120000-05'00'")

    assert parsed == datetime(2023, 6, 15, 12, 0, 0, tzinfo=timezone(-timedelta(hours=5)))


def test_parse_pdf_date_partial_and_invalid() -> None:
    assert parse_pdf_date("D:2021") == datetime(2021, 1, 1, tzinfo=timezone.utc)
    assert parse_pdf_date("not a date") is None


def test_dublin_core_entries_in_order() -> None:
    metadata = DocumentMetadata(title="T", author="A", keywords=["x", "y"])

    assert dublin_core_entries(metadata) == [
        ("dc:creator", "A"),
        ("dc:keywords", "x, y"),
        ("dc:title", "T"),
    ]
