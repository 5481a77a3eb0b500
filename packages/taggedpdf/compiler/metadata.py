"""Metadata helpers for compiled documents."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Mapping

from ..ir import DocumentMetadata

__all__ = [
    "DUBLIN_CORE_FIELDS",
    "dublin_core_entries",
    "metadata_from_mapping",
    "parse_pdf_date",
]

PDF_DATE_PREFIX = "D:"

# Meta element name for each metadata attribute, in emission order.
DUBLIN_CORE_FIELDS: tuple[tuple[str, str], ...] = (
    ("author", "dc:creator"),
    ("subject", "dc:subject"),
    ("keywords", "dc:keywords"),
    ("title", "dc:title"),
)


def metadata_from_mapping(metadata: Mapping[str, object] | None) -> DocumentMetadata:
    result = DocumentMetadata()
    if not metadata:
        return result

    def _get(key: str) -> str | None:
        value = metadata.get(f"/{key}")
        if value is None:
            value = metadata.get(key)
        if value is None:
            value = metadata.get(key.lower())
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    result.title = _get("Title")
    result.author = _get("Author")
    result.subject = _get("Subject")
    result.language = _get("Lang")
    keywords = _get("Keywords")
    if keywords:
        result.keywords = [item.strip() for item in keywords.split(",") if item.strip()]
    created_raw = _get("CreationDate")
    if created_raw:
        result.created = parse_pdf_date(created_raw)
    modified_raw = _get("ModDate")
    if modified_raw:
        result.modified = parse_pdf_date(modified_raw)
    return result


def dublin_core_entries(metadata: DocumentMetadata) -> list[tuple[str, str]]:
    """Return ``(name, content)`` pairs for the populated Dublin Core fields."""

    entries: list[tuple[str, str]] = []
    for attribute, name in DUBLIN_CORE_FIELDS:
        value = getattr(metadata, attribute)
        if isinstance(value, list):
            value = ", ".join(value)
        if value:
            entries.append((name, value))
    return entries


def parse_pdf_date(value: str) -> datetime | None:
    text = value.strip()
    if text.startswith(PDF_DATE_PREFIX):
        text = text[len(PDF_DATE_PREFIX) :]
    try:
        year = int(text[0:4])
        month = int(text[4:6]) if len(text) >= 6 else 1
        day = int(text[6:8]) if len(text) >= 8 else 1
        hour = int(text[8:10]) if len(text) >= 10 else 0
        minute = int(text[10:12]) if len(text) >= 12 else 0
        second = int(text[12:14]) if len(text) >= 14 else 0
    except ValueError:
        return None
    tz = timezone.utc
    if len(text) > 14:
        sign = text[14]
        if sign in "+-" and len(text) >= 17:
            try:
                offset_hours = int(text[15:17])
                offset_minutes = int(text[18:20]) if len(text) >= 20 else 0
            except ValueError:
                offset_hours = 0
                offset_minutes = 0
            delta = timedelta(hours=offset_hours, minutes=offset_minutes)
            if sign == "-":
                delta = -delta
            tz = timezone(delta)
    try:
        return datetime(year, month, day, hour, minute, second, tzinfo=tz)
    except ValueError:
        return None
