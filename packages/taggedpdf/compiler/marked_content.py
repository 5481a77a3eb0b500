"""Reassembly of shown text into marked-content records."""

from __future__ import annotations

from typing import Iterable

from ..ir import ContentRecord
from ..primitives import TextFragment

__all__ = ["assemble_content_records"]


def assemble_content_records(fragments: Iterable[TextFragment]) -> dict[str, ContentRecord]:
    """Group *fragments* by the marked-content span they belong to.

    Each fragment is handled in three steps: an end marker closes the open
    span, the text is appended to the open span (or dropped when none is
    open), and a declared identifier opens a span for the fragments that
    follow. A fragment that opens a span therefore never contributes its own
    text to it.
    """

    records: dict[str, ContentRecord] = {}
    current: str | None = None
    tag: str | None = None
    for fragment in fragments:
        if fragment.ends_marked_content:
            current = None
            tag = None

        if current is not None:
            record = records.get(current)
            if record is None:
                records[current] = ContentRecord(text=fragment.text, tag=tag)
            else:
                record.text += fragment.text

        if fragment.marked_content_id is not None:
            current = fragment.marked_content_id
            tag = fragment.tag
    return records
