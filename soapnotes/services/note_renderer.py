# soapnotes/services/note_renderer.py
"""
SOAP note layout.

A note entry is written at the top of the client's log as:

    ─────────────────────────────  (rule)
    SOAP Note Entry: <now> [Response ID: <id>]   (bold)
    | Session Notes | <note type> |  (header row, coloured per note type)
    | <question>    | <answer>    |
    ...
    <empty paragraph>

The renderer only talks to a document body through insert_* calls and
table/cell setters, so any body with that surface works (GoogleDocumentBody
in production, an in-memory body in tests).
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence

from soapnotes.models import (
    NOTE_TYPE_FIELD,
    SESSION_DATE_FIELD,
    SESSION_HEADER,
    TIMESTAMP_FIELD,
    Answer,
    Submission,
    note_type_meta,
)
from soapnotes.utils.dates import format_entry_timestamp, format_session_date

logger = logging.getLogger(__name__)

HEADER_FONT_SIZE = 13
SECTION_COL_WIDTH = 160
RESPONSE_COL_WIDTH = 400


def answer_text(answer: Any) -> str:
    if isinstance(answer, (list, tuple)):
        return ", ".join(str(a) for a in answer)
    if answer is None:
        return ""
    return str(answer)


def build_rows(
    responses: Iterable[Answer],
    tz_name: Optional[str] = None,
    timestamp_field: str = TIMESTAMP_FIELD,
) -> List[List[str]]:
    """(label, value) rows for the table, minus the timestamp and note-type fields."""
    excluded = (timestamp_field, NOTE_TYPE_FIELD)
    rows = []
    for response in responses:
        if response.question in excluded:
            continue
        answer = response.answer
        if response.question == SESSION_DATE_FIELD:
            answer = format_session_date(answer, tz_name)
        rows.append([str(response.question), answer_text(answer)])
    return rows


def render_soap_table(
    body,
    header: Sequence[str],
    rows: Sequence[Sequence[str]],
    header_color: Optional[str] = None,
    position: int = 0,
):
    table = body.insert_table(position, [list(header)] + [list(r) for r in rows])

    for i in range(len(header)):
        cell = table.cell(0, i)
        cell.set_bold(True).set_font_size(HEADER_FONT_SIZE).set_underline(True)
        if header_color:
            cell.set_background_color(header_color)

    for r in range(table.num_rows):
        table.cell(r, 0).set_width(SECTION_COL_WIDTH)
        table.cell(r, 1).set_width(RESPONSE_COL_WIDTH)

    for r in range(1, table.num_rows):
        table.cell(r, 1).set_bold(False)

    return table


def render_default_soap(
    body,
    responses: Iterable[Answer],
    note_type: str,
    header_color: Optional[str] = None,
    position: int = 0,
    tz_name: Optional[str] = None,
    timestamp_field: str = TIMESTAMP_FIELD,
) -> bool:
    """Returns False (and inserts nothing) when no rows survive filtering."""
    rows = build_rows(responses, tz_name, timestamp_field)
    if not rows:
        return False
    render_soap_table(body, [SESSION_HEADER, note_type], rows, header_color, position)
    return True


def entry_marker(now: datetime, response_id: Any = None) -> str:
    marker = f"SOAP Note Entry: {format_entry_timestamp(now)}"
    if response_id not in (None, ""):
        marker += f" [Response ID: {response_id}]"
    return marker


def write_note_entry(
    body,
    submission: Submission,
    now: datetime,
    tz_name: Optional[str] = None,
    timestamp_field: str = TIMESTAMP_FIELD,
) -> bool:
    """Prepend one note entry to the document body; returns whether a table was written."""
    note_type = answer_text(submission.answer_for(NOTE_TYPE_FIELD))
    meta = note_type_meta(note_type)

    body.insert_horizontal_rule(0)
    body.insert_paragraph(1, entry_marker(now, submission.response_id), bold=True)
    rendered = render_default_soap(
        body, submission.fields, meta.display, meta.color, 2, tz_name, timestamp_field
    )
    body.insert_paragraph(3 if rendered else 2, "")
    return rendered
