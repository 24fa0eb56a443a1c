from conftest import FIXED_NOW, FakeBody

from soapnotes.models import Answer, Submission, note_type_meta
from soapnotes.services.note_renderer import (
    RESPONSE_COL_WIDTH,
    SECTION_COL_WIDTH,
    build_rows,
    entry_marker,
    render_default_soap,
    write_note_entry,
)


def _answers(**pairs):
    return [Answer(question=q, answer=a) for q, a in pairs.items()]


def test_build_rows_drops_timestamp_and_note_type():
    responses = [
        Answer("Timestamp", "3/15/2024 10:00:00"),
        Answer("Select SOAP Note Type", "Supervision"),
        Answer("Session Date", "2024-03-15"),
        Answer("Goals Addressed", ["Manding", "Tacting"]),
        Answer("Minutes", 60),
    ]
    assert build_rows(responses) == [
        ["Session Date", "3/15/2024"],
        ["Goals Addressed", "Manding, Tacting"],
        ["Minutes", "60"],
    ]


def test_build_rows_keeps_weekday_session_date_as_written():
    assert build_rows([Answer("Session Date", "Tuesday")]) == [["Session Date", "Tuesday"]]


def test_build_rows_drops_a_renamed_timestamp_field():
    responses = [Answer("Submitted At", "3/15/2024 10:00:00"), Answer("Notes", "ok")]
    assert build_rows(responses, timestamp_field="Submitted At") == [["Notes", "ok"]]


def test_no_table_when_nothing_left_to_render():
    body = FakeBody("existing")
    rendered = render_default_soap(
        body, [Answer("Timestamp", "x"), Answer("Select SOAP Note Type", "Supervision")], "Supervision"
    )
    assert rendered is False
    assert body.kinds() == ["paragraph"]


def test_table_layout_and_styles():
    body = FakeBody("existing")
    render_default_soap(body, [Answer("Notes", "Reviewed goals")], "Supervision", "#d9d2e9", 0)

    assert body.kinds() == ["table", "paragraph"]
    table = body.tables()[0]
    assert table.texts() == [["Session Notes", "Supervision"], ["Notes", "Reviewed goals"]]

    for header in table.cells[0]:
        assert header.bold is True
        assert header.underline is True
        assert header.font_size == 13
        assert header.background == "#d9d2e9"
    for row in table.cells:
        assert row[0].width == SECTION_COL_WIDTH
        assert row[1].width == RESPONSE_COL_WIDTH
    assert table.cell(1, 1).bold is False
    assert table.cell(1, 0).background is None


def test_header_colour_left_unset_without_colour():
    body = FakeBody()
    render_default_soap(body, [Answer("Notes", "x")], "Group Session", None)
    assert all(c.background is None for c in body.tables()[0].cells[0])


def test_unknown_note_type_keeps_raw_text():
    meta = note_type_meta("Group Session")
    assert meta.color is None
    assert meta.display == "Group Session"
    assert note_type_meta("Caregiver Readiness").color == "#fff2cc"


def test_entry_marker():
    assert entry_marker(FIXED_NOW, "r-1") == "SOAP Note Entry: 3/15/2024, 2:05:07 PM [Response ID: r-1]"
    assert entry_marker(FIXED_NOW) == "SOAP Note Entry: 3/15/2024, 2:05:07 PM"


def test_write_note_entry_prepends_block_above_existing_content():
    body = FakeBody("older note")
    submission = Submission(
        job_code="John S. (ABA)",
        response_id="r-1",
        fields=tuple(
            _answers(**{"Session Date": "3/15/2024", "Select SOAP Note Type": "Parent Training", "Notes": "ok"})
        ),
    )

    assert write_note_entry(body, submission, FIXED_NOW) is True
    assert body.kinds() == ["rule", "paragraph", "table", "paragraph", "paragraph"]
    assert body.elements[1]["bold"] is True
    assert "[Response ID: r-1]" in body.elements[1]["text"]
    assert body.elements[3]["text"] == ""
    assert body.elements[4]["text"] == "older note"
    table = body.tables()[0]
    assert table.texts()[0] == ["Session Notes", "Parent Training"]
    assert table.cell(0, 0).background == "#d9ead3"


def test_write_note_entry_without_rows_keeps_block_contiguous():
    body = FakeBody("older note")
    submission = Submission(job_code="John S.", response_id="r-2", fields=tuple(_answers(Timestamp="x")))

    assert write_note_entry(body, submission, FIXED_NOW) is False
    assert body.kinds() == ["rule", "paragraph", "paragraph", "paragraph"]
    assert body.elements[3]["text"] == "older note"
