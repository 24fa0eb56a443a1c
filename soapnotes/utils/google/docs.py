# soapnotes/utils/google/docs.py
"""
Element-indexed editing over the Google Docs v1 API.

Positions are body element indexes (the leading section break is not
counted), so ``insert_paragraph(1, ...)`` places a paragraph directly
below the first element, as in the Apps Script Body API.

Structural edits (insert text/table) are sent immediately and the
document is re-read afterwards so later positions resolve against fresh
indexes. Cell styling is queued and sent with the next structural edit
or on ``save_and_close()``; styling never moves indexes, so queued
ranges stay valid until then.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

RULE_COLOR = "#999999"


def hex_to_rgb(color: str) -> Dict[str, float]:
    """'#d9d2e9' -> Docs rgbColor dict."""
    value = color.lstrip("#")
    if len(value) == 3:
        value = "".join(ch * 2 for ch in value)
    if len(value) != 6:
        raise ValueError(f"Invalid hex colour: {color!r}")
    red, green, blue = (int(value[i : i + 2], 16) / 255.0 for i in (0, 2, 4))
    return {"red": red, "green": green, "blue": blue}


def _pt(magnitude: float) -> Dict[str, Any]:
    return {"magnitude": magnitude, "unit": "PT"}


def _content_text(content: Iterable[dict]) -> str:
    parts: List[str] = []
    for element in content or []:
        if "paragraph" in element:
            for run in element["paragraph"].get("elements") or []:
                parts.append((run.get("textRun") or {}).get("content", ""))
        elif "table" in element:
            for row in element["table"].get("tableRows") or []:
                for cell in row.get("tableCells") or []:
                    parts.append(_content_text(cell.get("content")))
        elif "tableOfContents" in element:
            parts.append(_content_text(element["tableOfContents"].get("content")))
    return "".join(parts)


def _is_empty_paragraph(element: Optional[dict]) -> bool:
    return bool(element) and "paragraph" in element and _content_text([element]) == "\n"


class GoogleTableCell:
    def __init__(self, table: "GoogleTable", row: int, column: int, cell: dict):
        self.table = table
        self.row = row
        self.column = column
        content = cell.get("content") or []
        # text range excludes the cell's closing newline
        self._start = content[0]["startIndex"] if content else cell["startIndex"]
        self._end = (content[-1]["endIndex"] - 1) if content else self._start

    def _text_style(self, style: dict, fields: str) -> "GoogleTableCell":
        if self._end > self._start:
            self.table.body.queue(
                {
                    "updateTextStyle": {
                        "range": {"startIndex": self._start, "endIndex": self._end},
                        "textStyle": style,
                        "fields": fields,
                    }
                }
            )
        return self

    def set_bold(self, bold: bool) -> "GoogleTableCell":
        return self._text_style({"bold": bold}, "bold")

    def set_underline(self, underline: bool) -> "GoogleTableCell":
        return self._text_style({"underline": underline}, "underline")

    def set_font_size(self, size: float) -> "GoogleTableCell":
        return self._text_style({"fontSize": _pt(size)}, "fontSize")

    def set_background_color(self, color: str) -> "GoogleTableCell":
        self.table.body.queue(
            {
                "updateTableCellStyle": {
                    "tableRange": {
                        "tableCellLocation": {
                            "tableStartLocation": {"index": self.table.start_index},
                            "rowIndex": self.row,
                            "columnIndex": self.column,
                        },
                        "rowSpan": 1,
                        "columnSpan": 1,
                    },
                    "tableCellStyle": {"backgroundColor": {"color": {"rgbColor": hex_to_rgb(color)}}},
                    "fields": "backgroundColor",
                }
            }
        )
        return self

    def set_width(self, width: float) -> "GoogleTableCell":
        self.table.set_column_width(self.column, width)
        return self


class GoogleTable:
    def __init__(self, body: "GoogleDocumentBody", element: dict):
        self.body = body
        self.start_index = element["startIndex"]
        self._rows = element["table"].get("tableRows") or []
        self._widths: Dict[int, float] = {}

    @property
    def num_rows(self) -> int:
        return len(self._rows)

    def cell(self, row: int, column: int) -> GoogleTableCell:
        return GoogleTableCell(self, row, column, self._rows[row]["tableCells"][column])

    def set_column_width(self, column: int, width: float) -> None:
        # Docs sizes whole columns; repeat calls for the same width are dropped
        if self._widths.get(column) == width:
            return
        self._widths[column] = width
        self.body.queue(
            {
                "updateTableColumnProperties": {
                    "tableStartLocation": {"index": self.start_index},
                    "columnIndices": [column],
                    "tableColumnProperties": {"widthType": "FIXED_WIDTH", "width": _pt(width)},
                    "fields": "widthType,width",
                }
            }
        )


class GoogleDocumentBody:
    """One opened Google Doc. Call ``save_and_close()`` when done."""

    def __init__(self, service, document_id: str):
        self.service = service
        self.document_id = document_id
        self._pending: List[dict] = []
        self._elements: List[dict] = []
        self._refresh()

    def _refresh(self) -> None:
        document = self.service.documents().get(documentId=self.document_id).execute()
        content = (document.get("body") or {}).get("content") or []
        self._elements = [e for e in content if "sectionBreak" not in e]

    def queue(self, request: dict) -> None:
        self._pending.append(request)

    def _send(self, requests: Sequence[dict]) -> None:
        batch = self._pending + list(requests)
        self._pending = []
        if not batch:
            return
        self.service.documents().batchUpdate(
            documentId=self.document_id, body={"requests": batch}
        ).execute()

    def _element(self, position: int) -> Optional[dict]:
        if 0 <= position < len(self._elements):
            return self._elements[position]
        return None

    def _insert_point(self, position: int) -> Tuple[int, bool]:
        """
        (index, leading_newline) for a new paragraph at ``position``.

        Text goes at the start of a paragraph element; before a table or at
        the end of the body it goes at the end of the previous paragraph.
        """
        element = self._element(position)
        if element is not None and "paragraph" in element:
            return element["startIndex"], False
        previous = self._element(position - 1)
        if previous is None:
            raise IndexError(f"Cannot insert at element position {position}")
        return previous["endIndex"] - 1, True

    def _insert_paragraph(self, position: int, text: str, extra: Sequence[dict] = ()) -> Tuple[int, int]:
        index, leading_newline = self._insert_point(position)
        inserted = ("\n" + text) if leading_newline else (text + "\n")
        text_start = index + 1 if leading_newline else index
        paragraph_range = {"startIndex": text_start, "endIndex": text_start + len(text) + 1}

        requests: List[dict] = [
            {"insertText": {"location": {"index": index}, "text": inserted}},
            {
                # neighbours' heading/border styles must not leak into the new paragraph
                "updateParagraphStyle": {
                    "range": paragraph_range,
                    "paragraphStyle": {"namedStyleType": "NORMAL_TEXT"},
                    "fields": "namedStyleType,borderBottom,borderTop",
                }
            },
        ]
        requests.extend(extra_request(paragraph_range) for extra_request in extra)
        self._send(requests)
        self._refresh()
        return text_start, text_start + len(text)

    def insert_paragraph(self, position: int, text: str, bold: bool = False) -> None:
        element = self._element(position)
        previous = self._element(position - 1)
        if not text and _is_empty_paragraph(element) and previous is not None and "table" in previous:
            # Docs already keeps an empty paragraph after every table
            return

        def text_style(paragraph_range):
            return {
                "updateTextStyle": {
                    "range": {
                        "startIndex": paragraph_range["startIndex"],
                        "endIndex": paragraph_range["endIndex"] - 1,
                    },
                    "textStyle": {"bold": bold},
                    "fields": "bold",
                }
            }

        self._insert_paragraph(position, text, extra=(text_style,) if text else ())

    def insert_horizontal_rule(self, position: int) -> None:
        """Docs has no rule element; an empty paragraph with a bottom border stands in."""

        def border(paragraph_range):
            return {
                "updateParagraphStyle": {
                    "range": paragraph_range,
                    "paragraphStyle": {
                        "borderBottom": {
                            "color": {"color": {"rgbColor": hex_to_rgb(RULE_COLOR)}},
                            "width": _pt(1),
                            "padding": _pt(1),
                            "dashStyle": "SOLID",
                        }
                    },
                    "fields": "borderBottom",
                }
            }

        self._insert_paragraph(position, "", extra=(border,))

    def insert_table(self, position: int, rows: Sequence[Sequence[str]]) -> GoogleTable:
        """
        Insert a filled table so that it becomes element ``position``.

        Docs puts a newline in front of a new table, so the table is placed at
        the end of the previous paragraph; that paragraph's own newline ends up
        as the empty paragraph below the table.
        """
        if position > 0:
            index = self._element(position - 1)["endIndex"] - 1
        else:
            index = self._elements[0]["startIndex"]

        columns = max(len(r) for r in rows)
        self._send(
            [{"insertTable": {"rows": len(rows), "columns": columns, "location": {"index": index}}}]
        )
        self._refresh()

        table_element = self._table_at_or_after(index)
        fills = []
        for r, row in enumerate(table_element["table"]["tableRows"]):
            for c, cell in enumerate(row["tableCells"]):
                text = rows[r][c] if c < len(rows[r]) else ""
                if text:
                    fills.append((cell["content"][0]["startIndex"], text))

        # back to front so earlier cell indexes stay put
        fills.sort(key=lambda item: item[0], reverse=True)
        self._send([{"insertText": {"location": {"index": i}, "text": t}} for i, t in fills])
        self._refresh()
        return GoogleTable(self, self._table_at_or_after(index))

    def _table_at_or_after(self, index: int) -> dict:
        for element in self._elements:
            if "table" in element and element["startIndex"] >= index:
                return element
        raise LookupError(f"No table found at or after index {index}")

    def get_text(self) -> str:
        return _content_text(self._elements)

    def save_and_close(self) -> None:
        self._send([])
        logger.debug(f"Saved document {self.document_id}")


class GoogleDocs:
    def __init__(self, service):
        self.service = service

    def open(self, document_id: str) -> GoogleDocumentBody:
        return GoogleDocumentBody(self.service, document_id)
