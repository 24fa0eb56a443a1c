import itertools
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

import httplib2
import pytest
from dateutil import tz
from googleapiclient.errors import HttpError

from soapnotes.config import get_config
from soapnotes.services.soap_notes import SoapNoteService
from soapnotes.utils.google.drive import DOCUMENT_MIME_TYPE, DriveStorage


def http_error(status: int = 500) -> HttpError:
    return HttpError(httplib2.Response({"status": status}), b"backend error")


class _Call:
    """Stands in for a googleapiclient request object."""

    def __init__(self, fn):
        self._fn = fn

    def execute(self):
        return self._fn()


# ---------------------------------------------------------------------------
# Drive v3
# ---------------------------------------------------------------------------

_NAME_EQ = re.compile(r"name='((?:\\.|[^'])*)'")
_NAME_CONTAINS = re.compile(r"name contains '((?:\\.|[^'])*)'")
_MIME = re.compile(r"mimeType='([^']+)'")
_PARENT = re.compile(r"'([^']+)' in parents")


def _unescape(value: str) -> str:
    return value.replace("\\'", "'").replace("\\\\", "\\")


class FakeDriveService:
    """In-memory Shared Drives and files, answering the queries DriveStorage sends."""

    def __init__(self, drives_page_size: int = 100):
        self.drives_list: List[Dict[str, str]] = []
        self.items: List[Dict[str, Any]] = []
        self.drives_page_size = drives_page_size
        self.fail_create = False
        self.calls: List[tuple] = []
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    # setup helpers
    def add_drive(self, name: str) -> str:
        drive_id = f"drive-{next(self._ids)}"
        self.drives_list.append({"id": drive_id, "name": name})
        return drive_id

    def add_file(self, name: str, parent: str, mime_type: str = DOCUMENT_MIME_TYPE, trashed: bool = False) -> str:
        file_id = f"file-{next(self._ids)}"
        self.items.append(
            {
                "id": file_id,
                "name": name,
                "mimeType": mime_type,
                "parents": [parent],
                "trashed": trashed,
                "modifiedTime": next(self._clock),
            }
        )
        return file_id

    def touch(self, file_id: str) -> None:
        for f in self.items:
            if f["id"] == file_id:
                f["modifiedTime"] = next(self._clock)

    def named(self, name: str) -> List[Dict[str, Any]]:
        return [f for f in self.items if f["name"] == name]

    # API surface
    def drives(self):
        return self

    def files(self):
        return self

    def list(self, **kwargs):
        self.calls.append(("list", kwargs))
        if "q" in kwargs:
            return _Call(lambda: self._list_files(**kwargs))
        return _Call(lambda: self._list_drives(**kwargs))

    def create(self, body, **kwargs):
        self.calls.append(("create", body))

        def _create():
            if self.fail_create:
                raise http_error(500)
            file_id = self.add_file(body["name"], body["parents"][0], body["mimeType"])
            return {"id": file_id}

        return _Call(_create)

    def _list_drives(self, pageSize=100, pageToken=None, **kwargs):
        start = int(pageToken or 0)
        page = self.drives_list[start : start + min(pageSize, self.drives_page_size)]
        response = {"drives": page}
        if start + len(page) < len(self.drives_list):
            response["nextPageToken"] = str(start + len(page))
        return response

    def _list_files(self, q, orderBy=None, pageSize=None, **kwargs):
        name_eq = _NAME_EQ.search(q)
        name_contains = _NAME_CONTAINS.search(q)
        mime = _MIME.search(q)
        parent = _PARENT.search(q)

        matches = []
        for f in self.items:
            if "trashed=false" in q and f["trashed"]:
                continue
            if name_contains and _unescape(name_contains.group(1)) not in f["name"]:
                continue
            if name_eq and not name_contains and f["name"] != _unescape(name_eq.group(1)):
                continue
            if mime and f["mimeType"] != mime.group(1):
                continue
            if parent and parent.group(1) not in f["parents"]:
                continue
            matches.append(dict(f))

        if orderBy == "modifiedTime desc":
            matches.sort(key=lambda f: f["modifiedTime"], reverse=True)
        if pageSize:
            matches = matches[:pageSize]
        return {"files": matches}


# ---------------------------------------------------------------------------
# Document bodies
# ---------------------------------------------------------------------------


class FakeCell:
    def __init__(self, text: str):
        self.text = text
        self.bold: Optional[bool] = None
        self.underline: Optional[bool] = None
        self.font_size: Optional[float] = None
        self.background: Optional[str] = None
        self.width: Optional[float] = None

    def set_bold(self, bold):
        self.bold = bold
        return self

    def set_underline(self, underline):
        self.underline = underline
        return self

    def set_font_size(self, size):
        self.font_size = size
        return self

    def set_background_color(self, color):
        self.background = color
        return self

    def set_width(self, width):
        self.width = width
        return self


class FakeTable:
    def __init__(self, rows):
        self.cells = [[FakeCell(text) for text in row] for row in rows]

    @property
    def num_rows(self):
        return len(self.cells)

    def cell(self, row, column):
        return self.cells[row][column]

    def texts(self):
        return [[c.text for c in row] for row in self.cells]


class FakeBody:
    """Element list with the insert_* surface of GoogleDocumentBody."""

    def __init__(self, text: str = ""):
        self.elements: List[Dict[str, Any]] = []
        if text:
            self.elements.append({"kind": "paragraph", "text": text, "bold": False})
        self.saved = 0

    def insert_horizontal_rule(self, position):
        self.elements.insert(position, {"kind": "rule"})

    def insert_paragraph(self, position, text, bold=False):
        self.elements.insert(position, {"kind": "paragraph", "text": text, "bold": bold})

    def insert_table(self, position, rows):
        table = FakeTable(rows)
        self.elements.insert(position, {"kind": "table", "table": table})
        return table

    def get_text(self):
        parts = []
        for e in self.elements:
            if e["kind"] == "paragraph":
                parts.append(e["text"])
            elif e["kind"] == "table":
                parts.extend(c.text for row in e["table"].cells for c in row)
        return "\n".join(parts)

    def save_and_close(self):
        self.saved += 1

    def kinds(self):
        return [e["kind"] for e in self.elements]

    def tables(self):
        return [e["table"] for e in self.elements if e["kind"] == "table"]


class FakeDocs:
    def __init__(self):
        self.bodies: Dict[str, FakeBody] = {}
        self.opened: List[str] = []

    def open(self, document_id):
        self.opened.append(document_id)
        return self.bodies.setdefault(document_id, FakeBody())


# ---------------------------------------------------------------------------
# Responses sheet
# ---------------------------------------------------------------------------


class FakeSheet:
    sheet_name = "Form Responses 1"

    def __init__(self, headers, rows):
        self.headers = list(headers)
        self.rows = [list(r) + [""] * (len(headers) - len(r)) for r in rows]
        self.marks: List[tuple] = []

    def read(self):
        return self.headers, [list(r) for r in self.rows]

    def mark_processed(self, row_number, column_idx, when):
        self.marks.append((row_number, column_idx, when))
        self.rows[row_number - 2][column_idx] = when.strftime("%m/%d/%Y %H:%M:%S")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

FIXED_NOW = datetime(2024, 3, 15, 14, 5, 7, tzinfo=tz.gettz("America/Los_Angeles"))

HEADERS = [
    "Timestamp",
    "Job Code",
    "Response ID",
    "Session Date",
    "Select SOAP Note Type",
    "Notes",
]


@pytest.fixture()
def config():
    return get_config("test")


@pytest.fixture()
def drive_service():
    return FakeDriveService()


@pytest.fixture()
def storage(drive_service):
    return DriveStorage(drive_service)


@pytest.fixture()
def docs():
    return FakeDocs()


@pytest.fixture()
def make_service(storage, docs, config):
    def _make(headers=HEADERS, rows=()):
        sheet = FakeSheet(headers, rows)
        return SoapNoteService(sheet, storage, docs, config, clock=lambda: FIXED_NOW)

    return _make
