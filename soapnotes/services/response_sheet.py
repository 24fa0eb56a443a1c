# soapnotes/services/response_sheet.py
"""Form responses sheet: column lookup, row selection and the Sheets v4 reader."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Sequence, Tuple

from googleapiclient.errors import HttpError

from soapnotes.exceptions import SheetNotFoundError
from soapnotes.models import Answer, Submission
from soapnotes.utils.dates import timestamp_key

logger = logging.getLogger(__name__)


def is_response_id_header(header: Any) -> bool:
    if not header or not isinstance(header, str):
        return False
    lowered = header.lower()
    return "response" in lowered and "id" in lowered


def is_blank(value: Any) -> bool:
    return value is None or value == ""


@dataclass(frozen=True)
class SheetColumns:
    job_code: int
    timestamp: int
    response_id: int
    upload_timestamp: int = -1


def locate_columns(
    headers: Sequence[Any],
    job_code_column: str = "Job Code",
    timestamp_column: str = "Timestamp",
    upload_timestamp_column: str = "Upload Timestamp",
) -> SheetColumns:
    """Column indexes, -1 for any that is missing."""

    def index_of(name):
        return headers.index(name) if name in headers else -1

    response_id = next((i for i, h in enumerate(headers) if is_response_id_header(h)), -1)
    return SheetColumns(
        job_code=index_of(job_code_column),
        timestamp=index_of(timestamp_column),
        response_id=response_id,
        upload_timestamp=index_of(upload_timestamp_column),
    )


def pad_row(row: Sequence[Any], width: int) -> List[Any]:
    """The Sheets API drops trailing empty cells; pad back to the header width."""
    row = list(row)
    return row + [""] * (width - len(row)) if len(row) < width else row


def select_latest_row(
    rows: Sequence[Sequence[Any]], timestamp_idx: int, tz_name: Optional[str] = None
) -> int:
    """
    Index of the row with the greatest Timestamp, or -1.

    Rows with an empty or unparseable Timestamp are ignored; on ties the
    earlier row wins.
    """
    latest_idx = -1
    latest = None
    for i, row in enumerate(rows):
        value = row[timestamp_idx] if timestamp_idx < len(row) else None
        if is_blank(value):
            continue
        when = timestamp_key(value, tz_name)
        if when is None:
            logger.debug(f"Unparseable Timestamp in data row {i + 2}: {value!r}")
            continue
        if latest is None or when > latest:
            latest = when
            latest_idx = i
    return latest_idx


def extract_submission(
    headers: Sequence[Any],
    row: Sequence[Any],
    columns: SheetColumns,
    row_number: Optional[int] = None,
    batch: bool = False,
) -> Submission:
    """
    Build a Submission from one sheet row.

    The Job Code and response id columns are always pulled out of the
    answers. In batch mode the Timestamp and Upload Timestamp columns are
    pulled out too; otherwise Timestamp stays among the answers and the
    renderer leaves it out of the table.
    """
    row = pad_row(row, len(headers))
    job_code = None
    response_id = None
    timestamp = row[columns.timestamp] if columns.timestamp != -1 else None
    fields = []

    for i, column_name in enumerate(headers):
        value = row[i]
        if i == columns.job_code:
            job_code = value
        elif batch and i == columns.timestamp:
            continue
        elif i == columns.response_id:
            response_id = value
        elif batch and i == columns.upload_timestamp:
            continue
        elif column_name and not is_blank(value):
            fields.append(Answer(question=str(column_name), answer=value))

    return Submission(
        job_code=job_code if not is_blank(job_code) else None,
        fields=tuple(fields),
        timestamp=timestamp if not is_blank(timestamp) else None,
        response_id=response_id if not is_blank(response_id) else None,
        row_number=row_number,
    )


def column_letter(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA."""
    letters = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


class ResponseSheet:
    """The form responses tab of a spreadsheet, read through the Sheets v4 API."""

    def __init__(self, service, spreadsheet_id: str, sheet_name: str):
        self.service = service
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name

    @property
    def _quoted_name(self) -> str:
        return "'" + self.sheet_name.replace("'", "''") + "'"

    def ensure_exists(self) -> None:
        meta = (
            self.service.spreadsheets()
            .get(spreadsheetId=self.spreadsheet_id, fields="sheets.properties.title")
            .execute()
        )
        titles = [s.get("properties", {}).get("title") for s in meta.get("sheets") or []]
        if self.sheet_name not in titles:
            raise SheetNotFoundError(self.sheet_name)

    def read(self) -> Tuple[List[Any], List[List[Any]]]:
        """(headers, data rows); data rows are padded to the header width."""
        self.ensure_exists()
        try:
            result = (
                self.service.spreadsheets()
                .values()
                .get(
                    spreadsheetId=self.spreadsheet_id,
                    range=self._quoted_name,
                    valueRenderOption="FORMATTED_VALUE",
                )
                .execute()
            )
        except HttpError as e:
            logger.error(f"❌ Failed to read sheet '{self.sheet_name}': {e}")
            raise

        values = result.get("values") or []
        if not values:
            return [], []
        headers = values[0]
        return headers, [pad_row(row, len(headers)) for row in values[1:]]

    def mark_processed(self, row_number: int, column_idx: int, when: datetime) -> None:
        """Write ``when`` into the tracking column of a 1-based sheet row."""
        cell = f"{self._quoted_name}!{column_letter(column_idx)}{row_number}"
        self.service.spreadsheets().values().update(
            spreadsheetId=self.spreadsheet_id,
            range=cell,
            valueInputOption="USER_ENTERED",
            body={"values": [[when.strftime("%m/%d/%Y %H:%M:%S")]]},
        ).execute()
        logger.info(f"✅ Marked row {row_number} as processed with timestamp.")
