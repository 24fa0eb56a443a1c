# soapnotes/models.py
"""Plain data types shared by the sheet reader, resolver and orchestrator."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Union

NOTES_FOLDER_NAME = "Session Notes (S.O.A.P.)"
TARGET_DOC_NAME = "Client SOAP Notes"
LOG_NAME_MARKER = "_SOAP_LOG_"

SESSION_HEADER = "Session Notes"
SESSION_DATE_FIELD = "Session Date"
NOTE_TYPE_FIELD = "Select SOAP Note Type"
TIMESTAMP_FIELD = "Timestamp"


@dataclass(frozen=True)
class NoteTypeMeta:
    color: Optional[str]
    display: str


NOTE_TYPE_META = {
    "Direct Therapy": NoteTypeMeta(color="#cfe2f3", display="Direct Therapy"),
    "Supervision": NoteTypeMeta(color="#d9d2e9", display="Supervision"),
    "Parent Training": NoteTypeMeta(color="#d9ead3", display="Parent Training"),
    "Caregiver Readiness": NoteTypeMeta(color="#fff2cc", display="Caregiver Readiness"),
}


def note_type_meta(note_type: str) -> NoteTypeMeta:
    """Unknown note types keep their raw text and get no header colour."""
    return NOTE_TYPE_META.get(note_type) or NoteTypeMeta(color=None, display=note_type)


@dataclass(frozen=True)
class Answer:
    question: str
    answer: Any


@dataclass(frozen=True)
class Submission:
    job_code: Any
    fields: Tuple[Answer, ...] = ()
    timestamp: Any = None
    response_id: Any = None
    row_number: Optional[int] = None

    def answer_for(self, question: str) -> Any:
        for item in self.fields:
            if item.question == question:
                return item.answer
        return None


# Orchestrator decisions


@dataclass(frozen=True)
class Skip:
    reason: str


@dataclass(frozen=True)
class CreateDocument:
    job_code: str
    folder_id: str
    code: str


@dataclass(frozen=True)
class AppendToDocument:
    doc_id: str


Decision = Union[Skip, CreateDocument, AppendToDocument]


WRITTEN = "written"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass
class ProcessOutcome:
    status: str
    row_number: Optional[int] = None
    doc_id: Optional[str] = None
    reason: str = ""

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "row_number": self.row_number,
            "doc_id": self.doc_id,
            "reason": self.reason,
        }


@dataclass
class BatchResult:
    outcomes: List[ProcessOutcome] = field(default_factory=list)
    error: str = ""

    @property
    def written(self) -> int:
        return sum(1 for o in self.outcomes if o.status == WRITTEN)

    @property
    def skipped(self) -> int:
        return sum(1 for o in self.outcomes if o.status == SKIPPED)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == FAILED)

    def to_dict(self) -> dict:
        return {
            "error": self.error,
            "written": self.written,
            "skipped": self.skipped,
            "failed": self.failed,
            "rows": [o.to_dict() for o in self.outcomes],
        }
