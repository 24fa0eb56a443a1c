# soapnotes/services/soap_notes.py
"""
SOAP note processing: responses sheet -> client Shared Drive -> log Doc.

Entry points (all return outcomes and never raise):
- on_form_submit / on_sheet_change: newest row by Timestamp, skipped if its
  Response ID is already in the client's log.
- process_row: one specific sheet row, for manual reprocessing.
- run_batch: every row from the first one with a blank Upload Timestamp,
  marking each row once handled.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from soapnotes.models import (
    FAILED,
    SKIPPED,
    WRITTEN,
    AppendToDocument,
    BatchResult,
    CreateDocument,
    Decision,
    ProcessOutcome,
    Skip,
    Submission,
)
from soapnotes.services.note_renderer import write_note_entry
from soapnotes.services.response_sheet import (
    ResponseSheet,
    SheetColumns,
    extract_submission,
    is_blank,
    locate_columns,
    select_latest_row,
)
from soapnotes.utils.dates import now_local
from soapnotes.utils.google.docs import GoogleDocs
from soapnotes.utils.google.drive import DriveStorage
from soapnotes.utils.identifiers import derive_doc_prefix, doc_name_prefix

logger = logging.getLogger(__name__)


class SoapNoteService:
    def __init__(self, sheet: ResponseSheet, storage: DriveStorage, docs: GoogleDocs, config, clock: Callable = None):
        self.sheet = sheet
        self.storage = storage
        self.docs = docs
        self.config = config
        self.clock = clock or (lambda: now_local(config.SCRIPT_TIMEZONE))

    # ------------------------------------------------------------------
    # Storage decisions
    # ------------------------------------------------------------------

    def plan(self, job_code: str) -> Decision:
        """Decide where a note for ``job_code`` goes, without writing anything."""
        drive_id = self.storage.find_container(job_code)
        if not drive_id:
            return Skip(f"Shared Drive '{job_code}' not found.")

        folder_name = self.config.NOTES_FOLDER_NAME
        folder_id = self.storage.ensure_subfolder(drive_id, folder_name)
        if not folder_id:
            return Skip(f"Could not ensure '{folder_name}' folder in Drive '{job_code}'.")

        code = derive_doc_prefix(job_code)
        prefix = doc_name_prefix(job_code, self.config.TARGET_DOC_NAME)
        logger.info(f"Looking for doc. Job Code: '{job_code}', Doc Name Prefix: '{prefix}'")
        doc_id = self.storage.resolve_log_document(prefix, folder_id, drive_id)

        if doc_id:
            return AppendToDocument(doc_id)
        if code:
            return CreateDocument(job_code=job_code, folder_id=folder_id, code=code)
        return Skip("No matching log and no prefix derived. Aborting to avoid misfile.")

    def find_log_document(self, job_code: str) -> Optional[str]:
        decision = self.plan(job_code)
        return decision.doc_id if isinstance(decision, AppendToDocument) else None

    def is_note_in_doc(self, job_code: str, response_id: Any) -> bool:
        """
        True if ``response_id`` appears anywhere in the client's log text.

        Any lookup failure counts as "not processed", so a transient Drive
        error can lead to a second copy of a note.
        """
        try:
            doc_id = self.find_log_document(job_code)
            if not doc_id:
                return False

            body = self.docs.open(doc_id)
            text = body.get_text()
            logger.info(f"Searching for Response ID: {response_id} in Doc text (length: {len(text)})")
            found = str(response_id) in text
            logger.info("Response ID found in Doc." if found else "Response ID not found in Doc.")
            return found
        except Exception as e:
            logger.error(f"Error checking doc: {e}")
            return False

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def write_note(self, submission: Submission) -> ProcessOutcome:
        job_code = submission.job_code
        decision = self.plan(job_code)

        if isinstance(decision, Skip):
            logger.error(f"❌ {decision.reason}")
            return ProcessOutcome(FAILED, submission.row_number, reason=decision.reason)

        if isinstance(decision, CreateDocument):
            logger.info(f"🆕 No doc starting with '{decision.code}_SOAP_LOG_' found. Creating new SOAP log...")
            doc_id = self.storage.create_log_document(decision.job_code, decision.folder_id, self.clock().date())
            if not doc_id:
                logger.error("❌ Failed to create new SOAP log document.")
                return ProcessOutcome(FAILED, submission.row_number, reason="Failed to create new SOAP log document.")
        else:
            doc_id = decision.doc_id

        body = self.docs.open(doc_id)
        write_note_entry(
            body,
            submission,
            self.clock(),
            self.config.SCRIPT_TIMEZONE,
            timestamp_field=self.config.TIMESTAMP_COLUMN_NAME,
        )
        body.save_and_close()
        logger.info("✅ SOAP note prepended to top of Google Doc.")
        return ProcessOutcome(WRITTEN, submission.row_number, doc_id=doc_id)

    def process_submission(self, submission: Submission, tracking_col: int = -1) -> ProcessOutcome:
        """Write the note and, when a tracking column is given, mark the row."""
        try:
            outcome = self.write_note(submission)
            if outcome.status == WRITTEN and submission.row_number and tracking_col != -1:
                self.sheet.mark_processed(submission.row_number, tracking_col, self.clock())
            return outcome
        except Exception as e:
            logger.error(f"❌ Error in process_submission: {e}")
            return ProcessOutcome(FAILED, submission.row_number, reason=str(e))

    # ------------------------------------------------------------------
    # Sheet entry points
    # ------------------------------------------------------------------

    def _columns(self, headers) -> SheetColumns:
        return locate_columns(
            headers,
            job_code_column=self.config.JOB_CODE_COLUMN_NAME,
            timestamp_column=self.config.TIMESTAMP_COLUMN_NAME,
            upload_timestamp_column=self.config.UPLOAD_TIMESTAMP_COLUMN_NAME,
        )

    def _process_if_unprocessed(self, submission: Submission, tracking_col: int = -1) -> ProcessOutcome:
        row_number = submission.row_number
        if not submission.job_code or is_blank(submission.response_id):
            reason = f"Job Code or Response ID not found in row {row_number}."
            logger.warning(f"❌ {reason}")
            return ProcessOutcome(SKIPPED, row_number, reason=reason)

        if self.is_note_in_doc(submission.job_code, submission.response_id):
            logger.info(f"Skipping row {row_number} - already processed in Doc.")
            return ProcessOutcome(SKIPPED, row_number, reason="already processed")

        outcome = self.process_submission(submission, tracking_col)
        if outcome.status == WRITTEN:
            logger.info(f"Row {row_number} processed.")
        return outcome

    def process_latest_row(self) -> ProcessOutcome:
        headers, rows = self.sheet.read()
        if not rows:
            logger.warning("❌ No data rows found.")
            return ProcessOutcome(SKIPPED, reason="No data rows found.")

        logger.info(f"Headers found: {', '.join(str(h) for h in headers)}")
        columns = self._columns(headers)
        if columns.timestamp == -1 or columns.response_id == -1:
            reason = "Required columns not found (Timestamp or Response ID)."
            logger.error(f"❌ {reason}")
            return ProcessOutcome(FAILED, reason=reason)

        latest_idx = select_latest_row(rows, columns.timestamp, self.config.SCRIPT_TIMEZONE)
        if latest_idx == -1:
            logger.info("No rows with Timestamp found.")
            return ProcessOutcome(SKIPPED, reason="No rows with Timestamp found.")

        submission = extract_submission(headers, rows[latest_idx], columns, row_number=latest_idx + 2)
        return self._process_if_unprocessed(submission)

    def process_row(self, row_number: int) -> ProcessOutcome:
        """Reprocess one 1-based sheet row; marks it when the tracking column exists."""
        try:
            return self._process_row(row_number)
        except Exception as e:
            logger.error(f"❌ Error processing row {row_number}: {e}")
            return ProcessOutcome(FAILED, row_number, reason=str(e))

    def _process_row(self, row_number: int) -> ProcessOutcome:
        headers, rows = self.sheet.read()
        if row_number < 2 or row_number - 2 >= len(rows):
            reason = f"Row {row_number} is not a data row."
            logger.error(f"❌ {reason}")
            return ProcessOutcome(FAILED, row_number, reason=reason)

        columns = self._columns(headers)
        if columns.response_id == -1:
            reason = "Required column not found (Response ID)."
            logger.error(f"❌ {reason}")
            return ProcessOutcome(FAILED, row_number, reason=reason)

        submission = extract_submission(
            headers, rows[row_number - 2], columns, row_number=row_number, batch=True
        )
        return self._process_if_unprocessed(submission, columns.upload_timestamp)

    def run_batch(self) -> BatchResult:
        """Process every row from the first one without an Upload Timestamp."""
        try:
            return self._run_batch()
        except Exception as e:
            logger.error(f"❌ Error in batch run: {e}")
            return BatchResult(error=str(e))

    def _run_batch(self) -> BatchResult:
        result = BatchResult()
        headers, rows = self.sheet.read()
        columns = self._columns(headers)
        upload_col = columns.upload_timestamp
        if upload_col == -1:
            result.error = (
                f"{self.config.UPLOAD_TIMESTAMP_COLUMN_NAME} column not found. Add it as the last column."
            )
            logger.error(f"❌ {result.error}")
            return result

        start = next((i for i, row in enumerate(rows) if is_blank(row[upload_col])), None)
        if start is None:
            logger.info("No unprocessed rows.")
            return result

        logger.info(f"Starting processing from row {start + 2} to {len(rows) + 1}")
        for i in range(start, len(rows)):
            row_number = i + 2
            submission = extract_submission(headers, rows[i], columns, row_number=row_number, batch=True)

            if not submission.job_code or submission.timestamp is None or submission.response_id is None:
                logger.warning(f"❌ Missing data in row {row_number}. Skipping.")
                result.outcomes.append(ProcessOutcome(SKIPPED, row_number, reason="missing data"))
                continue

            if self.is_note_in_doc(submission.job_code, submission.response_id):
                logger.info(f"Skipping row {row_number} - already processed in Doc.")
                self._mark_quietly(row_number, upload_col)
                result.outcomes.append(ProcessOutcome(SKIPPED, row_number, reason="already processed"))
                continue

            result.outcomes.append(self.process_submission(submission, upload_col))

        logger.info(
            f"📊 Batch finished: {result.written} written, {result.skipped} skipped, {result.failed} failed"
        )
        return result

    def _mark_quietly(self, row_number: int, column_idx: int) -> None:
        try:
            self.sheet.mark_processed(row_number, column_idx, self.clock())
        except Exception as e:
            logger.error(f"❌ Failed to mark row {row_number}: {e}")

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def _trigger(self, name: str) -> ProcessOutcome:
        logger.info(f"=== {name} TRIGGER FIRED ===")
        try:
            logger.info(f"Processing sheet: {self.sheet.sheet_name}")
            return self.process_latest_row()
        except Exception as e:
            logger.error(f"Error in {name}: {e}")
            return ProcessOutcome(FAILED, reason=str(e))

    def on_form_submit(self) -> ProcessOutcome:
        return self._trigger("form submit")

    def on_sheet_change(self) -> ProcessOutcome:
        return self._trigger("sheet change")


def build_soap_note_service(config) -> SoapNoteService:
    """Wire the service against the live Google APIs."""
    from soapnotes.utils.google.credentials import build_service

    subject = config.GOOGLE_DELEGATED_USER
    sheet = ResponseSheet(
        build_service("sheets", "v4", subject), config.SOURCE_SHEET_ID, config.SHEET_NAME
    )
    storage = DriveStorage(
        build_service("drive", "v3", subject),
        use_domain_admin_access=config.DRIVE_USE_DOMAIN_ADMIN_ACCESS,
    )
    docs = GoogleDocs(build_service("docs", "v1", subject))
    return SoapNoteService(sheet, storage, docs, config)
