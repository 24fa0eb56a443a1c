# soapnotes/utils/google/drive.py
"""
Shared Drive lookups for client SOAP logs.

Layout per client:
    Shared Drive "<Job Code>"
      └── "Session Notes (S.O.A.P.)"
            └── "<XY>_SOAP_LOG_<mmddyy>" (Google Doc, newest entry first)

Every lookup is an exact-name (or name-contains) query; nothing here
caches ids, so each call is safe to repeat.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from googleapiclient.errors import HttpError

from soapnotes.utils.identifiers import derive_doc_prefix, log_document_name

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
DOCUMENT_MIME_TYPE = "application/vnd.google-apps.document"

DRIVES_PAGE_SIZE = 100
DOC_SEARCH_PAGE_SIZE = 50


def escape_query_value(value: str) -> str:
    """Escape a literal for use inside single quotes in a Drive query."""
    return str(value).replace("\\", "\\\\").replace("'", "\\'")


class DriveStorage:
    def __init__(self, service, use_domain_admin_access: bool = True):
        self.service = service
        self.use_domain_admin_access = use_domain_admin_access

    def find_container(self, name: str) -> Optional[str]:
        """Id of the Shared Drive named exactly ``name`` (case-sensitive)."""
        page_token = None
        while True:
            response = (
                self.service.drives()
                .list(
                    pageSize=DRIVES_PAGE_SIZE,
                    pageToken=page_token,
                    useDomainAdminAccess=self.use_domain_admin_access,
                )
                .execute()
            )
            for drive in response.get("drives") or []:
                if drive.get("name") == name:
                    return drive["id"]
            page_token = response.get("nextPageToken")
            if not page_token:
                return None

    def find_subfolder(self, container_id: str, name: str) -> Optional[str]:
        query = (
            f"name='{escape_query_value(name)}' and mimeType='{FOLDER_MIME_TYPE}' "
            f"and trashed=false and '{container_id}' in parents"
        )
        response = (
            self.service.files()
            .list(
                q=query,
                corpora="drive",
                driveId=container_id,
                includeItemsFromAllDrives=True,
                supportsAllDrives=True,
                fields="files(id, name)",
            )
            .execute()
        )
        files = response.get("files") or []
        return files[0]["id"] if files else None

    def ensure_subfolder(self, container_id: str, name: str) -> Optional[str]:
        """
        Existing folder id, or the id of a freshly created one.

        Two concurrent callers can both miss the folder and both create it;
        nothing here guards against that.
        """
        folder_id = self.find_subfolder(container_id, name)
        if folder_id:
            return folder_id

        try:
            folder = (
                self.service.files()
                .create(
                    body={
                        "name": name,
                        "mimeType": FOLDER_MIME_TYPE,
                        "parents": [container_id],
                    },
                    supportsAllDrives=True,
                    fields="id",
                )
                .execute()
            )
        except HttpError as e:
            logger.error(f"❌ Failed to create folder '{name}' in Drive ID '{container_id}': {e}")
            return None

        logger.info(f"📁 Created folder '{name}' in Drive ID '{container_id}'.")
        return folder["id"]

    def resolve_log_document(
        self, prefix: str, folder_id: str, container_id: str
    ) -> Optional[str]:
        """
        Most recently modified Doc in the folder whose name contains ``prefix``,
        preferring one whose name starts with it.
        """
        query = (
            f"name contains '{escape_query_value(prefix)}' and mimeType='{DOCUMENT_MIME_TYPE}' "
            f"and trashed=false and '{folder_id}' in parents"
        )
        response = (
            self.service.files()
            .list(
                q=query,
                corpora="drive",
                driveId=container_id,
                includeItemsFromAllDrives=True,
                supportsAllDrives=True,
                orderBy="modifiedTime desc",
                pageSize=DOC_SEARCH_PAGE_SIZE,
                fields="files(id, name, modifiedTime)",
            )
            .execute()
        )
        files = response.get("files") or []
        if not files:
            return None

        exact = next((f for f in files if (f.get("name") or "").startswith(prefix)), None)
        return (exact or files[0])["id"]

    def create_log_document(
        self, job_code: str, folder_id: str, today: date
    ) -> Optional[str]:
        doc_prefix = derive_doc_prefix(job_code) or "XX"
        doc_name = log_document_name(doc_prefix, today)

        try:
            doc_file = (
                self.service.files()
                .create(
                    body={
                        "name": doc_name,
                        "mimeType": DOCUMENT_MIME_TYPE,
                        "parents": [folder_id],
                    },
                    supportsAllDrives=True,
                    fields="id",
                )
                .execute()
            )
        except HttpError as e:
            logger.error(f"❌ Error creating SOAP log document: {e}")
            return None

        logger.info(f"✅ Created new SOAP log: {doc_name} (ID: {doc_file['id']})")
        return doc_file["id"]
