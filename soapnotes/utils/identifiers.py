# soapnotes/utils/identifiers.py
"""Client code derivation and log document naming."""
import re
from datetime import date
from typing import Optional

from soapnotes.models import LOG_NAME_MARKER, TARGET_DOC_NAME

_NON_ALPHA = re.compile(r"[^A-Za-z]")


def _letters(token: str) -> str:
    return _NON_ALPHA.sub("", token or "").upper()


def derive_doc_prefix(job_code) -> Optional[str]:
    """
    Derive a two-letter client code from a Job Code / Shared Drive name.

    "John S. (ABA)" -> "JS", "CUSD (ABA)" -> "CU", "A" -> "AX".
    Returns None when no code can be derived.
    """
    if not job_code or not isinstance(job_code, str):
        return None

    name_part = job_code.split("(")[0].strip()
    if not name_part:
        return None

    words = name_part.split()
    if len(words) >= 2:
        first = _letters(words[0])[:1]
        last = _letters(words[-1])[:1]
        if first and last:
            return first + last
        return None

    token = _letters(words[0])
    if len(token) >= 2:
        return token[:2]
    if len(token) == 1:
        return token + "X"
    return None


def doc_name_prefix(job_code, fallback_name: str = TARGET_DOC_NAME) -> str:
    """Search prefix for the client's log; ``fallback_name`` when no code exists."""
    code = derive_doc_prefix(job_code)
    return f"{code}{LOG_NAME_MARKER}" if code else fallback_name


def log_document_name(code: str, today: date) -> str:
    # mmddyy
    return f"{code}{LOG_NAME_MARKER}{today.strftime('%m%d%y')}"
