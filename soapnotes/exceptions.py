# soapnotes/exceptions.py
"""Errors raised by the Google adapters and reported by the entry points."""


class SoapNoteError(Exception):
    """Base error for SOAP note processing."""


class ConfigurationError(SoapNoteError):
    """Required settings or credentials are missing."""


class SheetNotFoundError(SoapNoteError):
    """The configured responses tab does not exist in the spreadsheet."""

    def __init__(self, sheet_name: str):
        super().__init__(f"Sheet '{sheet_name}' not found.")
        self.sheet_name = sheet_name
