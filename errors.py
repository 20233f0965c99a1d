"""
Collector Scan - Error Types
Every scan outcome the caller is expected to handle
"""
from typing import Optional


class ScanError(Exception):
    """Base exception for the scan pipeline."""


class GeometryNotFound(ScanError):
    """Raised when the card edge or the text region could not be located."""

    def __init__(self, stage: str, detail: Optional[str] = None):
        self.stage = stage
        self.detail = detail
        message = f"card not clearly detected ({stage})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ParseFailure(ScanError):
    """Raised when the transcription holds no set code and collector number."""

    def __init__(self, candidate=None):
        self.candidate = candidate
        text = candidate.final_text if candidate is not None else ''
        super().__init__(f"identifier not recognized: '{text}'")


class EngineFailure(ScanError):
    """Raised when the OCR engine errors out or times out."""


class ScannerBusyError(ScanError):
    """Raised when a scan is requested while another one is in flight."""

    def __init__(self):
        super().__init__("scanner busy: a scan is already in progress")
