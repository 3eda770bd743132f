"""
ApptScan - Error Classes

Custom exceptions for request handling.

- InputValidationError: malformed/absent input, rejected before the pipeline runs
- RecognitionError: OCR or date parser failed or returned nothing usable

Insufficient extractions are not exceptions; they are returned as
NeedsClarification results.
"""
from typing import List, Optional


class ApptScanError(Exception):
    """Base class for apptscan errors."""
    pass


class InputValidationError(ApptScanError):
    """Raised when request input fails validation."""

    def __init__(self, errors: List[str], error_code: Optional[str] = None):
        self.errors = list(errors)
        self.error_code = error_code or "VALIDATION_ERROR"
        super().__init__("; ".join(self.errors) or "Invalid input")


class RecognitionError(ApptScanError):
    """Raised when a recognition engine (OCR, date parser) fails."""
    pass
