"""Request input validation (transport side)."""

from .input_validator import (
    ALLOWED_EXTENSIONS,
    ALLOWED_MIME_TYPES,
    UploadInfo,
    validate_request,
    validate_text,
    validate_upload,
)

__all__ = [
    "ALLOWED_EXTENSIONS",
    "ALLOWED_MIME_TYPES",
    "UploadInfo",
    "validate_request",
    "validate_text",
    "validate_upload",
]
