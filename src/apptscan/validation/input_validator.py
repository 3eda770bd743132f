"""
Request input validation.

Runs in the transport layer before the pipeline: a request carries either
text or one image (jpeg/png), never both and never neither.
"""
import os
import re
from dataclasses import dataclass
from typing import List, Optional

from ..config import config
from ..errors import InputValidationError

ALLOWED_MIME_TYPES = ("image/jpeg", "image/jpg", "image/png")
ALLOWED_EXTENSIONS = (".jpg", ".jpeg", ".png")

SUSPICIOUS_PATTERNS = (
    re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
)

BOTH_INPUTS_PROVIDED = "BOTH_INPUTS_PROVIDED"
NO_INPUT_PROVIDED = "NO_INPUT_PROVIDED"
INVALID_TEXT = "INVALID_TEXT"
INVALID_FILE = "INVALID_FILE"


@dataclass(frozen=True)
class UploadInfo:
    """What the transport knows about an uploaded image."""
    filename: str
    content_type: Optional[str]
    size: int


def validate_text(text, max_length: Optional[int] = None) -> str:
    """
    Validate typed text and return it stripped.

    Raises:
        InputValidationError: With error_code INVALID_TEXT
    """
    max_length = max_length or config.MAX_TEXT_LENGTH
    if not isinstance(text, str):
        raise InputValidationError(["Text must be a string"], INVALID_TEXT)

    clean_text = text.strip()
    errors: List[str] = []
    if not clean_text:
        errors.append("Text cannot be empty")
    if len(clean_text) > max_length:
        errors.append(f"Text exceeds maximum length of {max_length} characters")
    if any(p.search(clean_text) for p in SUSPICIOUS_PATTERNS):
        errors.append("Text contains potentially malicious content")

    if errors:
        raise InputValidationError(errors, INVALID_TEXT)
    return clean_text


def validate_upload(upload: UploadInfo, max_size: Optional[int] = None) -> None:
    """
    Validate an uploaded image's size, MIME type and extension.

    Raises:
        InputValidationError: With error_code INVALID_FILE
    """
    max_size = max_size or config.MAX_FILE_SIZE
    errors: List[str] = []

    if upload.size == 0:
        errors.append("File is empty")
    if upload.size > max_size:
        errors.append(
            f"File size exceeds maximum limit of {max_size // (1024 * 1024)}MB")
    if (upload.content_type or "").lower() not in ALLOWED_MIME_TYPES:
        errors.append(f"Invalid file type. Allowed types: {', '.join(ALLOWED_MIME_TYPES)}")
    extension = os.path.splitext(upload.filename or "")[1].lower()
    if extension not in ALLOWED_EXTENSIONS:
        errors.append(
            f"Invalid file extension. Allowed extensions: {', '.join(ALLOWED_EXTENSIONS)}")

    if errors:
        raise InputValidationError(errors, INVALID_FILE)


def validate_request(text: Optional[str], upload: Optional[UploadInfo]) -> str:
    """
    Validate a parse request.

    Returns:
        "text" or "image"

    Raises:
        InputValidationError: BOTH_INPUTS_PROVIDED, NO_INPUT_PROVIDED,
            INVALID_TEXT or INVALID_FILE
    """
    has_text = isinstance(text, str) and bool(text.strip())
    if has_text and upload is not None:
        raise InputValidationError(
            ["Cannot provide both text and image. Please provide either text or image, not both."],
            BOTH_INPUTS_PROVIDED,
        )
    if not has_text and upload is None:
        raise InputValidationError(
            ["No input provided. Please provide either text or an image."],
            NO_INPUT_PROVIDED,
        )

    if upload is not None:
        validate_upload(upload)
        return "image"
    validate_text(text)
    return "text"
