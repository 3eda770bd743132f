"""
Text preprocessing stage.

Repairs spacing, abbreviations and OCR misreads before entity extraction.
"""

from .text_preprocessor import (
    OCR_CORRECTIONS,
    SPACING_RULES,
    add_missing_spaces,
    correct_ocr_errors,
    normalize_text,
    preprocess_text,
)

__all__ = [
    "OCR_CORRECTIONS",
    "SPACING_RULES",
    "add_missing_spaces",
    "correct_ocr_errors",
    "normalize_text",
    "preprocess_text",
]
