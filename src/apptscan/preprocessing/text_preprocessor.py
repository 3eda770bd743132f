"""
Text preprocessing for OCR and free-text scheduling notes.

Repairs common recognition artifacts before entity extraction:
- missing spaces at known boundaries ("nextfriday@3pm")
- abbreviations and OCR misreads ("tmrw", "appt", "1O:3O")
- stray whitespace and symbols ("@", "&")

Each step runs once, in a fixed order, and records one Correction when it
changes the text.
"""
import logging
import re
from typing import Any, List, Pattern, Tuple

from ..config import debug_print
from ..data_types import Correction, CorrectionType, PreprocessingReport

logger = logging.getLogger(__name__)


# ===== VOCABULARY =====

_WEEKDAYS = "monday|tuesday|wednesday|thursday|friday|saturday|sunday"
_DEPARTMENT_NOUNS = "dentist|doctor|cardio|derm|physician"
_RELATIVE_WORDS = "next|last|this"

# Token-level corrections (looked up on the lower-cased token, trailing
# punctuation stripped)
OCR_CORRECTIONS = {
    # Scheduling abbreviations
    "nxt": "next",
    "tmrw": "tomorrow",
    "tmr": "tomorrow",
    "tdy": "today",
    "appt": "appointment",
    "apt": "appointment",
    "dr": "doctor",
    "dent": "dentist",
    "cardio": "cardiologist",
    "derm": "dermatologist",
    "phys": "physician",
    "clnc": "clinic",
    "hosp": "hospital",
    "med": "medical",
    "chk": "check",
    "chkup": "checkup",
    "exam": "examination",
    "consult": "consultation",
    "followup": "follow up",
    "follow-up": "follow up",

    # Meridiem variants
    "am": "am",
    "pm": "pm",
    "a.m": "am",
    "p.m": "pm",

    # Single-character OCR confusions
    "l": "1",

    # Weekdays
    "mon": "monday",
    "tue": "tuesday", "tues": "tuesday",
    "wed": "wednesday",
    "thu": "thursday", "thur": "thursday", "thurs": "thursday",
    "fri": "friday",
    "sat": "saturday",
    "sun": "sunday",

    # Months
    "jan": "january",
    "feb": "february",
    "mar": "march",
    "apr": "april",
    "jun": "june",
    "jul": "july",
    "aug": "august",
    "sep": "september", "sept": "september",
    "oct": "october",
    "nov": "november",
    "dec": "december",
}

# Letters OCR commonly produces in place of digits
DIGIT_CONFUSIONS = str.maketrans({"o": "0", "i": "1", "l": "1", "s": "5", "g": "6"})

# Ordered boundary repairs. Every rule runs; later rules see earlier output.
SPACING_RULES: List[Tuple[Pattern, str]] = [
    # "3pm" -> "3 pm"
    (re.compile(r"(\d+)(am|pm)", re.IGNORECASE), r"\1 \2"),
    # "nextfriday" -> "next friday"
    (re.compile(rf"\b({_RELATIVE_WORDS})({_WEEKDAYS})", re.IGNORECASE), r"\1 \2"),
    # "dentistappointment" -> "dentist appointment"
    (re.compile(rf"\b({_DEPARTMENT_NOUNS})(appointment|appt)", re.IGNORECASE), r"\1 appointment"),
    # "friday@3pm" -> "friday at 3pm"
    (re.compile(r"([a-zA-Z])@(\d)"), r"\1 at \2"),
    # "3:30pm" -> "3:30 pm"
    (re.compile(r"(\d+:\d+)(am|pm)", re.IGNORECASE), r"\1 \2"),
    # "dentistnext" -> "dentist next"
    (re.compile(rf"\b({_DEPARTMENT_NOUNS})({_RELATIVE_WORDS}|tomorrow|today)", re.IGNORECASE), r"\1 \2"),
    # "bookdentist" -> "book dentist"
    (re.compile(rf"\b(book|schedule|make)({_DEPARTMENT_NOUNS}|appointment)", re.IGNORECASE), r"\1 \2"),
    # "3pmappointment" -> "3pm appointment"
    (re.compile(r"(\d+(?::\d+)?\s*(?:am|pm))(appointment|appt)", re.IGNORECASE), r"\1 appointment"),
    # "friday3pm" -> "friday 3pm"
    (re.compile(rf"\b({_WEEKDAYS})(\d)", re.IGNORECASE), r"\1 \2"),
    # "3pmat" -> "3pm at"
    (re.compile(r"(\d+(?::\d+)?\s*(?:am|pm))at", re.IGNORECASE), r"\1 at"),
]

_TRAILING_PUNCTUATION = re.compile(r"^(.*?)([.,;:!?]*)$", re.DOTALL)
_DIGIT_LOOKALIKE_TOKEN = re.compile(r"^[0-9oisgl:.]+$")


def add_missing_spaces(text: str) -> str:
    """
    Insert missing separators at known boundary shapes.

    Rules are applied unconditionally and in order; see SPACING_RULES.

    Example:
        >>> add_missing_spaces("bookdentist nextfriday@3pm")
        'book dentist next friday at 3 pm'
    """
    for pattern, replacement in SPACING_RULES:
        text = pattern.sub(replacement, text)
    return text


def _repair_digit_token(token: str) -> str:
    """Map OCR letter look-alikes back to digits in tokens like '1O:3O'."""
    if not any(ch.isdigit() for ch in token):
        return token
    if not _DIGIT_LOOKALIKE_TOKEN.match(token):
        return token
    return token.translate(DIGIT_CONFUSIONS)


def correct_ocr_errors(text: str) -> str:
    """
    Lower-case the text and replace known abbreviations / OCR misreads.

    Each whitespace-separated token is looked up without its trailing
    punctuation; on a hit the replacement is used and the punctuation is
    re-appended. Misses are left as they are.
    """
    corrected_words = []
    for word in text.lower().split():
        core, punctuation = _TRAILING_PUNCTUATION.match(word).groups()
        replacement = OCR_CORRECTIONS.get(core)
        if replacement is not None:
            corrected_words.append(replacement + punctuation)
            continue
        repaired = _repair_digit_token(core)
        corrected_words.append(repaired + punctuation)
    return " ".join(corrected_words)


def normalize_text(text: str) -> str:
    """
    Normalize formatting: collapse whitespace, spell out '@' and '&', trim.
    """
    text = re.sub(r"\s+", " ", text)
    text = re.sub(r"\s*@\s*", " at ", text)
    text = re.sub(r"\s*&\s*", " and ", text)
    return re.sub(r"\s+", " ", text).strip()


_STEPS = (
    (add_missing_spaces, CorrectionType.SPACING, "Added missing spaces"),
    (correct_ocr_errors, CorrectionType.OCR_CORRECTION, "Corrected OCR character misrecognitions"),
    (normalize_text, CorrectionType.NORMALIZATION, "Normalized text formatting"),
)


def preprocess_text(raw_text: Any) -> PreprocessingReport:
    """
    Apply all text corrections and report what changed.

    Never raises. Empty or non-string input comes back untouched with
    confidence 0.

    Args:
        raw_text: Raw text from OCR or user input

    Returns:
        PreprocessingReport with processed text, ordered corrections and
        confidence = max(0.6, 1 - 0.1 * corrections)
    """
    if not raw_text or not isinstance(raw_text, str):
        return PreprocessingReport(
            original_text=raw_text,
            processed_text=raw_text,
            corrections=(),
            confidence=0.0,
            has_corrections=False,
        )

    corrections: List[Correction] = []
    current = raw_text

    for step, correction_type, description in _STEPS:
        updated = step(current)
        if updated != current:
            corrections.append(Correction(
                type=correction_type,
                original=current,
                corrected=updated,
                description=description,
            ))
            current = updated

    confidence = max(0.6, 1 - len(corrections) * 0.1)
    debug_print("preprocessed:", repr(raw_text), "->", repr(current))
    logger.debug(
        "Text preprocessed",
        extra={"corrections": [c.type.value for c in corrections]},
    )

    return PreprocessingReport(
        original_text=raw_text,
        processed_text=current,
        corrections=tuple(corrections),
        confidence=round(confidence, 2),
        has_corrections=bool(corrections),
    )
