"""
Data structures for the appointment parsing pipeline.

This module defines the contracts between pipeline stages using frozen
dataclasses. Each stage consumes its input structure and produces a new
one; nothing is mutated after creation.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple, Union


class PipelineStatus(Enum):
    """Externally visible outcome tags."""
    OK = "ok"
    NEEDS_CLARIFICATION = "needs_clarification"
    ERROR = "error"


class CorrectionType(Enum):
    """Kinds of text repair recorded by the preprocessor."""
    SPACING = "spacing"
    OCR_CORRECTION = "ocr_correction"
    NORMALIZATION = "normalization"


# Calendar component names a date parser may report as explicitly known
DATE_COMPONENTS = frozenset({
    "year", "month", "day", "weekday", "hour", "minute", "second", "meridiem",
})


@dataclass(frozen=True)
class RawInput:
    """
    A single scheduling request: free text or an uploaded image.

    Exactly one of ``text`` and ``image_path`` must be set.
    """
    text: Optional[str] = None
    image_path: Optional[str] = None

    def __post_init__(self):
        has_text = bool(self.text and self.text.strip())
        has_image = bool(self.image_path)
        if has_text == has_image:
            raise ValueError("RawInput requires exactly one of text or image_path")
        if has_text:
            object.__setattr__(self, "text", self.text.strip())

    @property
    def kind(self) -> str:
        return "text" if self.text else "image"


@dataclass(frozen=True)
class Correction:
    """One preprocessing step that changed the text."""
    type: CorrectionType
    original: str
    corrected: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "original": self.original,
            "corrected": self.corrected,
            "description": self.description,
        }


@dataclass(frozen=True)
class PreprocessingReport:
    """
    Output of the text preprocessor.

    Attributes:
        original_text: Text as received
        processed_text: Text after spacing repair, OCR correction and formatting
        corrections: Ordered steps that changed the text
        confidence: max(0.6, 1 - 0.1 * len(corrections)), or 0 for unusable input
        has_corrections: True when at least one step changed the text
    """
    original_text: Any
    processed_text: Any
    corrections: Tuple[Correction, ...] = ()
    confidence: float = 0.0
    has_corrections: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_text": self.original_text,
            "processed_text": self.processed_text,
            "corrections": [c.to_dict() for c in self.corrections],
            "confidence": self.confidence,
            "has_corrections": self.has_corrections,
        }


@dataclass(frozen=True)
class EntitySet:
    """
    Entities recognized in normalized text (Stage 2).

    ``department`` is always a canonical registry name, never the synonym
    that matched.
    """
    date_phrase: Optional[str] = None
    time_phrase: Optional[str] = None
    department: Optional[str] = None
    entities_confidence: float = 0.0

    def __post_init__(self):
        if not 0.0 <= self.entities_confidence <= 1.0:
            raise ValueError(
                f"Confidence must be between 0 and 1, got {self.entities_confidence}")

    @property
    def entity_count(self) -> int:
        return sum(1 for v in (self.date_phrase, self.time_phrase, self.department) if v)

    @property
    def is_complete(self) -> bool:
        return self.entity_count == 3

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entities": {
                "date_phrase": self.date_phrase,
                "time_phrase": self.time_phrase,
                "department": self.department,
            },
            "entities_confidence": self.entities_confidence,
        }


@dataclass(frozen=True)
class NormalizedAppointment:
    """
    A resolved, zoned, future appointment slot (Stage 3).

    Attributes:
        date: "YYYY-MM-DD"
        time: "HH:mm" (24-hour civil time)
        tz: Target zone identifier
        normalized_confidence: Resolver confidence in [0.70, 0.95]
    """
    date: str
    time: str
    tz: str
    normalized_confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "normalized": {"date": self.date, "time": self.time, "tz": self.tz},
            "normalized_confidence": self.normalized_confidence,
        }


@dataclass(frozen=True)
class DateMatch:
    """
    One match returned by the date/time phrase parser.

    ``civil_datetime`` is a naive datetime holding civil components only;
    it carries no zone and must be localized by the caller.
    """
    matched_span: str
    known_components: FrozenSet[str] = frozenset()
    civil_datetime: Optional[datetime] = None

    def __post_init__(self):
        unknown = set(self.known_components) - DATE_COMPONENTS
        if unknown:
            raise ValueError(f"Unknown calendar components: {sorted(unknown)}")
        if self.civil_datetime is not None and self.civil_datetime.tzinfo is not None:
            raise ValueError("DateMatch.civil_datetime must be naive")

    def knows(self, *components: str) -> bool:
        return all(c in self.known_components for c in components)


@dataclass(frozen=True)
class OcrResult:
    """Text recognized from an image plus the service's own confidence."""
    text: str
    token_confidences: Tuple[float, ...] = ()
    confidence: float = 0.0


@dataclass(frozen=True)
class Appointment:
    """Final appointment payload returned to the caller."""
    department: str
    date: str
    time: str
    tz: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "department": self.department,
            "date": self.date,
            "time": self.time,
            "tz": self.tz,
        }


# ---------------------------------------------------------------------------
# Pipeline outcome (sum type)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Ok:
    """Pipeline finished with a complete appointment."""
    appointment: Appointment
    status: PipelineStatus = field(default=PipelineStatus.OK, init=False)


@dataclass(frozen=True)
class NeedsClarification:
    """
    Input was appointment-like but too ambiguous, incomplete or past-dated.

    ``reason`` is the stable ClarificationReason value; ``diagnostics``
    carries stage data the caller may use for UI hints.
    """
    message: str
    reason: Optional[str] = None
    diagnostics: Dict[str, Any] = field(default_factory=dict)
    status: PipelineStatus = field(default=PipelineStatus.NEEDS_CLARIFICATION, init=False)


@dataclass(frozen=True)
class Error:
    """Pipeline failed; ``message`` is safe to show to the caller."""
    message: str
    status: PipelineStatus = field(default=PipelineStatus.ERROR, init=False)


PipelineResult = Union[Ok, NeedsClarification, Error]


def to_response(result: PipelineResult) -> Dict[str, Any]:
    """
    Convert a pipeline outcome into the response payload.

    Raises:
        TypeError: If ``result`` is not one of the three outcome variants
    """
    if isinstance(result, Ok):
        return {"status": PipelineStatus.OK.value, "appointment": result.appointment.to_dict()}
    if isinstance(result, NeedsClarification):
        payload: Dict[str, Any] = {
            "status": PipelineStatus.NEEDS_CLARIFICATION.value,
            "message": result.message,
        }
        if result.reason:
            payload["reason"] = result.reason
        # Diagnostics never overwrite the status/message keys
        for key, value in result.diagnostics.items():
            payload.setdefault(key, value)
        return payload
    if isinstance(result, Error):
        return {"status": PipelineStatus.ERROR.value, "message": result.message}
    raise TypeError(f"Unhandled pipeline result type: {type(result).__name__}")
