"""
Confidence Scoring Policies

Pure functions of collected evidence. The pipeline only depends on the
``score(evidence) -> float`` interface, so tier values can be recalibrated
here without touching stage control flow.

The tier constants are empirically tuned; keep them in sync with the
behavior clients already rely on.
"""
import re
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Protocol, Sequence, TypeVar

EvidenceT = TypeVar("EvidenceT", contravariant=True)

# Time phrase shapes
FULL_TIME_PATTERN = re.compile(r"\d{1,2}:\d{2}\s*(am|pm)", re.IGNORECASE)
HOUR_MERIDIEM_PATTERN = re.compile(r"\d{1,2}\s*(am|pm)", re.IGNORECASE)

# Date phrase shapes
NUMERIC_DATE_PATTERN = re.compile(r"\b\d{1,4}[/.-]\d{1,2}(?:[/.-]\d{1,4})?\b")
WEEKDAY_PATTERN = re.compile(
    r"\b(monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b", re.IGNORECASE)


class ScoringPolicy(Protocol[EvidenceT]):
    """Anything that turns evidence into a confidence in [0, 1]."""

    def score(self, evidence: EvidenceT) -> float:
        ...


# ---------------------------------------------------------------------------
# Entity extraction
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EntityEvidence:
    """
    What the extractor found.

    Attributes:
        date_phrase: Matched date span, if any
        date_anchored: Parser produced a calendar anchor for the match
        date_known_components: Number of explicitly known calendar components
        time_phrase: Extracted time span, if any
        department: Canonical department, if any
        department_via_synonym: Department was matched through a synonym
    """
    date_phrase: Optional[str] = None
    date_anchored: bool = False
    date_known_components: int = 0
    time_phrase: Optional[str] = None
    department: Optional[str] = None
    department_via_synonym: bool = False

    @property
    def entity_count(self) -> int:
        return sum(1 for v in (self.date_phrase, self.time_phrase, self.department) if v)


@dataclass(frozen=True)
class EntityScoringPolicy:
    """Additive, tiered confidence for an extracted entity set."""
    date_full: float = 0.40
    date_partial: float = 0.35
    date_bare: float = 0.30
    time_full: float = 0.30
    time_hour_meridiem: float = 0.25
    time_bare: float = 0.20
    department_exact: float = 0.20
    department_synonym: float = 0.15
    completeness_bonus: float = 0.05
    completeness_cap: float = 0.85
    floor: float = 0.30
    ceiling: float = 0.90

    def score(self, evidence: EntityEvidence) -> float:
        confidence = 0.0

        if evidence.date_phrase:
            if not evidence.date_anchored:
                confidence += self.date_bare
            elif evidence.date_known_components >= 2:
                confidence += self.date_full
            else:
                confidence += self.date_partial

        if evidence.time_phrase:
            if FULL_TIME_PATTERN.search(evidence.time_phrase):
                confidence += self.time_full
            elif HOUR_MERIDIEM_PATTERN.search(evidence.time_phrase):
                confidence += self.time_hour_meridiem
            else:
                confidence += self.time_bare

        if evidence.department:
            if evidence.department_via_synonym:
                confidence += self.department_synonym
            else:
                confidence += self.department_exact

        count = evidence.entity_count
        if count == 3:
            confidence = min(self.completeness_cap, confidence + self.completeness_bonus)
        if count > 0:
            confidence = max(self.floor, confidence)
        confidence = min(self.ceiling, confidence)

        return round(confidence, 2)


# ---------------------------------------------------------------------------
# Temporal resolution
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TemporalEvidence:
    """Known calendar components plus the phrases they came from."""
    known_components: FrozenSet[str] = field(default_factory=frozenset)
    date_phrase: str = ""
    time_phrase: str = ""

    def knows(self, *components: str) -> bool:
        return all(c in self.known_components for c in components)


@dataclass(frozen=True)
class TemporalScoringPolicy:
    """Base confidence plus independent quality bonuses."""
    base: float = 0.70
    explicit_date_bonus: float = 0.10
    hour_bonus: float = 0.05
    minute_bonus: float = 0.03
    meridiem_bonus: float = 0.05
    component_count_bonus: float = 0.05
    full_time_phrase_bonus: float = 0.05
    hour_meridiem_phrase_bonus: float = 0.03
    numeric_date_phrase_bonus: float = 0.05
    weekday_phrase_bonus: float = 0.03
    cap: float = 0.95
    strong_floor: float = 0.90

    def score(self, evidence: TemporalEvidence) -> float:
        confidence = self.base
        known_count = len(evidence.known_components)

        if evidence.knows("year", "month", "day"):
            confidence += self.explicit_date_bonus

        if evidence.knows("hour"):
            confidence += self.hour_bonus
            if evidence.knows("minute"):
                confidence += self.minute_bonus

        if evidence.knows("meridiem"):
            confidence += self.meridiem_bonus

        if known_count >= 3:
            confidence += self.component_count_bonus

        if FULL_TIME_PATTERN.search(evidence.time_phrase or ""):
            confidence += self.full_time_phrase_bonus
        elif HOUR_MERIDIEM_PATTERN.search(evidence.time_phrase or ""):
            confidence += self.hour_meridiem_phrase_bonus

        if NUMERIC_DATE_PATTERN.search(evidence.date_phrase or ""):
            confidence += self.numeric_date_phrase_bonus
        elif WEEKDAY_PATTERN.search(evidence.date_phrase or ""):
            confidence += self.weekday_phrase_bonus

        confidence = min(self.cap, confidence)

        if known_count >= 4 and evidence.knows("hour", "meridiem"):
            confidence = max(self.strong_floor, confidence)

        return round(confidence, 2)


# ---------------------------------------------------------------------------
# OCR
# ---------------------------------------------------------------------------

SCHEDULING_KEYWORDS = frozenset({
    "appointment", "appt", "book", "schedule", "doctor", "dentist", "clinic",
    "hospital", "checkup", "consultation", "tomorrow", "today", "next",
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday",
    "sunday", "am", "pm",
})

# Used when the engine reports no per-token confidences at all
DEFAULT_OCR_AVERAGE = 0.85


def score_ocr(text: str, token_confidences: Sequence[float]) -> float:
    """
    Quality-adjusted OCR confidence.

    Args:
        text: Recognized text
        token_confidences: Per-token engine confidences in [0, 100]

    Returns:
        Confidence in [0.3, 0.95], rounded to 2 decimals
    """
    text = (text or "").strip()
    if token_confidences:
        confidence = sum(token_confidences) / len(token_confidences) / 100
    else:
        confidence = DEFAULT_OCR_AVERAGE

    words = text.split()
    avg_word_length = (sum(len(w) for w in words) / len(words)) if words else 0.0

    if len(text) < 10:
        confidence *= 0.7
    if avg_word_length < 3:
        confidence *= 0.8
    if len(text) > 20 and avg_word_length > 4:
        confidence *= 1.1

    confidence = max(0.3, min(0.95, confidence))

    lowered = {w.strip(".,;:!?").lower() for w in words}
    if confidence < 0.90 and lowered & SCHEDULING_KEYWORDS:
        confidence = min(0.90, confidence + 0.1)

    return round(confidence, 2)


# Default policy instances
ENTITY_SCORING = EntityScoringPolicy()
TEMPORAL_SCORING = TemporalScoringPolicy()
