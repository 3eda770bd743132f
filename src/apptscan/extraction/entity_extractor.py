"""
Entity Extractor

Locates the date phrase, time phrase and department in normalized text and
scores how much the extraction can be trusted.

Extraction never fails: missing entities come back as None and lower the
confidence. Gating on that confidence is the orchestrator's job.
"""
import logging
import re
from datetime import datetime
from typing import Optional

from ..data_types import DateMatch, EntitySet
from ..engines.date_parser import DateTimeParser
from ..scoring import ENTITY_SCORING, EntityEvidence, ScoringPolicy
from .departments import DepartmentRegistry, load_department_registry

logger = logging.getLogger(__name__)


TIME_PHRASE_PATTERN = re.compile(r"\b\d{1,2}(?::\d{2})?\s*(?:am|pm)?\b", re.IGNORECASE)


def find_time_phrase(text: Optional[str]) -> Optional[str]:
    """
    First hour[:minute][am|pm] span in the text.

    Example:
        >>> find_time_phrase("dentist friday at 3:30 pm")
        '3:30 pm'
    """
    if not text:
        return None
    match = TIME_PHRASE_PATTERN.search(text)
    return match.group(0).strip() if match else None


def _derive_time_phrase(text: str, date_match: Optional[DateMatch]) -> Optional[str]:
    """Prefer a time inside the anchored date span, else scan the whole text."""
    time_phrase = None
    if date_match is not None and date_match.civil_datetime is not None:
        time_phrase = find_time_phrase(date_match.matched_span)
    if not time_phrase:
        time_phrase = find_time_phrase(text)
    return time_phrase


async def extract_entities(
    text: str,
    reference: datetime,
    parser: DateTimeParser,
    registry: Optional[DepartmentRegistry] = None,
    scoring: ScoringPolicy[EntityEvidence] = ENTITY_SCORING,
) -> EntitySet:
    """
    Extract date phrase, time phrase and department from text.

    The result depends only on the arguments: ``reference`` pins "now" for
    relative phrases.

    Args:
        text: Preprocessed text
        reference: Reference instant for the date parser
        parser: Date/time phrase parser (called with prefer_future=True)
        registry: Department registry (defaults to the configured one)
        scoring: Confidence policy

    Returns:
        EntitySet with confidence in [0, 0.90]
    """
    if registry is None:
        registry = load_department_registry()
    text = text or ""

    matches = await parser.parse(text, reference, prefer_future=True) if text.strip() else []
    date_match = matches[0] if matches else None
    date_phrase = date_match.matched_span if date_match else None

    time_phrase = _derive_time_phrase(text, date_match)
    department_match = registry.find(text)

    evidence = EntityEvidence(
        date_phrase=date_phrase,
        date_anchored=bool(date_match and date_match.civil_datetime is not None),
        date_known_components=len(date_match.known_components) if date_match else 0,
        time_phrase=time_phrase,
        department=department_match.name if department_match else None,
        department_via_synonym=bool(department_match and department_match.via_synonym),
    )
    confidence = scoring.score(evidence)

    entities = EntitySet(
        date_phrase=date_phrase,
        time_phrase=time_phrase,
        department=department_match.name if department_match else None,
        entities_confidence=confidence,
    )
    logger.debug(
        "Entities extracted",
        extra={
            "date_phrase": date_phrase,
            "time_phrase": time_phrase,
            "department": entities.department,
            "department_term": department_match.matched_term if department_match else None,
            "entities_confidence": confidence,
        },
    )
    return entities
