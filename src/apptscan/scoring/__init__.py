"""Confidence scoring policies."""

from .policy import (
    ENTITY_SCORING,
    TEMPORAL_SCORING,
    EntityEvidence,
    EntityScoringPolicy,
    ScoringPolicy,
    TemporalEvidence,
    TemporalScoringPolicy,
    score_ocr,
)

__all__ = [
    "ENTITY_SCORING",
    "TEMPORAL_SCORING",
    "EntityEvidence",
    "EntityScoringPolicy",
    "ScoringPolicy",
    "TemporalEvidence",
    "TemporalScoringPolicy",
    "score_ocr",
]
