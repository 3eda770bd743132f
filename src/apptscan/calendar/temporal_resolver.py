"""
Temporal Resolver

Turns the extracted date and time phrases into a concrete, future,
timezone-bound date and time.

The parser hands back civil components (naive datetime). They are bound to
the target zone directly, so "3 pm" means 15:00 in that zone no matter
where the service runs.
"""
import logging
from datetime import datetime
from typing import Optional, Union

from ..clarification import ClarificationReason, clarify
from ..config import config
from ..data_types import NeedsClarification, NormalizedAppointment
from ..engines.date_parser import DateTimeParser
from ..scoring import TEMPORAL_SCORING, ScoringPolicy, TemporalEvidence
from .timezones import get_timezone, localize_civil, now_in_zone, to_zone

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


def build_parse_string(date_phrase: str, time_phrase: str) -> str:
    """
    Combine date and time phrases for a single parse.

    Plain substring test: a time phrase such as "3" also "occurs" inside a
    date like "2023-06-10" and is then dropped.
    """
    if time_phrase in date_phrase:
        return date_phrase
    return f"{date_phrase} {time_phrase}"


async def resolve_temporal(
    date_phrase: Optional[str],
    time_phrase: Optional[str],
    parser: DateTimeParser,
    now: Optional[datetime] = None,
    tz: Optional[str] = None,
    scoring: ScoringPolicy[TemporalEvidence] = TEMPORAL_SCORING,
) -> Union[NormalizedAppointment, NeedsClarification]:
    """
    Resolve date/time phrases to a future appointment slot.

    Args:
        date_phrase: Date phrase from extraction
        time_phrase: Time phrase from extraction
        parser: Date/time phrase parser
        now: Reference instant (defaults to the current time); naive values
            are read as civil time in the target zone
        tz: Target zone identifier (defaults to config.TARGET_TIMEZONE;
            unknown identifiers fall back to UTC)
        scoring: Confidence policy

    Returns:
        NormalizedAppointment, or NeedsClarification with reason
        MISSING_DATE_OR_TIME, UNPARSEABLE_DATETIME or PAST_DATETIME
    """
    zone = get_timezone(tz or config.TARGET_TIMEZONE)

    if not date_phrase or not time_phrase:
        return clarify(ClarificationReason.MISSING_DATE_OR_TIME)

    reference = to_zone(now, zone) if now is not None else now_in_zone(zone)
    combined = build_parse_string(date_phrase, time_phrase)

    # Current-period reading so already-passed dates are rejected, not rolled forward
    matches = await parser.parse(combined, reference, prefer_future=False)
    match = matches[0] if matches else None
    if match is None or match.civil_datetime is None:
        logger.debug("Unparseable date/time", extra={"parse_string": combined})
        return clarify(ClarificationReason.UNPARSEABLE_DATETIME)

    resolved = localize_civil(match.civil_datetime.replace(tzinfo=None), zone)
    if resolved <= reference:
        logger.debug(
            "Resolved date/time is not in the future",
            extra={"resolved": resolved.isoformat(), "reference": reference.isoformat()},
        )
        return clarify(ClarificationReason.PAST_DATETIME)

    confidence = scoring.score(TemporalEvidence(
        known_components=match.known_components,
        date_phrase=date_phrase,
        time_phrase=time_phrase,
    ))

    appointment = NormalizedAppointment(
        date=resolved.strftime(DATE_FORMAT),
        time=resolved.strftime(TIME_FORMAT),
        tz=zone.zone,
        normalized_confidence=confidence,
    )
    logger.debug(
        "Date/time resolved",
        extra={"parse_string": combined, "date": appointment.date,
               "time": appointment.time, "normalized_confidence": confidence},
    )
    return appointment
