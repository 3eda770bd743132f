"""
Date/time phrase parser engine.

Wraps ``dateparser.search.search_dates`` behind an async interface that
returns DateMatch objects: the matched span, the calendar components the
span states explicitly, and naive civil date/time components.

Common scheduling phrases are read with a small grammar first: a date
expression ("tomorrow", "next friday", "june 10 2025", "10th of june")
optionally joined to a clock time ("at 3 pm", "10:30", "noon"), in either
order. dateparser does not understand "next friday" style phrases and
drops or misreads times inside longer phrases, so it is only consulted
when the grammar finds no date. Its results are checked against what the
span states, and the clock is always re-read from the span.
"""
import asyncio
import calendar
import logging
import re
from datetime import date, datetime, timedelta
from typing import FrozenSet, List, Optional, Protocol, Sequence, Tuple

from dateparser.search import search_dates

from ..data_types import DateMatch
from ..errors import RecognitionError

logger = logging.getLogger(__name__)

# Civil hour used when a date phrase states no time
DEFAULT_HOUR = 12


class DateTimeParser(Protocol):
    """Anything that can locate and parse date/time phrases in text."""

    async def parse(
        self,
        text: str,
        reference: datetime,
        prefer_future: bool = True,
    ) -> List[DateMatch]:
        """
        Find date/time phrases in ``text``.

        Args:
            text: Text to scan
            reference: "Now" used to resolve relative phrases (civil time in the target zone)
            prefer_future: Resolve ambiguous phrases to the future

        Returns:
            Matches in priority order; the first one is the best candidate
        """
        ...


# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------

_WEEKDAY_NAMES = [d.lower() for d in calendar.day_name]

_MONTH_NUMBERS = {}
for _number in range(1, 13):
    _MONTH_NUMBERS[calendar.month_name[_number].lower()] = _number
    _MONTH_NUMBERS[calendar.month_abbr[_number].lower()] = _number
_MONTH_NUMBERS["sept"] = 9

_WEEKDAY_ALT = "|".join(_WEEKDAY_NAMES)
_MONTH_ALT = "|".join(sorted(_MONTH_NUMBERS, key=len, reverse=True))

_RELATIVE_DAY_OFFSETS = {"today": 0, "tonight": 0, "tomorrow": 1, "day after tomorrow": 2}


# ---------------------------------------------------------------------------
# Component inference
# ---------------------------------------------------------------------------

_WEEKDAY_RE = re.compile(r"\b(" + _WEEKDAY_ALT + r")\b", re.IGNORECASE)
_MONTH_RE = re.compile(r"\b(" + _MONTH_ALT + r")\b", re.IGNORECASE)
_DAY_NEAR_MONTH_RE = re.compile(
    r"\b\d{1,2}(?:st|nd|rd|th)?\s+(?:of\s+)?(?:" + _MONTH_ALT + r")\b"
    r"|\b(?:" + _MONTH_ALT + r")\s+\d{1,2}(?:st|nd|rd|th)?\b",
    re.IGNORECASE,
)
_YEAR_RE = re.compile(r"\b(19|20)\d{2}\b")
_NUMERIC_DATE_RE = re.compile(r"\b(\d{1,4})[/.-](\d{1,2})(?:[/.-](\d{1,4}))?\b")
_RELATIVE_DAY_RE = re.compile(r"\b(today|tonight|tomorrow|yesterday)\b", re.IGNORECASE)
_CLOCK_RE = re.compile(r"\b(\d{1,2})(?::(\d{2}))(?::(\d{2}))?\b")
_MERIDIEM_TIME_RE = re.compile(r"\b(\d{1,2})(?::\d{2})?\s*(am|pm)\b", re.IGNORECASE)
_NOON_RE = re.compile(r"\b(noon|midnight)\b", re.IGNORECASE)


def infer_known_components(span: str) -> FrozenSet[str]:
    """
    Calendar components a phrase states explicitly (not inferred).

    Example:
        >>> sorted(infer_known_components("june 10 2025 at 3:30 pm"))
        ['day', 'hour', 'meridiem', 'minute', 'month', 'year']
    """
    known = set()
    if _RELATIVE_DAY_RE.search(span):
        known.update({"year", "month", "day"})
    if _WEEKDAY_RE.search(span):
        known.add("weekday")
    if _MONTH_RE.search(span):
        known.add("month")
        if _DAY_NEAR_MONTH_RE.search(span):
            known.add("day")
    if _YEAR_RE.search(span):
        known.add("year")

    numeric = _NUMERIC_DATE_RE.search(span)
    if numeric and ":" not in numeric.group(0):
        known.update({"month", "day"})
        if numeric.group(3) or len(numeric.group(1)) == 4:
            known.add("year")

    meridiem = _MERIDIEM_TIME_RE.search(span)
    if meridiem:
        known.update({"hour", "meridiem"})
    clock = _CLOCK_RE.search(span)
    if clock:
        known.update({"hour", "minute"})
        if clock.group(3):
            known.add("second")
    if _NOON_RE.search(span):
        known.add("hour")
    return frozenset(known)


# ---------------------------------------------------------------------------
# Scheduling phrase grammar
# ---------------------------------------------------------------------------

_DATE_RE = re.compile(
    r"\b(?:"
    r"(?P<relative_day>day\s+after\s+tomorrow|today|tonight|tomorrow)"
    r"|(?:(?P<modifier>next|this|coming)\s+)?(?P<weekday>" + _WEEKDAY_ALT + r")"
    r"|(?P<iso_year>\d{4})-(?P<iso_month>\d{1,2})-(?P<iso_day>\d{1,2})"
    r"|(?P<md_month>" + _MONTH_ALT + r")\.?\s+(?P<md_day>\d{1,2})(?:st|nd|rd|th)?"
    r"(?:,?\s+(?P<md_year>\d{4}))?"
    r"|(?P<dm_day>\d{1,2})(?:st|nd|rd|th)?\s+(?:of\s+)?(?P<dm_month>" + _MONTH_ALT + r")"
    r"(?:,?\s+(?P<dm_year>\d{4}))?"
    r")\b",
    re.IGNORECASE,
)

_TIME_RE = re.compile(
    r"\b(?:"
    r"(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?P<meridiem>am|pm)"
    r"|(?P<clock_hour>\d{1,2}):(?P<clock_minute>\d{2})"
    r"|(?P<named>noon|midnight)"
    r")\b",
    re.IGNORECASE,
)

# A bare hour only counts as a time right after a date ("tomorrow 3", "friday at 9")
_BARE_HOUR_RE = re.compile(
    r"(?P<hour>\d{1,2})\b(?![:/.-]?\d)(?!\s+(?:of\s+)?(?:" + _MONTH_ALT + r")\b)",
    re.IGNORECASE,
)

_AFTER_DATE_RE = re.compile(r"\s*,?\s*(?:at\s+|@\s*)?", re.IGNORECASE)
_BEFORE_DATE_RE = re.compile(r"\s*,?\s*(?:on\s+)?", re.IGNORECASE)

# Offsets dateparser understands without naming a day ("in 3 days", "next week")
_RELATIVE_OFFSET_RE = re.compile(
    r"\b(?:in|after)\s+(?:\d+|a|an|one|two|three|four|five|six|seven)\s+(?:days?|weeks?)\b"
    r"|\bnext\s+week\b",
    re.IGNORECASE,
)

Clock = Tuple[int, int, FrozenSet[str]]
Span = Tuple[int, int, DateMatch]


def _to_24h(hour: int, meridiem: Optional[str]) -> int:
    if meridiem:
        meridiem = meridiem.lower()
        if meridiem == "pm" and hour != 12:
            hour += 12
        if meridiem == "am" and hour == 12:
            hour = 0
    return hour


def _clock_from_match(m: re.Match) -> Optional[Clock]:
    """(hour, minute, known components) for a _TIME_RE match; None when out of range."""
    if m.group("meridiem"):
        hour = int(m.group("hour"))
        minute = int(m.group("minute") or 0)
        if not 1 <= hour <= 12 or minute > 59:
            return None
        known = {"hour", "meridiem"}
        if m.group("minute"):
            known.add("minute")
        return _to_24h(hour, m.group("meridiem")), minute, frozenset(known)
    if m.group("clock_hour"):
        hour, minute = int(m.group("clock_hour")), int(m.group("clock_minute"))
        if hour > 23 or minute > 59:
            return None
        return hour, minute, frozenset({"hour", "minute"})
    hour = 12 if m.group("named").lower() == "noon" else 0
    return hour, 0, frozenset({"hour"})


def read_clock(span: str) -> Optional[Clock]:
    """
    First valid clock time stated in a span.

    Example:
        >>> read_clock("10/06/2025 at 5:15 pm")[:2]
        (17, 15)
    """
    for m in _TIME_RE.finditer(span):
        clock = _clock_from_match(m)
        if clock is not None:
            return clock
    return None


def _resolve_date(
    m: re.Match,
    today: date,
    prefer_future: bool,
) -> Optional[Tuple[date, FrozenSet[str]]]:
    """Calendar day and known components for a _DATE_RE match; None for impossible dates."""
    relative = m.group("relative_day")
    if relative:
        offset = _RELATIVE_DAY_OFFSETS[" ".join(relative.lower().split())]
        return today + timedelta(days=offset), frozenset({"year", "month", "day"})

    weekday = m.group("weekday")
    if weekday:
        diff = (_WEEKDAY_NAMES.index(weekday.lower()) - today.weekday()) % 7
        modifier = (m.group("modifier") or "").lower()
        if modifier in ("next", "coming") and diff == 0:
            diff = 7
        return today + timedelta(days=diff), frozenset({"weekday"})

    try:
        if m.group("iso_year"):
            day = date(int(m.group("iso_year")), int(m.group("iso_month")), int(m.group("iso_day")))
            return day, frozenset({"year", "month", "day"})

        month = _MONTH_NUMBERS[(m.group("md_month") or m.group("dm_month")).lower()]
        day_of_month = int(m.group("md_day") or m.group("dm_day"))
        year = m.group("md_year") or m.group("dm_year")
        if year:
            return date(int(year), month, day_of_month), frozenset({"year", "month", "day"})

        day = date(today.year, month, day_of_month)
        if prefer_future and day < today:
            day = date(today.year + 1, month, day_of_month)
        return day, frozenset({"month", "day"})
    except ValueError:
        return None


def _overlaps(start: int, end: int, spans: Sequence[Span]) -> bool:
    return any(not (end <= s or start >= e) for s, e, _ in spans)


def _time_after(text: str, end: int, tonight: bool) -> Optional[Tuple[Clock, int]]:
    """Clock joined to the end of a date phrase, with the new span end."""
    position = _AFTER_DATE_RE.match(text, end).end()
    m = _TIME_RE.match(text, position)
    if m is not None:
        clock = _clock_from_match(m)
        if clock is not None:
            return clock, m.end()
        return None

    if position == end:
        return None
    bare = _BARE_HOUR_RE.match(text, position)
    if bare is None or int(bare.group("hour")) > 23:
        return None
    hour = int(bare.group("hour"))
    if tonight and hour < 12:
        hour += 12
    return (hour, 0, frozenset({"hour"})), bare.end()


def _time_before(text: str, start: int, floor: int) -> Optional[Tuple[Clock, int]]:
    """Clock leading into a date phrase ("3 pm tomorrow"), with the new span start."""
    found = None
    for m in _TIME_RE.finditer(text, floor, start):
        if not _BEFORE_DATE_RE.fullmatch(text, m.end(), start):
            continue
        clock = _clock_from_match(m)
        if clock is not None:
            found = (clock, m.start())
    return found


class DateparserEngine:
    """
    DateTimeParser backed by a scheduling grammar and dateparser (English only).

    Matches come back in priority order: phrases naming a day, then
    dateparser phrases, then bare clock times (dated to the reference day).

    Example:
        >>> engine = DateparserEngine()
        >>> matches = asyncio.run(engine.parse("tomorrow at 5 pm", datetime(2025, 6, 1, 10)))
        >>> matches[0].civil_datetime
        datetime.datetime(2025, 6, 2, 17, 0)
    """

    def __init__(self, languages: Optional[List[str]] = None):
        self.languages = languages or ["en"]

    async def parse(
        self,
        text: str,
        reference: datetime,
        prefer_future: bool = True,
    ) -> List[DateMatch]:
        return await asyncio.to_thread(self.parse_sync, text, reference, prefer_future)

    def parse_sync(
        self,
        text: str,
        reference: datetime,
        prefer_future: bool = True,
    ) -> List[DateMatch]:
        """Blocking variant of parse()."""
        if not text or not text.strip():
            return []
        base = reference.replace(tzinfo=None)

        dated = self._dated_phrases(text, base, prefer_future)
        fallback: List[Span] = []
        if not dated:
            fallback = self._search_dates(text, base, prefer_future)
        times = [
            item for item in self._clock_phrases(text, base)
            if not _overlaps(item[0], item[1], dated + fallback)
        ]

        matches = [m for _, _, m in dated + fallback + times]
        logger.debug(
            "Date phrases parsed",
            extra={"matches": [m.matched_span for m in matches]},
        )
        return matches

    def _dated_phrases(self, text: str, base: datetime, prefer_future: bool) -> List[Span]:
        found: List[Span] = []
        last_end = 0
        for m in _DATE_RE.finditer(text):
            if m.start() < last_end:
                continue
            resolved = _resolve_date(m, base.date(), prefer_future)
            if resolved is None:
                continue
            day, known = resolved
            start, end = m.start(), m.end()
            hour, minute = DEFAULT_HOUR, 0

            tonight = (m.group("relative_day") or "").lower() == "tonight"
            joined = _time_after(text, end, tonight) or _time_before(text, start, last_end)
            if joined is not None:
                (hour, minute, clock_known), edge = joined
                known = known | clock_known
                if edge > end:
                    end = edge
                else:
                    start = edge

            found.append((start, end, DateMatch(
                matched_span=text[start:end],
                known_components=known,
                civil_datetime=datetime(day.year, day.month, day.day, hour, minute),
            )))
            last_end = end
        return found

    def _clock_phrases(self, text: str, base: datetime) -> List[Span]:
        found: List[Span] = []
        for m in _TIME_RE.finditer(text):
            clock = _clock_from_match(m)
            if clock is None:
                continue
            hour, minute, known = clock
            found.append((m.start(), m.end(), DateMatch(
                matched_span=m.group(0),
                known_components=known,
                civil_datetime=base.replace(hour=hour, minute=minute, second=0, microsecond=0),
            )))
        return found

    def _search_dates(self, text: str, base: datetime, prefer_future: bool) -> List[Span]:
        try:
            results = search_dates(
                text,
                languages=self.languages,
                settings={
                    "PREFER_DATES_FROM": "future" if prefer_future else "current_period",
                    "RELATIVE_BASE": base,
                    "RETURN_AS_TIMEZONE_AWARE": False,
                },
            ) or []
        except Exception as e:
            raise RecognitionError(f"Date parser failed: {e}") from e

        found: List[Span] = []
        lower_text = text.lower()
        cursor = 0
        for span, parsed in results:
            start = lower_text.find(span.lower(), cursor)
            if start < 0:
                start = lower_text.find(span.lower())
            if start < 0:
                # Span not found verbatim; rank it after everything else
                start = len(text)
            end = start + len(span)
            cursor = max(cursor, end)
            if _overlaps(start, end, found):
                continue

            match = self._reconcile(span, parsed, base)
            if match is None:
                logger.debug("Discarded inconsistent date phrase", extra={"span": span})
                continue
            found.append((start, end, match))

        found.sort(key=lambda item: item[0])
        return found

    def _reconcile(self, span: str, parsed: datetime, base: datetime) -> Optional[DateMatch]:
        """
        Check a dateparser result against what its span states.

        Returns None when the span names no day (a bare number read as a
        month or year) or when a stated year or month disagrees with the
        parsed value. The clock always comes from the span itself.
        """
        known = infer_known_components(span)
        if not known & {"day", "weekday"} and not _RELATIVE_OFFSET_RE.search(span):
            return None
        if parsed.tzinfo is not None:
            parsed = parsed.replace(tzinfo=None)

        year = _YEAR_RE.search(span)
        if year is not None and parsed.year != int(year.group(0)):
            return None
        if year is None and abs(parsed.year - base.year) > 1:
            return None
        month = _MONTH_RE.search(span)
        if month is not None and parsed.month != _MONTH_NUMBERS[month.group(1).lower()]:
            return None

        clock = read_clock(span)
        hour, minute = (clock[0], clock[1]) if clock is not None else (DEFAULT_HOUR, 0)
        return DateMatch(
            matched_span=span,
            known_components=known,
            civil_datetime=parsed.replace(hour=hour, minute=minute, second=0, microsecond=0),
        )
