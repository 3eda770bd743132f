"""
Timezone helpers (pytz).

Appointments are civil date/time values in one fixed zone. Naive civil
components are localized into that zone as-is; they are never treated as
host-local or UTC time and converted.
"""
import logging
from datetime import datetime
from typing import Optional

import pytz

from ..config import config

logger = logging.getLogger(__name__)


def get_timezone(timezone_str: Optional[str] = None):
    """
    Get a pytz timezone, falling back to UTC for unknown identifiers.

    Args:
        timezone_str: IANA zone name (defaults to config.TARGET_TIMEZONE)
    """
    name = timezone_str or config.TARGET_TIMEZONE
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        logger.warning("Unknown timezone, using UTC", extra={"timezone": name})
        return pytz.UTC


def localize_civil(naive: datetime, tz) -> datetime:
    """Attach ``tz`` to naive civil components without shifting the wall clock."""
    if naive.tzinfo is not None:
        return naive.astimezone(tz)
    if hasattr(tz, "localize"):
        return tz.localize(naive)
    return naive.replace(tzinfo=tz)


def now_in_zone(tz) -> datetime:
    """Current instant as an aware datetime in ``tz``."""
    return datetime.now(pytz.UTC).astimezone(tz)


def to_zone(moment: datetime, tz) -> datetime:
    """
    Express ``moment`` in ``tz``.

    Naive values are taken to be civil time in ``tz`` already.
    """
    return localize_civil(moment, tz)
