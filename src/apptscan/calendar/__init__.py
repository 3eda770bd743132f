"""
Temporal resolution: phrases -> future date/time in the target zone.
"""

from .temporal_resolver import build_parse_string, resolve_temporal
from .timezones import get_timezone, localize_civil, now_in_zone

__all__ = [
    "build_parse_string",
    "resolve_temporal",
    "get_timezone",
    "localize_civil",
    "now_in_zone",
]
