"""
Clarification reasons.

Stable identifiers for every way the pipeline can stop and ask the
requester for more information.
"""
from enum import Enum


class ClarificationReason(Enum):
    """Why the pipeline could not produce an appointment."""
    MISSING_ENTITY = "MISSING_ENTITY"
    MISSING_DATE_OR_TIME = "MISSING_DATE_OR_TIME"
    UNPARSEABLE_DATETIME = "UNPARSEABLE_DATETIME"
    PAST_DATETIME = "PAST_DATETIME"
