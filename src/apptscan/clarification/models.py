"""
Clarification Model

Structured clarification data without message text.
"""
from dataclasses import dataclass, field
from typing import Any, Dict

from .reasons import ClarificationReason


@dataclass
class Clarification:
    """
    Clarification reason plus the structured data its template needs.

    ``diagnostics`` is passed through to the caller untouched and is not
    used for rendering.
    """
    reason: ClarificationReason
    data: Dict[str, Any] = field(default_factory=dict)
    diagnostics: Dict[str, Any] = field(default_factory=dict)
