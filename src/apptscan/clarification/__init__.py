"""
Clarification Template System

Maps ClarificationReason -> template (store/clarification.json) -> message.
"""

from .models import Clarification
from .reasons import ClarificationReason
from .renderer import clarify, render_clarification

__all__ = [
    "ClarificationReason",
    "Clarification",
    "clarify",
    "render_clarification",
]
