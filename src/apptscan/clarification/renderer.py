"""
Clarification Template Renderer

Deterministic rendering of Clarification objects into caller-facing
messages. Templates live in store/clarification.json, keyed by
ClarificationReason value.
"""
import json
import re
from pathlib import Path
from typing import Any, Dict, Optional

from ..data_types import NeedsClarification
from .models import Clarification
from .reasons import ClarificationReason

_TEMPLATES_PATH = Path(__file__).resolve().parent.parent / "store" / "clarification.json"

# Cache for loaded templates
_TEMPLATES_CACHE: Optional[Dict[str, Dict[str, Any]]] = None


def _load_templates() -> Dict[str, Dict[str, Any]]:
    """
    Load clarification templates from JSON configuration.

    Raises:
        FileNotFoundError: If store/clarification.json is missing
        json.JSONDecodeError: If JSON is invalid
    """
    global _TEMPLATES_CACHE

    if _TEMPLATES_CACHE is not None:
        return _TEMPLATES_CACHE

    with open(_TEMPLATES_PATH, "r", encoding="utf-8") as f:
        _TEMPLATES_CACHE = json.load(f)
    return _TEMPLATES_CACHE


def render_clarification(clarification: Clarification) -> str:
    """
    Render the message for a clarification.

    Raises:
        KeyError: If no template exists for the reason
        ValueError: If a required field or placeholder value is missing
    """
    reason_value = clarification.reason.value
    templates = _load_templates()

    if reason_value not in templates:
        raise KeyError(
            f"No template found for ClarificationReason: {reason_value}. "
            f"Available templates: {list(templates.keys())}"
        )

    template_config = templates[reason_value]
    template = template_config["template"]

    missing_fields = [
        name for name in template_config.get("required_fields", [])
        if name not in clarification.data
    ]
    if missing_fields:
        raise ValueError(f"Missing required fields for {reason_value}: {missing_fields}")

    rendered = template
    for placeholder in re.findall(r"\{\{(\w+)\}\}", template):
        if placeholder not in clarification.data:
            raise ValueError(
                f"Placeholder '{placeholder}' found in template but missing from data")
        rendered = rendered.replace(
            f"{{{{{placeholder}}}}}", str(clarification.data[placeholder]))
    return rendered


def clarify(
    reason: ClarificationReason,
    diagnostics: Optional[Dict[str, Any]] = None,
    **data: Any,
) -> NeedsClarification:
    """
    Build the NeedsClarification outcome for a reason.

    Example:
        >>> clarify(ClarificationReason.PAST_DATETIME).message
        'Date/time is in the past'
    """
    clarification = Clarification(reason=reason, data=data, diagnostics=diagnostics or {})
    return NeedsClarification(
        message=render_clarification(clarification),
        reason=reason.value,
        diagnostics=dict(clarification.diagnostics),
    )
