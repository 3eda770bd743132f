"""
Department Registry

Fixed mapping of canonical department names to synonym sets, loaded once
from JSON and read-only afterwards. Registry order defines tie-break
priority: the first department whose name or synonym occurs in the text
wins.
"""
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..config import config
from .fuzzy_matcher import DepartmentFuzzyMatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Department:
    name: str
    synonyms: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DepartmentMatch:
    """
    Result of a registry lookup.

    Attributes:
        name: Canonical department name
        matched_term: The name or synonym that occurred in the text
        via_synonym: True unless the canonical name itself matched
        fuzzy: True when recovered by the typo-tolerant matcher
    """
    name: str
    matched_term: str
    via_synonym: bool
    fuzzy: bool = False


class DepartmentRegistry:
    """
    Ordered, immutable department registry.

    Example:
        >>> registry = DepartmentRegistry.from_entries([
        ...     {"name": "dentist", "synonyms": ["dental", "teeth"]},
        ... ])
        >>> registry.find("Book a dental cleaning").name
        'dentist'
    """

    def __init__(
        self,
        departments: List[Department],
        enable_fuzzy: bool = False,
        fuzzy_threshold: int = 88,
    ):
        self._departments: Tuple[Department, ...] = tuple(departments)
        self._fuzzy: Optional[DepartmentFuzzyMatcher] = None
        if enable_fuzzy:
            terms: Dict[str, str] = {}
            for dept in self._departments:
                for term in (dept.name, *dept.synonyms):
                    terms.setdefault(term.lower(), dept.name)
            self._fuzzy = DepartmentFuzzyMatcher(terms, threshold=fuzzy_threshold)

    @classmethod
    def from_entries(cls, entries: List[Dict[str, Any]], **kwargs) -> "DepartmentRegistry":
        """
        Build a registry from raw JSON entries.

        Raises:
            ValueError: If an entry has no name or duplicates another
        """
        departments: List[Department] = []
        seen = set()
        for entry in entries:
            name = str(entry.get("name") or "").strip()
            if not name:
                raise ValueError(f"Department entry without name: {entry!r}")
            if name.lower() in seen:
                raise ValueError(f"Duplicate department: {name}")
            seen.add(name.lower())
            synonyms = tuple(
                s.strip() for s in entry.get("synonyms", []) if isinstance(s, str) and s.strip()
            )
            departments.append(Department(name=name, synonyms=synonyms))
        return cls(departments, **kwargs)

    @property
    def departments(self) -> Tuple[Department, ...]:
        return self._departments

    @property
    def names(self) -> List[str]:
        return [d.name for d in self._departments]

    def find(self, text: str) -> Optional[DepartmentMatch]:
        """
        Find the first department mentioned in the text.

        The canonical name is checked before the synonyms of the same
        department; departments are checked in registry order.
        """
        if not text:
            return None
        lower_text = text.lower()

        for dept in self._departments:
            if dept.name.lower() in lower_text:
                return DepartmentMatch(name=dept.name, matched_term=dept.name, via_synonym=False)
            for synonym in dept.synonyms:
                if synonym.lower() in lower_text:
                    return DepartmentMatch(name=dept.name, matched_term=synonym, via_synonym=True)

        if self._fuzzy is not None:
            hit = self._fuzzy.match(lower_text)
            if hit:
                name, term, score = hit
                logger.debug(
                    "Fuzzy department match",
                    extra={"department": name, "term": term, "score": score},
                )
                return DepartmentMatch(name=name, matched_term=term, via_synonym=True, fuzzy=True)

        return None

    def __len__(self) -> int:
        return len(self._departments)

    def __repr__(self) -> str:
        return f"<DepartmentRegistry {len(self)} departments fuzzy={self._fuzzy is not None}>"


# Lazy-loaded registry (loaded on first use)
_REGISTRY_CACHE: Dict[str, DepartmentRegistry] = {}


def load_department_registry(path: Optional[str] = None) -> DepartmentRegistry:
    """
    Load and cache the department registry from JSON.

    Args:
        path: JSON file path (defaults to config.DEPARTMENTS_PATH)

    Raises:
        FileNotFoundError: If the registry file does not exist
        json.JSONDecodeError: If JSON is invalid
    """
    registry_path = str(Path(path or config.DEPARTMENTS_PATH).resolve())
    cached = _REGISTRY_CACHE.get(registry_path)
    if cached is not None:
        return cached

    with open(registry_path, "r", encoding="utf-8") as f:
        entries = json.load(f)

    registry = DepartmentRegistry.from_entries(
        entries,
        enable_fuzzy=config.ENABLE_FUZZY_MATCHING,
        fuzzy_threshold=config.FUZZY_THRESHOLD,
    )
    _REGISTRY_CACHE[registry_path] = registry
    logger.info(
        "Department registry loaded",
        extra={"path": registry_path, "departments": len(registry)},
    )
    return registry
