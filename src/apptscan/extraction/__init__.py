"""
Entity extraction stage.

- extract_entities: date phrase, time phrase, department + confidence
- DepartmentRegistry: canonical departments and their synonyms
- DepartmentFuzzyMatcher: optional typo recovery (rapidfuzz)
"""

from .departments import (
    Department,
    DepartmentMatch,
    DepartmentRegistry,
    load_department_registry,
)
from .entity_extractor import (
    extract_entities,
    find_time_phrase,
)
from .fuzzy_matcher import DepartmentFuzzyMatcher

__all__ = [
    "Department",
    "DepartmentMatch",
    "DepartmentRegistry",
    "DepartmentFuzzyMatcher",
    "load_department_registry",
    "extract_entities",
    "find_time_phrase",
]
