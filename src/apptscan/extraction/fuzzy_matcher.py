"""
Fuzzy recovery for department names.

Used ONLY as a fallback when no registry term occurs verbatim in the text
(e.g. OCR turned "dermatologist" into "dermatolgist"). Disabled unless
ENABLE_FUZZY_MATCHING=true.
"""
from typing import Dict, List, Optional, Tuple

from rapidfuzz import fuzz, process

# Never fuzzy-match these, they are too close to real department terms
STOPWORDS = {"and", "or", "to", "of", "for", "in", "the", "a", "at", "on", "with", "next"}


class DepartmentFuzzyMatcher:
    """
    Typo-tolerant matcher over registry terms.

    Matches:
    - "dermatolgist" → "dermatologist"
    - "cardiologst" → "cardiologist"
    - "general practitoner" → "general practitioner"

    Does NOT match:
    - "dent" → "dentist" (too short, handled by abbreviation table)
    """

    def __init__(self, term_to_department: Dict[str, str], threshold: int = 88):
        """
        Args:
            term_to_department: Lower-cased term (name or synonym) → canonical name
            threshold: Minimum similarity score (0-100)
        """
        self.term_to_department = {k.lower(): v for k, v in term_to_department.items()}
        self.threshold = threshold
        self.single_terms = [t for t in self.term_to_department if " " not in t]
        self.multi_terms = [t for t in self.term_to_department if " " in t]

    def _phrases(self, tokens: List[str]) -> List[str]:
        """Two- and three-token windows without stopwords at the edges."""
        phrases = []
        for n in (3, 2):
            for start in range(len(tokens) - n + 1):
                window = tokens[start:start + n]
                if window[0] in STOPWORDS or window[-1] in STOPWORDS:
                    continue
                phrases.append(" ".join(window))
        return phrases

    def match(self, text: str) -> Optional[Tuple[str, str, int]]:
        """
        Find the best fuzzy department hit.

        Returns:
            (canonical_name, matched_term, score) or None
        """
        tokens = [t.strip(".,;:!?") for t in text.lower().split()]
        tokens = [t for t in tokens if t]
        best: Optional[Tuple[str, str, int]] = None

        if self.multi_terms:
            for phrase in self._phrases(tokens):
                hit = process.extractOne(phrase, self.multi_terms, scorer=fuzz.token_sort_ratio)
                if hit and hit[1] >= self.threshold and (best is None or hit[1] > best[2]):
                    best = (self.term_to_department[hit[0]], hit[0], int(hit[1]))

        if self.single_terms:
            for token in tokens:
                # Short or non-alphabetic tokens drift too easily
                if not token.isalpha() or len(token) < 4 or token in STOPWORDS:
                    continue
                hit = process.extractOne(token, self.single_terms, scorer=fuzz.ratio)
                if hit and hit[1] >= self.threshold and (best is None or hit[1] > best[2]):
                    best = (self.term_to_department[hit[0]], hit[0], int(hit[1]))

        return best
