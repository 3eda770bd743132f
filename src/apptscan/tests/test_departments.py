"""
Tests for the department registry and fuzzy recovery.
"""
import pytest

from apptscan.extraction import DepartmentRegistry, load_department_registry
from apptscan.tests.fakes import make_registry


class TestDepartmentRegistry:
    """Tests for exact registry lookups."""

    def test_canonical_name(self):
        """Test a canonical name matches without the synonym flag."""
        hit = make_registry().find("Book dentist next Friday")
        assert hit.name == "dentist"
        assert hit.matched_term == "dentist"
        assert not hit.via_synonym

    def test_synonym_resolves_to_canonical(self):
        """Test a synonym maps to its canonical department."""
        hit = make_registry().find("need a dental cleaning")
        assert hit.name == "dentist"
        assert hit.matched_term == "dental"
        assert hit.via_synonym

    def test_synonym_containing_name_prefix(self):
        """Test 'cardiologist' resolves to cardiology via its synonym."""
        hit = make_registry().find("see the cardiologist")
        assert hit.name == "cardiology"
        assert hit.via_synonym

    def test_registry_order_breaks_ties(self):
        """Test the earlier department wins when several occur."""
        assert make_registry().find("skin and heart checks").name == "cardiology"
        assert make_registry().find("dermatology then dentist").name == "dentist"

    def test_no_department(self):
        """Test text without any registered term."""
        assert make_registry().find("hello there") is None
        assert make_registry().find("") is None

    def test_invalid_entries(self):
        """Test missing and duplicate names are rejected."""
        with pytest.raises(ValueError, match="without name"):
            DepartmentRegistry.from_entries([{"synonyms": ["teeth"]}])
        with pytest.raises(ValueError, match="Duplicate department"):
            DepartmentRegistry.from_entries([{"name": "dentist"}, {"name": "Dentist"}])

    def test_packaged_registry(self):
        """Test the bundled registry loads with general medicine last."""
        registry = load_department_registry()
        assert "dentist" in registry.names
        assert registry.names[-1] == "general medicine"
        assert registry.find("family doctor visit").name == "general medicine"
        assert registry.find("eye checkup").name == "ophthalmology"


class TestFuzzyRecovery:
    """Tests for the optional rapidfuzz fallback."""

    def test_disabled_by_default(self):
        """Test typos do not match unless fuzzy matching is enabled."""
        assert make_registry().find("dermatolgy consult") is None

    def test_single_word_typo(self):
        """Test a misspelled department name is recovered."""
        hit = make_registry(enable_fuzzy=True).find("dermatolgy consult")
        assert hit.name == "dermatology"
        assert hit.fuzzy
        assert hit.via_synonym

    def test_multi_word_typo(self):
        """Test a misspelled multi-word synonym is recovered."""
        hit = make_registry(enable_fuzzy=True).find("see general practitoner")
        assert hit.name == "general medicine"
        assert hit.matched_term == "general practitioner"

    def test_short_tokens_ignored(self):
        """Test short tokens never fuzzy-match."""
        assert make_registry(enable_fuzzy=True).find("see dnt at 3") is None

    def test_exact_match_preferred(self):
        """Test fuzzy matching only runs without an exact hit."""
        hit = make_registry(enable_fuzzy=True).find("dentist or dermatolgy")
        assert hit.name == "dentist"
        assert not hit.fuzzy
