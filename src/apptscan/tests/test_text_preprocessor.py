"""
Tests for the text preprocessor.
"""
from apptscan.data_types import CorrectionType
from apptscan.preprocessing import (
    add_missing_spaces,
    correct_ocr_errors,
    normalize_text,
    preprocess_text,
)


class TestAddMissingSpaces:
    """Tests for the ordered spacing rules."""

    def test_meridiem_split(self):
        """Test digits glued to am/pm are separated."""
        assert add_missing_spaces("at 3pm") == "at 3 pm"
        assert add_missing_spaces("at 10:30am") == "at 10:30 am"

    def test_relative_weekday_split(self):
        """Test next/last/this glued to a weekday."""
        assert add_missing_spaces("nextfriday") == "next friday"

    def test_at_sign_between_word_and_digit(self):
        """Test '@' joined day/time."""
        assert add_missing_spaces("friday@3pm") == "friday at 3 pm"

    def test_verb_department_split(self):
        """Test booking verbs glued to department nouns."""
        assert add_missing_spaces("bookdentist") == "book dentist"

    def test_department_relative_word_split(self):
        """Test department nouns glued to relative-day words."""
        assert add_missing_spaces("dentisttomorrow") == "dentist tomorrow"

    def test_department_appointment_split(self):
        """Test department nouns glued to appointment words."""
        assert add_missing_spaces("dentistappt") == "dentist appointment"
        assert add_missing_spaces("doctorappointment") == "doctor appointment"

    def test_time_appointment_split(self):
        """Test a time glued to appointment words."""
        assert add_missing_spaces("3pmappointment") == "3 pm appointment"
        assert add_missing_spaces("10:30amappt") == "10:30 am appointment"

    def test_time_at_split(self):
        """Test a time glued to a following 'at'."""
        assert add_missing_spaces("3pmat the clinic") == "3 pm at the clinic"

    def test_weekday_digit_split(self):
        """Test weekday glued to a time."""
        assert add_missing_spaces("friday3pm") == "friday 3 pm"

    def test_rules_compose(self):
        """Test every rule runs over the previous rule's output."""
        assert add_missing_spaces("bookdentist nextfriday@3pm") == "book dentist next friday at 3 pm"


class TestCorrectOcrErrors:
    """Tests for token-level corrections."""

    def test_abbreviations(self):
        """Test known abbreviations expand."""
        assert correct_ocr_errors("Dent appt tmrw") == "dentist appointment tomorrow"

    def test_trailing_punctuation_kept(self):
        """Test punctuation survives a correction."""
        assert correct_ocr_errors("see you tmrw.") == "see you tomorrow."
        assert correct_ocr_errors("at 3 p.m.") == "at 3 pm."

    def test_digit_lookalikes_in_times(self):
        """Test letter look-alikes inside digit tokens become digits."""
        assert correct_ocr_errors("at 1O:3O") == "at 10:30"

    def test_words_are_not_digit_repaired(self):
        """Test ordinary words are left alone."""
        assert correct_ocr_errors("I see this") == "i see this"

    def test_single_l_becomes_one(self):
        """Test a lone 'l' is read as the digit 1."""
        assert correct_ocr_errors("at l pm") == "at 1 pm"


class TestNormalizeText:
    """Tests for formatting normalization."""

    def test_whitespace_and_symbols(self):
        """Test whitespace collapse and symbol expansion."""
        assert normalize_text("  dentist @ 3 pm  &   more ") == "dentist at 3 pm and more"


class TestPreprocessText:
    """Tests for preprocess_text."""

    def test_scenario_sentence(self):
        """Test the reference booking sentence."""
        report = preprocess_text("Book dentist next Friday at 3pm")
        assert report.processed_text == "book dentist next friday at 3 pm"
        assert [c.type for c in report.corrections] == [
            CorrectionType.SPACING,
            CorrectionType.OCR_CORRECTION,
        ]
        assert report.corrections[0].description == "Added missing spaces"
        assert report.confidence == 0.8
        assert report.has_corrections

    def test_clean_text_has_no_corrections(self):
        """Test already-normalized text passes through with full confidence."""
        report = preprocess_text("dentist tomorrow at 3 pm")
        assert report.processed_text == "dentist tomorrow at 3 pm"
        assert report.corrections == ()
        assert report.confidence == 1.0
        assert not report.has_corrections

    def test_three_corrections(self):
        """Test three corrections cost 0.3."""
        report = preprocess_text("Dentist @ Friday3pm")
        assert report.processed_text == "dentist at friday 3 pm"
        assert len(report.corrections) == 3
        assert report.confidence == 0.7

    def test_empty_input(self):
        """Test empty input is returned untouched with zero confidence."""
        report = preprocess_text("")
        assert report.processed_text == ""
        assert report.corrections == ()
        assert report.confidence == 0.0

    def test_non_string_input(self):
        """Test non-string input never raises."""
        report = preprocess_text(None)
        assert report.processed_text is None
        assert report.confidence == 0.0
        assert not report.has_corrections

    def test_corrections_chain(self):
        """Test each correction starts from the previous one's output."""
        report = preprocess_text("Book dentist next Friday at 3pm")
        first, second = report.corrections
        assert first.original == "Book dentist next Friday at 3pm"
        assert second.original == first.corrected
        assert second.corrected == report.processed_text
