"""
Unit tests for apptscan.data_types.

Covers validation on the stage contracts and the response mapping of the
three pipeline outcomes.
"""
from datetime import datetime

import pytest
import pytz

from apptscan.data_types import (
    Appointment,
    Correction,
    CorrectionType,
    DateMatch,
    EntitySet,
    Error,
    NeedsClarification,
    NormalizedAppointment,
    Ok,
    PipelineStatus,
    PreprocessingReport,
    RawInput,
    to_response,
)


class TestRawInput:
    """Tests for RawInput."""

    def test_text_input_is_stripped(self):
        """Test text is trimmed and reported as text input."""
        raw = RawInput(text="  book dentist  ")
        assert raw.text == "book dentist"
        assert raw.kind == "text"

    def test_image_input(self):
        """Test image path input."""
        raw = RawInput(image_path="/tmp/note.png")
        assert raw.kind == "image"

    def test_requires_exactly_one_input(self):
        """Test neither and both are rejected."""
        with pytest.raises(ValueError):
            RawInput()
        with pytest.raises(ValueError):
            RawInput(text="   ")
        with pytest.raises(ValueError):
            RawInput(text="book dentist", image_path="/tmp/note.png")


class TestEntitySet:
    """Tests for EntitySet."""

    def test_confidence_range(self):
        """Test confidence must stay within [0, 1]."""
        with pytest.raises(ValueError, match="Confidence must be between"):
            EntitySet(entities_confidence=1.2)
        with pytest.raises(ValueError, match="Confidence must be between"):
            EntitySet(entities_confidence=-0.1)

    def test_completeness(self):
        """Test entity count helpers."""
        entities = EntitySet("next friday", "3 pm", "dentist", 0.85)
        assert entities.entity_count == 3
        assert entities.is_complete
        assert not EntitySet(department="dentist", entities_confidence=0.3).is_complete

    def test_to_dict(self):
        """Test wire shape of extracted entities."""
        data = EntitySet("tomorrow", None, "dentist", 0.6).to_dict()
        assert data == {
            "entities": {"date_phrase": "tomorrow", "time_phrase": None, "department": "dentist"},
            "entities_confidence": 0.6,
        }


class TestDateMatch:
    """Tests for DateMatch."""

    def test_unknown_component_rejected(self):
        """Test only known calendar component names are accepted."""
        with pytest.raises(ValueError, match="Unknown calendar components"):
            DateMatch("friday", frozenset({"fortnight"}))

    def test_civil_datetime_must_be_naive(self):
        """Test zone-aware datetimes are rejected."""
        aware = pytz.UTC.localize(datetime(2025, 6, 10, 15, 0))
        with pytest.raises(ValueError, match="naive"):
            DateMatch("june 10", frozenset({"month", "day"}), aware)

    def test_knows(self):
        """Test component lookup."""
        m = DateMatch("3 pm", frozenset({"hour", "meridiem"}), datetime(2025, 6, 10, 15))
        assert m.knows("hour", "meridiem")
        assert not m.knows("hour", "minute")


class TestPreprocessingReport:
    """Tests for PreprocessingReport serialization."""

    def test_to_dict_lists_corrections(self):
        """Test correction types serialize as their string values."""
        correction = Correction(CorrectionType.SPACING, "3pm", "3 pm", "Added missing spaces")
        report = PreprocessingReport("3pm", "3 pm", (correction,), 0.9, True)
        data = report.to_dict()
        assert data["corrections"][0]["type"] == "spacing"
        assert data["processed_text"] == "3 pm"
        assert data["has_corrections"] is True


class TestToResponse:
    """Tests for to_response."""

    def test_ok(self):
        """Test ok outcome carries the appointment."""
        result = Ok(Appointment("dentist", "2025-06-13", "15:00", "Asia/Kolkata"))
        assert result.status == PipelineStatus.OK
        assert to_response(result) == {
            "status": "ok",
            "appointment": {
                "department": "dentist",
                "date": "2025-06-13",
                "time": "15:00",
                "tz": "Asia/Kolkata",
            },
        }

    def test_needs_clarification_merges_diagnostics(self):
        """Test diagnostics are flattened without overriding status or message."""
        result = NeedsClarification(
            "Date/time is in the past",
            reason="PAST_DATETIME",
            diagnostics={"raw_text": "dentist", "status": "bogus"},
        )
        payload = to_response(result)
        assert payload["status"] == "needs_clarification"
        assert payload["message"] == "Date/time is in the past"
        assert payload["reason"] == "PAST_DATETIME"
        assert payload["raw_text"] == "dentist"

    def test_error(self):
        """Test error outcome."""
        assert to_response(Error("OCR engine failed")) == {
            "status": "error",
            "message": "OCR engine failed",
        }

    def test_unknown_variant_raises(self):
        """Test anything else is a programming error."""
        with pytest.raises(TypeError, match="Unhandled pipeline result type"):
            to_response(NormalizedAppointment("2025-06-13", "15:00", "Asia/Kolkata", 0.9))
