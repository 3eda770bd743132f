"""
Tests for the Tesseract OCR engine wrapper.

Tesseract itself is replaced with monkeypatched pytesseract calls.
"""
import asyncio
import io

import pytest
import pytesseract
from PIL import Image

from apptscan.engines.ocr import TesseractOcrEngine, _collect_tokens
from apptscan.errors import RecognitionError


def png_bytes(width=400, height=100):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), "white").save(buffer, format="PNG")
    return buffer.getvalue()


def tesseract_data(words, confs, lines=None):
    lines = lines or [1] * len(words)
    return {
        "text": words,
        "conf": confs,
        "block_num": [1] * len(words),
        "par_num": [1] * len(words),
        "line_num": lines,
    }


class TestCollectTokens:
    """Tests for rebuilding text from image_to_data output."""

    def test_layout_rows_dropped(self):
        """Test -1 confidence rows and blanks are not words."""
        data = tesseract_data(["", "Book", "dentist", " "], ["-1", "91.5", "88", "-1"])
        text, confidences = _collect_tokens(data)
        assert text == "Book dentist"
        assert confidences == [91.5, 88.0]

    def test_lines_kept_apart(self):
        """Test words on different lines are joined by newlines."""
        data = tesseract_data(["Dentist", "Friday", "3pm"], [90, 90, 90], lines=[1, 2, 2])
        text, _ = _collect_tokens(data)
        assert text == "Dentist\nFriday 3pm"


class TestTesseractOcrEngine:
    """Tests for TesseractOcrEngine."""

    def test_recognize_prepares_image(self, monkeypatch):
        """Test images are grayscale and width-capped before recognition."""
        seen = {}

        def fake_image_to_data(image, lang, output_type):
            seen["size"] = image.size
            seen["mode"] = image.mode
            seen["lang"] = lang
            return tesseract_data(["dentist", "appointment", "tomorrow"], [80, 80, 80])

        monkeypatch.setattr(pytesseract, "image_to_data", fake_image_to_data)
        engine = TesseractOcrEngine(language="eng", max_width=1600)
        result = engine.recognize_sync(png_bytes(3200, 100))

        assert seen == {"size": (1600, 50), "mode": "L", "lang": "eng"}
        assert result.text == "dentist appointment tomorrow"
        assert result.token_confidences == (80.0, 80.0, 80.0)
        assert result.confidence == 0.9

    def test_async_recognize(self, monkeypatch):
        """Test the async interface."""
        monkeypatch.setattr(pytesseract, "image_to_data",
                            lambda image, lang, output_type: tesseract_data(["hi"], [70]))
        result = asyncio.run(TesseractOcrEngine().recognize(png_bytes()))
        assert result.text == "hi"

    def test_unreadable_image(self):
        """Test garbage bytes raise RecognitionError."""
        with pytest.raises(RecognitionError, match="Unreadable image"):
            TesseractOcrEngine().recognize_sync(b"not an image")

    def test_missing_file(self, tmp_path):
        """Test a missing path raises RecognitionError."""
        with pytest.raises(RecognitionError, match="Unreadable image"):
            TesseractOcrEngine().recognize_sync(str(tmp_path / "missing.png"))

    def test_tesseract_failure(self, monkeypatch):
        """Test engine errors raise RecognitionError."""
        def broken(image, lang, output_type):
            raise pytesseract.TesseractNotFoundError()

        monkeypatch.setattr(pytesseract, "image_to_data", broken)
        with pytest.raises(RecognitionError, match="OCR engine failed"):
            TesseractOcrEngine().recognize_sync(png_bytes())

    def test_warmup_without_tesseract(self, monkeypatch):
        """Test warmup reports a missing binary."""
        def missing():
            raise pytesseract.TesseractNotFoundError()

        monkeypatch.setattr(pytesseract, "get_tesseract_version", missing)
        with pytest.raises(RecognitionError, match="not installed"):
            TesseractOcrEngine().warmup()

    def test_warmup_records_version(self, monkeypatch):
        """Test warmup stores the engine version."""
        monkeypatch.setattr(pytesseract, "get_tesseract_version", lambda: "5.3.0")
        engine = TesseractOcrEngine()
        assert engine.warmup() == "5.3.0"
        assert engine.tesseract_version == "5.3.0"
