"""
Tests for environment-driven configuration.
"""
from apptscan.config import ApptScanConfig


class TestApptScanConfig:
    """Tests for ApptScanConfig."""

    def test_defaults(self, monkeypatch):
        """Test documented defaults."""
        for name in ["TARGET_TIMEZONE", "ENTITY_CONFIDENCE_THRESHOLD", "ENABLE_FUZZY_MATCHING",
                     "MAX_TEXT_LENGTH", "MAX_FILE_SIZE", "PORT"]:
            monkeypatch.delenv(name, raising=False)
        config = ApptScanConfig()
        assert config.TARGET_TIMEZONE == "Asia/Kolkata"
        assert config.ENTITY_CONFIDENCE_THRESHOLD == 0.6
        assert config.ENABLE_FUZZY_MATCHING is False
        assert config.MAX_TEXT_LENGTH == 1000
        assert config.MAX_FILE_SIZE == 10 * 1024 * 1024
        assert config.API_PORT == 9001

    def test_environment_overrides(self, monkeypatch):
        """Test environment variables win."""
        monkeypatch.setenv("TARGET_TIMEZONE", "Europe/London")
        monkeypatch.setenv("ENABLE_FUZZY_MATCHING", "true")
        monkeypatch.setenv("PORT", "8080")
        config = ApptScanConfig()
        assert config.TARGET_TIMEZONE == "Europe/London"
        assert config.ENABLE_FUZZY_MATCHING is True
        assert config.API_PORT == 8080

    def test_summary(self):
        """Test the summary mentions every section."""
        summary = ApptScanConfig().summary()
        for section in ["Pipeline:", "OCR:", "API:", "Logging:"]:
            assert section in summary
