"""
ApptScan Configuration

Centralized configuration for the appointment parsing service.
All settings can be overridden via environment variables.
"""
import os
from pathlib import Path
from typing import Optional

# Load environment variables from .env files at startup
try:
    from dotenv import load_dotenv
    # config.py is at: <root>/src/apptscan/config/config.py
    project_root = Path(__file__).resolve().parent.parent.parent.parent
    env_file = project_root / ".env"
    env_local_file = project_root / ".env.local"

    # Load .env first, then .env.local (which can override)
    if env_file.exists():
        load_dotenv(env_file, override=False)
    if env_local_file.exists():
        load_dotenv(env_local_file, override=True)
except ImportError:
    # python-dotenv not installed, skip .env loading
    pass


_STORE_DIR = Path(__file__).resolve().parent.parent / "store"


class ApptScanConfig:
    """
    Central configuration for the apptscan pipeline.

    All settings have sensible defaults and can be overridden via environment variables.

    Example:
        >>> from apptscan.config import config
        >>> print(config.TARGET_TIMEZONE)
        Asia/Kolkata

        # Override via environment:
        >>> os.environ["TARGET_TIMEZONE"] = "Europe/London"
        >>> config = ApptScanConfig()  # Reload
        >>> print(config.TARGET_TIMEZONE)
        Europe/London
    """

    def __init__(self):
        # ====================================================================
        # Pipeline Policy
        # ====================================================================

        self.TARGET_TIMEZONE: str = os.getenv("TARGET_TIMEZONE", "Asia/Kolkata")
        """Fixed zone every normalized appointment is expressed in"""

        self.ENTITY_CONFIDENCE_THRESHOLD: float = float(
            os.getenv("ENTITY_CONFIDENCE_THRESHOLD", "0.6"))
        """Entity confidence below this halts the pipeline with a clarification"""

        self.DEPARTMENTS_PATH: str = os.getenv(
            "DEPARTMENTS_PATH", str(_STORE_DIR / "departments.json"))
        """Department registry JSON (canonical name + synonyms, in priority order)"""

        # ====================================================================
        # Feature Toggles
        # ====================================================================

        self.ENABLE_FUZZY_MATCHING: bool = os.getenv(
            "ENABLE_FUZZY_MATCHING", "false").lower() == "true"
        """Enable fuzzy department recovery for typos (requires rapidfuzz)"""

        self.FUZZY_THRESHOLD: int = int(os.getenv("FUZZY_THRESHOLD", "88"))
        """Minimum similarity score (0-100) for fuzzy matches"""

        # ====================================================================
        # OCR Settings
        # ====================================================================

        self.OCR_LANGUAGE: str = os.getenv("OCR_LANGUAGE", "eng")
        """Tesseract language pack"""

        self.OCR_MAX_WIDTH: int = int(os.getenv("OCR_MAX_WIDTH", "1600"))
        """Images wider than this are downscaled before recognition"""

        # ====================================================================
        # Input Limits
        # ====================================================================

        self.MAX_TEXT_LENGTH: int = int(os.getenv("MAX_TEXT_LENGTH", "1000"))
        """Maximum accepted characters of free text"""

        self.MAX_FILE_SIZE: int = int(
            os.getenv("MAX_FILE_SIZE", str(10 * 1024 * 1024)))
        """Maximum accepted upload size in bytes"""

        self.UPLOAD_DIR: Optional[str] = os.getenv("UPLOAD_DIR")
        """Directory for temporary uploads (system temp dir when unset)"""

        # ====================================================================
        # Debug Settings
        # ====================================================================

        self.DEBUG_NLP: bool = os.getenv("DEBUG_NLP", "0") == "1"
        """Enable debug printing for text processing"""

        self.DEBUG_ENABLED: bool = self.DEBUG_NLP

        # ====================================================================
        # Logging Settings
        # ====================================================================

        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
        """Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"""

        self.LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json")
        """Log format: 'json' (structured) or 'pretty' (readable)"""

        self.LOG_FILE: Optional[str] = os.getenv("LOG_FILE")
        """Optional: Write logs to file (e.g., '/var/log/apptscan/api.log')"""

        self.ENABLE_REQUEST_LOGGING: bool = os.getenv(
            "ENABLE_REQUEST_LOGGING", "true").lower() == "true"
        """Log all HTTP requests/responses with timing"""

        # ====================================================================
        # API Settings
        # ====================================================================

        self.API_PORT: int = int(os.getenv("PORT", "9001"))
        self.API_HOST: str = os.getenv("HOST", "0.0.0.0")
        self.API_DEBUG: bool = os.getenv("API_DEBUG", "false").lower() == "true"
        """Enables uvicorn auto-reload (DO NOT use in production)"""

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def summary(self) -> str:
        """
        Get configuration summary as formatted string.

        Returns:
            Multi-line string with all config values
        """
        lines = [
            "=" * 60,
            "ApptScan Configuration",
            "=" * 60,
            "",
            "Pipeline:",
            f"  Target Timezone:    {self.TARGET_TIMEZONE}",
            f"  Entity Threshold:   {self.ENTITY_CONFIDENCE_THRESHOLD}",
            f"  Departments:        {self.DEPARTMENTS_PATH}",
            f"  Fuzzy Matching:     {'✅ Enabled' if self.ENABLE_FUZZY_MATCHING else '❌ Disabled'}",
            "",
            "OCR:",
            f"  Language:           {self.OCR_LANGUAGE}",
            f"  Max Width:          {self.OCR_MAX_WIDTH}",
            "",
            "API:",
            f"  Host:               {self.API_HOST}",
            f"  Port:               {self.API_PORT}",
            "",
            "Logging:",
            f"  Level:              {self.LOG_LEVEL}",
            f"  Format:             {self.LOG_FORMAT}",
            f"  File:               {self.LOG_FILE or 'None'}",
            f"  Request Logging:    {'✅ Enabled' if self.ENABLE_REQUEST_LOGGING else '❌ Disabled'}",
            "",
            "=" * 60,
        ]
        return "\n".join(lines)

    def __repr__(self):
        return f"<ApptScanConfig tz={self.TARGET_TIMEZONE} fuzzy={self.ENABLE_FUZZY_MATCHING}>"


# Global config instance
config = ApptScanConfig()


def debug_print(*args, **kwargs):
    """Print debug message only if DEBUG_NLP is enabled."""
    if config.DEBUG_ENABLED:
        print(*args, **kwargs)
