"""Configuration for apptscan."""

from .config import ApptScanConfig, config, debug_print

__all__ = ["ApptScanConfig", "config", "debug_print"]
