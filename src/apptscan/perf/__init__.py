"""Performance monitoring utilities for the apptscan pipeline."""

from .stage_timer import STAGE_BUDGETS_MS, StageTimer

__all__ = ["StageTimer", "STAGE_BUDGETS_MS"]
