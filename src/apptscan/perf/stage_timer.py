"""
Stage-level timing for the apptscan pipeline.

Measures each pipeline stage and warns when a soft budget is exceeded.
"""
import logging
import time
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Soft performance budgets (ms); warn-only
STAGE_BUDGETS_MS: Dict[str, int] = {
    "ocr": 3000,
    "preprocess": 20,
    "extraction": 200,
    "gate": 5,
    "resolution": 200,
}


class StageTimer:
    """
    Context manager for timing one pipeline stage.

    Usage:
        with StageTimer(trace, "extraction", request_id=rid):
            ...

    Stores the duration into trace["timings"][stage_name] (ms, 2 decimals)
    and logs it at DEBUG. Exceptions raised inside the block propagate.

    Args:
        trace: Dictionary to store timings in
        stage_name: Stage being timed
        request_id: Optional request ID for logging
        budget_ms: Budget override (defaults to STAGE_BUDGETS_MS[stage_name])
    """

    def __init__(
        self,
        trace: Dict[str, Any],
        stage_name: str,
        request_id: Optional[str] = None,
        budget_ms: Optional[int] = None
    ):
        self.trace = trace
        self.stage_name = stage_name
        self.request_id = request_id
        self.budget_ms = budget_ms or STAGE_BUDGETS_MS.get(stage_name)
        self.start_time: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self):
        self.trace.setdefault("timings", {})
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000.0
        duration = round(self.duration_ms, 2)
        self.trace.setdefault("timings", {})[self.stage_name] = duration

        logger.debug(
            f"Stage '{self.stage_name}' finished",
            extra={
                'request_id': self.request_id,
                'stage': self.stage_name,
                'duration_ms': duration,
                'failed': exc_type is not None,
            }
        )
        if self.budget_ms is not None and self.duration_ms > self.budget_ms:
            logger.warning(
                f"Stage '{self.stage_name}' exceeded performance budget",
                extra={
                    'request_id': self.request_id,
                    'stage': self.stage_name,
                    'duration_ms': duration,
                    'budget_ms': self.budget_ms
                }
            )
        return False
