"""
ApptScan - Appointment Extraction Pipeline

Turns a free-text or photographed scheduling note into
{department, date, time, tz}, or tells the caller what to clarify.

This package provides:
- Type-safe data structures (data_types.py)
- Text preprocessing (preprocessing/)
- Entity extraction (extraction/)
- Temporal resolution (calendar/)
- Pipeline orchestration (pipeline.py)
- REST API (api.py) and interactive CLI (cli/)
"""

__version__ = "1.0.0"

from .config import ApptScanConfig, config
from .data_types import (
    Appointment,
    Correction,
    CorrectionType,
    DateMatch,
    EntitySet,
    Error,
    NeedsClarification,
    NormalizedAppointment,
    OcrResult,
    Ok,
    PipelineResult,
    PipelineStatus,
    PreprocessingReport,
    RawInput,
    to_response,
)
from .errors import ApptScanError, InputValidationError, RecognitionError
from .pipeline import AppointmentPipeline

__all__ = [
    "__version__",
    "ApptScanConfig",
    "config",
    "Appointment",
    "Correction",
    "CorrectionType",
    "DateMatch",
    "EntitySet",
    "Error",
    "NeedsClarification",
    "NormalizedAppointment",
    "OcrResult",
    "Ok",
    "PipelineResult",
    "PipelineStatus",
    "PreprocessingReport",
    "RawInput",
    "to_response",
    "ApptScanError",
    "InputValidationError",
    "RecognitionError",
    "AppointmentPipeline",
]
