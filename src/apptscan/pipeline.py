"""
Appointment Pipeline Orchestrator

Chains the stages for one request and maps every outcome onto a
PipelineResult.

Pipeline stages:
1. OCR (image input only)
2. Preprocessing (preprocess_text)
3. Entity extraction (extract_entities)
4. Entity gate (confidence + department)
5. Temporal resolution (resolve_temporal)

Each stage runs at most once per request. Nothing is retried.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from .calendar import get_timezone, now_in_zone
from .calendar.temporal_resolver import resolve_temporal
from .calendar.timezones import to_zone
from .clarification import ClarificationReason, clarify
from .config import config
from .data_types import (
    Appointment,
    EntitySet,
    Error,
    NeedsClarification,
    Ok,
    PipelineResult,
    PreprocessingReport,
    RawInput,
)
from .engines.date_parser import DateTimeParser
from .engines.ocr import OcrEngine
from .errors import RecognitionError
from .extraction import DepartmentRegistry, extract_entities, load_department_registry
from .logging_config import log_with_context
from .perf import StageTimer
from .preprocessing import preprocess_text
from .scoring import score_ocr

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal error while processing the request"

# Confidence reported for typed text, which needs no recognition
TEXT_INPUT_CONFIDENCE = 0.98


class AppointmentPipeline:
    """
    Pipeline orchestrator: raw input in, PipelineResult out.

    Holds only read-only collaborators, so one instance can serve any
    number of concurrent requests.

    Args:
        parser: Date/time phrase parser
        ocr_engine: OCR engine, required for image input
        registry: Department registry (defaults to the configured one)
        timezone: Target zone (defaults to config.TARGET_TIMEZONE)
        entity_threshold: Entity gate (defaults to config.ENTITY_CONFIDENCE_THRESHOLD)
    """

    def __init__(
        self,
        parser: DateTimeParser,
        ocr_engine: Optional[OcrEngine] = None,
        registry: Optional[DepartmentRegistry] = None,
        timezone: Optional[str] = None,
        entity_threshold: Optional[float] = None,
    ):
        self.parser = parser
        self.ocr_engine = ocr_engine
        self.registry = registry if registry is not None else load_department_registry()
        self.timezone = timezone or config.TARGET_TIMEZONE
        self.entity_threshold = (
            entity_threshold if entity_threshold is not None
            else config.ENTITY_CONFIDENCE_THRESHOLD
        )

    async def run_text(
        self,
        text: str,
        reference: Optional[datetime] = None,
        request_id: Optional[str] = None,
        trace: Optional[Dict[str, Any]] = None,
    ) -> PipelineResult:
        """Convenience wrapper for typed text input."""
        return await self.run(RawInput(text=text), reference, request_id, trace)

    async def run(
        self,
        raw_input: RawInput,
        reference: Optional[datetime] = None,
        request_id: Optional[str] = None,
        trace: Optional[Dict[str, Any]] = None,
    ) -> PipelineResult:
        """
        Execute the full pipeline.

        Args:
            raw_input: Text or image path
            reference: "Now" for relative phrases and the past check
                (defaults to the current time in the target zone)
            request_id: Optional request ID for logging
            trace: Optional dict that receives per-stage outputs and timings

        Returns:
            Ok, NeedsClarification or Error. Never raises.
        """
        if trace is None:
            trace = {}
        trace.setdefault("stages", {})
        trace.setdefault("timings", {})

        try:
            return await self._run(raw_input, reference, request_id, trace)
        except RecognitionError as e:
            log_with_context(
                logger, logging.WARNING, "Recognition failed",
                request_id=request_id, error_type=type(e).__name__, error_message=str(e),
            )
            return Error(str(e))
        except Exception:
            logger.exception(
                "Unexpected pipeline failure",
                extra={"request_id": request_id},
            )
            return Error(INTERNAL_ERROR_MESSAGE)

    async def _run(
        self,
        raw_input: RawInput,
        reference: Optional[datetime],
        request_id: Optional[str],
        trace: Dict[str, Any],
    ) -> PipelineResult:
        zone = get_timezone(self.timezone)
        now = to_zone(reference, zone) if reference is not None else now_in_zone(zone)

        # Stage 1: OCR / raw text
        if raw_input.image_path is not None:
            with StageTimer(trace, "ocr", request_id=request_id):
                raw_text, ocr_confidence = await self._recognize(raw_input.image_path)
            trace["stages"]["ocr"] = {"raw_text": raw_text, "confidence": ocr_confidence}
        else:
            raw_text, ocr_confidence = raw_input.text, TEXT_INPUT_CONFIDENCE

        # Stage 2: Preprocessing
        with StageTimer(trace, "preprocess", request_id=request_id):
            report = preprocess_text(raw_text)
        trace["stages"]["preprocess"] = report.to_dict()

        # Stage 3: Entity extraction
        with StageTimer(trace, "extraction", request_id=request_id):
            entities = await extract_entities(
                report.processed_text, now, self.parser, registry=self.registry)
        trace["stages"]["extraction"] = entities.to_dict()
        log_with_context(
            logger, logging.INFO, "Entities extracted",
            request_id=request_id, stage="extraction",
            entities_confidence=entities.entities_confidence,
            department=entities.department,
            complete=entities.is_complete,
        )

        # Stage 4: Entity gate
        with StageTimer(trace, "gate", request_id=request_id):
            clarification = self._gate(raw_text, ocr_confidence, report, entities)
        if clarification is not None:
            trace["stages"]["gate"] = {"passed": False}
            log_with_context(
                logger, logging.INFO, "Entity gate failed",
                request_id=request_id, stage="gate",
                status=clarification.status.value, reason=clarification.reason,
            )
            return clarification
        trace["stages"]["gate"] = {"passed": True}

        # Stage 5: Temporal resolution
        with StageTimer(trace, "resolution", request_id=request_id):
            resolved = await resolve_temporal(
                entities.date_phrase, entities.time_phrase, self.parser,
                now=now, tz=self.timezone,
            )
        if isinstance(resolved, NeedsClarification):
            trace["stages"]["resolution"] = {"reason": resolved.reason}
            log_with_context(
                logger, logging.INFO, "Temporal resolution needs clarification",
                request_id=request_id, stage="resolution",
                status=resolved.status.value, reason=resolved.reason,
            )
            return resolved
        trace["stages"]["resolution"] = resolved.to_dict()

        appointment = Appointment(
            department=entities.department,
            date=resolved.date,
            time=resolved.time,
            tz=resolved.tz,
        )
        log_with_context(
            logger, logging.INFO, "Appointment resolved",
            request_id=request_id, stage="resolution", status="ok",
            normalized_confidence=resolved.normalized_confidence,
        )
        return Ok(appointment)

    async def _recognize(self, image_path: str):
        if self.ocr_engine is None:
            raise RecognitionError("OCR engine is not configured")
        result = await self.ocr_engine.recognize(image_path)
        text = (result.text or "").strip()
        if not text:
            raise RecognitionError("No text could be recognized in the image")
        return text, score_ocr(text, result.token_confidences)

    def _gate(
        self,
        raw_text: str,
        ocr_confidence: float,
        report: PreprocessingReport,
        entities: EntitySet,
    ) -> Optional[NeedsClarification]:
        """Stop here when the entities are too weak to resolve."""
        if entities.entities_confidence >= self.entity_threshold and entities.department:
            return None
        return clarify(
            ClarificationReason.MISSING_ENTITY,
            diagnostics={
                "raw_text": raw_text,
                "ocr_confidence": ocr_confidence,
                "preprocessing": report.to_dict(),
                "entities": entities.to_dict(),
            },
        )
