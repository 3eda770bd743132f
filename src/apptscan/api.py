"""
ApptScan REST API

FastAPI service that turns a typed or photographed scheduling note into a
structured appointment.

Usage:
    python -m apptscan.api

    or

    uvicorn apptscan.api:app --host 0.0.0.0 --port 9001

Endpoints:
    POST /api/parse - Parse text (JSON or form field) or an image upload
    GET /health - Health check
    GET /info - API information
    GET / - Liveness text
"""
import os
import tempfile
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional, Tuple

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import config
from .data_types import RawInput, to_response
from .engines import DateparserEngine, get_ocr_engine
from .errors import InputValidationError, RecognitionError
from .extraction import load_department_registry
from .logging_config import generate_request_id, setup_logging
from .pipeline import AppointmentPipeline
from .validation import UploadInfo, validate_request, validate_text

logger = setup_logging(
    app_name='apptscan',
    log_level=config.LOG_LEVEL,
    log_format=config.LOG_FORMAT,
    log_file=config.LOG_FILE
)

ENDPOINTS = ["/api/parse", "/health", "/info", "/"]


class ParseTextRequest(BaseModel):
    """JSON body for /api/parse."""
    text: Optional[str] = None


class HealthResponse(BaseModel):
    """Response model for /health."""
    status: str
    components: Dict[str, bool]


def build_pipeline(warm_up_ocr: bool = True) -> Tuple[AppointmentPipeline, bool]:
    """
    Create the process-wide pipeline and its engines.

    Returns:
        (pipeline, ocr_ready)
    """
    ocr_engine = get_ocr_engine()
    ocr_ready = False
    if warm_up_ocr:
        try:
            ocr_engine.warmup()
            ocr_ready = True
        except RecognitionError as e:
            logger.warning("OCR engine unavailable; image requests will fail",
                           extra={"error_message": str(e)})
    pipeline = AppointmentPipeline(
        parser=DateparserEngine(),
        ocr_engine=ocr_engine,
        registry=load_department_registry(),
        timezone=config.TARGET_TIMEZONE,
    )
    return pipeline, ocr_ready


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing pipeline components...")
    app.state.pipeline, app.state.ocr_ready = build_pipeline()
    logger.info("Pipeline ready", extra={
        "timezone": config.TARGET_TIMEZONE,
        "departments": len(app.state.pipeline.registry),
        "ocr_ready": app.state.ocr_ready,
    })
    yield


app = FastAPI(
    title="ApptScan API",
    description="Appointment extraction from free text and images",
    version=__version__,
    lifespan=lifespan,
)


def get_pipeline(request: Request) -> AppointmentPipeline:
    """Pipeline dependency; built lazily when the lifespan did not run."""
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        pipeline, ocr_ready = build_pipeline(warm_up_ocr=False)
        request.app.state.pipeline = pipeline
        request.app.state.ocr_ready = ocr_ready
    return pipeline


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Assign a request ID, time the request and log its completion."""
    start_time = time.perf_counter()
    request_id = request.headers.get("X-Request-ID") or generate_request_id()
    request.state.request_id = request_id

    response = await call_next(request)

    duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
    response.headers["X-Request-ID"] = request_id
    if config.ENABLE_REQUEST_LOGGING:
        logger.info(
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
    return response


@app.exception_handler(InputValidationError)
async def validation_error_handler(request: Request, exc: InputValidationError):
    logger.info("Request rejected", extra={
        "request_id": getattr(request.state, "request_id", None),
        "error_code": exc.error_code,
    })
    return JSONResponse(
        status_code=400,
        content={
            "status": "error",
            "message": str(exc),
            "error_code": exc.error_code,
            "errors": exc.errors,
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={
            "status": "error",
            "message": "Endpoint not found",
            "available_endpoints": ENDPOINTS,
        })
    return JSONResponse(status_code=exc.status_code,
                        content={"status": "error", "message": str(exc.detail)})


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error", exc_info=exc, extra={
        "request_id": getattr(request.state, "request_id", None),
    })
    return JSONResponse(status_code=500,
                        content={"status": "error", "message": "Internal server error"})


@app.get("/", response_class=PlainTextResponse)
async def root():
    return "ApptScan API is running"


@app.get("/health", response_model=HealthResponse)
async def health(request: Request):
    """Health check endpoint."""
    pipeline = getattr(request.app.state, "pipeline", None)
    return HealthResponse(
        status="healthy",
        components={
            "pipeline": pipeline is not None,
            "ocr": bool(getattr(request.app.state, "ocr_ready", False)),
        },
    )


@app.get("/info")
async def info():
    """API information endpoint."""
    return {
        "name": "ApptScan API",
        "version": __version__,
        "description": "Extracts department, date and time from scheduling notes",
        "timezone": config.TARGET_TIMEZONE,
        "endpoints": {
            "/api/parse": {
                "method": "POST",
                "description": "Parse a scheduling note into an appointment",
                "parameters": {
                    "text": f"string - Note text, at most {config.MAX_TEXT_LENGTH} characters",
                    "image": f"file - JPEG or PNG photo, at most {config.MAX_FILE_SIZE // (1024 * 1024)}MB",
                },
                "note": "Provide exactly one of text or image",
            },
            "/health": {"method": "GET", "description": "Health check"},
            "/info": {"method": "GET", "description": "This document"},
        },
    }


async def _read_parse_input(request: Request) -> Tuple[Optional[str], Optional[UploadFile]]:
    """Pull text and/or image out of a JSON or multipart body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = ParseTextRequest.model_validate(await request.json())
        except (ValueError, ValidationError) as e:
            raise InputValidationError(["Request body must be a JSON object with a text field"],
                                       "INVALID_JSON") from e
        return body.text, None

    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        text = form.get("text")
        image = form.get("image")
        return (
            text if isinstance(text, str) else None,
            image if isinstance(image, UploadFile) else None,
        )
    return None, None


@app.post("/api/parse")
async def parse(request: Request, pipeline: AppointmentPipeline = Depends(get_pipeline)):
    """
    Parse a scheduling note.

    Accepts either ``{"text": "..."}`` as JSON, or multipart form data with
    a ``text`` field or an ``image`` file. Pipeline outcomes (ok,
    needs_clarification, error) are returned with HTTP 200; malformed input
    is rejected with HTTP 400.
    """
    request_id = request.state.request_id
    text, image = await _read_parse_input(request)

    upload_info = None
    content = b""
    if image is not None:
        content = await image.read()
        upload_info = UploadInfo(filename=image.filename or "",
                                 content_type=image.content_type, size=len(content))

    kind = validate_request(text, upload_info)
    trace: Dict[str, Any] = {}
    if kind == "text":
        result = await pipeline.run_text(validate_text(text), request_id=request_id, trace=trace)
    else:
        suffix = os.path.splitext(upload_info.filename)[1].lower()
        if config.UPLOAD_DIR:
            os.makedirs(config.UPLOAD_DIR, exist_ok=True)
        with tempfile.NamedTemporaryFile(suffix=suffix, dir=config.UPLOAD_DIR,
                                         delete=False) as tmp:
            tmp.write(content)
            tmp_path = tmp.name
        try:
            result = await pipeline.run(RawInput(image_path=tmp_path),
                                        request_id=request_id, trace=trace)
        finally:
            os.remove(tmp_path)

    payload = to_response(result)
    logger.info("Parse finished", extra={
        "request_id": request_id,
        "input_type": kind,
        "status": payload["status"],
        "timings": trace.get("timings", {}),
    })
    return JSONResponse(payload)


def main():
    """Run the API server with uvicorn."""
    import uvicorn

    logger.info("=" * 60)
    logger.info("ApptScan API")
    logger.info(f"Starting server on http://{config.API_HOST}:{config.API_PORT}")
    logger.info("=" * 60)
    uvicorn.run(
        "apptscan.api:app",
        host=config.API_HOST,
        port=config.API_PORT,
        reload=config.API_DEBUG,
    )


if __name__ == "__main__":
    main()
