"""
OCR engine.

Tesseract (via pytesseract) behind an async interface. Images are
downscaled, converted to grayscale and contrast-normalized before
recognition. The engine reports raw per-token confidences; the service
computes its own overall confidence with ``score_ocr``.
"""
import asyncio
import io
import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple, Union

import pytesseract
from PIL import Image, ImageOps, UnidentifiedImageError

from ..config import config
from ..data_types import OcrResult
from ..errors import RecognitionError
from ..scoring import score_ocr

logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, bytes]


class OcrEngine(Protocol):
    """Anything that turns an image into text plus per-token confidences."""

    async def recognize(self, image: ImageSource) -> OcrResult:
        ...


class TesseractOcrEngine:
    """
    OcrEngine backed by the Tesseract binary.

    Args:
        language: Tesseract language pack (defaults to config.OCR_LANGUAGE)
        max_width: Downscale wider images to this width (defaults to config.OCR_MAX_WIDTH)
    """

    def __init__(self, language: Optional[str] = None, max_width: Optional[int] = None):
        self.language = language or config.OCR_LANGUAGE
        self.max_width = max_width or config.OCR_MAX_WIDTH
        self.tesseract_version: Optional[str] = None

    def warmup(self) -> str:
        """
        Verify the Tesseract binary is reachable.

        Raises:
            RecognitionError: If Tesseract is not installed
        """
        try:
            self.tesseract_version = str(pytesseract.get_tesseract_version())
        except pytesseract.TesseractNotFoundError as e:
            raise RecognitionError("Tesseract OCR engine is not installed") from e
        logger.info("OCR engine ready", extra={"tesseract_version": self.tesseract_version})
        return self.tesseract_version

    def _load(self, image: ImageSource) -> Image.Image:
        if isinstance(image, (bytes, bytearray)):
            return Image.open(io.BytesIO(image))
        return Image.open(Path(image))

    def _prepare(self, img: Image.Image) -> Image.Image:
        """Upright, grayscale, width-capped, contrast-stretched copy of the image."""
        img = ImageOps.exif_transpose(img)
        img = img.convert("L")
        if img.width > self.max_width:
            height = round(img.height * self.max_width / img.width)
            img = img.resize((self.max_width, height), Image.Resampling.LANCZOS)
        return ImageOps.autocontrast(img)

    def recognize_sync(self, image: ImageSource) -> OcrResult:
        """Blocking variant of recognize()."""
        try:
            with self._load(image) as raw:
                prepared = self._prepare(raw)
            data = pytesseract.image_to_data(
                prepared, lang=self.language, output_type=pytesseract.Output.DICT)
        except (UnidentifiedImageError, FileNotFoundError) as e:
            raise RecognitionError(f"Unreadable image: {e}") from e
        except (pytesseract.TesseractNotFoundError, pytesseract.TesseractError) as e:
            raise RecognitionError(f"OCR engine failed: {e}") from e

        text, confidences = _collect_tokens(data)
        result = OcrResult(
            text=text,
            token_confidences=tuple(confidences),
            confidence=score_ocr(text, confidences),
        )
        logger.debug(
            "OCR finished",
            extra={"text_length": len(text), "tokens": len(confidences),
                   "ocr_confidence": result.confidence},
        )
        return result

    async def recognize(self, image: ImageSource) -> OcrResult:
        return await asyncio.to_thread(self.recognize_sync, image)


def _collect_tokens(data: Dict[str, List]) -> Tuple[str, List[float]]:
    """
    Rebuild text line by line from ``image_to_data`` output.

    Tokens with confidence -1 are layout rows, not words.
    """
    lines: Dict[Tuple[int, int, int], List[str]] = {}
    confidences: List[float] = []
    for i, word in enumerate(data.get("text", [])):
        word = (word or "").strip()
        if not word:
            continue
        try:
            conf = float(data["conf"][i])
        except (KeyError, IndexError, TypeError, ValueError):
            continue
        if conf < 0:
            continue
        key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
        lines.setdefault(key, []).append(word)
        confidences.append(conf)

    text = "\n".join(" ".join(words) for _, words in sorted(lines.items()))
    return text.strip(), confidences


# Process-wide engine handle, created once and read-only afterwards
_ENGINE_CACHE: Dict[str, TesseractOcrEngine] = {}


def get_ocr_engine() -> TesseractOcrEngine:
    """Return the shared OCR engine, creating it on first use."""
    engine = _ENGINE_CACHE.get("default")
    if engine is None:
        engine = TesseractOcrEngine()
        _ENGINE_CACHE["default"] = engine
    return engine
