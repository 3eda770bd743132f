"""
Recognition engines consumed by the pipeline as black boxes.

- DateTimeParser / DateparserEngine: date and time phrases
- OcrEngine / TesseractOcrEngine: text from images
"""

from .date_parser import DateparserEngine, DateTimeParser, infer_known_components
from .ocr import OcrEngine, TesseractOcrEngine, get_ocr_engine

__all__ = [
    "DateTimeParser",
    "DateparserEngine",
    "infer_known_components",
    "OcrEngine",
    "TesseractOcrEngine",
    "get_ocr_engine",
]
