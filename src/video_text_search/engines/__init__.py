"""OCR engine implementations."""

from video_text_search.engines.base import BaseRecognizer
from video_text_search.engines.easyocr_engine import EasyOCRRecognizer
from video_text_search.engines.tesseract_engine import TesseractRecognizer

__all__ = [
    "BaseRecognizer",
    "EasyOCRRecognizer",
    "TesseractRecognizer",
]
