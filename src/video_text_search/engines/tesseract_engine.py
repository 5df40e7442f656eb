"""Tesseract OCR engine implementation."""

from typing import List, Optional

import numpy as np

from video_text_search.engines.base import BaseRecognizer
from video_text_search.utils.image_utils import frame_to_pil
from video_text_search.utils.logging_config import get_logger

# Tesseract uses ISO 639-2 codes
LANGUAGE_CODES = {
    "en": "eng",
    "de": "deu",
    "fr": "fra",
    "es": "spa",
    "it": "ita",
    "pt": "por",
    "nl": "nld",
    "ru": "rus",
    "ja": "jpn",
    "ko": "kor",
    "zh": "chi_sim",
}


class TesseractRecognizer(BaseRecognizer):
    """Recognizer using Tesseract via pytesseract."""

    def __init__(
        self,
        languages: List[str] = None,
        gpu: bool = False,  # Tesseract doesn't use GPU
        tessdata_dir: Optional[str] = None,
    ):
        """
        Initialize Tesseract recognizer.

        Args:
            languages: List of language codes
            gpu: Ignored (Tesseract doesn't use GPU)
            tessdata_dir: Optional directory holding traineddata files
        """
        super().__init__(languages, gpu=False)
        self.tessdata_dir = tessdata_dir
        self.logger = get_logger()
        self._tesseract_lang: str = ""
        self._tesseract_config: str = ""

    def _initialize(self) -> None:
        """Initialize Tesseract."""
        import pytesseract

        # Test that tesseract is available
        try:
            pytesseract.get_tesseract_version()
        except Exception as e:
            raise RuntimeError(f"Tesseract is not installed or not in PATH: {e}")

        self._tesseract_lang = "+".join(
            LANGUAGE_CODES.get(lang, lang) for lang in self.languages
        )
        if self.tessdata_dir:
            self._tesseract_config = f'--tessdata-dir "{self.tessdata_dir}"'

        self.logger.debug(f"Initialized Tesseract with languages: {self._tesseract_lang}")

    def _recognize(self, image: np.ndarray) -> str:
        import pytesseract

        return pytesseract.image_to_string(
            frame_to_pil(image),
            lang=self._tesseract_lang,
            config=self._tesseract_config,
        )

    @property
    def name(self) -> str:
        return "tesseract"
