"""EasyOCR engine implementation."""

from typing import List, Optional

import numpy as np

from video_text_search.engines.base import BaseRecognizer
from video_text_search.utils.logging_config import get_logger


class EasyOCRRecognizer(BaseRecognizer):
    """Recognizer using EasyOCR."""

    def __init__(
        self,
        languages: List[str] = None,
        gpu: bool = False,
    ):
        super().__init__(languages, gpu)
        self._reader: Optional["easyocr.Reader"] = None
        self.logger = get_logger()

    def _initialize(self) -> None:
        """Initialize the EasyOCR reader."""
        import easyocr

        self.logger.info(
            f"Initializing EasyOCR with languages: {self.languages}, GPU: {self.gpu}"
        )

        self._reader = easyocr.Reader(
            self.languages,
            gpu=self.gpu,
            verbose=False,
        )

    def _recognize(self, image: np.ndarray) -> str:
        if self._reader is None:
            raise RuntimeError("EasyOCR not initialized")

        # detail=0 returns only the text of each detected line
        lines = self._reader.readtext(image, detail=0)
        return "\n".join(lines)

    def _release(self) -> None:
        self._reader = None

    @property
    def name(self) -> str:
        return "easyocr"
