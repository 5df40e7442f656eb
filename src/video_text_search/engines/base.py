"""Base class for text recognizers."""

import threading
from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np

from video_text_search.errors import RecognitionError
from video_text_search.utils.image_utils import to_grayscale


class BaseRecognizer(ABC):
    """
    Abstract base class for OCR engines.

    Engines are expensive to initialize, so initialization happens lazily on
    the first ``recognize`` call and only once per instance. A pipeline worker
    owns one instance for its whole lifetime and releases it with ``close``.
    """

    def __init__(
        self,
        languages: List[str] = None,
        gpu: bool = False,
    ):
        """
        Initialize recognizer.

        Args:
            languages: List of language codes to detect
            gpu: Use GPU acceleration if available
        """
        self.languages = languages or ["en"]
        self.gpu = gpu
        self._initialized = False
        self._init_error: Optional[Exception] = None
        self._init_lock = threading.Lock()

    @abstractmethod
    def _initialize(self) -> None:
        """Initialize the OCR engine. Called lazily on first use."""
        pass

    @abstractmethod
    def _recognize(self, image: np.ndarray) -> str:
        """
        Run OCR on a prepared image.

        Args:
            image: Grayscale numpy array

        Returns:
            Recognized text, lines separated by newlines
        """
        pass

    def _release(self) -> None:
        """Release engine resources. Override when the engine holds any."""
        pass

    def ensure_initialized(self) -> None:
        """Ensure the engine is initialized; a failed initialization is not retried."""
        with self._init_lock:
            if self._initialized:
                return
            if self._init_error is not None:
                raise RecognitionError(
                    f"{self.name} engine is unavailable: {self._init_error}"
                ) from self._init_error
            try:
                self._initialize()
            except Exception as e:
                self._init_error = e
                raise RecognitionError(
                    f"Failed to initialize {self.name} engine: {e}"
                ) from e
            self._initialized = True

    def prepare_image(self, image: np.ndarray) -> np.ndarray:
        """Convert a frame into the engine's input format (grayscale)."""
        return to_grayscale(image)

    def recognize(self, image: np.ndarray) -> str:
        """
        Recognize the text in one image.

        Args:
            image: BGR or grayscale numpy array (not modified)

        Returns:
            Recognized text

        Raises:
            RecognitionError: If the engine fails on this image
        """
        self.ensure_initialized()

        try:
            prepared = self.prepare_image(image)
            return self._recognize(prepared) or ""
        except RecognitionError:
            raise
        except Exception as e:
            raise RecognitionError(f"{self.name} failed: {e}") from e

    def close(self) -> None:
        """Release the engine. The instance may be re-initialized afterwards."""
        with self._init_lock:
            if self._initialized:
                self._release()
            self._initialized = False

    def __enter__(self) -> "BaseRecognizer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this OCR engine."""
        pass

    @property
    def is_available(self) -> bool:
        """Check if this engine is available (dependencies installed)."""
        try:
            self.ensure_initialized()
            return True
        except RecognitionError:
            return False
