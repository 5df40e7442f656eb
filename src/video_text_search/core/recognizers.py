"""Registry of OCR engines and recognizer construction."""

import importlib.util
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Type

from video_text_search.errors import ConfigurationError
from video_text_search.engines.base import BaseRecognizer
from video_text_search.engines.easyocr_engine import EasyOCRRecognizer
from video_text_search.engines.tesseract_engine import TesseractRecognizer
from video_text_search.utils.logging_config import get_logger

DEFAULT_ENGINE = "tesseract"


@dataclass
class EngineInfo:
    """Information about an OCR engine."""

    name: str
    display_name: str
    module: str
    requires_gpu: bool
    description: str
    installed: bool = False


_ENGINES: Dict[str, Type[BaseRecognizer]] = {
    "tesseract": TesseractRecognizer,
    "easyocr": EasyOCRRecognizer,
}

_ENGINE_INFO: Dict[str, EngineInfo] = {
    "tesseract": EngineInfo(
        name="tesseract",
        display_name="Tesseract",
        module="pytesseract",
        requires_gpu=False,
        description="Classic OCR, CPU-only, 100+ languages",
    ),
    "easyocr": EngineInfo(
        name="easyocr",
        display_name="EasyOCR",
        module="easyocr",
        requires_gpu=False,
        description="Deep-learning OCR, 70+ languages, optional GPU",
    ),
}


def available_engines() -> List[str]:
    """Get list of registered engine names."""
    return list(_ENGINES.keys())


def is_engine_installed(engine_name: str) -> bool:
    """Check whether the Python package behind an engine can be imported."""
    info = _ENGINE_INFO.get(engine_name.lower())
    if info is None:
        return False
    return importlib.util.find_spec(info.module) is not None


def get_all_engines_info() -> List[EngineInfo]:
    """Get information about all known engines (installed or not)."""
    return [
        replace(info, installed=is_engine_installed(name))
        for name, info in _ENGINE_INFO.items()
    ]


def create_recognizer(
    engine: str = DEFAULT_ENGINE,
    languages: Optional[List[str]] = None,
    gpu: bool = False,
    tessdata_dir: Optional[str] = None,
) -> BaseRecognizer:
    """
    Create a new, uninitialized recognizer.

    Args:
        engine: Engine name ('tesseract', 'easyocr')
        languages: Language codes
        gpu: Use GPU acceleration where the engine supports it
        tessdata_dir: Tesseract traineddata directory

    Returns:
        BaseRecognizer instance
    """
    engine_name = (engine or "").lower()
    if engine_name not in _ENGINES:
        known = ", ".join(_ENGINES.keys())
        raise ConfigurationError(f"Unknown engine: {engine}. Available: {known}")

    get_logger().debug(f"Creating OCR engine: {engine_name}")

    if engine_name == "tesseract":
        return TesseractRecognizer(languages=languages, tessdata_dir=tessdata_dir)

    return _ENGINES[engine_name](languages=languages, gpu=gpu)


def recognizer_factory(
    engine: str = DEFAULT_ENGINE,
    languages: Optional[List[str]] = None,
    gpu: bool = False,
    tessdata_dir: Optional[str] = None,
) -> Callable[[], BaseRecognizer]:
    """
    Build a zero-argument factory, called once per pipeline worker.

    The engine name is validated eagerly so a typo fails before any frame is
    decoded.
    """
    if (engine or "").lower() not in _ENGINES:
        known = ", ".join(_ENGINES.keys())
        raise ConfigurationError(f"Unknown engine: {engine}. Available: {known}")

    def factory() -> BaseRecognizer:
        return create_recognizer(engine, languages, gpu, tessdata_dir)

    return factory
