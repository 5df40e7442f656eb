"""Tests for recognizers and the engine registry."""

import numpy as np
import pytest

from video_text_search.errors import ConfigurationError, RecognitionError
from video_text_search.core.recognizers import (
    available_engines,
    create_recognizer,
    get_all_engines_info,
    recognizer_factory,
)
from video_text_search.engines import EasyOCRRecognizer, TesseractRecognizer

from conftest import StubRecognizer, synthetic_image


class TestBaseRecognizer:
    """Tests for shared recognizer behaviour."""

    def test_receives_grayscale_copy(self):
        """Test that the engine sees grayscale and the frame is untouched."""
        recognizer = StubRecognizer(texts={9: "nine"})
        image = synthetic_image(9)
        original = image.copy()

        assert recognizer.recognize(image) == "nine"
        assert np.array_equal(image, original)
        assert image.ndim == 3

    def test_initializes_once(self):
        """Test lazy, single initialization."""
        recognizer = StubRecognizer()
        assert recognizer.init_count == 0

        for index in range(5):
            recognizer.recognize(synthetic_image(index))

        assert recognizer.init_count == 1

    def test_engine_failure_wrapped(self):
        """Test that engine exceptions become RecognitionError."""
        recognizer = StubRecognizer(fail_on={1})
        with pytest.raises(RecognitionError, match="engine crashed"):
            recognizer.recognize(synthetic_image(1))
        assert recognizer.recognize(synthetic_image(2)) == ""

    def test_failed_initialization_not_retried(self):
        """Test that a broken engine is not re-initialized for every frame."""
        attempts = []

        class BrokenRecognizer(StubRecognizer):
            def _initialize(self):
                attempts.append(1)
                raise RuntimeError("missing model")

        recognizer = BrokenRecognizer()
        for _ in range(3):
            with pytest.raises(RecognitionError):
                recognizer.recognize(synthetic_image(0))

        assert len(attempts) == 1
        assert not recognizer.is_available

    def test_context_manager_releases(self):
        """Test that closing releases an initialized engine."""
        with StubRecognizer() as recognizer:
            recognizer.recognize(synthetic_image(0))
        assert recognizer.release_count == 1

    def test_close_uninitialized(self):
        """Test that closing an unused recognizer is a no-op."""
        recognizer = StubRecognizer()
        recognizer.close()
        assert recognizer.release_count == 0

    def test_grayscale_input_accepted(self):
        """Test that a single-channel frame is passed through."""
        recognizer = StubRecognizer(texts={4: "four"})
        assert recognizer.recognize(np.full((4, 4), 4, dtype=np.uint8)) == "four"


class TestRegistry:
    """Tests for the engine registry."""

    def test_available_engines(self):
        assert available_engines() == ["tesseract", "easyocr"]

    def test_create_tesseract(self):
        """Test creating the default engine without initializing it."""
        recognizer = create_recognizer()
        assert isinstance(recognizer, TesseractRecognizer)
        assert recognizer.name == "tesseract"

    def test_create_with_options(self):
        recognizer = create_recognizer("tesseract", languages=["de"], tessdata_dir="/data")
        assert recognizer.languages == ["de"]
        assert recognizer.tessdata_dir == "/data"

    def test_create_easyocr(self):
        recognizer = create_recognizer("EasyOCR", languages=["en"], gpu=True)
        assert isinstance(recognizer, EasyOCRRecognizer)
        assert recognizer.gpu is True

    def test_unknown_engine(self):
        with pytest.raises(ConfigurationError, match="Unknown engine"):
            create_recognizer("magic")

    def test_factory_validates_eagerly(self):
        """Test that a bad engine name fails before any worker starts."""
        with pytest.raises(ConfigurationError):
            recognizer_factory("magic")

    def test_factory_builds_fresh_instances(self):
        factory = recognizer_factory("tesseract")
        assert factory() is not factory()

    def test_engines_info(self):
        names = [info.name for info in get_all_engines_info()]
        assert names == ["tesseract", "easyocr"]

    def test_engines_info_returns_copies(self):
        """Test that callers cannot alter the registry through returned info."""
        first = get_all_engines_info()
        for info in first:
            info.installed = not info.installed
            info.description = "changed"

        second = get_all_engines_info()
        assert all(info.description != "changed" for info in second)
        assert [info.installed for info in second] == [
            not info.installed for info in first
        ]
