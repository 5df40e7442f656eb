"""Exception hierarchy for Video Text Search."""


class VideoSearchError(Exception):
    """Base exception for Video Text Search errors."""

    pass


class ConfigurationError(VideoSearchError):
    """Invalid or missing configuration (e.g. empty search text)."""

    pass


class SourceUnavailableError(VideoSearchError):
    """The video file is missing or cannot be opened."""

    pass


class FrameDecodeError(VideoSearchError):
    """A frame could not be decoded. Treated as end of stream."""

    pass


class RecognitionError(VideoSearchError):
    """The OCR engine failed on a frame."""

    pass


class PersistenceError(VideoSearchError):
    """The output ledger could not be opened or written."""

    pass


class PipelineError(VideoSearchError):
    """Unexpected failure inside the frame pipeline."""

    pass
