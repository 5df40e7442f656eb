"""High-level entry point: search a video for text according to a SearchConfig."""

import threading
from pathlib import Path
from typing import Callable, Optional

from video_text_search.config import SearchConfig
from video_text_search.core.frame_source import FrameSource, VideoFrameSource
from video_text_search.core.ledger import ResultLedger
from video_text_search.core.matcher import SearchMatcher
from video_text_search.core.pipeline import (
    FramePipeline,
    MatchCallback,
    PipelineSummary,
    ProgressCallback,
)
from video_text_search.core.recognizers import recognizer_factory as build_factory
from video_text_search.engines.base import BaseRecognizer
from video_text_search.utils.logging_config import get_logger


def search_video(
    config: SearchConfig,
    source: Optional[FrameSource] = None,
    recognizer_factory: Optional[Callable[[], BaseRecognizer]] = None,
    progress_callback: Optional[ProgressCallback] = None,
    match_callback: Optional[MatchCallback] = None,
    cancel_event: Optional[threading.Event] = None,
    on_source_opened: Optional[Callable[[FrameSource], None]] = None,
) -> PipelineSummary:
    """
    Search a video for the configured text.

    Configuration is validated before any resource is opened. The source is
    opened before the output file, so an unavailable video never leaves a
    partial output behind. Source and ledger are released on every exit path.

    Args:
        config: Search configuration
        source: Frame source to use instead of decoding ``config.video_path``
        recognizer_factory: Factory to use instead of the configured engine
        progress_callback: Optional callback(phase, estimate)
        match_callback: Optional callback(result) for each matching frame
        cancel_event: Optional event that stops the run at the next frame
        on_source_opened: Optional callback invoked once the source is open

    Returns:
        PipelineSummary

    Raises:
        ConfigurationError: Invalid configuration
        SourceUnavailableError: Video missing or unopenable
        PersistenceError: Output file cannot be created or written
        PipelineError: Unexpected failure during the run
    """
    logger = get_logger()

    config.validate()
    matcher = SearchMatcher(config.query)

    if recognizer_factory is None:
        recognizer_factory = build_factory(
            engine=config.ocr.engine,
            languages=config.ocr.languages,
            gpu=config.ocr.gpu,
            tessdata_dir=config.ocr.tessdata_dir,
        )

    if source is None:
        source = VideoFrameSource(Path(config.video_path), config.source.skip_frames)

    output_path = Path(config.output.path) if config.output.path else None

    with source:
        if on_source_opened:
            on_source_opened(source)

        ledger = ResultLedger(output_path, flush_retries=config.output.flush_retries)
        with ledger:
            pipeline = FramePipeline(
                source=source,
                recognizer_factory=recognizer_factory,
                matcher=matcher,
                ledger=ledger,
                mode=config.pipeline.mode,
                workers=config.pipeline.resolved_workers,
                flush_every=config.pipeline.flush_every,
                stream=config.pipeline.stream,
                progress_callback=progress_callback,
                match_callback=match_callback,
                cancel_event=cancel_event,
            )
            summary = pipeline.run()

    if output_path is not None:
        logger.info(f"Wrote {summary.lines_written} lines to {output_path}")

    return summary
