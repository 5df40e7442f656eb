"""Command-line interface for Video Text Search."""

import signal
import sys
import threading
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from video_text_search import __version__
from video_text_search.config import MODES, load_config, parse_skip_frames
from video_text_search.errors import VideoSearchError
from video_text_search.core.frame_source import FrameSource, VideoFrameSource
from video_text_search.core.ledger import RecognitionResult
from video_text_search.core.pipeline import PHASE_EXTRACTION, PipelineSummary
from video_text_search.core.progress import ProgressEstimate
from video_text_search.core.recognizers import available_engines, get_all_engines_info
from video_text_search.search import search_video
from video_text_search.utils.formatting import format_duration
from video_text_search.utils.logging_config import get_logger, setup_logging

console = Console()

EXIT_ERROR = 1
EXIT_CANCELLED = 130


def print_banner():
    """Print application banner."""
    console.print(
        f"[bold blue]Video Text Search[/bold blue] v{__version__}",
        highlight=False,
    )
    console.print()


def print_video_info(source: FrameSource, title: str = "Video Information"):
    """Print a table describing an opened frame source."""
    info = source.describe()

    info_table = Table(title=title, show_header=False)
    info_table.add_column("Property", style="cyan")
    info_table.add_column("Value", style="green")
    if "path" in info:
        info_table.add_row("File", Path(info["path"]).name)
    if info.get("width"):
        info_table.add_row("Resolution", f"{info['width']}x{info['height']}")
    info_table.add_row("Duration", f"{info['duration_seconds']:.1f}s")
    info_table.add_row("FPS", f"{info['fps']:.2f}")
    info_table.add_row("Total Frames", str(info["frame_count"]))
    info_table.add_row("Skip Frames", str(info["skip_frames"]))
    info_table.add_row("Frames To Process", f"~{info['expected_frames']}")
    console.print(info_table)
    console.print()


def print_summary(summary: PipelineSummary, output_file: Optional[Path]):
    """Print the final run summary."""
    summary_table = Table(title="Search Summary", show_header=False)
    summary_table.add_column("Metric", style="cyan")
    summary_table.add_column("Value", style="green")
    summary_table.add_row("Frames Processed", str(summary.frames_processed))
    summary_table.add_row("Frames With Text Found", str(summary.frames_matched))
    if summary.frames_failed:
        summary_table.add_row("Frames Failed", f"[yellow]{summary.frames_failed}[/yellow]")
    summary_table.add_row("Elapsed Time", format_duration(summary.elapsed_seconds))
    if output_file is not None:
        summary_table.add_row("Output File", f"{output_file} ({summary.lines_written} lines)")
    if summary.cancelled:
        summary_table.add_row("Status", "[yellow]cancelled[/yellow]")
    console.print(summary_table)


@click.group()
@click.version_option(version=__version__)
def main():
    """Video Text Search - find the frames of a video that show a piece of text."""
    pass


@main.command()
@click.argument("search_text")
@click.argument("video_path", type=click.Path(path_type=Path))
@click.argument("output_file", required=False, type=click.Path(path_type=Path))
@click.argument("skip_frames", required=False)
@click.option(
    "--engine",
    type=click.Choice(available_engines()),
    default=None,
    help="OCR engine to use (default: tesseract)",
)
@click.option(
    "--language",
    "-l",
    multiple=True,
    help="Languages to detect (can be specified multiple times)",
)
@click.option(
    "--gpu/--no-gpu",
    default=None,
    help="Use GPU acceleration where the engine supports it",
)
@click.option(
    "--tessdata-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory containing Tesseract traineddata files",
)
@click.option(
    "--mode",
    type=click.Choice(list(MODES)),
    default=None,
    help="Run OCR in a worker pool or on a single thread (default: parallel)",
)
@click.option(
    "--workers",
    type=int,
    default=None,
    help="Number of parallel workers (0 = CPU cores minus one)",
)
@click.option(
    "--flush-every",
    type=int,
    default=None,
    help="Write results to the output file every N frames (default: 10)",
)
@click.option(
    "--stream/--no-stream",
    default=None,
    help="Run OCR while frames are still being extracted (default: enabled)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="YAML configuration file",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write logs to this file",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
def search(
    search_text: str,
    video_path: Path,
    output_file: Optional[Path],
    skip_frames: Optional[str],
    engine: Optional[str],
    language: tuple,
    gpu: Optional[bool],
    tessdata_dir: Optional[Path],
    mode: Optional[str],
    workers: Optional[int],
    flush_every: Optional[int],
    stream: Optional[bool],
    config_path: Optional[Path],
    log_file: Optional[Path],
    verbose: bool,
):
    """Search a video for frames containing SEARCH_TEXT.

    VIDEO_PATH is the video to scan. When OUTPUT_FILE is given, every
    processed frame is written to it as a tab-separated line. SKIP_FRAMES
    processes only every Nth frame (default: 1).
    """
    print_banner()

    overrides = {
        "search_text": search_text,
        "video_path": str(video_path),
        "source": {
            "skip_frames": parse_skip_frames(skip_frames) if skip_frames is not None else None,
        },
        "ocr": {
            "engine": engine,
            "languages": list(language) or None,
            "gpu": gpu,
            "tessdata_dir": str(tessdata_dir) if tessdata_dir else None,
        },
        "pipeline": {
            "mode": mode,
            "workers": workers,
            "flush_every": flush_every,
            "stream": stream,
        },
        "output": {"path": str(output_file) if output_file else None},
        "logging": {
            "level": "DEBUG" if verbose else None,
            "file": str(log_file) if log_file else None,
        },
    }

    try:
        config = load_config(config_path).merge_with(overrides)
        setup_logging(
            level=config.logging.level,
            log_file=config.logging.file,
            rich_formatting=config.logging.rich_formatting,
        )
    except VideoSearchError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(EXIT_ERROR)
    except Exception as e:
        console.print(f"[red]An error occurred while loading the configuration:[/red] {e}")
        sys.exit(EXIT_ERROR)

    logger = get_logger()

    cancel_event = threading.Event()

    def handle_interrupt(signum, frame):
        if not cancel_event.is_set():
            console.print("\n[yellow]Interrupt received, finishing current frames...[/yellow]")
        cancel_event.set()

    # Signal handlers can only be installed from the main thread
    handler_installed = threading.current_thread() is threading.main_thread()
    if handler_installed:
        previous_handler = signal.signal(signal.SIGINT, handle_interrupt)

    output_path = Path(config.output.path) if config.output.path else None

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TextColumn("remaining {task.fields[remaining]}"),
            console=console,
            transient=False,
        ) as progress:
            tasks = {}

            def on_source_opened(source: FrameSource):
                progress.console.print(
                    f"Video loaded. Frame count: {source.frame_count}, "
                    f"FPS: {source.frame_rate:.2f}, Skip Frames: {source.skip_frames}"
                )
                total = source.expected_frames or None
                tasks["extraction"] = progress.add_task(
                    "[cyan]Extracting frames...", total=total, remaining="unknown"
                )
                tasks["processing"] = progress.add_task(
                    "[cyan]Running OCR...", total=total, remaining="unknown"
                )

            def on_progress(phase: str, estimate: ProgressEstimate):
                key = "extraction" if phase == PHASE_EXTRACTION else "processing"
                progress.update(
                    tasks[key],
                    completed=estimate.completed,
                    total=max(estimate.total, estimate.completed) or None,
                    remaining=estimate.remaining_str,
                )

            def on_match(result: RecognitionResult):
                progress.console.print(
                    f"[green]Text found in frame {result.frame_index} "
                    f"at timestamp {result.timestamp_str}[/green]"
                )

            summary = search_video(
                config,
                progress_callback=on_progress,
                match_callback=on_match,
                cancel_event=cancel_event,
                on_source_opened=on_source_opened,
            )
    except VideoSearchError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(EXIT_ERROR)
    except Exception as e:
        logger.debug("Unhandled error", exc_info=True)
        console.print(f"[red]An error occurred:[/red] {e}")
        sys.exit(EXIT_ERROR)
    finally:
        if handler_installed:
            signal.signal(signal.SIGINT, previous_handler or signal.SIG_DFL)

    console.print()
    print_summary(summary, output_path)

    if summary.cancelled:
        sys.exit(EXIT_CANCELLED)


@main.command()
@click.argument("video_path", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--skip-frames",
    default="1",
    help="Frame stride used to estimate the number of processed frames",
)
def info(video_path: Path, skip_frames: str):
    """Display information about a video file."""
    print_banner()

    source = VideoFrameSource(video_path, parse_skip_frames(skip_frames))
    try:
        with source:
            print_video_info(source)
    except VideoSearchError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(EXIT_ERROR)


@main.command()
def engines():
    """List available OCR engines."""
    print_banner()

    console.print("[bold]OCR Engines:[/bold]")
    console.print()

    for engine_info in get_all_engines_info():
        if engine_info.installed:
            console.print(
                f"  [green]✓[/green] {engine_info.name} - {engine_info.description}"
            )
        else:
            console.print(
                f"  [yellow]○[/yellow] {engine_info.name} (not installed: "
                f"pip install {engine_info.module})"
            )


if __name__ == "__main__":
    main()
