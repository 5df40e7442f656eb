"""Progress accounting and remaining-time estimation."""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from video_text_search.utils.formatting import format_duration


@dataclass(frozen=True)
class ProgressEstimate:
    """Snapshot of progress for one pipeline phase."""

    completed: int
    total: int
    elapsed: float
    percentage: float
    remaining: Optional[float]  # None means unknown

    @property
    def remaining_str(self) -> str:
        return format_duration(self.remaining)


def estimate_progress(completed: int, total: int, elapsed: float) -> ProgressEstimate:
    """
    Estimate completion by linear extrapolation.

    ``estimated_total = elapsed / (completed / total)`` and
    ``remaining = estimated_total - elapsed``. Remaining time is unknown
    while nothing has completed or when the total is not known. The total
    may be an underestimate (container frame counts are not reliable), so the
    percentage is clamped to 100.

    Args:
        completed: Units finished so far
        total: Expected number of units
        elapsed: Seconds since the phase started

    Returns:
        ProgressEstimate
    """
    if total <= 0:
        return ProgressEstimate(completed, total, elapsed, 0.0, None)

    fraction = min(completed / total, 1.0)
    percentage = fraction * 100.0

    if completed <= 0:
        return ProgressEstimate(completed, total, elapsed, percentage, None)

    estimated_total = elapsed / fraction
    remaining = max(estimated_total - elapsed, 0.0)
    return ProgressEstimate(completed, total, elapsed, percentage, remaining)


def format_progress(estimate: ProgressEstimate, width: int = 50) -> str:
    """
    Render a progress estimate as a single console line.

    Example: ``[#####-----] 50.00% | Elapsed: 00:00:05 | Remaining: 00:00:05``
    """
    filled = int(estimate.percentage / 100.0 * width)
    bar = "#" * filled + "-" * (width - filled)
    return (
        f"[{bar}] {estimate.percentage:.2f}% | "
        f"Elapsed: {format_duration(estimate.elapsed)} | "
        f"Remaining: {estimate.remaining_str}"
    )


class ProgressTracker:
    """
    Thread-safe completed-unit counter for one phase of the pipeline.

    Read-only with respect to the pipeline: it only observes completions.
    """

    def __init__(self, total: int = 0, clock: Callable[[], float] = time.monotonic):
        self.total = total
        self._clock = clock
        self._completed = 0
        self._started_at: Optional[float] = None
        self._lock = threading.Lock()

    def start(self) -> None:
        with self._lock:
            if self._started_at is None:
                self._started_at = self._clock()

    def set_total(self, total: int) -> None:
        with self._lock:
            self.total = total

    def _elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return self._clock() - self._started_at

    def advance(self, count: int = 1) -> ProgressEstimate:
        """Record ``count`` completed units and return the updated estimate."""
        with self._lock:
            if self._started_at is None:
                self._started_at = self._clock()
            self._completed += count
            return estimate_progress(self._completed, self.total, self._elapsed())

    def snapshot(self) -> ProgressEstimate:
        with self._lock:
            return estimate_progress(self._completed, self.total, self._elapsed())

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed
