"""Time formatting helpers shared by the ledger, CLI and progress output."""

from typing import Optional


def format_timestamp(seconds: float) -> str:
    """
    Format a frame offset as ``hh:mm:ss.fff``.

    Sub-millisecond parts are truncated, not rounded, so frame 2 at 29.97 fps
    (0.06673s) renders as ``00:00:00.066``. Hours are not wrapped at 24, so
    very long recordings keep increasing.

    Args:
        seconds: Offset from the start of the video

    Returns:
        Timestamp string, e.g. ``00:01:02.500``
    """
    # Epsilon absorbs float error in products that should be whole milliseconds
    total_ms = int(max(seconds, 0.0) * 1000 + 1e-6)
    hours, remainder = divmod(total_ms, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs, millis = divmod(remainder, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"


def format_duration(seconds: Optional[float]) -> str:
    """Format a duration as ``hh:mm:ss``, or ``unknown`` when not available."""
    if seconds is None:
        return "unknown"
    total = int(max(seconds, 0.0))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
