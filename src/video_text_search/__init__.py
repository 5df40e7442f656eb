"""Video Text Search - find frames of a video that contain a piece of text."""

__version__ = "1.0.0"
