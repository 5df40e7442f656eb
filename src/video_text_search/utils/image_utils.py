"""Image conversion utilities for OCR input."""

import cv2
import numpy as np
from PIL import Image


def to_grayscale(frame: np.ndarray) -> np.ndarray:
    """
    Convert a BGR frame to a single-channel grayscale image.

    The input is never modified: a colour frame produces a new buffer and an
    already grayscale frame is returned as-is.

    Args:
        frame: BGR, BGRA or grayscale numpy array

    Returns:
        Grayscale numpy array
    """
    if frame.ndim == 2:
        return frame

    channels = frame.shape[2]
    if channels == 1:
        return frame[:, :, 0]
    if channels == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)

    return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)


def frame_to_pil(frame: np.ndarray) -> Image.Image:
    """
    Convert a frame to a PIL image.

    Args:
        frame: Grayscale or BGR numpy array

    Returns:
        PIL Image ("L" for grayscale input, "RGB" for colour input)
    """
    if frame.ndim == 2:
        return Image.fromarray(frame)

    return Image.fromarray(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))
