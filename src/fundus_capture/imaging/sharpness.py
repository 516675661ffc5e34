"""
Sharpness Scoring
=================

No-reference focus metric used to pick the best frame of a burst.

The score is the variance of the discrete Laplacian response over the
luminance channel, computed at a fixed working width so that scores from
different frames of the same burst are comparable.

Formula:
    L = [[0, 1, 0], [1, -4, 1], [0, 1, 0]] * Y    (interior pixels only)
    score = Var(L)                                (population variance)

Higher variance = more high-frequency detail = better focus.
Flat images score exactly 0.
"""

import logging

import cv2
import numpy as np

from fundus_capture.imaging.luma import luminance
from fundus_capture.models.frame import Frame


logger = logging.getLogger(__name__)


DEFAULT_WORKING_WIDTH = 256


def _resize_to_width(rgb: np.ndarray, working_width: int) -> np.ndarray:
    """Resize once to working_width, keeping aspect ratio for the height."""
    h, w = rgb.shape[:2]
    new_h = max(1, int(round(h / w * working_width)))

    if (w, h) == (working_width, new_h):
        return rgb

    interpolation = cv2.INTER_AREA if working_width < w else cv2.INTER_LINEAR
    return cv2.resize(rgb, (working_width, new_h), interpolation=interpolation)


def laplacian_response(gray: np.ndarray) -> np.ndarray:
    """
    Apply the 4-neighbour Laplacian to interior pixels.

    Args:
        gray: Luminance (H, W) float array, H and W >= 3

    Returns:
        (H-2, W-2) float64 response. The 1-pixel border is excluded.
    """
    lap = cv2.Laplacian(gray.astype(np.float64), cv2.CV_64F, ksize=1)
    return lap[1:-1, 1:-1]


def score_sharpness(frame: Frame, working_width: int = DEFAULT_WORKING_WIDTH) -> float:
    """
    Compute the Laplacian-variance sharpness of a frame.

    Args:
        frame: Frame to score
        working_width: Width the frame is resized to before filtering

    Returns:
        Non-negative sharpness score. 0.0 for images too small to have
        interior pixels (working width or height <= 2).
    """
    if working_width <= 0:
        raise ValueError(f"working_width must be positive, got {working_width}")

    rgb = _resize_to_width(np.ascontiguousarray(frame.rgb), working_width)
    h, w = rgb.shape[:2]

    if w <= 2 or h <= 2:
        return 0.0

    response = laplacian_response(luminance(rgb))
    score = float(np.var(response))

    logger.debug(f"Sharpness {score:.3f} for {frame.width}x{frame.height} frame")
    return max(0.0, score)
