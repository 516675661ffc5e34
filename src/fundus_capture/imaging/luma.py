"""
Luminance helpers shared by the scorer and the contrast enhancer.
"""

import numpy as np


# ITU-R BT.601 luma weights (R, G, B)
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def luminance(rgb: np.ndarray) -> np.ndarray:
    """
    Weighted luminance of an (H, W, 3+) array.

    Returns:
        float64 array (H, W). Channels past the third are ignored.
    """
    return rgb[..., :3].astype(np.float64) @ LUMA_WEIGHTS


def round_half_up(values: np.ndarray) -> np.ndarray:
    """Round .5 away from zero for non-negative input (numpy rounds to even)."""
    return np.floor(values + 0.5)
