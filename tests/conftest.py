"""
Test Configuration
==================

Pytest fixtures and synthetic images for fundus_capture tests.
"""

import cv2
import numpy as np
import pytest

from fundus_capture.models.frame import Frame


def gray_frame(width: int, height: int, value: int) -> Frame:
    """Opaque frame with R = G = B = value everywhere."""
    return Frame(np.full((height, width, 3), value, dtype=np.uint8))


def checkerboard(size: int = 256, square: int = 16) -> np.ndarray:
    """uint8 RGB checkerboard of black and white squares."""
    yy, xx = np.indices((size, size))
    board = (((yy // square) + (xx // square)) % 2 * 255).astype(np.uint8)
    return np.repeat(board[:, :, None], 3, axis=2)


def blurred(rgb: np.ndarray, sigma: float) -> np.ndarray:
    """Gaussian blur with a kernel sized to the sigma."""
    k = int(6 * sigma + 1) | 1
    return cv2.GaussianBlur(rgb, (k, k), sigma)


@pytest.fixture
def black_frame():
    return gray_frame(64, 48, 0)


@pytest.fixture
def white_frame():
    return gray_frame(64, 48, 255)


@pytest.fixture
def edge_image():
    """200x200 RGB image: left half black, right half white."""
    img = np.zeros((200, 200, 3), dtype=np.uint8)
    img[:, 100:] = 255
    return img


@pytest.fixture
def sharpening_frames():
    """Checkerboard frames ordered from most blurred to perfectly sharp."""
    board = checkerboard()
    return [Frame(blurred(board, s)) for s in (8.0, 4.0, 2.0, 1.0)] + [Frame(board)]


@pytest.fixture
def opaque_square():
    """100x100 opaque mid-gray RGBA frame."""
    return gray_frame(100, 100, 128)


@pytest.fixture
def noisy_frame():
    rng = np.random.default_rng(1234)
    return Frame(rng.integers(0, 256, size=(120, 160, 3), dtype=np.uint8))
