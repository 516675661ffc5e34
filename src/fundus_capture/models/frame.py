"""
Frame Data Models
=================

Decoded still images and burst results.

This module defines the typed Frame class that is passed between every
stage of the pixel pipeline (scoring, cropping, enhancement, encoding).

Design Rules:
    - Pixels are always RGBA, uint8, row-major (H, W, 4)
    - The pixel array is read-only; transforms return new Frames
    - A Frame never holds encoded bytes (see imaging.codec)
"""

from dataclasses import dataclass, field
from typing import Tuple

import numpy as np


@dataclass(frozen=True, slots=True, eq=False)
class Frame:
    """
    Decoded still image.

    This is the canonical internal representation of an image.
    It is immutable (frozen, non-writeable array) to prevent
    accidental modification by downstream stages.

    Attributes:
        pixels: RGBA pixel buffer, shape (H, W, 4), dtype uint8

    Note:
        Grayscale (H, W) and RGB (H, W, 3) inputs are expanded to RGBA
        with an opaque alpha channel. The input array is always copied.
        Frames compare by identity; compare pixels explicitly when needed.
    """

    pixels: np.ndarray = field(repr=False)

    def __post_init__(self) -> None:
        """Normalize to a private read-only RGBA copy."""
        arr = np.asarray(self.pixels)

        if arr.dtype != np.uint8:
            raise ValueError(f"Frame pixels must be uint8, got {arr.dtype}")

        if arr.ndim == 2:
            arr = np.repeat(arr[:, :, None], 3, axis=2)

        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"Unsupported pixel shape: {arr.shape}")

        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise ValueError(f"Frame must not be empty, got shape {arr.shape}")

        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            rgba = np.concatenate([arr, alpha], axis=2)
        else:
            rgba = np.array(arr, dtype=np.uint8, copy=True)

        rgba = np.ascontiguousarray(rgba)
        rgba.setflags(write=False)
        object.__setattr__(self, "pixels", rgba)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def rgb(self) -> np.ndarray:
        """Read-only (H, W, 3) view of the color channels."""
        return self.pixels[:, :, :3]

    @property
    def alpha(self) -> np.ndarray:
        """Read-only (H, W) view of the alpha channel."""
        return self.pixels[:, :, 3]

    @property
    def is_opaque(self) -> bool:
        """True when every pixel has alpha 255."""
        return bool(np.all(self.alpha == 255))

    def writable_copy(self) -> np.ndarray:
        """Return a private mutable copy of the RGBA buffer."""
        return self.pixels.copy()

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixel buffer."""
        return f"Frame(width={self.width}, height={self.height})"


@dataclass(frozen=True, slots=True)
class ScoredFrame:
    """
    A captured frame paired with its sharpness score.

    Attributes:
        index: Position among the successfully grabbed frames of a burst
        frame: The decoded frame
        score: Laplacian-variance sharpness (>= 0, higher is sharper)
    """

    index: int
    frame: Frame
    score: float

    def __post_init__(self) -> None:
        if self.score < 0:
            raise ValueError("score must be non-negative")


@dataclass(frozen=True, slots=True)
class BurstResult:
    """
    Outcome of one burst capture session.

    Attributes:
        frames: Scored frames in grab order
        best_index: Index into frames of the sharpest one (first wins ties)
        attempts: Number of grab attempts made (including failed ones)
    """

    frames: Tuple[ScoredFrame, ...]
    best_index: int
    attempts: int

    def __post_init__(self) -> None:
        if not self.frames:
            raise ValueError("BurstResult requires at least one frame")
        if not 0 <= self.best_index < len(self.frames):
            raise ValueError(
                f"best_index {self.best_index} out of range for "
                f"{len(self.frames)} frames"
            )

    @property
    def best(self) -> ScoredFrame:
        return self.frames[self.best_index]

    @property
    def best_frame(self) -> Frame:
        return self.frames[self.best_index].frame

    @property
    def scores(self) -> Tuple[float, ...]:
        return tuple(sf.score for sf in self.frames)

    @property
    def dropped(self) -> int:
        """Number of failed grabs in this burst."""
        return self.attempts - len(self.frames)

    def to_dict(self) -> dict:
        """Export as dictionary for logging/serialization."""
        return {
            "frames": len(self.frames),
            "attempts": self.attempts,
            "best_index": self.best_index,
            "scores": [round(s, 3) for s in self.scores],
        }
