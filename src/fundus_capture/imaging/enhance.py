"""
Contrast Enhancement
====================

Tile-adaptive, contrast-limited histogram equalization (a CLAHE variant)
and red-free rendering for fundus images.

Algorithm (enhance_contrast):
    1. Y = round(0.299 R + 0.587 G + 0.114 B) per pixel
    2. Split Y into tile_size x tile_size tiles (edge tiles clamped)
    3. Per tile:
         hist      = 256-bin histogram of Y
         max_clip  = max(1, floor(clip_limit * n))
         excess    = sum(hist - max_clip) over bins above max_clip
         hist      = min(hist, max_clip) + excess // 256
         lut[v]    = round(cdf[v] / n * 255)
         Y'        = lut[Y]
    4. Each RGB channel is scaled by Y' / Y (1.0 where Y == 0), clamped
       to 255. Alpha is untouched.

Design Note:
    Tiles are equalized independently. There is NO bilinear blending
    between neighbouring tile LUTs, so tile seams can show on strongly
    non-uniform images. The remainder excess % 256 is dropped.
"""

import logging
import math

import numpy as np

from fundus_capture.errors import InvalidParameterError
from fundus_capture.imaging.luma import luminance, round_half_up
from fundus_capture.models.frame import Frame


logger = logging.getLogger(__name__)


DEFAULT_TILE_SIZE = 64
DEFAULT_CLIP_LIMIT = 0.01

HISTOGRAM_BINS = 256


def validate_enhance_params(tile_size: int, clip_limit: float) -> None:
    """
    Check enhancement parameters.

    Raises:
        InvalidParameterError: If tile_size <= 0 or clip_limit not in (0, 1]
    """
    if isinstance(tile_size, bool) or not isinstance(tile_size, (int, np.integer)):
        raise InvalidParameterError(f"tile_size must be an integer, got {tile_size!r}")
    if tile_size <= 0:
        raise InvalidParameterError(f"tile_size must be positive, got {tile_size}")
    if isinstance(clip_limit, bool) or not isinstance(clip_limit, (int, float, np.integer, np.floating)):
        raise InvalidParameterError(f"clip_limit must be a number, got {clip_limit!r}")
    if not 0.0 < clip_limit <= 1.0:
        raise InvalidParameterError(f"clip_limit must be in (0, 1], got {clip_limit!r}")


def tile_lut(tile: np.ndarray, clip_limit: float) -> np.ndarray:
    """
    Build the clipped-histogram equalization LUT for one tile.

    Args:
        tile: uint8 luminance values of the tile (any shape)
        clip_limit: Fraction of the tile's pixel count a bin may hold

    Returns:
        uint8 array of 256 output levels
    """
    n = tile.size
    hist = np.bincount(tile.ravel(), minlength=HISTOGRAM_BINS).astype(np.int64)

    max_clip = max(1, math.floor(clip_limit * n))
    over = hist > max_clip
    excess = int(np.sum(hist[over] - max_clip))
    hist[over] = max_clip

    add = excess // HISTOGRAM_BINS
    if add > 0:
        hist += add

    cdf = np.cumsum(hist)
    lut = round_half_up(cdf / n * 255.0)
    return np.clip(lut, 0, 255).astype(np.uint8)


def equalize_tiles(lum: np.ndarray, tile_size: int, clip_limit: float) -> np.ndarray:
    """
    Equalize a uint8 luminance plane tile by tile.

    Args:
        lum: (H, W) uint8 luminance
        tile_size: Tile edge length in pixels
        clip_limit: Histogram clip fraction

    Returns:
        New (H, W) uint8 luminance plane
    """
    h, w = lum.shape
    out = lum.copy()

    tiles_x = math.ceil(w / tile_size)
    tiles_y = math.ceil(h / tile_size)

    for ty in range(tiles_y):
        y0 = ty * tile_size
        y1 = min(h, y0 + tile_size)
        for tx in range(tiles_x):
            x0 = tx * tile_size
            x1 = min(w, x0 + tile_size)

            tile = lum[y0:y1, x0:x1]
            lut = tile_lut(tile, clip_limit)
            out[y0:y1, x0:x1] = lut[tile]

    logger.debug(f"Equalized {tiles_x}x{tiles_y} tiles of {tile_size}px")
    return out


def enhance_contrast(
    frame: Frame,
    tile_size: int = DEFAULT_TILE_SIZE,
    clip_limit: float = DEFAULT_CLIP_LIMIT,
) -> Frame:
    """
    Apply tile-adaptive contrast enhancement to a frame.

    Args:
        frame: Source frame (not modified)
        tile_size: Tile edge length in pixels (> 0)
        clip_limit: Histogram clip fraction in (0, 1]

    Returns:
        New enhanced Frame with the source alpha channel

    Raises:
        InvalidParameterError: If tile_size or clip_limit is invalid
    """
    validate_enhance_params(tile_size, clip_limit)

    pixels = frame.writable_copy()
    rgb = pixels[:, :, :3].astype(np.float64)

    old_lum = round_half_up(luminance(rgb))
    new_lum = equalize_tiles(old_lum.astype(np.uint8), tile_size, clip_limit)

    scale = np.ones_like(old_lum)
    np.divide(new_lum, old_lum, out=scale, where=old_lum > 0)

    scaled = round_half_up(rgb * scale[:, :, None])
    pixels[:, :, :3] = np.minimum(scaled, 255.0).astype(np.uint8)

    logger.info(
        f"Enhanced {frame.width}x{frame.height} frame "
        f"(tile_size={tile_size}, clip_limit={clip_limit})"
    )
    return Frame(pixels)


def to_red_free(frame: Frame) -> Frame:
    """
    Red-free rendering: copy the green channel into R, G and B.

    Vessels and haemorrhages show higher contrast in the green channel.
    Alpha is preserved.
    """
    pixels = frame.writable_copy()
    green = pixels[:, :, 1].copy()
    pixels[:, :, 0] = green
    pixels[:, :, 2] = green
    return Frame(pixels)
