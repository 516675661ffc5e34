"""
Ellipse Mask & Crop
===================

Masks everything outside an operator-defined ellipse to transparent and
trims the result to the ellipse's bounding box.

Pipeline:
    1. Mask = zeros, filled anti-aliased ellipse painted 255
    2. alpha' = round(alpha * mask / 255)
    3. Copy the clamped bounding box [cx-rx, cy-ry, 2rx, 2ry]

Coordinate convention:
    EllipseSpec uses continuous image coordinates where pixel (x, y)
    covers [x, x+1) x [y, y+1). Each pixel is sampled on a regular
    SUPERSAMPLE x SUPERSAMPLE grid inside that square; a sample at
    (px, py) is inside when

        u = ( dx*cos(r) + dy*sin(r)) / rx
        v = (-dx*sin(r) + dy*cos(r)) / ry
        u^2 + v^2 <= 1,   with dx = px - cx, dy = py - cy

    The mask value is the inside fraction scaled to 0..255, so rotation
    is applied exactly rather than snapped to whole degrees.

Pixels inside the bounding box but outside the ellipse are kept and made
fully transparent, never removed.
"""

import logging
import math

import numpy as np

from fundus_capture.errors import InvalidParameterError
from fundus_capture.imaging.luma import round_half_up
from fundus_capture.models.ellipse import EllipseSpec
from fundus_capture.models.frame import Frame


logger = logging.getLogger(__name__)


# Samples per pixel edge for edge anti-aliasing
SUPERSAMPLE = 4


def _is_drawable(spec: EllipseSpec) -> bool:
    values = (spec.cx, spec.cy, spec.rx, spec.ry, spec.rotation)
    return all(math.isfinite(v) for v in values) and spec.rx > 0 and spec.ry > 0


def ellipse_mask(width: int, height: int, spec: EllipseSpec) -> np.ndarray:
    """
    Rasterize a filled ellipse into a uint8 mask.

    Only the ellipse's rotated extent is sampled; everything else stays 0.

    Args:
        width: Mask width
        height: Mask height
        spec: Ellipse to paint

    Returns:
        (height, width) uint8 mask, 255 inside, 0 outside, with
        anti-aliased edge values in between. All zeros for an ellipse
        without area.
    """
    mask = np.zeros((height, width), dtype=np.uint8)
    if not _is_drawable(spec):
        return mask

    cos_r = math.cos(spec.rotation)
    sin_r = math.sin(spec.rotation)

    # Half extents of the rotated ellipse's axis-aligned box
    half_w = math.hypot(spec.rx * cos_r, spec.ry * sin_r)
    half_h = math.hypot(spec.rx * sin_r, spec.ry * cos_r)

    x0 = max(0, math.floor(spec.cx - half_w))
    x1 = min(width, math.ceil(spec.cx + half_w))
    y0 = max(0, math.floor(spec.cy - half_h))
    y1 = min(height, math.ceil(spec.cy + half_h))
    if x0 >= x1 or y0 >= y1:
        return mask

    xs = np.arange(x0, x1, dtype=np.float64) - spec.cx
    ys = np.arange(y0, y1, dtype=np.float64)[:, None] - spec.cy
    offsets = (np.arange(SUPERSAMPLE, dtype=np.float64) + 0.5) / SUPERSAMPLE

    hits = np.zeros((y1 - y0, x1 - x0), dtype=np.uint16)
    for oy in offsets:
        dy = ys + oy
        for ox in offsets:
            dx = xs + ox
            u = (dx * cos_r + dy * sin_r) / spec.rx
            v = (dy * cos_r - dx * sin_r) / spec.ry
            hits += (u * u + v * v) <= 1.0

    coverage = hits * (255.0 / (SUPERSAMPLE * SUPERSAMPLE))
    mask[y0:y1, x0:x1] = round_half_up(coverage).astype(np.uint8)
    return mask


def crop_ellipse(frame: Frame, spec: EllipseSpec) -> Frame:
    """
    Crop a frame to an ellipse with a transparent surround.

    Args:
        frame: Source frame (not modified)
        spec: Ellipse center, radii and rotation

    Returns:
        New RGBA Frame covering the ellipse's clamped bounding box

    Raises:
        InvalidParameterError: If a value is not finite, a radius is not
            positive, or the bounding box does not overlap the frame
    """
    if not _is_drawable(spec):
        raise InvalidParameterError(
            f"Ellipse needs finite values and positive radii, got cx={spec.cx}, "
            f"cy={spec.cy}, rx={spec.rx}, ry={spec.ry}, rotation={spec.rotation}"
        )

    left, top, box_w, box_h = spec.bounding_box(frame.width, frame.height)
    if box_w <= 0 or box_h <= 0:
        raise InvalidParameterError(
            f"Ellipse bounding box lies outside the {frame.width}x{frame.height} frame"
        )

    mask = ellipse_mask(frame.width, frame.height, spec)

    pixels = frame.writable_copy()
    alpha = pixels[:, :, 3].astype(np.float64)
    pixels[:, :, 3] = round_half_up(alpha * mask / 255.0).astype(np.uint8)

    cropped = pixels[top:top + box_h, left:left + box_w]

    logger.info(
        f"Cropped ellipse (cx={spec.cx}, cy={spec.cy}, rx={spec.rx}, ry={spec.ry}) "
        f"to {box_w}x{box_h} at ({left}, {top})"
    )
    return Frame(cropped)
