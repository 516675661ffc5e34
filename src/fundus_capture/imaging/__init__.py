"""
Imaging Module
==============

Pixel-level processing for captured fundus frames.

This module provides:
    - Codec: decode captures into Frames, encode Frames to JPEG/PNG
    - Sharpness: Laplacian-variance focus metric
    - Enhancement: tile-adaptive contrast equalization, red-free view
    - Crop: ellipse mask with transparent surround

All operations take a Frame and return a NEW Frame or a scalar.
"""

from fundus_capture.imaging.codec import (
    decode_data_url,
    decode_image,
    encode_jpeg,
    encode_png,
    frame_from_bgr,
    load_image,
    save_image,
    to_data_url,
)
from fundus_capture.imaging.sharpness import score_sharpness
from fundus_capture.imaging.enhance import enhance_contrast, to_red_free
from fundus_capture.imaging.crop import crop_ellipse, ellipse_mask

__all__ = [
    # Codec
    "decode_image",
    "decode_data_url",
    "encode_jpeg",
    "encode_png",
    "frame_from_bgr",
    "load_image",
    "save_image",
    "to_data_url",
    # Metrics
    "score_sharpness",
    # Transforms
    "enhance_contrast",
    "to_red_free",
    "crop_ellipse",
    "ellipse_mask",
]
