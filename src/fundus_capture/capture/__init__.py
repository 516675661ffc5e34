"""
Capture Module
==============

Frame acquisition and best-frame selection.

This module provides:
    - VideoCaptureSource: OpenCV camera adapter (take_frame provider)
    - capture_burst: async burst capture + sharpness selection
    - BurstSelector: configured burst runner with metrics

Example:
    from fundus_capture.capture import BurstSelector, VideoCaptureSource

    selector = BurstSelector(count=5, inter_frame_delay_ms=110)
    with VideoCaptureSource(0) as camera:
        result = await selector.run(camera.read)
"""

from fundus_capture.capture.burst import (
    BurstSelector,
    BurstSelectorMetrics,
    capture_burst,
    capture_burst_sync,
    select_best,
)
from fundus_capture.capture.camera import VideoCaptureSource


__all__ = [
    "BurstSelector",
    "BurstSelectorMetrics",
    "capture_burst",
    "capture_burst_sync",
    "select_best",
    "VideoCaptureSource",
]
