"""
Fundus Capture
==============

Local image-processing core for a smartphone fundus (retina) camera.

This package captures a burst of frames, keeps the sharpest, crops to an
elliptical field of view, enhances contrast, and packages the OD/OS
images with a patient record for report generation.

Components:
    - models: Frame, BurstResult, EllipseSpec, exam/patient records
    - imaging: codec, sharpness metric, contrast enhancement, ellipse crop
    - capture: camera adapter and burst selector
    - pipeline: configured end-to-end orchestration

Example:
    from fundus_capture.capture import capture_burst
    from fundus_capture.imaging import crop_ellipse, enhance_contrast

    result = await capture_burst(camera.read, count=5)
    final = enhance_contrast(crop_ellipse(result.best_frame, spec))
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
