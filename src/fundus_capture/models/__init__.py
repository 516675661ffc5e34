"""
Data Models
===========

Typed data passed through the fundus capture pipeline.

Models:
    Frame:
        - Frame: Decoded RGBA still image (immutable)
        - ScoredFrame: Frame plus sharpness score
        - BurstResult: All scored frames of a burst plus the best index

    Geometry:
        - EllipseSpec: Elliptical field of view for cropping

    Exam:
        - Eye: OD / OS
        - PatientRecord: Patient identification
        - ExamSession: Per-eye image slots
        - ReportInputs: Hand-off to the report composer
"""

from fundus_capture.models.frame import BurstResult, Frame, ScoredFrame
from fundus_capture.models.ellipse import EllipseSpec
from fundus_capture.models.exam import ExamSession, Eye, PatientRecord, ReportInputs

__all__ = [
    # Frame
    "Frame",
    "ScoredFrame",
    "BurstResult",
    # Geometry
    "EllipseSpec",
    # Exam
    "Eye",
    "PatientRecord",
    "ExamSession",
    "ReportInputs",
]
