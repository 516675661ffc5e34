"""
Exam Models
===========

Patient and per-eye session data handed to the report composer.

These models are OPAQUE to the pixel pipeline. They carry already
encoded images (JPEG/PNG bytes) alongside the patient record so the
external report layer receives everything in one object.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field

from fundus_capture.errors import IncompleteExamError


class Eye(str, Enum):
    """
    Eye being photographed.

    Values:
        OD: Right eye (oculus dexter)
        OS: Left eye (oculus sinister)
    """

    OD = "OD"
    OS = "OS"


class PatientRecord(BaseModel):
    """Patient identification fields as entered by the operator."""

    first_name: str = Field(default="", description="Given name")
    last_name: str = Field(default="", description="Family name")
    mrn: str = Field(default="", description="Medical record number")
    dob: str = Field(default="", description="Date of birth (YYYY-MM-DD)")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True, slots=True)
class ReportInputs:
    """
    Everything the report composer needs.

    Attributes:
        patient: Patient record
        od_image: Encoded right-eye image, or None
        os_image: Encoded left-eye image, or None
    """

    patient: PatientRecord
    od_image: Optional[bytes]
    os_image: Optional[bytes]

    def __repr__(self) -> str:
        return (
            f"ReportInputs(patient={self.patient.full_name!r}, "
            f"od={self.od_image is not None}, "
            f"os={self.os_image is not None})"
        )


class ExamSession:
    """
    One patient's exam: a slot per eye for the final processed image.

    Saving an eye again overwrites the previous image for that eye.

    Example:
        session = ExamSession(PatientRecord(first_name="Ada", mrn="123"))
        session.save(Eye.OD, jpeg_bytes)
        inputs = session.report_inputs()
    """

    def __init__(self, patient: Optional[PatientRecord] = None) -> None:
        self.patient = patient or PatientRecord()
        self._images: Dict[Eye, bytes] = {}

    def save(self, eye: Eye, image: bytes) -> None:
        """Store the encoded image for an eye."""
        if not image:
            raise ValueError("image must be non-empty encoded bytes")
        self._images[Eye(eye)] = image

    def image_for(self, eye: Eye) -> Optional[bytes]:
        return self._images.get(Eye(eye))

    def clear(self, eye: Optional[Eye] = None) -> None:
        """Drop one eye's image, or both when eye is None."""
        if eye is None:
            self._images.clear()
        else:
            self._images.pop(Eye(eye), None)

    @property
    def has_images(self) -> bool:
        return bool(self._images)

    def report_inputs(self) -> ReportInputs:
        """
        Package the session for the report composer.

        Raises:
            IncompleteExamError: If no eye image has been saved
        """
        if not self._images:
            raise IncompleteExamError("No OD or OS image saved for this exam")

        return ReportInputs(
            patient=self.patient,
            od_image=self._images.get(Eye.OD),
            os_image=self._images.get(Eye.OS),
        )
