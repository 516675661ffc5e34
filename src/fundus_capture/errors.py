"""
Error Kinds
===========

Exceptions raised by the fundus capture core.

All errors derive from FundusCaptureError so callers (CLI, UI adapters)
can catch the whole family in one place.

    - InvalidParameterError: bad tile size, clip limit, radii, burst count
    - EmptyBurstError: a burst produced no usable frames
    - ImageDecodeError / ImageEncodeError: codec failures
    - CameraUnavailableError: camera device could not be opened
    - IncompleteExamError: report requested with no eye image saved
"""


class FundusCaptureError(Exception):
    """Base class for all fundus capture errors."""
    pass


class InvalidParameterError(FundusCaptureError, ValueError):
    """Raised before any pixel work when a parameter is out of range."""
    pass


class EmptyBurstError(FundusCaptureError):
    """Raised when every frame grab in a burst failed."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(
            f"Burst produced no usable frames after {attempts} attempts"
        )


class ImageDecodeError(FundusCaptureError):
    """Raised when image decoding fails."""
    pass


class ImageEncodeError(FundusCaptureError):
    """Raised when image encoding fails."""
    pass


class CameraUnavailableError(FundusCaptureError):
    """Raised when the camera device cannot be opened."""
    pass


class IncompleteExamError(FundusCaptureError):
    """Raised when report inputs are requested before any eye was saved."""
    pass
