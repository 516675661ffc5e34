"""
Camera Source
=============

Thin adapter over cv2.VideoCapture that satisfies the burst selector's
take_frame contract: read() returns a Frame, or None on a failed grab.

Design Rules:
    - A single failed grab is NOT an error (returns None)
    - Only failing to open the device raises
    - No buffering, no processing beyond BGR -> RGBA conversion
"""

import logging
from typing import Optional, Union

import cv2

from fundus_capture.errors import CameraUnavailableError
from fundus_capture.imaging.codec import frame_from_bgr
from fundus_capture.models.frame import Frame


logger = logging.getLogger(__name__)


class VideoCaptureSource:
    """
    Camera frame source.

    Attributes:
        device: Camera index or stream URL/path accepted by OpenCV
        frames_read: Successful grabs
        failed_reads: Grabs that returned no frame

    Example:
        with VideoCaptureSource(0) as camera:
            result = await capture_burst(camera.read)
    """

    def __init__(self, device: Union[int, str] = 0) -> None:
        self.device = device
        self._capture: Optional[cv2.VideoCapture] = None
        self.frames_read: int = 0
        self.failed_reads: int = 0

    @property
    def is_open(self) -> bool:
        return self._capture is not None and self._capture.isOpened()

    def open(self) -> None:
        """
        Open the camera device.

        Raises:
            CameraUnavailableError: If OpenCV cannot open the device
        """
        if self.is_open:
            return

        capture = cv2.VideoCapture(self.device)
        if not capture.isOpened():
            capture.release()
            raise CameraUnavailableError(f"Cannot open camera device: {self.device}")

        self._capture = capture
        logger.info(f"Camera opened: {self.device}")

    def close(self) -> None:
        """Release the camera device."""
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info(f"Camera released: {self.device}")

    def read(self) -> Optional[Frame]:
        """
        Grab one frame.

        Returns:
            Frame, or None if the camera is closed or the grab failed
        """
        if not self.is_open:
            self.failed_reads += 1
            return None

        ok, image = self._capture.read()
        if not ok or image is None:
            self.failed_reads += 1
            logger.debug(f"Grab failed on {self.device}")
            return None

        self.frames_read += 1
        return frame_from_bgr(image)

    def __enter__(self) -> "VideoCaptureSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
