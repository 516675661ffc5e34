"""
Fundus Pipeline
===============

End-to-end orchestration of one capture session:

    camera -> burst (sharpness selection) -> best frame
           -> [ellipse crop] -> [contrast enhancement] -> encoded bytes

The pipeline holds configuration only. Frames flow through as values;
nothing about a session (patient, selected eye, intermediate frames) is
stored on the pipeline object.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from fundus_capture.capture.burst import BurstSelector, FrameGrabber
from fundus_capture.config import Settings
from fundus_capture.imaging.codec import encode_jpeg, encode_png, load_image, save_image
from fundus_capture.imaging.crop import crop_ellipse
from fundus_capture.imaging.enhance import enhance_contrast, validate_enhance_params
from fundus_capture.models.ellipse import EllipseSpec
from fundus_capture.models.frame import BurstResult, Frame


logger = logging.getLogger(__name__)


class FundusPipeline:
    """
    Configured capture/processing pipeline.

    Attributes:
        settings: Loaded Settings
        selector: BurstSelector built from settings.burst

    Example:
        pipeline = FundusPipeline(settings)
        result = await pipeline.capture(camera.read)
        final = pipeline.process(result.best_frame, ellipse=spec, enhance=True)
        data = pipeline.export(final)
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()

        burst = self.settings.burst
        self.selector = BurstSelector(
            count=burst.count,
            inter_frame_delay_ms=burst.inter_frame_delay_ms,
            working_width=burst.working_width,
        )

    async def capture(self, take_frame: FrameGrabber) -> BurstResult:
        """
        Run one burst and return every scored frame.

        Raises:
            EmptyBurstError: If no frame could be grabbed
        """
        return await self.selector.run(take_frame)

    def process(
        self,
        frame: Frame,
        ellipse: Optional[EllipseSpec] = None,
        enhance: bool = False,
    ) -> Frame:
        """
        Apply the optional crop then the optional enhancement.

        Parameters are validated before any pixel work, so an invalid
        crop or enhancement leaves no partial result.

        Raises:
            InvalidParameterError: If the ellipse or enhancement config
                is invalid
        """
        cfg = self.settings.enhancement
        if enhance:
            validate_enhance_params(cfg.tile_size, cfg.clip_limit)

        result = frame
        if ellipse is not None:
            result = crop_ellipse(result, ellipse)
        if enhance:
            result = enhance_contrast(
                result,
                tile_size=cfg.tile_size,
                clip_limit=cfg.clip_limit,
            )
        return result

    def export(self, frame: Frame) -> bytes:
        """
        Encode for the report composer: PNG if any pixel is transparent,
        JPEG otherwise.
        """
        if frame.is_opaque:
            return encode_jpeg(frame, quality=self.settings.export.jpeg_quality)
        return encode_png(frame)

    def process_file(
        self,
        src: Union[str, Path],
        dst: Union[str, Path],
        ellipse: Optional[EllipseSpec] = None,
        enhance: bool = False,
    ) -> Frame:
        """Load an image, process it and write the result."""
        frame = load_image(src)
        result = self.process(frame, ellipse=ellipse, enhance=enhance)
        save_image(result, dst, jpeg_quality=self.settings.export.jpeg_quality)
        return result
