"""
Ellipse Model
=============

Elliptical field-of-view definition used by the crop stage.

The ellipse is supplied by the operator (typically by dragging a guide
over the captured image). Coordinates are in IMAGE SPACE (pixels), with
origin at the top-left, X rightward and Y downward.

Example:
    {
        "cx": 320, "cy": 240,
        "rx": 224, "ry": 168,
        "rotation": 0.0
    }

Note:
    Radii are NOT validated here. An operator may hold an in-progress
    ellipse with degenerate radii; crop_ellipse rejects it at use time.
"""

import math
from typing import Tuple

from pydantic import BaseModel, Field


class EllipseSpec(BaseModel):
    """
    Ellipse in image coordinates.

    Attributes:
        cx: Center X (pixels from left)
        cy: Center Y (pixels from top)
        rx: Radius along the ellipse's own X axis (pixels)
        ry: Radius along the ellipse's own Y axis (pixels)
        rotation: Clockwise rotation in radians (image space)
    """

    cx: float = Field(..., description="Center X (pixels from left)")
    cy: float = Field(..., description="Center Y (pixels from top)")
    rx: float = Field(..., description="Horizontal radius (pixels)")
    ry: float = Field(..., description="Vertical radius (pixels)")
    rotation: float = Field(default=0.0, description="Rotation (radians)")

    @classmethod
    def default_for(cls, width: int, height: int) -> "EllipseSpec":
        """
        Initial guide for an image: centered, radii at 35% of each side.

        Args:
            width: Image width in pixels
            height: Image height in pixels

        Returns:
            EllipseSpec centered on the image
        """
        return cls(
            cx=width // 2,
            cy=height // 2,
            rx=math.floor(width * 0.35),
            ry=math.floor(height * 0.35),
            rotation=0.0,
        )

    def bounding_box(self, width: int, height: int) -> Tuple[int, int, int, int]:
        """
        Axis-aligned crop rectangle clamped to the image.

        The box spans 2*rx by 2*ry around the center regardless of
        rotation.

        Args:
            width: Source image width
            height: Source image height

        Returns:
            Tuple of (left, top, box_width, box_height). Width or height
            may be <= 0 when the ellipse lies outside the image.
        """
        left = max(0, math.floor(self.cx - self.rx))
        top = max(0, math.floor(self.cy - self.ry))
        box_width = min(width - left, math.ceil(self.rx * 2))
        box_height = min(height - top, math.ceil(self.ry * 2))
        return left, top, box_width, box_height
