"""
Rotation bounding boxes, placement transforms and crop regions

All coordinates stay floating point; values are truncated to whole pixels only
when a buffer is allocated.
"""

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..errors import InvalidDimensions

# Absorbs float noise such as 1079.9999999999998 before truncation
_PIXEL_EPSILON = 1e-6


def to_pixels(value: float) -> int:
    """Truncate a float length to an allocatable pixel count (at least 1)."""
    return max(1, int(math.floor(value + _PIXEL_EPSILON)))


def _check_dimensions(width, height):
    for side in (width, height):
        if isinstance(side, bool) or not isinstance(side, (int, np.integer)) or side <= 0:
            raise InvalidDimensions(f"Dimensions must be positive integers, got {width}x{height}")


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box containing a rotated rectangle."""
    width: float
    height: float

    def pixel_size(self) -> Tuple[int, int]:
        """(width, height) of the buffer that holds the box."""
        return to_pixels(self.width), to_pixels(self.height)


@dataclass(frozen=True)
class CropRegion:
    """Source rectangle selected by a crop fit, in buffer coordinates."""
    x: float
    y: float
    width: float
    height: float


def rotated_bounding_box(width: int, height: int, angle_degrees: float) -> BoundingBox:
    """
    Minimal axis-aligned box containing a width x height rectangle rotated
    about its center.

    Any real angle is accepted; sine and cosine periodicity makes the result
    repeat every 360 degrees.
    """
    _check_dimensions(width, height)
    theta = math.radians(angle_degrees)
    cos = abs(math.cos(theta))
    sin = abs(math.sin(theta))
    return BoundingBox(
        width=width * cos + height * sin,
        height=width * sin + height * cos,
    )


def placement_matrix(width: int, height: int, box: BoundingBox,
                     angle_degrees: float, mirrored: bool) -> np.ndarray:
    """
    Affine matrix painting the source into its rotation bounding box.

    The source is centered in the box, mirrored about its vertical center axis
    and then rotated about the same center (clockwise for positive angles,
    y pointing down). Mirror is composed first: T(box/2) . R . S . T(-src/2).

    The returned 2x3 matrix maps source pixel indices to buffer pixel indices
    (pixel centers sit at +0.5 in continuous coordinates), as expected by
    cv2.warpAffine.
    """
    _check_dimensions(width, height)
    theta = math.radians(angle_degrees)
    cos, sin = math.cos(theta), math.sin(theta)

    rotation = np.array([[cos, -sin], [sin, cos]], dtype=np.float64)
    mirror = np.diag([-1.0 if mirrored else 1.0, 1.0])
    linear = rotation @ mirror

    src_center = np.array([width / 2.0, height / 2.0])
    box_center = np.array([box.width / 2.0, box.height / 2.0])
    offset = box_center - 0.5 - linear @ (src_center - 0.5)

    return np.hstack([linear, offset.reshape(2, 1)])


def crop_region(buffer_width: int, buffer_height: int, target_ratio: float) -> CropRegion:
    """
    Centered region of a buffer matching the target aspect ratio.

    Wider buffers lose columns on both sides, taller buffers lose rows top and
    bottom. A buffer whose aspect already equals the target is used whole.
    """
    _check_dimensions(buffer_width, buffer_height)
    if not target_ratio > 0:
        raise InvalidDimensions(f"Target aspect ratio must be positive, got {target_ratio}")

    buffer_ratio = buffer_width / buffer_height
    if buffer_ratio > target_ratio:
        slice_width = buffer_height * target_ratio
        return CropRegion((buffer_width - slice_width) / 2, 0.0, slice_width, float(buffer_height))
    if buffer_ratio < target_ratio:
        slice_height = buffer_width / target_ratio
        return CropRegion(0.0, (buffer_height - slice_height) / 2, float(buffer_width), slice_height)
    return CropRegion(0.0, 0.0, float(buffer_width), float(buffer_height))


def region_matrix(region: CropRegion, output_width: int, output_height: int) -> np.ndarray:
    """2x3 matrix scaling a (possibly sub-pixel) region onto the full output."""
    scale_x = output_width / region.width
    scale_y = output_height / region.height
    return np.array([
        [scale_x, 0.0, 0.5 * scale_x - 0.5 - region.x * scale_x],
        [0.0, scale_y, 0.5 * scale_y - 0.5 - region.y * scale_y],
    ], dtype=np.float64)


def output_size(target_ratio: float, output_width: int) -> Tuple[int, int]:
    """Output dimensions for a fixed width: height = width / ratio."""
    if not target_ratio > 0:
        raise InvalidDimensions(f"Target aspect ratio must be positive, got {target_ratio}")
    _check_dimensions(output_width, 1)
    return output_width, to_pixels(output_width / target_ratio)
