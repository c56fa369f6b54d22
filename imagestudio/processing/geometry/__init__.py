"""
Geometry modules for ImageStudio

Includes aspect ratio resolution, rotation bounding boxes and crop fitting.
"""

from .aspect_ratio import (
    ANALYZER_ASPECT_RATIOS,
    GENERATOR_ASPECT_RATIOS,
    AspectRatioPresets,
    AutoRatio,
    gcd,
    is_valid_ratio_string,
    resolve_auto_ratio,
    simplify,
)
from .bounds import (
    BoundingBox,
    CropRegion,
    crop_region,
    output_size,
    placement_matrix,
    region_matrix,
    rotated_bounding_box,
    to_pixels,
)

__all__ = [
    "ANALYZER_ASPECT_RATIOS",
    "GENERATOR_ASPECT_RATIOS",
    "AspectRatioPresets",
    "AutoRatio",
    "gcd",
    "is_valid_ratio_string",
    "resolve_auto_ratio",
    "simplify",
    "BoundingBox",
    "CropRegion",
    "crop_region",
    "output_size",
    "placement_matrix",
    "region_matrix",
    "rotated_bounding_box",
    "to_pixels",
]
