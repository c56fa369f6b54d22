"""
Image composition pipeline for ImageStudio

Takes a decoded source image plus rotation, mirror, filter, aspect ratio and
resize settings and produces one fixed-width encoded output image.

The pipeline is an explicit sequence of pure buffer-to-buffer stages:

1. resolve the target aspect ratio (Auto derives it from the source)
2. compute the rotation bounding box
3. filter the source pixels, then paint them into the bounding box with a
   single mirror-then-rotate affine transform
4. compute the output size from the fixed output width
5. fit the painted buffer into the output by crop or stretch
6. encode as JPEG when the source is JPEG, PNG otherwise
"""

import logging
from typing import Any, Dict, Optional, Tuple, Union

import cv2
import numpy as np

from imagestudio.config import get_config_value
from imagestudio.io.images import DEFAULT_JPEG_QUALITY, encode_image
from imagestudio.utils.logging import StructuredLogger
from .color.filters import apply_filters
from .errors import (
    AspectRatioUnresolved,
    InvalidDimensions,
    RenderSurfaceUnavailable,
    UnsupportedResizePolicy,
)
from .geometry.aspect_ratio import resolve_auto_ratio, simplify
from .geometry.bounds import (
    CropRegion,
    crop_region,
    output_size,
    placement_matrix,
    region_matrix,
    rotated_bounding_box,
)
from .models import (
    AspectRatio,
    ImageProperties,
    OutputImage,
    ResizePolicy,
    SourceImage,
    TransformParameters,
)

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_WIDTH = 1024

# Largest surface browsers will allocate for a 2D canvas
DEFAULT_MAX_SURFACE_PIXELS = 16384 * 16384

INTERPOLATION_FLAGS = {
    'nearest': cv2.INTER_NEAREST,
    'linear': cv2.INTER_LINEAR,
    'cubic': cv2.INTER_CUBIC,
}


def coerce_policy(policy: Union[ResizePolicy, str]) -> ResizePolicy:
    """Accept a ResizePolicy or its string value."""
    if isinstance(policy, ResizePolicy):
        return policy
    if isinstance(policy, str):
        try:
            return ResizePolicy(policy.strip().lower())
        except ValueError:
            pass
    raise UnsupportedResizePolicy(f"Unsupported resize policy: {policy!r}")


def coerce_aspect_ratio(value: Union[AspectRatio, str]) -> AspectRatio:
    """Accept an AspectRatio or a "Auto" / "W:H" string."""
    if isinstance(value, AspectRatio):
        return value
    return AspectRatio.parse(value)


class Compositor:
    """
    Stateless composition engine

    A Compositor only holds settings. Every call allocates its own buffers,
    so one instance can serve concurrent callers.
    """

    def __init__(self,
                 output_width: int = DEFAULT_OUTPUT_WIDTH,
                 interpolation: str = 'linear',
                 jpeg_quality: int = DEFAULT_JPEG_QUALITY,
                 max_surface_pixels: int = DEFAULT_MAX_SURFACE_PIXELS):
        """
        Initialize compositor

        Args:
            output_width: Width of every output image in pixels
            interpolation: Resampling method ('nearest', 'linear', 'cubic')
            jpeg_quality: Quality used when the output is JPEG (1-100)
            max_surface_pixels: Largest buffer (width * height) that may be allocated
        """
        if isinstance(output_width, bool) or not isinstance(output_width, int) or output_width < 1:
            raise InvalidDimensions(f"Output width must be a positive integer, got {output_width}")
        if interpolation not in INTERPOLATION_FLAGS:
            raise ValueError(
                f"Unknown interpolation '{interpolation}', expected one of {sorted(INTERPOLATION_FLAGS)}"
            )
        if not 1 <= int(jpeg_quality) <= 100:
            raise ValueError(f"JPEG quality must be within 1-100, got {jpeg_quality}")

        self.output_width = output_width
        self.interpolation = interpolation
        self.jpeg_quality = int(jpeg_quality)
        self.max_surface_pixels = int(max_surface_pixels)
        self._flags = INTERPOLATION_FLAGS[interpolation]
        self.log = StructuredLogger(__name__)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'Compositor':
        """Create a compositor from the 'composition' section of a config."""
        return cls(
            output_width=int(get_config_value(config, 'composition.output_width', DEFAULT_OUTPUT_WIDTH)),
            interpolation=get_config_value(config, 'composition.interpolation', 'linear'),
            jpeg_quality=get_config_value(config, 'composition.jpeg_quality', DEFAULT_JPEG_QUALITY),
            max_surface_pixels=get_config_value(config, 'composition.max_surface_pixels',
                                                DEFAULT_MAX_SURFACE_PIXELS),
        )

    # ========== Stage 1: target aspect ratio ==========
    def resolve_target(self, source: SourceImage,
                       aspect_ratio: Union[AspectRatio, str]) -> AspectRatio:
        """
        Resolve the effective target ratio, reduced to lowest terms

        Raises:
            AspectRatioUnresolved: If Auto is requested and the source has no
                usable dimensions
        """
        requested = coerce_aspect_ratio(aspect_ratio)
        if not requested.is_auto:
            return simplify(requested)

        if source is None or not source.has_dimensions:
            raise AspectRatioUnresolved("Could not determine aspect ratio. Please select one manually.")
        return resolve_auto_ratio(source.width, source.height).to_aspect_ratio()

    # ========== Stages 2-3: filter, then paint into the rotation bounding box ==========
    def render_intermediate(self, source: SourceImage,
                            transform: TransformParameters) -> np.ndarray:
        """
        Paint the filtered source into its rotation bounding box

        Filters run on the source pixels before the geometric paint, so the
        transparent background revealed by rotation is never filtered.

        Returns:
            float32 premultiplied RGBA buffer sized to the bounding box
        """
        if not source.has_dimensions:
            raise InvalidDimensions(f"Source has no pixels ({source.width}x{source.height})")

        box = rotated_bounding_box(source.width, source.height, transform.rotation_degrees)
        box_width, box_height = box.pixel_size()
        self._check_surface(box_width, box_height)

        try:
            straight = source.pixels.astype(np.float32) / 255.0
            filtered = apply_filters(straight, transform.filters)
            filtered[:, :, :3] *= filtered[:, :, 3:4]

            matrix = placement_matrix(source.width, source.height, box,
                                      transform.rotation_degrees, transform.mirrored)
            return cv2.warpAffine(
                filtered,
                matrix,
                (box_width, box_height),
                flags=self._flags,
                borderMode=cv2.BORDER_CONSTANT,
                borderValue=(0.0, 0.0, 0.0, 0.0),
            )
        except (cv2.error, MemoryError) as e:
            raise RenderSurfaceUnavailable(
                f"Could not render {box_width}x{box_height} intermediate surface: {e}"
            ) from e

    # ========== Stages 4-5: output size and crop/stretch fit ==========
    def fit_region(self, buffer_size: Tuple[int, int], target_ratio: float,
                   policy: Union[ResizePolicy, str]) -> CropRegion:
        """Region of a (width, height) buffer that will fill the output."""
        policy = coerce_policy(policy)
        buffer_width, buffer_height = buffer_size
        if policy is ResizePolicy.STRETCH:
            return CropRegion(0.0, 0.0, float(buffer_width), float(buffer_height))
        if policy is ResizePolicy.CROP:
            return crop_region(buffer_width, buffer_height, target_ratio)
        raise UnsupportedResizePolicy(f"Unsupported resize policy: {policy!r}")

    def fit(self, buffer: np.ndarray, target_ratio: float,
            policy: Union[ResizePolicy, str]) -> np.ndarray:
        """
        Scale a buffer (or its centered crop) to exactly fill the output size

        Returns:
            float32 premultiplied RGBA buffer of output_size(target_ratio)
        """
        buffer_height, buffer_width = buffer.shape[:2]
        region = self.fit_region((buffer_width, buffer_height), target_ratio, policy)
        out_width, out_height = output_size(target_ratio, self.output_width)
        self._check_surface(out_width, out_height)

        try:
            return cv2.warpAffine(
                buffer,
                region_matrix(region, out_width, out_height),
                (out_width, out_height),
                flags=self._flags,
                borderMode=cv2.BORDER_REPLICATE,
            )
        except (cv2.error, MemoryError) as e:
            raise RenderSurfaceUnavailable(
                f"Could not render {out_width}x{out_height} output surface: {e}"
            ) from e

    # ========== Full pipeline ==========
    def compose(self, source: SourceImage,
                transform: Optional[TransformParameters] = None,
                aspect_ratio: Union[AspectRatio, str] = "Auto",
                policy: Union[ResizePolicy, str] = ResizePolicy.CROP) -> OutputImage:
        """
        Run the full composition pipeline

        Args:
            source: Decoded source image (never modified)
            transform: Rotation, mirror and filters; identity when None
            aspect_ratio: Target aspect ratio or "Auto"
            policy: Crop or stretch fitting

        Returns:
            Encoded OutputImage

        Raises:
            CompositionError: Any pipeline failure; nothing is returned partially
        """
        transform = transform or TransformParameters()
        policy = coerce_policy(policy)

        target = self.resolve_target(source, aspect_ratio)
        target_ratio = target.value
        log = self.log.bind(source=str(source.path) if source.path else None,
                            size=f"{source.width}x{source.height}")

        intermediate = self.render_intermediate(source, transform)
        log.debug("Rendered intermediate buffer",
                  rotation=transform.rotation_degrees,
                  mirrored=transform.mirrored,
                  filters=transform.filters.to_css(),
                  buffer=f"{intermediate.shape[1]}x{intermediate.shape[0]}")

        fitted = self.fit(intermediate, target_ratio, policy)
        out_height, out_width = fitted.shape[:2]

        data = encode_image(fitted, source.mime_type, self.jpeg_quality)
        output_type = source.mime_type.output_type
        log.debug("Composed output", ratio=str(target), policy=policy.value,
                  output=f"{out_width}x{out_height}", mime_type=output_type.value)

        return OutputImage(
            data=data,
            mime_type=output_type,
            width=out_width,
            height=out_height,
            aspect_ratio=str(target),
        )

    def describe(self, source: SourceImage) -> ImageProperties:
        """Dimensions, type and ratios of a source image."""
        auto = resolve_auto_ratio(source.width, source.height)
        return ImageProperties(
            width=source.width,
            height=source.height,
            mime_type=source.mime_type.value,
            size_bytes=source.size_bytes,
            simplified_ratio=auto.simplified,
            auto_ratio=auto.ratio_string,
        )

    def _check_surface(self, width: int, height: int):
        if width * height > self.max_surface_pixels:
            raise RenderSurfaceUnavailable(
                f"Surface {width}x{height} exceeds the {self.max_surface_pixels} pixel limit"
            )


def compose(source: SourceImage,
            transform: Optional[TransformParameters] = None,
            aspect_ratio: Union[AspectRatio, str] = "Auto",
            policy: Union[ResizePolicy, str] = ResizePolicy.CROP,
            **settings) -> OutputImage:
    """Compose with a one-off Compositor; settings are Compositor arguments."""
    return Compositor(**settings).compose(source, transform, aspect_ratio, policy)
