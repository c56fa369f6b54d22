"""
Composition pipeline for ImageStudio

Geometry resolution, color filters and the compositor that chains them.
"""

from .errors import (
    AspectRatioUnresolved,
    CompositionError,
    DuplicateAspectRatio,
    InvalidAspectRatio,
    InvalidDimensions,
    RenderSurfaceUnavailable,
    SourceDecodeFailed,
    UnsupportedResizePolicy,
)
from .models import (
    AspectRatio,
    AspectRatioKind,
    FilterSettings,
    ImageProperties,
    MimeType,
    OutputImage,
    ResizePolicy,
    SourceImage,
    TransformParameters,
)
from .compositor import Compositor, compose
from .batch import CompositionJob, JobResult, build_jobs, compose_many, find_images

__all__ = [
    "AspectRatioUnresolved",
    "CompositionError",
    "DuplicateAspectRatio",
    "InvalidAspectRatio",
    "InvalidDimensions",
    "RenderSurfaceUnavailable",
    "SourceDecodeFailed",
    "UnsupportedResizePolicy",
    "AspectRatio",
    "AspectRatioKind",
    "FilterSettings",
    "ImageProperties",
    "MimeType",
    "OutputImage",
    "ResizePolicy",
    "SourceImage",
    "TransformParameters",
    "Compositor",
    "compose",
    "CompositionJob",
    "JobResult",
    "build_jobs",
    "compose_many",
    "find_images",
]
