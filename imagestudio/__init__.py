"""
ImageStudio: image composition pipeline

Rotates, mirrors, filters and reframes a source image into a single
fixed-width output image ready for upload or download.
"""

__version__ = "0.1.0"

# Core imports for easy access
from .config import load_config
from .processing import (
    AspectRatio,
    Compositor,
    CompositionError,
    FilterSettings,
    ResizePolicy,
    TransformParameters,
    compose,
)
from .io import load_source, save_output

__all__ = [
    "load_config",
    "AspectRatio",
    "Compositor",
    "CompositionError",
    "FilterSettings",
    "ResizePolicy",
    "TransformParameters",
    "compose",
    "load_source",
    "save_output",
]
