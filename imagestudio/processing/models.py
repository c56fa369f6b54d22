"""
Data models for the ImageStudio composition pipeline.
"""

import base64
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import numpy as np

from .errors import InvalidAspectRatio, InvalidDimensions

# W:H with positive integers only, no leading zeros
RATIO_PATTERN = re.compile(r'^[1-9]\d*:[1-9]\d*$')
AUTO_TOKEN = "Auto"


class MimeType(Enum):
    """Source/output encodings understood by the pipeline."""
    JPEG = "image/jpeg"
    PNG = "image/png"
    OTHER = "application/octet-stream"

    @classmethod
    def from_string(cls, value: Optional[str]) -> 'MimeType':
        """Map a MIME type string to a member; anything unknown is OTHER."""
        if value:
            normalized = value.strip().lower()
            if normalized in ("image/jpeg", "image/jpg", "image/pjpeg"):
                return cls.JPEG
            if normalized == "image/png":
                return cls.PNG
        return cls.OTHER

    @property
    def output_type(self) -> 'MimeType':
        """Encoding used for output: JPEG stays JPEG, everything else is PNG."""
        return MimeType.JPEG if self is MimeType.JPEG else MimeType.PNG

    @property
    def extension(self) -> str:
        return ".jpeg" if self is MimeType.JPEG else ".png"


class ResizePolicy(Enum):
    """How the rotated buffer is fitted into the output dimensions."""
    CROP = "crop"
    STRETCH = "stretch"


class AspectRatioKind(Enum):
    """Variants of a target aspect ratio."""
    AUTO = "auto"
    NAMED = "named"
    USER_DEFINED = "user_defined"


@dataclass(frozen=True, eq=False)
class AspectRatio:
    """
    Target aspect ratio: Auto (derived from the source) or an explicit W:H.

    Explicit ratios compare equal by their W:H pair, so a user-defined 16:9
    equals the built-in 16:9.
    """
    kind: AspectRatioKind
    width: Optional[int] = None
    height: Optional[int] = None

    def __post_init__(self):
        if self.kind is AspectRatioKind.AUTO:
            if self.width is not None or self.height is not None:
                raise InvalidAspectRatio("Auto aspect ratio cannot carry dimensions")
            return
        for side in (self.width, self.height):
            if isinstance(side, bool) or not isinstance(side, int) or side < 1:
                raise InvalidAspectRatio(
                    f"Aspect ratio sides must be positive integers, got {self.width}:{self.height}"
                )

    @classmethod
    def auto(cls) -> 'AspectRatio':
        return cls(AspectRatioKind.AUTO)

    @classmethod
    def named(cls, width: int, height: int) -> 'AspectRatio':
        return cls(AspectRatioKind.NAMED, width, height)

    @classmethod
    def user_defined(cls, width: int, height: int) -> 'AspectRatio':
        return cls(AspectRatioKind.USER_DEFINED, width, height)

    @classmethod
    def parse(cls, text: str,
              kind: AspectRatioKind = AspectRatioKind.NAMED) -> 'AspectRatio':
        """
        Parse "Auto" or a "W:H" string.

        Args:
            text: Ratio text; surrounding whitespace is ignored
            kind: Variant assigned to explicit ratios

        Returns:
            Parsed AspectRatio

        Raises:
            InvalidAspectRatio: If the text is neither Auto nor valid W:H
        """
        trimmed = (text or "").strip()
        if trimmed == AUTO_TOKEN:
            return cls.auto()
        if not RATIO_PATTERN.match(trimmed):
            raise InvalidAspectRatio(f"Invalid format '{trimmed}'. Use W:H (e.g., 5:4).")
        width, height = (int(part) for part in trimmed.split(':'))
        return cls(kind, width, height)

    @property
    def is_auto(self) -> bool:
        return self.kind is AspectRatioKind.AUTO

    @property
    def value(self) -> float:
        """Width divided by height."""
        if self.is_auto:
            raise ValueError("Auto aspect ratio has no value until resolved")
        return self.width / self.height

    def __eq__(self, other):
        if not isinstance(other, AspectRatio):
            return NotImplemented
        if self.is_auto or other.is_auto:
            return self.is_auto and other.is_auto
        return (self.width, self.height) == (other.width, other.height)

    def __hash__(self):
        if self.is_auto:
            return hash(AUTO_TOKEN)
        return hash((self.width, self.height))

    def __str__(self):
        return AUTO_TOKEN if self.is_auto else f"{self.width}:{self.height}"


# CSS filter identity values
IDENTITY_FILTERS = {
    'brightness': 100.0,
    'contrast': 100.0,
    'saturate': 100.0,
    'grayscale': 0.0,
    'sepia': 0.0,
    'invert': 0.0,
    'hue_rotate': 0.0,
}


@dataclass
class FilterSettings:
    """Color/tone filter strengths, in CSS filter units."""
    brightness: float = 100.0  # percent, 100 = unchanged
    contrast: float = 100.0    # percent, 100 = unchanged
    saturate: float = 100.0    # percent, 100 = unchanged
    grayscale: float = 0.0     # percent, 0-100
    sepia: float = 0.0         # percent, 0-100
    invert: float = 0.0        # percent, 0-100
    hue_rotate: float = 0.0    # degrees

    def __post_init__(self):
        """Validate values; percentages above 100 are clamped for the 0-100 filters."""
        for name in IDENTITY_FILTERS:
            value = float(getattr(self, name))
            if not math.isfinite(value):
                raise ValueError(f"Filter '{name}' must be finite, got {value}")
            if name != 'hue_rotate' and value < 0:
                raise ValueError(f"Filter '{name}' must be non-negative, got {value}")
            if name in ('grayscale', 'sepia', 'invert'):
                value = min(value, 100.0)
            setattr(self, name, value)

    def is_identity(self) -> bool:
        """True when no filter changes the image."""
        return all(getattr(self, name) == identity
                   for name, identity in IDENTITY_FILTERS.items())

    def to_css(self) -> str:
        """Render as a CSS filter string, in chain order."""
        return ' '.join([
            f"brightness({self.brightness:g}%)",
            f"contrast({self.contrast:g}%)",
            f"saturate({self.saturate:g}%)",
            f"grayscale({self.grayscale:g}%)",
            f"sepia({self.sepia:g}%)",
            f"invert({self.invert:g}%)",
            f"hue-rotate({self.hue_rotate:g}deg)",
        ])

    def to_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in IDENTITY_FILTERS}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FilterSettings':
        """Create from a dictionary, ignoring unknown keys."""
        return cls(**{name: data[name] for name in IDENTITY_FILTERS if name in data})


@dataclass
class TransformParameters:
    """Geometric and tonal parameters for one composition."""
    rotation_degrees: float = 0.0
    mirrored: bool = False
    filters: FilterSettings = field(default_factory=FilterSettings)

    def __post_init__(self):
        self.rotation_degrees = float(self.rotation_degrees)
        if not math.isfinite(self.rotation_degrees):
            raise ValueError(f"Rotation must be finite, got {self.rotation_degrees}")
        self.mirrored = bool(self.mirrored)

    def to_css_transform(self) -> str:
        """Render as the CSS transform used for live previews."""
        parts = [f"rotate({self.rotation_degrees:g}deg)"]
        if self.mirrored:
            parts.append("scaleX(-1)")
        return ' '.join(parts)


@dataclass(frozen=True, eq=False)
class SourceImage:
    """
    Immutable decoded raster.

    Pixels are stored as a read-only RGBA uint8 array of shape (H, W, 4).
    Grayscale, RGB and RGBA arrays are accepted and normalized to RGBA.
    """
    pixels: np.ndarray
    mime_type: MimeType = MimeType.OTHER
    path: Optional[Path] = None
    size_bytes: Optional[int] = None

    def __post_init__(self):
        pixels = np.asarray(self.pixels)
        if pixels.dtype != np.uint8:
            raise InvalidDimensions(f"Source pixels must be uint8, got {pixels.dtype}")
        if pixels.ndim == 2:
            pixels = pixels[:, :, np.newaxis]
        if pixels.ndim != 3 or pixels.shape[2] not in (1, 3, 4):
            raise InvalidDimensions(f"Unsupported pixel array shape {pixels.shape}")
        if pixels.shape[2] == 1:
            pixels = np.repeat(pixels, 3, axis=2)
        if pixels.shape[2] == 3:
            alpha = np.full(pixels.shape[:2] + (1,), 255, dtype=np.uint8)
            pixels = np.concatenate([pixels, alpha], axis=2)
        else:
            pixels = pixels.copy()
        pixels.setflags(write=False)
        object.__setattr__(self, 'pixels', pixels)
        if not isinstance(self.mime_type, MimeType):
            object.__setattr__(self, 'mime_type', MimeType.from_string(self.mime_type))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def has_dimensions(self) -> bool:
        return self.width > 0 and self.height > 0


@dataclass(frozen=True)
class OutputImage:
    """Encoded composition result."""
    data: bytes
    mime_type: MimeType
    width: int
    height: int
    aspect_ratio: str  # resolved, simplified W:H

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def to_data_url(self) -> str:
        """Encode as a data: URL for hand-off to an uploader."""
        payload = base64.b64encode(self.data).decode('ascii')
        return f"data:{self.mime_type.value};base64,{payload}"


@dataclass(frozen=True)
class ImageProperties:
    """Summary of a source image for display."""
    width: int
    height: int
    mime_type: str
    size_bytes: Optional[int]
    simplified_ratio: str
    auto_ratio: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'width': self.width,
            'height': self.height,
            'type': self.mime_type,
            'size': self.size_bytes,
            'simplified_ratio': self.simplified_ratio,
            'auto_ratio': self.auto_ratio,
        }
