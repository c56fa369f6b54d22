"""
Aspect ratio resolution and presets for ImageStudio

Handles GCD reduction of source dimensions, validation of W:H strings and the
caller-held collection of user-defined ratios.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

import numpy as np

from ..errors import DuplicateAspectRatio, InvalidAspectRatio, InvalidDimensions
from ..models import AUTO_TOKEN, RATIO_PATTERN, AspectRatio, AspectRatioKind

logger = logging.getLogger(__name__)

# Ratios the generative service accepts for text-to-image requests
GENERATOR_ASPECT_RATIOS = ("1:1", "3:4", "4:3", "9:16", "16:9")

# Ratios offered for cropping uploads, wide landscape to tall portrait
ANALYZER_ASPECT_RATIOS = ("16:9", "3:2", "4:3", "1:1", "3:4", "2:3", "9:16")


@dataclass(frozen=True)
class AutoRatio:
    """Aspect ratio detected from source dimensions."""
    ratio_string: str  # raw "W:H" of the source
    simplified_width: int
    simplified_height: int

    @property
    def simplified(self) -> str:
        return f"{self.simplified_width}:{self.simplified_height}"

    def to_aspect_ratio(self) -> AspectRatio:
        return AspectRatio.named(self.simplified_width, self.simplified_height)


def gcd(a: int, b: int) -> int:
    """Greatest common divisor (Euclid); gcd(a, 0) == a."""
    while b:
        a, b = b, a % b
    return a


def resolve_auto_ratio(width: int, height: int) -> AutoRatio:
    """
    Derive the aspect ratio of a width x height image.

    Args:
        width: Natural width in pixels
        height: Natural height in pixels

    Returns:
        AutoRatio with the raw "W:H" string and the GCD-reduced ratio

    Raises:
        InvalidDimensions: If either side is not a positive integer
    """
    for side in (width, height):
        if isinstance(side, bool) or not isinstance(side, (int, np.integer)) or side <= 0:
            raise InvalidDimensions(f"Cannot derive an aspect ratio from {width}x{height}")
    width, height = int(width), int(height)
    divisor = gcd(width, height)
    return AutoRatio(
        ratio_string=f"{width}:{height}",
        simplified_width=width // divisor,
        simplified_height=height // divisor,
    )


def simplify(ratio: AspectRatio) -> AspectRatio:
    """Reduce an explicit ratio by its GCD, keeping its kind."""
    if ratio.is_auto:
        return ratio
    divisor = gcd(ratio.width, ratio.height)
    return AspectRatio(ratio.kind, ratio.width // divisor, ratio.height // divisor)


def is_valid_ratio_string(text: str) -> bool:
    """True for strings of the form W:H with positive integers."""
    return bool(text) and RATIO_PATTERN.match(text) is not None


class AspectRatioPresets:
    """
    Built-in ratios plus a caller-held list of user-defined ones.

    Only validation lives here; storing the custom list between sessions is
    the caller's concern.
    """

    def __init__(self,
                 builtin: Iterable[str] = ANALYZER_ASPECT_RATIOS,
                 custom: Optional[Iterable[str]] = None):
        """
        Initialize presets

        Args:
            builtin: Built-in ratio strings, in display order
            custom: Previously saved user-defined ratios; invalid or duplicate
                entries are skipped with a warning
        """
        self.builtin = tuple(builtin)
        self._custom: List[str] = []
        for ratio in custom or ():
            try:
                self.add(ratio)
            except (InvalidAspectRatio, DuplicateAspectRatio) as e:
                logger.warning(f"Ignoring saved aspect ratio {ratio!r}: {e}")

    @property
    def custom(self) -> List[str]:
        return list(self._custom)

    def add(self, text: str) -> str:
        """
        Add a user-defined ratio.

        Returns:
            The trimmed ratio string that was added

        Raises:
            InvalidAspectRatio: If the text is not W:H
            DuplicateAspectRatio: If it matches a built-in or custom entry
        """
        trimmed = (text or "").strip()
        if not is_valid_ratio_string(trimmed):
            raise InvalidAspectRatio(f"Invalid format '{trimmed}'. Use W:H (e.g., 5:4).")
        if trimmed in self.builtin or trimmed in self._custom:
            raise DuplicateAspectRatio(f"Aspect ratio {trimmed} already exists.")
        self._custom.append(trimmed)
        logger.debug(f"Added custom aspect ratio {trimmed}")
        return trimmed

    def remove(self, text: str) -> bool:
        """Remove a user-defined ratio; returns False if it was not present."""
        trimmed = (text or "").strip()
        if trimmed not in self._custom:
            return False
        self._custom.remove(trimmed)
        return True

    def all(self) -> List[str]:
        """Every selectable ratio: Auto, built-ins, then custom."""
        return [AUTO_TOKEN, *self.builtin, *self._custom]

    def __contains__(self, text: str) -> bool:
        return (text or "").strip() in self.all()

    def resolve(self, text: str) -> AspectRatio:
        """
        Turn a selectable ratio string into an AspectRatio.

        Raises:
            InvalidAspectRatio: If the text is not one of the available ratios
        """
        trimmed = (text or "").strip()
        if trimmed == AUTO_TOKEN:
            return AspectRatio.auto()
        if trimmed in self.builtin:
            return AspectRatio.parse(trimmed, AspectRatioKind.NAMED)
        if trimmed in self._custom:
            return AspectRatio.parse(trimmed, AspectRatioKind.USER_DEFINED)
        raise InvalidAspectRatio(f"Unknown aspect ratio '{trimmed}'")
