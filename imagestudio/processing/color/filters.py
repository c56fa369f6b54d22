"""
CSS-style color filter chain for ImageStudio

Implements brightness, contrast, saturate, grayscale, sepia, invert and
hue-rotate with the Filter Effects (feComponentTransfer / feColorMatrix)
definitions browsers use, so a composed image matches the live preview.
"""

import logging
import math
from typing import Callable, List, Tuple

import numpy as np

from ..models import IDENTITY_FILTERS, FilterSettings

logger = logging.getLogger(__name__)

# Fixed application order
FILTER_ORDER = (
    'brightness',
    'contrast',
    'saturate',
    'grayscale',
    'sepia',
    'invert',
    'hue_rotate',
)


def brightness_filter(rgb: np.ndarray, percent: float) -> np.ndarray:
    """Linear gain: v * amount."""
    return np.clip(rgb * (percent / 100.0), 0.0, 1.0)


def contrast_filter(rgb: np.ndarray, percent: float) -> np.ndarray:
    """Scale around mid-grey: (v - 0.5) * amount + 0.5."""
    amount = percent / 100.0
    return np.clip((rgb - 0.5) * amount + 0.5, 0.0, 1.0)


def saturate_matrix(percent: float) -> np.ndarray:
    s = percent / 100.0
    return np.array([
        [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
    ], dtype=np.float32)


def grayscale_matrix(percent: float) -> np.ndarray:
    a = 1.0 - min(percent, 100.0) / 100.0
    return np.array([
        [0.2126 + 0.7874 * a, 0.7152 - 0.7152 * a, 0.0722 - 0.0722 * a],
        [0.2126 - 0.2126 * a, 0.7152 + 0.2848 * a, 0.0722 - 0.0722 * a],
        [0.2126 - 0.2126 * a, 0.7152 - 0.7152 * a, 0.0722 + 0.9278 * a],
    ], dtype=np.float32)


def sepia_matrix(percent: float) -> np.ndarray:
    a = 1.0 - min(percent, 100.0) / 100.0
    return np.array([
        [0.393 + 0.607 * a, 0.769 - 0.769 * a, 0.189 - 0.189 * a],
        [0.349 - 0.349 * a, 0.686 + 0.314 * a, 0.168 - 0.168 * a],
        [0.272 - 0.272 * a, 0.534 - 0.534 * a, 0.131 + 0.869 * a],
    ], dtype=np.float32)


def hue_rotate_matrix(degrees: float) -> np.ndarray:
    theta = math.radians(degrees)
    cos, sin = math.cos(theta), math.sin(theta)
    return np.array([
        [0.213 + cos * 0.787 - sin * 0.213,
         0.715 - cos * 0.715 - sin * 0.715,
         0.072 - cos * 0.072 + sin * 0.928],
        [0.213 - cos * 0.213 + sin * 0.143,
         0.715 + cos * 0.285 + sin * 0.140,
         0.072 - cos * 0.072 - sin * 0.283],
        [0.213 - cos * 0.213 - sin * 0.787,
         0.715 - cos * 0.715 + sin * 0.715,
         0.072 + cos * 0.928 + sin * 0.072],
    ], dtype=np.float32)


def apply_color_matrix(rgb: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Multiply every pixel by a 3x3 color matrix and clamp."""
    return np.clip(rgb @ matrix.T, 0.0, 1.0)


def invert_filter(rgb: np.ndarray, percent: float) -> np.ndarray:
    """Blend towards the negative: v * (1 - i) + (1 - v) * i."""
    amount = min(percent, 100.0) / 100.0
    return np.clip(rgb * (1.0 - amount) + (1.0 - rgb) * amount, 0.0, 1.0)


_STEPS = {
    'brightness': brightness_filter,
    'contrast': contrast_filter,
    'saturate': lambda rgb, value: apply_color_matrix(rgb, saturate_matrix(value)),
    'grayscale': lambda rgb, value: apply_color_matrix(rgb, grayscale_matrix(value)),
    'sepia': lambda rgb, value: apply_color_matrix(rgb, sepia_matrix(value)),
    'invert': invert_filter,
    'hue_rotate': lambda rgb, value: apply_color_matrix(rgb, hue_rotate_matrix(value)),
}


def filter_steps(settings: FilterSettings) -> List[Tuple[str, Callable]]:
    """Non-identity filter steps, in chain order."""
    steps = []
    for name in FILTER_ORDER:
        value = getattr(settings, name)
        if value != IDENTITY_FILTERS[name]:
            step = _STEPS[name]
            steps.append((name, lambda rgb, step=step, value=value: step(rgb, value)))
    return steps


def apply_filters(rgba: np.ndarray, settings: FilterSettings) -> np.ndarray:
    """
    Apply the filter chain to straight (non-premultiplied) RGBA pixels.

    Args:
        rgba: float32 array (H, W, 4) in [0, 1]
        settings: Filter strengths

    Returns:
        New float32 RGBA array; alpha is passed through unchanged
    """
    result = np.array(rgba, dtype=np.float32, copy=True)
    steps = filter_steps(settings)
    if not steps:
        return result

    rgb = result[:, :, :3]
    for name, step in steps:
        rgb = step(rgb).astype(np.float32, copy=False)
        logger.debug(f"Applied {name} filter")
    result[:, :, :3] = rgb
    return result
