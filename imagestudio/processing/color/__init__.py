"""
Color processing modules for ImageStudio

Includes the CSS-style filter chain applied to source pixels.
"""

from .filters import FILTER_ORDER, apply_filters, filter_steps

__all__ = [
    "FILTER_ORDER",
    "apply_filters",
    "filter_steps",
]
