"""
Error taxonomy for the ImageStudio composition pipeline

Every failure is reported synchronously as one of these exceptions. A raised
error always means no output image was produced.
"""


class CompositionError(Exception):
    """Base exception for composition pipeline failures."""
    pass


class InvalidDimensions(CompositionError):
    """Raised when a width or height is not a positive integer."""
    pass


class AspectRatioUnresolved(CompositionError):
    """Raised when an Auto aspect ratio is requested without usable source dimensions."""
    pass


class SourceDecodeFailed(CompositionError):
    """Raised when the source raster cannot be read or decoded."""
    pass


class RenderSurfaceUnavailable(CompositionError):
    """Raised when a drawing surface could not be allocated or painted."""
    pass


class UnsupportedResizePolicy(CompositionError):
    """Raised when the resize policy is not one of crop or stretch."""
    pass


class InvalidAspectRatio(CompositionError, ValueError):
    """Raised when an aspect ratio string does not match the W:H syntax."""
    pass


class DuplicateAspectRatio(CompositionError, ValueError):
    """Raised when a custom aspect ratio already exists."""
    pass
