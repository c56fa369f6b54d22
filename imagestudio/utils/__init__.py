"""
ImageStudio utilities module.

Provides logging helpers.
"""

from .logging import ProcessingStats, StructuredLogger, setup_console_logging

__all__ = [
    'ProcessingStats',
    'StructuredLogger',
    'setup_console_logging',
]
