"""
Logging utilities for ImageStudio
Provides structured logging and batch statistics
"""

import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class StructuredLogger:
    """Provides structured logging with metadata"""

    def __init__(self, name: str, metadata: Optional[Dict[str, Any]] = None):
        """
        Initialize structured logger

        Args:
            name: Logger name
            metadata: Default metadata to include in all logs
        """
        self.logger = logging.getLogger(name)
        self.metadata = metadata or {}

    def bind(self, **metadata) -> 'StructuredLogger':
        """Return a logger sharing this name with extra default metadata"""
        return StructuredLogger(self.logger.name, {**self.metadata, **metadata})

    def _format_message(self, message: str, **kwargs) -> str:
        """Format message with metadata"""
        data = {**self.metadata, **kwargs}
        if data:
            return f"{message} | {json.dumps(data, default=str)}"
        return message

    def debug(self, message: str, **kwargs):
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(self._format_message(message, **kwargs))

    def info(self, message: str, **kwargs):
        self.logger.info(self._format_message(message, **kwargs))

    def warning(self, message: str, **kwargs):
        self.logger.warning(self._format_message(message, **kwargs))

    def error(self, message: str, **kwargs):
        self.logger.error(self._format_message(message, **kwargs))


class ProcessingStats:
    """Tracks batch composition statistics"""

    def __init__(self):
        self.start_time = datetime.now()
        self.total_files = 0
        self.processed_files = 0
        self.succeeded_files = 0
        self.failed_files = 0
        self.failure_reasons: Dict[str, int] = {}
        self.errors = []
        self.processing_times = []

    def set_total(self, total: int):
        """Set total number of files to process"""
        self.total_files = total

    def add_result(self, succeeded: bool, failure_reason: Optional[str] = None,
                   processing_time: Optional[float] = None):
        """
        Add a processing result

        Args:
            succeeded: Whether the file was composed
            failure_reason: Error class name if it failed
            processing_time: Time taken to process the file
        """
        self.processed_files += 1

        if succeeded:
            self.succeeded_files += 1
        else:
            self.failed_files += 1
            if failure_reason:
                self.failure_reasons[failure_reason] = \
                    self.failure_reasons.get(failure_reason, 0) + 1

        if processing_time:
            self.processing_times.append(processing_time)

    def add_error(self, file_path: str, error: str):
        self.errors.append({
            'file': file_path,
            'error': error,
            'time': datetime.now()
        })

    def get_elapsed_time(self) -> float:
        return (datetime.now() - self.start_time).total_seconds()

    def get_average_processing_time(self) -> float:
        if not self.processing_times:
            return 0.0
        return sum(self.processing_times) / len(self.processing_times)

    def get_summary(self) -> Dict[str, Any]:
        """Get processing summary"""
        elapsed = self.get_elapsed_time()

        return {
            'total_files': self.total_files,
            'processed_files': self.processed_files,
            'succeeded_files': self.succeeded_files,
            'failed_files': self.failed_files,
            'failure_reasons': self.failure_reasons,
            'errors': len(self.errors),
            'elapsed_time': elapsed,
            'average_time_per_file': self.get_average_processing_time(),
        }


def setup_console_logging(level: str = "INFO", color: bool = True,
                          fmt: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'):
    """
    Setup console logging with optional color support

    Args:
        level: Logging level name
        color: Whether to use colored output
        fmt: Log record format
    """
    console_handler = logging.StreamHandler()

    if color and sys.stderr.isatty():
        # colorlog ships with the "color" extra
        try:
            import colorlog
            formatter = colorlog.ColoredFormatter(
                '%(log_color)s' + fmt + '%(reset)s',
                log_colors={
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'red,bg_white',
                }
            )
        except ImportError:
            formatter = logging.Formatter(fmt)
    else:
        formatter = logging.Formatter(fmt)

    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    # Replace the previous console handler; it may hold a stderr that has since been swapped
    for handler in list(root_logger.handlers):
        if getattr(handler, '_imagestudio_console', False):
            root_logger.removeHandler(handler)
    console_handler._imagestudio_console = True
    root_logger.addHandler(console_handler)
