"""
Logging Utilities

Provides consistent logging setup across the project.

Usage:
    from handtrace.utils.logging_utils import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__)
    logger.info("Processing started")
"""

import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple, Union
from datetime import datetime


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> None:
    """
    Set up logging configuration.

    Args:
        level: Logging level (e.g., logging.INFO, logging.DEBUG or 'DEBUG')
        log_file: Optional file path for logging output
        format_string: Custom format string
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if format_string is None:
        format_string = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    # Create formatter
    formatter = logging.Formatter(format_string, datefmt='%Y-%m-%d %H:%M:%S')

    # Get root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    root_logger.handlers = []

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler (optional)
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


class TickTimer:
    """
    Collects named time points within one frame tick.

    The first point is the start; every later point is reported as the
    milliseconds elapsed since the point before it.
    """

    def __init__(self, name: str):
        self.logger = get_logger(name)
        self._points: List[Tuple[str, float]] = []

    def start(self):
        self._points = [('start', time.perf_counter())]

    def mark(self, description: str):
        """Add a time point."""
        if not self._points:
            self.start()
        self._points.append((description, time.perf_counter()))

    def durations_ms(self) -> List[Tuple[str, float]]:
        """(description, milliseconds since previous point) for every stage."""
        return [
            (self._points[i][0], (self._points[i][1] - self._points[i - 1][1]) * 1000.0)
            for i in range(1, len(self._points))
        ]

    def total_ms(self) -> float:
        if len(self._points) < 2:
            return 0.0
        return (self._points[-1][1] - self._points[0][1]) * 1000.0

    def report(self, level: int = logging.DEBUG):
        """Log per-stage and total timings."""
        for description, ms in self.durations_ms():
            self.logger.log(level, f"{description} took {ms:.2f} ms")
        self.logger.log(level, f"Tick took {self.total_ms():.2f} ms")


class ProgressLogger:
    """Helper for logging progress in long-running operations."""

    def __init__(
        self,
        name: str,
        total: int,
        log_interval: int = 100
    ):
        """
        Args:
            name: Logger name
            total: Total number of items
            log_interval: How often to log progress
        """
        self.logger = get_logger(name)
        self.total = total
        self.log_interval = log_interval
        self.current = 0
        self.start_time = None

    def start(self):
        """Start progress tracking."""
        self.start_time = datetime.now()
        self.logger.info(f"Starting processing of {self.total} ticks")

    def update(self, n: int = 1):
        """Update progress."""
        self.current += n

        if self.current % self.log_interval == 0 or self.current == self.total:
            elapsed = (datetime.now() - self.start_time).total_seconds()
            rate = self.current / elapsed if elapsed > 0 else 0
            remaining = (self.total - self.current) / rate if rate > 0 else 0

            self.logger.info(
                f"Progress: {self.current}/{self.total} "
                f"({100*self.current/max(self.total, 1):.1f}%) - "
                f"{rate:.1f} ticks/sec - "
                f"ETA: {remaining:.0f}s"
            )

    def finish(self):
        """Finish progress tracking."""
        elapsed = (datetime.now() - self.start_time).total_seconds()
        rate = self.total / elapsed if elapsed > 0 else 0
        self.logger.info(
            f"Completed {self.total} ticks in {elapsed:.1f}s "
            f"({rate:.1f} ticks/sec)"
        )
