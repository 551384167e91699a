"""
Structured logging for formula transformations.

Provides configurable log levels (silent, normal, verbose, debug)
with consistent formatting for conversion progress, results,
satisfiability verdicts, and conversion statistics.
"""

from __future__ import annotations

import sys
from enum import Enum
from typing import Any, Dict, TextIO


class LogLevel(Enum):
    """
    Logging levels for transformations.

    SILENT:  No output at all.
    NORMAL:  Results, verdicts and warnings only.
    VERBOSE: Progress information and statistics.
    DEBUG:   Detailed per-stage conversion output.
    """

    SILENT = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3


class TransformLogger:
    """
    Structured logger for normal form conversion.

    Output is filtered by the configured log level. Transformation
    functions take an optional logger and default to a silent one.

    Attributes:
        level: The minimum log level to display.
        stream: The output stream (defaults to stdout).
    """

    def __init__(
        self,
        level: LogLevel = LogLevel.NORMAL,
        stream: TextIO = sys.stdout,
    ) -> None:
        """
        Initialize logger with level and output stream.

        Args:
            level: Minimum log level to display.
            stream: Output stream (default: sys.stdout).
        """
        self.level: LogLevel = level
        self.stream: TextIO = stream

    def enabled(self, level: LogLevel) -> bool:
        """Return whether messages at *level* are shown."""
        return self.level.value >= level.value

    def debug(self, message: str, **kwargs: Any) -> None:
        """
        Log a debug message (only shown at DEBUG level).

        Args:
            message: The message to log.
            **kwargs: Additional key-value pairs to include.
        """
        if self.enabled(LogLevel.DEBUG):
            self._write(f"[DEBUG] {message}")
            for k, v in kwargs.items():
                self._write(f"  {k}: {v}")

    def info(self, message: str, **kwargs: Any) -> None:
        """
        Log an info message (shown at VERBOSE and DEBUG levels).

        Args:
            message: The message to log.
            **kwargs: Additional key-value pairs to include.
        """
        if self.enabled(LogLevel.VERBOSE):
            self._write(f"[INFO] {message}")
            for k, v in kwargs.items():
                self._write(f"  {k}: {v}")

    def warning(self, message: str) -> None:
        """Log a warning (shown at NORMAL level and above)."""
        if self.enabled(LogLevel.NORMAL):
            self._write(f"[WARN] {message}")

    def result(self, text: str) -> None:
        """Log a conversion result (shown at NORMAL level and above)."""
        if self.enabled(LogLevel.NORMAL):
            self._write(text)

    def sat_result(self, verdict: str) -> None:
        """Log a satisfiability verdict (shown at NORMAL level and above)."""
        if self.enabled(LogLevel.NORMAL):
            self._write(f"s {verdict}")

    def statistics(self, stats: Dict[str, Any]) -> None:
        """
        Log conversion statistics (shown at VERBOSE level and above).

        Args:
            stats: Dictionary of statistic names to values.
        """
        if self.enabled(LogLevel.VERBOSE):
            self._write("=== Statistics ===")
            for key, value in stats.items():
                label = key.replace("_", " ").title()
                self._write(f"  {label}: {value}")

    def _write(self, message: str) -> None:
        """Write a line to the output stream."""
        self.stream.write(message + "\n")


SILENT = TransformLogger(LogLevel.SILENT)
