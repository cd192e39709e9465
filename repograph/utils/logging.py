"""
Centralized structured logging for repograph.

Provides:
- Rich console output with colors and formatting
- Optional JSON format for machine parsing
- File logging with rotation
- Component-aware logging with context
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler

# Global console instance for log output
console = Console(stderr=True)

ROOT_LOGGER_NAME = "repograph"

# Format for plain-text log files
DEFAULT_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


class JSONFormatter(logging.Formatter):
    """Format log records as JSON for machine parsing."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as a JSON string."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Structured context attached by ComponentLogger
        if hasattr(record, "context"):
            log_data["context"] = record.context

        return json.dumps(log_data, default=str)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    json_format: bool = False,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure logging for the repograph package.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path for file logging
        json_format: Use JSON format for log output
        max_file_size_mb: Maximum log file size before rotation
        backup_count: Number of backup files to keep

    Returns:
        Configured package logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(numeric_level)

    # Clear existing handlers
    logger.handlers.clear()

    # Console handler
    if json_format:
        console_handler: logging.Handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
            markup=False,
        )
        console_handler.setFormatter(logging.Formatter("%(message)s"))

    console_handler.setLevel(numeric_level)
    logger.addHandler(console_handler)

    # File handler if path provided
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        if json_format:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        file_handler.setLevel(logging.DEBUG)  # File gets all messages
        logger.addHandler(file_handler)

    # Keep records away from the root logger
    logger.propagate = False

    return logger


class ComponentLogger:
    """
    Logger with component context for structured logging.

    Every message is suffixed with ``key=value`` pairs and the same pairs are
    attached to the record as ``record.context`` for the JSON formatter.
    """

    def __init__(self, component: str, parent: Optional[str] = None):
        """
        Initialize a component logger.

        Args:
            component: Name of the component (e.g., "source_parser", "graph")
            parent: Optional parent component for hierarchical logging
        """
        self.component = component
        if parent:
            logger_name = f"{ROOT_LOGGER_NAME}.{parent}.{component}"
        else:
            logger_name = f"{ROOT_LOGGER_NAME}.{component}"
        self._logger = logging.getLogger(logger_name)

    @property
    def name(self) -> str:
        """Full dotted logger name."""
        return self._logger.name

    def _format_message(self, msg: str, **context: Any) -> str:
        """Format message with context."""
        if context:
            context_str = " | ".join(f"{k}={v}" for k, v in context.items())
            return f"{msg} | {context_str}"
        return msg

    def _add_context(self, **context: Any) -> dict[str, Any]:
        """Add component name to context."""
        return {"component": self.component, **context}

    def debug(self, msg: str, **context: Any) -> None:
        """Log debug message with context."""
        extra = {"context": self._add_context(**context)}
        self._logger.debug(self._format_message(msg, **context), extra=extra)

    def info(self, msg: str, **context: Any) -> None:
        """Log info message with context."""
        extra = {"context": self._add_context(**context)}
        self._logger.info(self._format_message(msg, **context), extra=extra)

    def warning(self, msg: str, **context: Any) -> None:
        """Log warning message with context."""
        extra = {"context": self._add_context(**context)}
        self._logger.warning(self._format_message(msg, **context), extra=extra)

    def error(self, msg: str, exc: Optional[Exception] = None, **context: Any) -> None:
        """Log error message with optional exception."""
        extra = {"context": self._add_context(**context)}
        self._logger.error(
            self._format_message(msg, **context),
            exc_info=exc,
            extra=extra,
        )


class SessionLogger(ComponentLogger):
    """
    Logger bound to one analysis session, with build-pass tracking.
    """

    def __init__(self, session_id: str):
        """Initialize session logger with session ID context."""
        super().__init__("session")
        self.session_id = session_id

    def _add_context(self, **context: Any) -> dict[str, Any]:
        """Add session ID to all log context."""
        return {"session_id": self.session_id, **super()._add_context(**context)}

    def pass_start(self, name: str, **context: Any) -> None:
        """Log the start of a build pass."""
        self.debug(f"Starting pass: {name}", build_pass=name, **context)

    def pass_complete(self, name: str, duration_ms: float, **context: Any) -> None:
        """Log the completion of a build pass."""
        self.info(
            f"Completed pass: {name}",
            build_pass=name,
            duration_ms=round(duration_ms, 2),
            **context,
        )


def get_logger(component: str, parent: Optional[str] = None) -> ComponentLogger:
    """
    Factory function to get a component logger.

    Args:
        component: Name of the component
        parent: Optional parent component name

    Returns:
        ComponentLogger instance
    """
    return ComponentLogger(component, parent)


def get_session_logger(session_id: str) -> SessionLogger:
    """Factory function to get a session-bound logger."""
    return SessionLogger(session_id)
