"""Structured JSON logger for the CRM agent tool pipeline.

This module provides the base logging interface used by every component.
Following the same conventions everywhere: JSON lines and correlation IDs.

Key features:
- Single rotating log file (superseded by per-component files, see
  multi_file_logger)
- JSON structured logging
- Correlation ID support for request tracing
"""

import json
import logging
import logging.handlers
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Correlation id of the current request (one value per asyncio task)
_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


class StructuredLogger:
    """Unified logger for all components with built-in correlation tracking."""

    def __init__(self, log_file: str = "logs/system.log", level: int = logging.INFO):
        """Initialize the unified logger.

        Args:
            log_file: Path to log file (will create directory if needed)
            level: Logging level (default: INFO)
        """
        self.logger = logging.getLogger("crm_agent_tools")
        self.logger.setLevel(level)

        # Remove any existing handlers to avoid duplicates
        self.logger.handlers.clear()

        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=50*1024*1024,  # 50MB per file
            backupCount=5,
            encoding='utf-8'
        )

        # JSON is built in _log, the formatter only passes it through
        handler.setFormatter(logging.Formatter('%(message)s'))
        self.logger.addHandler(handler)
        self.logger.propagate = False

    def _get_correlation_id(self) -> Optional[str]:
        """Get current correlation ID from the request context."""
        return _correlation_id.get()

    def set_correlation_id(self, correlation_id: Optional[str] = None) -> str:
        """Set correlation ID for the current request.

        Args:
            correlation_id: ID to use, or None to generate new one

        Returns:
            The correlation ID that was set
        """
        if correlation_id is None:
            correlation_id = str(uuid.uuid4())
        _correlation_id.set(correlation_id)
        return correlation_id

    def clear_correlation_id(self):
        """Clear correlation ID for the current request."""
        _correlation_id.set(None)

    def _build_entry(self, level: int, message: str, **kwargs) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": logging.getLevelName(level),
            "message": message,
            **kwargs
        }

        correlation_id = self._get_correlation_id()
        if correlation_id and "correlation_id" not in entry:
            entry["correlation_id"] = correlation_id

        return json.dumps(entry, default=str)

    def _log(self, level: int, message: str, **kwargs):
        """Internal logging method with JSON formatting."""
        self.logger.log(level, self._build_entry(level, message, **kwargs))

    def isEnabledFor(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        """Log info message."""
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs):
        """Log error message."""
        self._log(logging.ERROR, message, **kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message."""
        self._log(logging.CRITICAL, message, **kwargs)


# Global logger instance
_logger = None


def get_logger(component: Optional[str] = None) -> StructuredLogger:
    """Get the global logger instance (singleton).

    Args:
        component: Component name (ignored - kept for call-site symmetry
            with get_smart_logger)

    Returns:
        The global StructuredLogger instance
    """
    global _logger
    if _logger is None:
        _logger = StructuredLogger()
    return _logger

