"""Structured logging framework for the CRM agent tool pipeline."""

from .logger import get_logger

from .framework import (
    log_execution,  # Decorator for function logging
    log_operation,  # Context manager for scoped operations
    get_smart_logger,  # Factory for smart loggers
    SmartLogger,
)

from .multi_file_logger import migrate_to_multi_file_logging

# Route get_logger() through per-component files on import
migrate_to_multi_file_logging()

__all__ = [
    "get_logger",
    "log_execution",
    "log_operation",
    "get_smart_logger",
    "SmartLogger",
]
