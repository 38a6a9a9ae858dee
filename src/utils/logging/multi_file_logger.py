"""Multi-File Logging System for Better Traceability.

This module provides component-based log file separation for easier debugging
and monitoring. Each component gets its own log file, with an additional
error log that captures all ERROR level messages across components.

Log Files:
- tools.log: Tool registry dispatch and tool executions
- agent.log: Response parsing and action dispatch
- storage.log: Reasoning-trace persistence
- system.log: System-wide events (startup, configuration)
- errors.log: All ERROR level messages (cross-component)
"""

import logging
import logging.handlers
import os
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

from .logger import StructuredLogger


class MultiFileLogger(StructuredLogger):
    """Logger that routes messages to different files based on component."""

    # Component to log file mapping
    COMPONENT_FILES = {
        'tools': 'tools.log',
        'agent': 'agent.log',
        'storage': 'storage.log',
        'system': 'system.log',
        'config': 'system.log',  # Config goes to system log
    }

    def __init__(self, log_dir: str = "logs", level: int = logging.INFO):
        """Initialize multi-file logger.

        Args:
            log_dir: Directory for log files
            level: Logging level (default: INFO)
        """
        # Don't call parent __init__ - we set up our own handlers
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.level = level
        self.handlers: Dict[str, logging.Handler] = {}
        self.lock = Lock()

        # Main logger carries no handlers; records are routed by hand
        self.logger = logging.getLogger("crm_agent_tools")
        self.logger.setLevel(level)
        self.logger.handlers.clear()
        self.logger.propagate = False

        self._setup_handlers()
        self._setup_error_handler()

    def _setup_handlers(self):
        """Create a handler for each component log file."""
        by_filename: Dict[str, logging.Handler] = {}
        for component, filename in self.COMPONENT_FILES.items():
            # Aliases share one handler per file
            if filename not in by_filename:
                handler = logging.handlers.RotatingFileHandler(
                    self.log_dir / filename,
                    maxBytes=50*1024*1024,  # 50MB per file
                    backupCount=5,
                    encoding='utf-8',
                    delay=True
                )
                handler.setFormatter(logging.Formatter('%(message)s'))
                handler.setLevel(self.level)
                by_filename[filename] = handler
            self.handlers[component] = by_filename[filename]

    def _setup_error_handler(self):
        """Create special handler for all ERROR level messages."""
        error_handler = logging.handlers.RotatingFileHandler(
            self.log_dir / 'errors.log',
            maxBytes=50*1024*1024,  # 50MB
            backupCount=10,  # Keep more error logs
            encoding='utf-8',
            delay=True
        )
        error_handler.setFormatter(logging.Formatter('%(message)s'))
        error_handler.setLevel(logging.ERROR)
        self.handlers['_errors'] = error_handler

    def _get_handler(self, component: Optional[str]) -> logging.Handler:
        """Get the appropriate handler for a component."""
        if component and component in self.handlers:
            return self.handlers[component]
        return self.handlers['system']

    def _log(self, level: int, message: str, **kwargs):
        """Internal logging method that routes to appropriate file."""
        if level < self.level:
            return

        record = logging.LogRecord(
            name=self.logger.name,
            level=level,
            pathname="",
            lineno=0,
            msg=self._build_entry(level, message, **kwargs),
            args=(),
            exc_info=None
        )

        with self.lock:
            handler = self._get_handler(kwargs.get('component'))
            if level >= handler.level:
                handler.emit(record)

            # Also send ERROR and above to error log
            if level >= logging.ERROR:
                self.handlers['_errors'].emit(record)

    def isEnabledFor(self, level: int) -> bool:
        return level >= self.level


# Global multi-file logger instance
_multi_logger = None
_multi_logger_lock = Lock()


def get_multi_file_logger() -> MultiFileLogger:
    """Get the global multi-file logger instance (singleton).

    The log directory and level come from LOG_DIR / LOG_LEVEL so that the
    logger can be built before the configuration module is imported.

    Returns:
        The global MultiFileLogger instance
    """
    global _multi_logger
    if _multi_logger is None:
        with _multi_logger_lock:
            if _multi_logger is None:
                level_name = os.getenv('LOG_LEVEL', 'INFO').upper()
                _multi_logger = MultiFileLogger(
                    log_dir=os.getenv('LOG_DIR', 'logs'),
                    level=getattr(logging, level_name, logging.INFO)
                )
    return _multi_logger


def migrate_to_multi_file_logging():
    """Replace the single-file logger with the multi-file logger.

    Every get_logger() caller then writes through component routing.
    """
    from . import logger as logger_module

    logger_module._logger = get_multi_file_logger()
