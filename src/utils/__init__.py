"""Utilities package with organized submodules.

- config/: Configuration management
- logging/: Structured multi-file logging
- storage/: Reasoning-trace persistence
- helpers: Formatting helpers shared by tools and the parser
"""

# Core utilities (most commonly used)
from .logging import get_logger, get_smart_logger
from .config import config, ConfigError

# Storage utilities
from .storage import ThoughtStore, SQLiteThoughtStore

__all__ = [
    # Core
    'get_logger',
    'get_smart_logger',
    'config',
    'ConfigError',

    # Storage
    'ThoughtStore',
    'SQLiteThoughtStore',
]
