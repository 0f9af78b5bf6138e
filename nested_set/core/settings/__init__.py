"""Pydantic Settings v2 configuration.

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables (NESTED_SET_*, LOG_*)
    3. .env file (development only)
"""

from __future__ import annotations

from .database import DatabaseSettings, IsolationLevel
from .loader import clear_all_caches, get_database_settings, get_logging_settings
from .logs import LoggingSettings, LogLevel

__all__ = [
    "DatabaseSettings",
    "IsolationLevel",
    "LogLevel",
    "LoggingSettings",
    "clear_all_caches",
    "get_database_settings",
    "get_logging_settings",
]
