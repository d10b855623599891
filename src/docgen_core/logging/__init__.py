"""Docgen Logging - Component-scoped colored logging."""

from .logger import (
    COMPONENT_COLORS,
    LEVEL_COLORS,
    RESET,
    CacheLogger,
    DocgenLogger,
    LogConfig,
    RequestLogger,
    StoreLogger,
)

__all__ = [
    # Logger classes
    "DocgenLogger",
    "StoreLogger",
    "RequestLogger",
    "CacheLogger",
    "LogConfig",
    # Colors
    "RESET",
    "LEVEL_COLORS",
    "COMPONENT_COLORS",
]
