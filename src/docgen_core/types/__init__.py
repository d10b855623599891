"""Shared types for docgen.

Import from here rather than submodules:
    from docgen_core.types import LogLevel, Strictness, ValidationResult
"""

from .enums import FallbackStep, LogFormat, LogLevel, Strictness
from .validation import ValidationIssue, ValidationResult

__all__ = [
    # Enums
    "LogLevel",
    "LogFormat",
    "Strictness",
    "FallbackStep",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
