"""Docgen error handling - Structured errors with context."""

from .errors import (
    ConfigError,
    CyclicInheritanceError,
    DocgenError,
    DuplicateDefinitionError,
    ErrorCategory,
    ErrorTemplate,
    FragmentNotFoundError,
    ParseError,
    TypeMismatchError,
    TemplateSyntaxError,
    UnbalancedBlockError,
    UnknownFilterError,
    UnresolvedVariableError,
)
from .factory import ErrorFactory, create_error, get_error_factory
from .registry import ErrorRegistry

__all__ = [
    # Core error types
    "DocgenError",
    "ErrorCategory",
    "ErrorTemplate",
    "ParseError",
    "DuplicateDefinitionError",
    "CyclicInheritanceError",
    "FragmentNotFoundError",
    "UnresolvedVariableError",
    "UnknownFilterError",
    "TypeMismatchError",
    "UnbalancedBlockError",
    "TemplateSyntaxError",
    "ConfigError",
    # Registry and factory
    "ErrorRegistry",
    "ErrorFactory",
    # Convenience functions
    "get_error_factory",
    "create_error",
]
