"""Shared enumerations for docgen."""

from enum import Enum


class LogLevel(str, Enum):
    """Log verbosity level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Log output format."""

    COLORED = "colored"
    JSON = "json"


class Strictness(str, Enum):
    """Missing-variable policy for a render call."""

    LENIENT = "lenient"
    STRICT = "strict"


class FallbackStep(str, Enum):
    """Steps of the template fallback chain, in resolution order."""

    EXACT = "exact"
    PLATFORM_DEFAULT = "platform+docType-default"
    TECH_STACK_DEFAULT = "techStack-default"
    BUILTIN = "builtin-default"

    def hit(self) -> str:
        """Fallback path label for a successful lookup."""
        return f"{self.value}-hit"

    def miss(self) -> str:
        """Fallback path label for a failed lookup."""
        return f"{self.value}-miss"
