"""Docgen error types."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error source categories."""

    LOAD = "LOAD"  # Template tree could not be loaded
    RESOLUTION = "RESOLUTION"  # Selected template could not be merged
    RENDER = "RENDER"  # Template body failed to render
    CONFIG = "CONFIG"
    SYSTEM = "SYSTEM"


@dataclass
class DocgenError(Exception):
    """Structured error with context. Base exception for all docgen errors."""

    # Identity
    code: str  # e.g., "UNBALANCED_BLOCK"
    category: ErrorCategory

    # Messages
    message: str  # Human-readable summary
    detail: str | None = None  # Extended explanation
    suggestion: str | None = None  # Actionable fix

    # Template context
    template_id: str | None = None
    fallback_path: list[str] = field(default_factory=list)

    # Location
    file: str | None = None  # Source template file
    line: int | None = None  # 1-based line in file or body
    path: str | None = None  # Variable path (unresolved / type mismatch)
    block: str | None = None  # Block tag (unbalanced)

    cause: "DocgenError | None" = None

    # Metadata
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        """Set Exception message."""
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Serialize for callers that report errors as data.

        Returns:
            Dictionary representation of the error
        """
        return {
            "code": self.code,
            "category": self.category.value,
            "message": self.message,
            "detail": self.detail,
            "suggestion": self.suggestion,
            "template_id": self.template_id,
            "fallback_path": list(self.fallback_path),
            "file": self.file,
            "line": self.line,
            "path": self.path,
            "block": self.block,
            "timestamp": self.timestamp.isoformat(),
            "cause": self.cause.to_dict() if self.cause else None,
        }

    def with_context(
        self,
        template_id: str | None = None,
        fallback_path: list[str] | None = None,
        file: str | None = None,
    ) -> "DocgenError":
        """Return copy with additional context.

        Args:
            template_id: Template being resolved or rendered
            fallback_path: Fallback steps walked for the request
            file: Source file of the template

        Returns:
            New error of the same class with updated context
        """
        return replace(
            self,
            template_id=template_id or self.template_id,
            fallback_path=list(fallback_path) if fallback_path is not None else self.fallback_path,
            file=file or self.file,
        )


class ParseError(DocgenError):
    """Malformed template file (bad YAML or missing/invalid keys)."""


class DuplicateDefinitionError(DocgenError):
    """Two files claim the same template key or fragment name."""


class CyclicInheritanceError(DocgenError):
    """A template's baseRefs chain refers back to itself."""


class FragmentNotFoundError(DocgenError):
    """A baseRef names a fragment that is not in the store."""


class UnresolvedVariableError(DocgenError):
    """A variable path is missing from the context in strict mode."""


class UnknownFilterError(DocgenError):
    """A template uses a filter that is not registered."""


class TypeMismatchError(DocgenError):
    """A value has the wrong type for the construct using it."""


class UnbalancedBlockError(DocgenError):
    """Block tags do not pair up."""


class TemplateSyntaxError(DocgenError):
    """Malformed tag inside a section body."""


class ConfigError(DocgenError):
    """Invalid engine configuration."""


@dataclass
class ErrorTemplate:
    """Template for creating errors."""

    code: str
    category: ErrorCategory
    message_template: str  # "Unknown filter '{filter_name}'"
    detail_template: str | None = None
    suggestion_template: str | None = None
    error_class: type[DocgenError] = DocgenError
