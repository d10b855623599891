"""Shared validation types for docgen."""

from dataclasses import dataclass, field


@dataclass
class ValidationIssue:
    """Single validation issue (error or warning).

    Used by:
    - ConfigLoader (config validation)
    - TemplateValidator (template file validation)
    """

    path: str  # e.g., "sections[0].body" or "cache.ttl_seconds"
    message: str  # Human-readable description
    severity: str = "error"  # "error" | "warning"
    line: int | None = None  # Line number in source file (if available)

    def format(self, source: str | None = None) -> str:
        """Render as `file:line: path: message`."""
        location = source or ""
        if self.line is not None:
            location = f"{location}:{self.line}" if location else f"line {self.line}"
        prefix = f"{location}: " if location else ""
        return f"{prefix}{self.path}: {self.message}"


@dataclass
class ValidationResult:
    """Result of validation (config or template file).

    Used by:
    - ConfigLoader.validate()
    - TemplateValidator.validate_file()
    - CLI validate command
    """

    valid: bool
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Ensure valid is False if there are errors."""
        if self.errors:
            self.valid = False
