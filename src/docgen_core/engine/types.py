"""Types for the document engine."""

from dataclasses import dataclass, field
from typing import Any

from docgen_core.errors import DocgenError


@dataclass
class GenerationResult:
    """
    Result of one generate() call.

    Either ``success`` with ``rendered_text``, or an ``error`` describing
    which template failed and where. Never an empty document without
    an error.
    """

    success: bool
    rendered_text: str | None = None
    template_id: str | None = None
    fallback_path: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    cached: bool = False
    duration_ms: int | None = None

    # Error (if failed)
    error: DocgenError | None = None

    # Built-in default output attached on failure when degraded_fallback is on
    degraded_text: str | None = None

    @property
    def degraded(self) -> bool:
        return self.degraded_text is not None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for callers that consume results as data."""
        return {
            "success": self.success,
            "rendered_text": self.rendered_text,
            "template_id": self.template_id,
            "fallback_path": list(self.fallback_path),
            "warnings": list(self.warnings),
            "cached": self.cached,
            "duration_ms": self.duration_ms,
            "error": self.error.to_dict() if self.error else None,
            "degraded": self.degraded,
            "degraded_text": self.degraded_text,
        }
