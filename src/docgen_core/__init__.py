"""Docgen Core - Hierarchical document template engine.

Selects a template for a (platform, documentType, techStack) request
through a fixed fallback chain, merges inherited fragments and renders
the result against a caller-supplied data context.
"""

__version__ = "0.1.0"

from docgen_core.engine import DocumentEngine, GenerationResult  # noqa: E402
from docgen_core.template import ResolutionRequest  # noqa: E402
from docgen_core.types import Strictness  # noqa: E402

__all__ = [
    "__version__",
    "DocumentEngine",
    "GenerationResult",
    "ResolutionRequest",
    "Strictness",
]
