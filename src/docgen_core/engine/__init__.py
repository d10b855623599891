"""Document engine."""

from .engine import DocumentEngine
from .types import GenerationResult

__all__ = ["DocumentEngine", "GenerationResult"]
