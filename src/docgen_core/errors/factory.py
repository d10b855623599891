"""Error factory for creating DocgenErrors."""

from typing import Any

from .errors import DocgenError
from .registry import ErrorRegistry


class ErrorFactory:
    """Creates DocgenErrors from codes or arbitrary exceptions."""

    def __init__(self, registry: ErrorRegistry | None = None):
        """Initialize error factory.

        Args:
            registry: Error registry (defaults to new ErrorRegistry())
        """
        self.registry = registry or ErrorRegistry()

    def from_exception(
        self,
        error: Exception,
        template_id: str | None = None,
        fallback_path: list[str] | None = None,
    ) -> DocgenError:
        """Convert any exception to DocgenError.

        Args:
            error: Exception to convert
            template_id: Optional template identifier
            fallback_path: Optional fallback path walked

        Returns:
            DocgenError instance
        """
        if isinstance(error, DocgenError):
            return error.with_context(template_id=template_id, fallback_path=fallback_path)

        return self.registry.create(
            code="INTERNAL_ERROR",
            context={
                "detail": f"{type(error).__name__}: {error}",
                "template_id": template_id,
                "fallback_path": fallback_path,
            },
        )

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> DocgenError:
        """Create DocgenError directly from code.

        Args:
            code: Error code
            context: Context variables for template interpolation
            **kwargs: Additional context variables

        Returns:
            DocgenError instance
        """
        merged_context = dict(context or {})
        merged_context.update(kwargs)

        return self.registry.create(code=code, context=merged_context)


# Convenience singleton
_default_factory: ErrorFactory | None = None


def get_error_factory() -> ErrorFactory:
    """Get default error factory singleton.

    Returns:
        Default ErrorFactory instance
    """
    global _default_factory  # noqa: PLW0603
    if _default_factory is None:
        _default_factory = ErrorFactory()
    return _default_factory


def create_error(code: str, **context: Any) -> DocgenError:
    """Convenience function to create error.

    Args:
        code: Error code
        **context: Context variables for template interpolation

    Returns:
        DocgenError instance
    """
    return get_error_factory().create(code, context)
