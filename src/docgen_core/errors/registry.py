"""Error registry for creating errors from templates."""

from typing import Any

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

# Context keys copied onto the error instance
_LOCATION_FIELDS = ("template_id", "file", "line", "path", "block")


class ErrorRegistry:
    """Registry of error templates. Creates errors from templates + context."""

    def __init__(self) -> None:
        """Initialize error registry with built-in templates."""
        self._templates: dict[str, ErrorTemplate] = {}
        self._load_builtin_templates()

    def get_template(self, code: str) -> ErrorTemplate | None:
        """Get template by error code.

        Args:
            code: Error code to look up

        Returns:
            ErrorTemplate if found, None otherwise
        """
        return self._templates.get(code)

    def list_codes(self) -> list[str]:
        """List all registered error codes."""
        return list(self._templates.keys())

    def register(self, template: ErrorTemplate) -> None:
        """Add or replace an error template."""
        self._templates[template.code] = template

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        cause: DocgenError | None = None,
    ) -> DocgenError:
        """Create error instance from template + context.

        An explicit ``detail`` in the context wins over the template's
        detail text.

        Args:
            code: Error code
            context: Context variables for template interpolation
            cause: Optional cause error

        Returns:
            Instance of the template's error class

        Raises:
            ValueError: If error code not found
        """
        template = self.get_template(code)
        if not template:
            msg = f"Unknown error code: {code}"
            raise ValueError(msg)

        context = context or {}

        message = self._interpolate(template.message_template, context)
        detail = context.get("detail") or self._interpolate(template.detail_template, context)
        suggestion = self._interpolate(template.suggestion_template, context)

        if message is None:
            message = f"Error {code}"

        location = {name: context.get(name) for name in _LOCATION_FIELDS}
        return template.error_class(
            code=template.code,
            category=template.category,
            message=message,
            detail=detail,
            suggestion=suggestion,
            fallback_path=list(context.get("fallback_path") or []),
            cause=cause,
            **location,
        )

    def _interpolate(
        self,
        template: str | None,
        context: dict[str, Any],
    ) -> str | None:
        """Safe string interpolation.

        Args:
            template: Template string with {var} placeholders
            context: Context variables

        Returns:
            Interpolated string or None if template is None
        """
        if template is None:
            return None

        try:
            return template.format(**context)
        except (KeyError, IndexError):
            # Missing context variable - return template as-is
            return template

    def _load_builtin_templates(self) -> None:
        """Load hardcoded built-in templates."""
        # LOAD Errors
        self._templates["PARSE_ERROR"] = ErrorTemplate(
            code="PARSE_ERROR",
            category=ErrorCategory.LOAD,
            message_template="Malformed template file '{file}' at line {line}: {reason}",
            detail_template="The file is not valid YAML or does not match the template schema",
            suggestion_template="Fix the file at the reported line and reload",
            error_class=ParseError,
        )

        self._templates["DUPLICATE_DEFINITION"] = ErrorTemplate(
            code="DUPLICATE_DEFINITION",
            category=ErrorCategory.LOAD,
            message_template="Duplicate definition for {key}",
            detail_template="Defined in both '{first_file}' and '{file}'",
            suggestion_template="Remove or rename one of the definitions",
            error_class=DuplicateDefinitionError,
        )

        # RESOLUTION Errors
        self._templates["CYCLIC_INHERITANCE"] = ErrorTemplate(
            code="CYCLIC_INHERITANCE",
            category=ErrorCategory.RESOLUTION,
            message_template="Cyclic inheritance in '{template_id}': {cycle}",
            detail_template="The baseRefs chain refers back to a fragment already being merged",
            suggestion_template="Break the cycle by removing one of the baseRefs",
            error_class=CyclicInheritanceError,
        )

        self._templates["FRAGMENT_NOT_FOUND"] = ErrorTemplate(
            code="FRAGMENT_NOT_FOUND",
            category=ErrorCategory.RESOLUTION,
            message_template="Fragment '{fragment}' referenced by '{template_id}' not found",
            detail_template="No fragment file declares this name",
            suggestion_template="Add a file with 'fragment: {fragment}' or fix the baseRefs entry",
            error_class=FragmentNotFoundError,
        )

        # RENDER Errors
        self._templates["UNRESOLVED_VARIABLE"] = ErrorTemplate(
            code="UNRESOLVED_VARIABLE",
            category=ErrorCategory.RENDER,
            message_template="Unresolved variable '{path}'",
            detail_template="The path is not present in the render context (strict mode)",
            suggestion_template="Provide '{path}' in the context, declare a default, or render leniently",
            error_class=UnresolvedVariableError,
        )

        self._templates["UNKNOWN_FILTER"] = ErrorTemplate(
            code="UNKNOWN_FILTER",
            category=ErrorCategory.RENDER,
            message_template="Unknown filter '{filter_name}'",
            detail_template="Supported filters: {supported_filters}",
            suggestion_template="Use one of the supported filters",
            error_class=UnknownFilterError,
        )

        self._templates["TYPE_MISMATCH"] = ErrorTemplate(
            code="TYPE_MISMATCH",
            category=ErrorCategory.RENDER,
            message_template="Expected {expected} for '{path}', got {actual_type}",
            detail_template="The context value has the wrong type for this construct",
            suggestion_template="Check the shape of '{path}' in the context",
            error_class=TypeMismatchError,
        )

        self._templates["UNBALANCED_BLOCK"] = ErrorTemplate(
            code="UNBALANCED_BLOCK",
            category=ErrorCategory.RENDER,
            message_template="Unbalanced block '{block}' at line {line}",
            detail_template="Every {{{{#if}}}} and {{{{#each}}}} needs a matching closing tag",
            suggestion_template="Close or remove the block",
            error_class=UnbalancedBlockError,
        )

        self._templates["TEMPLATE_SYNTAX"] = ErrorTemplate(
            code="TEMPLATE_SYNTAX",
            category=ErrorCategory.RENDER,
            message_template="Invalid tag '{tag}' at line {line}: {reason}",
            detail_template=(
                "Supported tags: {{{{ path | filter }}}}, {{{{#if path}}}} {{{{#else}}}} {{{{/if}}}}, "
                "{{{{#each path}}}} {{{{/each}}}}"
            ),
            suggestion_template="Fix the tag or remove it",
            error_class=TemplateSyntaxError,
        )

        # CONFIG / SYSTEM Errors
        self._templates["CONFIG_INVALID"] = ErrorTemplate(
            code="CONFIG_INVALID",
            category=ErrorCategory.CONFIG,
            message_template="Invalid configuration",
            detail_template="The configuration file contains invalid values",
            suggestion_template="Check the configuration file syntax and values",
            error_class=ConfigError,
        )

        self._templates["INTERNAL_ERROR"] = ErrorTemplate(
            code="INTERNAL_ERROR",
            category=ErrorCategory.SYSTEM,
            message_template="Internal error",
            detail_template="An unexpected error occurred",
            suggestion_template="Report this issue with the template and context used",
        )
