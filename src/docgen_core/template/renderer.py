"""Renderer implementation."""

from typing import Any

from docgen_core.errors import DocgenError, create_error
from docgen_core.types import Strictness

from .binder import MISSING, Binding, VariableBinder, is_truthy, stringify
from .filters import FILTERS, MISSING_AWARE
from .parser import EachNode, Expression, IfNode, Node, TextNode, VarNode, parse_body
from .types import MergedTemplate, RenderContext, RenderResult

SECTION_SEPARATOR = "\n\n"


class _RenderState:
    """Per-call mutable state: strictness and collected warnings."""

    def __init__(self, strictness: Strictness, section: str | None = None):
        self.strictness = strictness
        self.section = section
        self.warnings: list[str] = []

    def warn(self, message: str) -> None:
        if message not in self.warnings:
            self.warnings.append(message)


class Renderer:
    """Evaluate section bodies against a render context.

    Supports:
    - Variable access: {{ component.name }}, {{ items[0].label }}
    - Filters: {{ name | upper }}, {{ tags | join(", ") }}, {{ x | default("n/a") }}
    - Conditionals: {{#if path}} ... {{#else}} ... {{/if}}
    - Loops: {{#each items}} {{ this.name }} {{ loop.index }} {{/each}}

    Output is plain text; nothing is escaped.
    """

    def __init__(
        self,
        binder: VariableBinder | None = None,
        section_separator: str = SECTION_SEPARATOR,
    ):
        """Initialize renderer.

        Args:
            binder: Variable binder (defaults to VariableBinder())
            section_separator: Text placed between rendered sections
        """
        self._binder = binder or VariableBinder()
        self._filters = FILTERS
        self._separator = section_separator

    def render(
        self,
        template: MergedTemplate,
        context: RenderContext,
        strictness: Strictness = Strictness.LENIENT,
    ) -> RenderResult:
        """Render every section of a merged template.

        All section bodies are parsed before any of them is evaluated.
        Sections that render blank are left out of the document.

        Args:
            template: Merged template
            context: Render context
            strictness: Missing-variable policy

        Returns:
            RenderResult with the document text and lenient-mode warnings

        Raises:
            UnresolvedVariableError: Missing variable in strict mode
            UnknownFilterError / TypeMismatchError / UnbalancedBlockError /
            TemplateSyntaxError: Broken template, regardless of strictness
        """
        parsed: list[tuple[str, list[Node]]] = []
        for section in template.sections:
            try:
                parsed.append((section.name, parse_body(section.body)))
            except DocgenError as e:
                self._in_section(e, section.name)
                raise

        binding = self._binder.bind(context, template.variables)
        state = _RenderState(strictness)

        if strictness == Strictness.STRICT:
            missing = binding.missing_required()
            if missing:
                raise create_error(
                    "UNRESOLVED_VARIABLE",
                    path=missing[0],
                    detail=f"Required variables missing from context: {', '.join(missing)}",
                )

        chunks: list[str] = []
        for name, nodes in parsed:
            state.section = name
            try:
                text = self._render_nodes(nodes, binding, state)
            except DocgenError as e:
                self._in_section(e, name)
                raise
            text = text.rstrip("\n")
            if text.strip():
                chunks.append(text)

        return RenderResult(text=self._separator.join(chunks), warnings=state.warnings)

    def render_text(
        self,
        body: str,
        context: RenderContext,
        strictness: Strictness = Strictness.LENIENT,
        template: MergedTemplate | None = None,
    ) -> RenderResult:
        """Render a single body string.

        Args:
            body: Text with {{ }} tags
            context: Render context
            strictness: Missing-variable policy
            template: Optional template whose variables schema applies

        Returns:
            RenderResult with the rendered text
        """
        nodes = parse_body(body)
        binding = self._binder.bind(context, template.variables if template else None)
        state = _RenderState(strictness)
        return RenderResult(text=self._render_nodes(nodes, binding, state), warnings=state.warnings)

    def _render_nodes(self, nodes: list[Node], binding: Binding, state: _RenderState) -> str:
        parts: list[str] = []
        for node in nodes:
            if isinstance(node, TextNode):
                parts.append(node.text)
            elif isinstance(node, VarNode):
                parts.append(stringify(self._evaluate(node.expr, binding, state)))
            elif isinstance(node, IfNode):
                value = self._evaluate(node.condition, binding, state, condition=True)
                if is_truthy(value):
                    parts.append(self._render_nodes(node.body, binding, state))
                elif node.else_body is not None:
                    parts.append(self._render_nodes(node.else_body, binding, state))
            elif isinstance(node, EachNode):
                parts.append(self._render_each(node, binding, state))
        return "".join(parts)

    def _render_each(self, node: EachNode, binding: Binding, state: _RenderState) -> str:
        items = self._evaluate(node.target, binding, state)
        if items is MISSING or items is None:
            # Missing list: nothing to iterate (strict errors raised in _evaluate)
            return ""
        if not isinstance(items, (list, tuple)):
            raise create_error(
                "TYPE_MISMATCH",
                expected="a list",
                path=node.target.path,
                actual_type=type(items).__name__,
                line=node.line,
            )
        total = len(items)
        return "".join(
            self._render_nodes(node.body, binding.child(item, position, total), state)
            for position, item in enumerate(items)
        )

    def _evaluate(
        self,
        expr: Expression,
        binding: Binding,
        state: _RenderState,
        condition: bool = False,
    ) -> Any:
        """Look up an expression's path and apply its filters.

        Conditions never count as unresolved: a missing path is simply
        false.
        """
        value = binding.lookup(expr.path)

        if (
            value is MISSING
            and not condition
            and not self._has_fallback(expr)
            and not binding.is_optional(expr.path)
        ):
            if state.strictness == Strictness.STRICT:
                raise create_error("UNRESOLVED_VARIABLE", path=expr.path, line=expr.line)
            else:
                where = f" in section '{state.section}'" if state.section else ""
                state.warn(f"Unresolved variable '{expr.path}'{where} rendered as empty")

        for call in expr.filters:
            if value is MISSING and call.name not in MISSING_AWARE:
                continue
            try:
                value = self._filters[call.name](value, *call.args)
            except (TypeError, ValueError, IndexError) as e:
                raise create_error(
                    "TYPE_MISMATCH",
                    expected=f"input accepted by filter '{call.name}'",
                    path=expr.path,
                    actual_type=type(value).__name__,
                    line=expr.line,
                    detail=str(e),
                ) from e

        return value

    @staticmethod
    def _has_fallback(expr: Expression) -> bool:
        return any(call.name in MISSING_AWARE for call in expr.filters)

    @staticmethod
    def _in_section(error: DocgenError, section: str) -> None:
        error.detail = f"In section '{section}'" + (f": {error.detail}" if error.detail else "")
