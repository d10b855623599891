"""Template body parsing.

Turns a section body into a node tree before anything is evaluated, so
malformed bodies fail without producing partial output.
"""

import inspect
import re
from dataclasses import dataclass, field
from typing import Any

from docgen_core.errors import DocgenError, create_error

from .binder import is_valid_path
from .filters import FILTERS

# Regex to find {{ }} tags
TAG_PATTERN = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)
_FILTER_CALL = re.compile(r"^([A-Za-z_]\w*)\s*(?:\((.*)\))?$", re.DOTALL)
_BLOCK_OPEN = re.compile(r"^#(\w+)(?:\s+(.*))?$", re.DOTALL)

BLOCKS = ("if", "each")


@dataclass(frozen=True)
class FilterCall:
    name: str
    args: tuple[Any, ...] = ()


@dataclass(frozen=True)
class Expression:
    """``path | filter | filter(arg)`` inside a tag."""

    path: str
    filters: tuple[FilterCall, ...] = ()
    source: str = ""
    line: int = 1


@dataclass
class TextNode:
    text: str


@dataclass
class VarNode:
    expr: Expression


@dataclass
class IfNode:
    condition: Expression
    body: list["Node"] = field(default_factory=list)
    else_body: list["Node"] | None = None
    line: int = 1


@dataclass
class EachNode:
    target: Expression
    body: list["Node"] = field(default_factory=list)
    line: int = 1


Node = TextNode | VarNode | IfNode | EachNode


@dataclass
class _Token:
    kind: str  # "text" | "tag"
    value: str
    line: int


def tokenize(body: str) -> list[_Token]:
    """Split a body into text and tag tokens with 1-based line numbers.

    Block tags standing alone on a line take the whole line with them,
    so block markup does not leave blank lines in the output.

    Raises:
        TemplateSyntaxError: On a ``{{`` with no closing ``}}``
    """
    tokens: list[_Token] = []
    pos = 0
    for match in TAG_PATTERN.finditer(body):
        if match.start() > pos:
            tokens.append(_Token("text", body[pos : match.start()], body.count("\n", 0, pos) + 1))
        line = body.count("\n", 0, match.start()) + 1
        tokens.append(_Token("tag", match.group(1).strip(), line))
        pos = match.end()
    if pos < len(body):
        tokens.append(_Token("text", body[pos:], body.count("\n", 0, pos) + 1))

    for token in tokens:
        if token.kind == "text" and "{{" in token.value:
            offset = token.value.index("{{")
            raise create_error(
                "TEMPLATE_SYNTAX",
                tag=token.value[offset : offset + 20].splitlines()[0],
                line=token.line + token.value.count("\n", 0, offset),
                reason="tag is never closed with '}}'",
            )

    _strip_standalone_blocks(tokens)
    return tokens


def _is_block_tag(token: _Token) -> bool:
    return token.kind == "tag" and token.value[:1] in ("#", "/")


def _strip_standalone_blocks(tokens: list[_Token]) -> None:
    standalone: list[int] = []
    for i, token in enumerate(tokens):
        if not _is_block_tag(token):
            continue
        prev = tokens[i - 1] if i > 0 else None
        nxt = tokens[i + 1] if i + 1 < len(tokens) else None
        prev_ok = prev is None or (
            prev.kind == "text"
            and (
                re.search(r"\n[ \t]*$", prev.value) is not None
                or (i - 1 == 0 and prev.value.strip(" \t") == "")
            )
        )
        next_ok = nxt is None or (
            nxt.kind == "text" and re.match(r"[ \t]*(\r?\n|$)", nxt.value) is not None
        )
        if prev_ok and next_ok:
            standalone.append(i)

    # Flags are computed on the original text before any stripping
    for i in standalone:
        if i > 0:
            tokens[i - 1].value = re.sub(r"[ \t]*$", "", tokens[i - 1].value)
        if i + 1 < len(tokens):
            tokens[i + 1].value = re.sub(r"^[ \t]*(\r?\n)?", "", tokens[i + 1].value, count=1)


def split_pipes(source: str) -> list[str]:
    """Split on ``|`` outside quoted strings."""
    return _split_outside_quotes(source, "|")


def split_args(source: str) -> list[str]:
    """Split filter arguments on ``,`` outside quoted strings."""
    if not source.strip():
        return []
    return _split_outside_quotes(source, ",")


def _split_outside_quotes(source: str, separator: str) -> list[str]:
    parts: list[str] = []
    current: list[str] = []
    quote: str | None = None
    for char in source:
        if quote:
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == separator:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    parts.append("".join(current).strip())
    return parts


def parse_literal(arg: str) -> Any:
    """Parse a filter argument.

    Args:
        arg: Argument text

    Returns:
        Parsed value (str, int, float, bool or None)
    """
    arg = arg.strip()

    # String literal
    if len(arg) >= 2 and arg[0] == arg[-1] and arg[0] in ("'", '"'):
        return arg[1:-1].replace("\\n", "\n")

    if arg == "true":
        return True
    if arg == "false":
        return False
    if arg in ("null", "none", "None"):
        return None

    try:
        if "." in arg:
            return float(arg)
        return int(arg)
    except ValueError:
        # Bare words are taken literally
        return arg


def parse_expression(source: str, line: int = 1) -> Expression:
    """Parse ``path | filter(args) | ...``.

    Filter names and argument counts are checked here, before any
    rendering happens.

    Raises:
        TemplateSyntaxError: On an empty or malformed expression
        UnknownFilterError: On a filter that is not registered
    """
    parts = split_pipes(source)
    path = parts[0]
    if not path:
        raise create_error("TEMPLATE_SYNTAX", tag=source, line=line, reason="empty expression")
    if not is_valid_path(path):
        raise create_error(
            "TEMPLATE_SYNTAX", tag=source, line=line, reason=f"invalid variable path '{path}'"
        )

    filters: list[FilterCall] = []
    for part in parts[1:]:
        match = _FILTER_CALL.match(part)
        if not match:
            raise create_error(
                "TEMPLATE_SYNTAX", tag=source, line=line, reason=f"malformed filter '{part}'"
            )
        name, arg_source = match.group(1), match.group(2)
        if name not in FILTERS:
            raise create_error(
                "UNKNOWN_FILTER",
                filter_name=name,
                supported_filters=", ".join(sorted(FILTERS)),
                line=line,
            )
        args = tuple(parse_literal(a) for a in split_args(arg_source or ""))
        try:
            inspect.signature(FILTERS[name]).bind(None, *args)
        except TypeError as e:
            raise create_error(
                "TEMPLATE_SYNTAX",
                tag=source,
                line=line,
                reason=f"wrong number of arguments for filter '{name}'",
            ) from e
        filters.append(FilterCall(name=name, args=args))

    return Expression(path=path, filters=tuple(filters), source=source, line=line)


def parse_body(body: str) -> list[Node]:
    """Parse a section body into a node tree.

    Args:
        body: Section body text

    Returns:
        Top-level nodes

    Raises:
        UnbalancedBlockError: On unmatched, crossed or stray block tags
        UnknownFilterError: On an unregistered filter
        TemplateSyntaxError: On any other malformed tag
    """
    root: list[Node] = []
    current = root
    # (block name, node, line, enclosing node list)
    stack: list[tuple[str, IfNode | EachNode, int, list[Node]]] = []

    for token in tokenize(body):
        if token.kind == "text":
            if token.value:
                current.append(TextNode(token.value))
            continue

        tag = token.value
        if tag.startswith("/"):
            name = tag[1:].strip()
            if not stack or stack[-1][0] != name:
                raise create_error("UNBALANCED_BLOCK", block=f"/{name}", line=token.line)
            _, _, _, current = stack.pop()
            continue

        if tag == "#else":
            top = stack[-1][1] if stack else None
            if not isinstance(top, IfNode) or top.else_body is not None:
                raise create_error("UNBALANCED_BLOCK", block="#else", line=token.line)
            top.else_body = []
            current = top.else_body
            continue

        if tag.startswith("#"):
            match = _BLOCK_OPEN.match(tag)
            name = match.group(1) if match else tag[1:]
            if name not in BLOCKS:
                raise create_error(
                    "TEMPLATE_SYNTAX", tag=tag, line=token.line, reason=f"unknown block '#{name}'"
                )
            argument = (match.group(2) or "").strip() if match else ""
            if not argument:
                raise create_error(
                    "TEMPLATE_SYNTAX",
                    tag=tag,
                    line=token.line,
                    reason=f"#{name} needs a variable path",
                )
            expr = parse_expression(argument, token.line)
            block: IfNode | EachNode
            if name == "if":
                block = IfNode(condition=expr, line=token.line)
            else:
                block = EachNode(target=expr, line=token.line)
            current.append(block)
            stack.append((name, block, token.line, current))
            current = block.body
            continue

        current.append(VarNode(parse_expression(tag, token.line)))

    if stack:
        name, _, line, _ = stack[-1]
        raise create_error("UNBALANCED_BLOCK", block=f"#{name}", line=line)

    return root


def validate_body(body: str) -> list[str]:
    """Check body syntax without rendering.

    Args:
        body: Section body text

    Returns:
        List of error messages (empty if valid). Parsing stops at the
        first error.
    """
    try:
        parse_body(body)
    except DocgenError as e:
        return [f"line {e.line}: {e}" if e.line else str(e)]
    return []
