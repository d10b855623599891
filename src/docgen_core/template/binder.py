"""Variable binding: path lookups over a render context."""

import json
import re
from collections.abc import Iterator, Mapping
from typing import Any

from docgen_core.store.types import VariableSpec

from .types import RenderContext

PATH_PATTERN = re.compile(r"^(?:@[A-Za-z_]\w*|[\w-]+)(?:\.[\w-]+|\[\d+\])*$")
_SEGMENT_PATTERN = re.compile(r"@?[\w-]+|\[\d+\]")

# Names only available inside an #each body
SCOPE_ROOTS = frozenset({"this", "loop"})
LOOP_ALIASES = {"@index": "loop.index0", "@first": "loop.first", "@last": "loop.last"}

Segment = str | int


class _Missing:
    """Marker for a path absent from the context."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def is_valid_path(path: str) -> bool:
    """Check a variable path against the path grammar."""
    return bool(PATH_PATTERN.match(path))


def split_path(path: str) -> list[Segment]:
    """Split a variable path into segments.

    ``items[0].label`` → ``["items", 0, "label"]``. Dotted numeric
    segments (``items.0``) stay strings; lookup treats them as indexes
    when the value is a list.

    Args:
        path: Variable path

    Returns:
        List of key (str) and index (int) segments

    Raises:
        ValueError: If the path does not match the grammar
    """
    path = LOOP_ALIASES.get(path, path)
    if not is_valid_path(path):
        raise ValueError(f"invalid variable path '{path}'")
    segments: list[Segment] = []
    for token in _SEGMENT_PATTERN.findall(path):
        if token.startswith("["):
            segments.append(int(token[1:-1]))
        else:
            segments.append(token)
    return segments


def canonical_path(segments: list[Segment]) -> str:
    """Join segments back into ``a.b[0].c`` form."""
    parts: list[str] = []
    for segment in segments:
        if isinstance(segment, int):
            parts.append(f"[{segment}]")
        elif parts:
            parts.append(f".{segment}")
        else:
            parts.append(segment)
    return "".join(parts)


def _index_variant(segments: list[Segment]) -> list[Segment]:
    """Treat every all-digit key segment as a list index."""
    return [
        int(s) if isinstance(s, str) and s.isdigit() and i > 0 else s
        for i, s in enumerate(segments)
    ]


def _key_variant(segments: list[Segment]) -> list[Segment]:
    """Treat every list index as a mapping key."""
    return [str(s) if isinstance(s, int) else s for s in segments]


def flatten(value: Any, prefix: list[Segment] | None = None) -> Iterator[tuple[str, Any]]:
    """Yield ``(canonical path, value)`` for every node of a context tree.

    Containers are yielded as well as their children, so ``{{ items }}``
    and ``{{ items[0] }}`` are both addressable.
    """
    prefix = prefix or []
    if prefix:
        yield canonical_path(prefix), value
    if isinstance(value, Mapping):
        for key, child in value.items():
            yield from flatten(child, [*prefix, str(key)])
    elif isinstance(value, (list, tuple)):
        for index, child in enumerate(value):
            yield from flatten(child, [*prefix, index])


def stringify(value: Any) -> str:
    """Convert a looked-up value to output text.

    None and MISSING become "", booleans ``true``/``false``, lists and
    mappings JSON with sorted keys.
    """
    if value is None or value is MISSING:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, Mapping)):
        return json.dumps(value, sort_keys=True, default=str, ensure_ascii=False)
    return str(value)


def is_truthy(value: Any) -> bool:
    """Truthiness for #if.

    Falsy: "", empty list, False, None, MISSING. Everything else
    (including 0 and empty mappings) is truthy.
    """
    if value is None or value is MISSING or value is False:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return True


class Binding:
    """Lookup function over a flattened context.

    Child bindings created for ``#each`` bodies add ``this`` and
    ``loop.*``; those names never resolve against the parent.
    """

    def __init__(
        self,
        index: Mapping[str, Any],
        defaults: Mapping[str, Any],
        variables: Mapping[str, VariableSpec],
        parent: "Binding | None" = None,
    ):
        self._index = index
        self._defaults = defaults
        self._variables = variables
        self._parent = parent

    def lookup(self, path: str) -> Any:
        """Resolve a variable path.

        Args:
            path: Variable path (``a.b``, ``items[0].label``, ``items.0.label``)

        Returns:
            The value, or MISSING if the path is absent from both the
            context and the declared defaults
        """
        segments = split_path(path)
        root = segments[0]

        if self._parent is not None and root not in SCOPE_ROOTS:
            return self._parent.lookup(path)

        value = self._find(self._index, segments)
        if value is MISSING and self._parent is None:
            value = self._find(self._defaults, segments)
        return value

    def child(self, item: Any, position: int, total: int) -> "Binding":
        """Create the binding for one iteration of an #each body.

        Args:
            item: Current element (exposed as ``this``)
            position: Zero-based position
            total: Number of elements

        Returns:
            Child binding
        """
        scope: dict[str, Any] = {"this": item}
        scope.update(flatten(item, ["this"]))
        scope.update(
            {
                "loop": {
                    "index": position + 1,
                    "index0": position,
                    "first": position == 0,
                    "last": position == total - 1,
                    "length": total,
                },
                "loop.index": position + 1,
                "loop.index0": position,
                "loop.first": position == 0,
                "loop.last": position == total - 1,
                "loop.length": total,
            }
        )
        return Binding(scope, {}, self._variables, parent=self)

    def is_optional(self, path: str) -> bool:
        """Whether a missing path is tolerated even in strict mode.

        A path is optional when it, or one of its ancestors, is declared
        in the variables schema without ``required: true``.
        """
        segments = _key_variant(split_path(path))
        for end in range(len(segments), 0, -1):
            spec = self._variables.get(canonical_path(segments[:end]))
            if spec is not None:
                return not spec.is_required
        return False

    def missing_required(self) -> list[str]:
        """List required variables with no value and no default."""
        return [
            name
            for name, spec in self._variables.items()
            if spec.is_required and not spec.has_default and self._safe_lookup(name) is MISSING
        ]

    def _safe_lookup(self, name: str) -> Any:
        try:
            return self.lookup(name)
        except ValueError:
            return MISSING

    @staticmethod
    def _find(index: Mapping[str, Any], segments: list[Segment]) -> Any:
        for candidate in (segments, _index_variant(segments), _key_variant(segments)):
            key = canonical_path(candidate)
            if key in index:
                return index[key]
        return MISSING


class VariableBinder:
    """Builds bindings from a render context and a variables schema."""

    def bind(
        self,
        context: RenderContext,
        variables: Mapping[str, VariableSpec] | None = None,
    ) -> Binding:
        """Flatten a context for lookups.

        The caller's context is only read. Declared defaults fill paths
        the context lacks, including nested paths under a default value.

        Args:
            context: Render context tree
            variables: Variables schema of the merged template

        Returns:
            Root binding
        """
        variables = variables or {}
        index = dict(flatten(context))

        defaults: dict[str, Any] = {}
        for name, spec in variables.items():
            if not spec.has_default:
                continue
            try:
                prefix = split_path(name)
            except ValueError:
                continue
            defaults.update(flatten(spec.default, prefix))

        return Binding(index, defaults, variables)
