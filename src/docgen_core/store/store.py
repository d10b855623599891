"""Template Store implementation."""

import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING

from docgen_core.errors import DocgenError, create_error

from .parser import parse_template_yaml
from .types import TemplateDefinition, TemplateIndex, TemplateKey

if TYPE_CHECKING:
    from docgen_core.logging import DocgenLogger

TEMPLATE_SUFFIXES = (".yaml", ".yml")


def discover_template_files(root: Path) -> list[Path]:
    """List template files under ``root`` in a stable order.

    Args:
        root: Directory to scan (or a single file)

    Returns:
        Sorted list of YAML files
    """
    if root.is_file():
        return [root]
    return sorted(
        path
        for path in root.rglob("*")
        if path.is_file() and path.suffix in TEMPLATE_SUFFIXES
    )


def _read_template_file(path: Path) -> str:
    """Read a template file as UTF-8.

    Raises:
        ParseError: File cannot be read or is not valid UTF-8
    """
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise create_error(
            "PARSE_ERROR", file=str(path), line=1, reason=f"cannot read file: {e.strerror or e}"
        ) from e
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise create_error(
            "PARSE_ERROR",
            file=str(path),
            line=raw[: e.start].count(b"\n") + 1,
            reason=f"not valid UTF-8 (byte {raw[e.start]:#04x} at offset {e.start})",
        ) from e


class TemplateStore:
    """In-memory index of template definitions.

    Loads every template file under a root directory, indexes resolvable
    templates by (platform, documentType, techStack) and fragments by
    name. Reloads build a complete new index before swapping it in, so
    readers never observe a partially loaded tree.
    """

    def __init__(
        self,
        root: str | Path | None = None,
        logger: "DocgenLogger | None" = None,
    ):
        """Initialize template store.

        Args:
            root: Template root directory (may also be given to load())
            logger: Optional logger
        """
        self._root = Path(root) if root is not None else None
        self._logger = logger
        self._index: TemplateIndex | None = None
        self._lock = threading.Lock()
        self._reload_callbacks: list[Callable[[TemplateIndex], None]] = []

    @property
    def root(self) -> Path | None:
        return self._root

    @property
    def loaded(self) -> bool:
        return self._index is not None

    @property
    def index(self) -> TemplateIndex:
        """Current index snapshot (empty until load() succeeds)."""
        index = self._index
        if index is None:
            return TemplateIndex.empty(self._root or Path("."))
        return index

    def load(self, root: str | Path | None = None) -> TemplateIndex:
        """Load all template files under the root.

        Either the whole tree loads and replaces the current index, or
        an error is raised and the current index stays in place.

        Args:
            root: Template root directory (defaults to the configured root)

        Returns:
            The new index

        Raises:
            ParseError: On malformed YAML or schema violations
            DuplicateDefinitionError: On two files claiming the same key
            ConfigError: If the root does not exist
        """
        if root is not None:
            self._root = Path(root)
        if self._root is None:
            raise create_error("CONFIG_INVALID", detail="No template root configured")

        store_log = self._logger.store() if self._logger else None
        if store_log:
            store_log.loading(self._root)

        started = time.monotonic()
        try:
            index = self._build_index(self._root)
        except DocgenError as e:
            if store_log:
                store_log.load_failed(e)
            raise

        with self._lock:
            self._index = index

        if store_log:
            duration_ms = int((time.monotonic() - started) * 1000)
            store_log.loaded(len(index.templates), len(index.fragments), duration_ms)

        for callback in list(self._reload_callbacks):
            callback(index)

        return index

    def reload(self) -> TemplateIndex:
        """Re-read the configured root unconditionally."""
        index = self.load()
        if self._logger:
            self._logger.store().reloaded(changed=True)
        return index

    def has_changed(self) -> bool:
        """Check file modification times against the loaded snapshot.

        Returns:
            True if a file was added, removed or modified since load
        """
        if self._index is None or self._root is None:
            return True
        return self._snapshot_mtimes(self._root) != dict(self._index.file_mtimes)

    def reload_if_changed(self) -> bool:
        """Reload only when files changed on disk.

        Returns:
            True if a reload happened
        """
        if not self.has_changed():
            if self._logger:
                self._logger.store().reloaded(changed=False)
            return False
        self.reload()
        return True

    def on_reload(self, callback: Callable[[TemplateIndex], None]) -> None:
        """Register callback invoked after every successful (re)load.

        Args:
            callback: Function receiving the new index
        """
        self._reload_callbacks.append(callback)

    def get(self, key: TemplateKey) -> TemplateDefinition | None:
        """Get resolvable template by key."""
        return self.index.templates.get(key)

    def get_fragment(self, name: str) -> TemplateDefinition | None:
        """Get fragment by name.

        Args:
            name: Fragment name (the file's ``fragment`` key)

        Returns:
            Fragment definition or None if not found
        """
        return self.index.fragments.get(name)

    def list_keys(self) -> list[TemplateKey]:
        """List keys of all resolvable templates, sorted."""
        return sorted(self.index.templates)

    def list_fragments(self) -> list[str]:
        """List fragment names, sorted."""
        return sorted(self.index.fragments)

    def _build_index(self, root: Path) -> TemplateIndex:
        """Parse every file under root into a fresh index."""
        if not root.exists():
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Template root not found: {root}",
            )

        templates: dict[TemplateKey, TemplateDefinition] = {}
        fragments: dict[str, TemplateDefinition] = {}
        mtimes: dict[str, float] = {}

        for path in discover_template_files(root):
            mtimes[str(path)] = path.stat().st_mtime
            definition = parse_template_yaml(_read_template_file(path), source_path=path)

            if definition.fragment is not None:
                existing = fragments.get(definition.fragment)
                if existing is not None:
                    raise create_error(
                        "DUPLICATE_DEFINITION",
                        key=f"fragment '{definition.fragment}'",
                        first_file=str(existing.source_path),
                        file=str(path),
                    )
                fragments[definition.fragment] = definition
            elif definition.key is not None:
                existing = templates.get(definition.key)
                if existing is not None:
                    raise create_error(
                        "DUPLICATE_DEFINITION",
                        key=f"template '{definition.key.label}'",
                        first_file=str(existing.source_path),
                        file=str(path),
                    )
                templates[definition.key] = definition

        return TemplateIndex(
            root=root,
            templates=MappingProxyType(templates),
            fragments=MappingProxyType(fragments),
            file_mtimes=MappingProxyType(mtimes),
            loaded_at=datetime.now(UTC),
        )

    def _snapshot_mtimes(self, root: Path) -> dict[str, float]:
        if not root.exists():
            return {}
        return {str(path): path.stat().st_mtime for path in discover_template_files(root)}
