"""Document engine: cache, resolve, bind and render in one call."""

import time
from pathlib import Path
from typing import Any

from docgen_core.cache import CacheEntry, CacheStats, ResolutionCache, make_cache_key
from docgen_core.config import DocgenConfig
from docgen_core.errors import DocgenError, ErrorFactory
from docgen_core.logging import DocgenLogger
from docgen_core.store import TemplateIndex, TemplateKey, TemplateStore
from docgen_core.template import (
    AnchorMerger,
    Renderer,
    Resolution,
    ResolutionRequest,
    TemplateResolver,
    builtin_default,
)
from docgen_core.template.types import RenderContext
from docgen_core.types import Strictness

from .types import GenerationResult


class DocumentEngine:
    """
    Generate documents from templates.

    Pipeline per request:
    1. Check the resolution cache
    2. Resolve the template through the fallback chain and merge it
    3. Bind the context and render every section
    4. Store the outcome in the cache

    Render-time failures come back as a GenerationResult with an error;
    they are never raised to the caller. Load-time failures are raised
    from load().
    """

    def __init__(
        self,
        config: DocgenConfig | None = None,
        store: TemplateStore | None = None,
        cache: ResolutionCache | None = None,
        logger: DocgenLogger | None = None,
        error_factory: ErrorFactory | None = None,
    ):
        """Initialize document engine.

        Args:
            config: Engine configuration (defaults to DocgenConfig())
            store: Template store (defaults to one rooted at templates.root)
            cache: Resolution cache (defaults to one built from config.cache;
                   none when caching is disabled)
            logger: Optional logger
            error_factory: Optional error factory
        """
        self._config = config or DocgenConfig()
        self._logger = logger
        self._store = store or TemplateStore(self._config.templates.root, logger=logger)
        if cache is None and self._config.cache.enabled:
            cache = ResolutionCache(ttl_seconds=self._config.cache.ttl_seconds, logger=logger)
        self._cache = cache
        self._error_factory = error_factory or ErrorFactory()
        self._resolver = TemplateResolver(
            self._store,
            aliases=self._config.templates.document_type_aliases,
            logger=logger,
        )
        self._renderer = Renderer(section_separator=self._config.render.section_separator)
        self._broken: dict[str, DocgenError] = {}

        self._store.on_reload(self._on_reload)

    @property
    def store(self) -> TemplateStore:
        return self._store

    @property
    def cache(self) -> ResolutionCache | None:
        return self._cache

    @property
    def broken_templates(self) -> dict[str, DocgenError]:
        """Templates whose inheritance failed to merge at the last load."""
        return dict(self._broken)

    def load(self, root: str | Path | None = None) -> TemplateIndex:
        """Load the template tree.

        Args:
            root: Template root (defaults to the store's configured root)

        Returns:
            Loaded index

        Raises:
            ParseError / DuplicateDefinitionError / ConfigError: Load aborted
        """
        return self._store.load(root)

    def reload(self) -> TemplateIndex:
        """Reload templates and drop all cached results."""
        return self._store.reload()

    def reload_if_changed(self) -> bool:
        """Reload only if template files changed on disk."""
        return self._store.reload_if_changed()

    def __enter__(self) -> "DocumentEngine":
        if not self._store.loaded:
            self.load()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._cache is not None:
            self._cache.invalidate_all()

    def request(
        self,
        platform: str,
        document_type: str,
        tech_stack: str,
        strictness: Strictness | None = None,
    ) -> ResolutionRequest:
        """Build a request, using the configured strictness by default."""
        return ResolutionRequest(
            platform=platform,
            document_type=document_type,
            tech_stack=tech_stack,
            strictness=strictness or self._config.render.strictness,
        )

    def resolve(self, request: ResolutionRequest) -> Resolution:
        """Select and merge the template for a request without rendering.

        Raises:
            CyclicInheritanceError / FragmentNotFoundError: Selected
                template cannot be merged
        """
        return self._resolver.resolve(request)

    def generate(self, request: ResolutionRequest, context: RenderContext) -> GenerationResult:
        """Produce a document.

        Args:
            request: What to generate
            context: Data tree for variable lookups

        Returns:
            GenerationResult (success with text, or error)
        """
        request = self._resolver.normalize(request)
        request_log = self._logger.request(request.label) if self._logger else None
        started = time.monotonic()
        key: str | None = None
        generation: int | None = None
        resolution: Resolution | None = None
        try:
            if self._cache is not None:
                # Fingerprinting walks the whole context and may fail on it
                key = make_cache_key(
                    request.platform,
                    request.document_type,
                    request.tech_stack,
                    request.strictness,
                    context,
                )
                entry = self._cache.get(key)
                if entry is not None:
                    if request_log:
                        request_log.cache_hit(key)
                    return GenerationResult(
                        success=True,
                        rendered_text=entry.rendered_output,
                        template_id=entry.template_id,
                        fallback_path=list(entry.fallback_path),
                        warnings=list(entry.warnings),
                        cached=True,
                        duration_ms=0,
                    )
                generation = self._cache.generation

            resolution = self._resolver.resolve(request)
            rendered = self._renderer.render(resolution.template, context, request.strictness)
        except Exception as e:
            error = self._error_factory.from_exception(
                e,
                template_id=resolution.template_id if resolution else None,
                fallback_path=list(resolution.fallback_path) if resolution else None,
            )
            if request_log:
                request_log.failed(error)
            return GenerationResult(
                success=False,
                template_id=error.template_id,
                fallback_path=list(error.fallback_path),
                error=error,
                duration_ms=int((time.monotonic() - started) * 1000),
                degraded_text=self._degraded(request, context),
            )

        duration_ms = int((time.monotonic() - started) * 1000)
        if request_log:
            for warning in rendered.warnings:
                request_log.substituted(warning)
            request_log.rendered(resolution.template_id, duration_ms, len(rendered.warnings))

        if self._cache is not None and key is not None:
            # Dropped when a reload invalidated the cache during this render
            self._cache.put(
                key,
                CacheEntry(
                    key=key,
                    rendered_output=rendered.text,
                    template_id=resolution.template_id,
                    fallback_path=resolution.fallback_path,
                    warnings=tuple(rendered.warnings),
                ),
                generation=generation,
            )

        return GenerationResult(
            success=True,
            rendered_text=rendered.text,
            template_id=resolution.template_id,
            fallback_path=list(resolution.fallback_path),
            warnings=list(rendered.warnings),
            cached=False,
            duration_ms=duration_ms,
        )

    def list_resolvable(self) -> list[TemplateKey]:
        """All (platform, documentType, techStack) tuples with a template.

        Includes platform-agnostic ("any") tech-stack defaults and
        platform "custom" defaults as stored.
        """
        return self._store.list_keys()

    def stats(self) -> CacheStats | None:
        """Cache statistics (None when caching is disabled)."""
        return self._cache.stats() if self._cache is not None else None

    def _on_reload(self, index: TemplateIndex) -> None:
        if self._cache is not None:
            self._cache.invalidate_all()
        self._broken = AnchorMerger(index.fragments.get).check_all(index)
        if self._logger:
            store_log = self._logger.store()
            for template_id, error in self._broken.items():
                store_log.broken_template(template_id, error)

    def _degraded(self, request: ResolutionRequest, context: RenderContext) -> str | None:
        if not self._config.render.degraded_fallback:
            return None
        try:
            return self._renderer.render(
                builtin_default(request), context, Strictness.LENIENT
            ).text
        except DocgenError:
            return None
