"""Template resolver: fallback chain walking."""

from collections.abc import Mapping
from dataclasses import replace
from types import MappingProxyType
from typing import TYPE_CHECKING

from docgen_core.errors import DocgenError
from docgen_core.store.types import ANY_PLATFORM, CUSTOM_TECH_STACK, Section, TemplateKey, VariableSpec
from docgen_core.types import FallbackStep

from .merger import AnchorMerger
from .types import MergedTemplate, Resolution, ResolutionRequest

if TYPE_CHECKING:
    from docgen_core.logging import DocgenLogger
    from docgen_core.store import TemplateStore

BUILTIN_TEMPLATE_ID = "builtin:default"
BUILTIN_VERSION = "1.0"

_BUILTIN_SECTIONS = (
    Section(
        name="title",
        body='# {{ component.name | default("Untitled") }}',
    ),
    Section(
        name="overview",
        body=(
            "{{#if component.description}}{{ component.description }}{{#else}}"
            "{{ docgen.documentType | capitalize }} document for {{ docgen.platform }} "
            "({{ docgen.techStack }}).{{/if}}"
        ),
    ),
    Section(
        name="details",
        body=(
            "{{#if requirements}}\n"
            "## Requirements\n"
            "{{#each requirements}}\n"
            "- {{ this }}\n"
            "{{/each}}\n"
            "{{/if}}"
        ),
    ),
    Section(
        name="notes",
        body="{{#if notes}}\n## Notes\n{{ notes }}\n{{/if}}",
    ),
    Section(
        name="resources",
        body=(
            "{{#if figma.url}}\n"
            "## Resources\n"
            "- Design: {{ figma.url }}\n"
            "{{#if project.repository}}\n"
            "- Repository: {{ project.repository }}\n"
            "{{/if}}\n"
            "{{/if}}"
        ),
    ),
)

_OPTIONAL = VariableSpec(required=False)
_BUILTIN_OPTIONAL_VARIABLES = (
    "component.name",
    "component.description",
    "requirements",
    "notes",
    "figma.url",
    "project.repository",
)


def builtin_default(request: ResolutionRequest) -> MergedTemplate:
    """Build the hard-coded template used when nothing else matches.

    The request tuple is exposed as ``docgen.*`` defaults, so the same
    template works for every platform.

    Args:
        request: Normalized request

    Returns:
        Built-in MergedTemplate
    """
    variables: dict[str, VariableSpec] = {name: _OPTIONAL for name in _BUILTIN_OPTIONAL_VARIABLES}
    variables["docgen"] = VariableSpec(
        required=False,
        default={
            "platform": request.platform,
            "documentType": request.document_type,
            "techStack": request.tech_stack,
        },
        has_default=True,
    )
    return MergedTemplate(
        template_id=BUILTIN_TEMPLATE_ID,
        version=BUILTIN_VERSION,
        sections=_BUILTIN_SECTIONS,
        variables=MappingProxyType(variables),
        key=None,
        description="Built-in minimal template",
    )


def fallback_chain(request: ResolutionRequest) -> list[tuple[FallbackStep, TemplateKey]]:
    """Candidate keys for a request, in resolution order (built-in excluded)."""
    return [
        (FallbackStep.EXACT, request.key),
        (
            FallbackStep.PLATFORM_DEFAULT,
            TemplateKey(request.platform, request.document_type, CUSTOM_TECH_STACK),
        ),
        (
            FallbackStep.TECH_STACK_DEFAULT,
            TemplateKey(ANY_PLATFORM, request.document_type, request.tech_stack),
        ),
    ]


class TemplateResolver:
    """Select and merge the template for a request.

    Fallback order is fixed:
    1. exact (platform, documentType, techStack)
    2. (platform, documentType, "custom")
    3. ("any", documentType, techStack)
    4. built-in default

    Earlier steps always win. Every attempted step is recorded in the
    fallback path as ``<step>-hit`` or ``<step>-miss``.
    """

    def __init__(
        self,
        store: "TemplateStore",
        aliases: Mapping[str, str] | None = None,
        logger: "DocgenLogger | None" = None,
    ):
        """Initialize resolver.

        Args:
            store: Loaded template store
            aliases: Document type aliases (e.g. "comp" -> "component")
            logger: Optional logger
        """
        self._store = store
        self._aliases = dict(aliases or {})
        self._logger = logger

    def normalize(self, request: ResolutionRequest) -> ResolutionRequest:
        """Apply document type aliases."""
        document_type = self._aliases.get(request.document_type, request.document_type)
        if document_type == request.document_type:
            return request
        return replace(request, document_type=document_type)

    def resolve(self, request: ResolutionRequest) -> Resolution:
        """Walk the fallback chain and merge the selected template.

        Args:
            request: Resolution request

        Returns:
            Resolution with the merged template and fallback path

        Raises:
            CyclicInheritanceError: If the selected template's baseRefs
                form a cycle
            FragmentNotFoundError: If the selected template references a
                fragment that does not exist
        """
        request = self.normalize(request)
        # One snapshot for the whole call so a concurrent reload is not observed
        index = self._store.index
        path: list[str] = []

        for step, key in fallback_chain(request):
            definition = index.templates.get(key)
            if definition is None:
                path.append(step.miss())
                continue

            path.append(step.hit())
            merger = AnchorMerger(index.fragments.get)
            try:
                merged = merger.merge(definition)
            except DocgenError as e:
                raise e.with_context(
                    template_id=definition.template_id,
                    fallback_path=path,
                    file=str(definition.source_path) if definition.source_path else None,
                ) from e
            return self._resolved(request, merged, path, step)

        path.append(FallbackStep.BUILTIN.hit())
        return self._resolved(request, builtin_default(request), path, FallbackStep.BUILTIN)

    def _resolved(
        self,
        request: ResolutionRequest,
        template: MergedTemplate,
        path: list[str],
        step: FallbackStep,
    ) -> Resolution:
        if self._logger:
            self._logger.request(request.label).resolved(template.template_id, path)
        return Resolution(template=template, fallback_path=tuple(path), step=step)
