"""Anchor merger: materializes baseRefs inheritance."""

from collections.abc import Callable
from types import MappingProxyType

from docgen_core.errors import DocgenError, create_error
from docgen_core.store.types import Section, TemplateDefinition, TemplateIndex, VariableSpec

from .types import MergedTemplate

FragmentLookup = Callable[[str], TemplateDefinition | None]


class _Layer:
    """Accumulator for one merge: sections keyed by name in first-seen order."""

    def __init__(self) -> None:
        self.sections: dict[str, str] = {}
        self.variables: dict[str, VariableSpec] = {}
        self.version: str | None = None
        self.description: str | None = None
        self.lineage: list[str] = []

    def overlay(self, definition: TemplateDefinition) -> None:
        for section in definition.sections:
            # dict assignment keeps the position of the first occurrence
            self.sections[section.name] = section.body
        for name, spec in definition.variables.items():
            existing = self.variables.get(name)
            self.variables[name] = existing.overlay(spec) if existing else spec
        self.version = definition.version
        if definition.description:
            self.description = definition.description


class AnchorMerger:
    """Merge a template with the fragments it inherits from.

    Merge order: each baseRef in listed order (itself fully merged,
    depth first), then the template's own fields on top.

    - Scalars: later replaces earlier
    - Sections: keyed by name, a later body replaces in place, new
      names are appended
    - Variables: keyed by name, per-attribute overlay of required/default
    """

    def __init__(self, lookup: FragmentLookup):
        """Initialize merger.

        Args:
            lookup: Function returning a fragment by name (or None)
        """
        self._lookup = lookup

    def merge(self, definition: TemplateDefinition) -> MergedTemplate:
        """Produce the flat template for a definition.

        Args:
            definition: Template (or fragment) definition

        Returns:
            MergedTemplate with no remaining baseRefs

        Raises:
            CyclicInheritanceError: If a baseRef chain leads back to a
                fragment already on the current path
            FragmentNotFoundError: If a baseRef names an unknown fragment
        """
        layer = _Layer()
        start = [definition.fragment] if definition.fragment else []
        self._apply(definition, layer, start, definition.template_id)

        return MergedTemplate(
            template_id=definition.template_id,
            version=layer.version or definition.version,
            sections=tuple(Section(name=n, body=b) for n, b in layer.sections.items()),
            variables=MappingProxyType(dict(layer.variables)),
            key=definition.key,
            lineage=tuple(layer.lineage),
            description=layer.description,
            source_path=definition.source_path,
        )

    def check_all(self, index: TemplateIndex) -> dict[str, DocgenError]:
        """Merge every template in an index and collect failures.

        Args:
            index: Loaded template index

        Returns:
            Map of template id to merge error (empty if all merge)
        """
        broken: dict[str, DocgenError] = {}
        definitions = [*index.templates.values(), *index.fragments.values()]
        for definition in definitions:
            try:
                self.merge(definition)
            except DocgenError as e:
                broken[definition.template_id] = e
        return broken

    def _apply(
        self,
        definition: TemplateDefinition,
        layer: _Layer,
        path: list[str],
        template_id: str,
    ) -> None:
        # path holds the fragments currently being merged (ancestors only),
        # so a fragment reached twice through different branches is fine
        for ref in definition.base_refs:
            if ref in path:
                cycle = " -> ".join([*path[path.index(ref) :], ref])
                raise create_error(
                    "CYCLIC_INHERITANCE",
                    template_id=template_id,
                    cycle=cycle,
                    path=ref,
                )
            fragment = self._lookup(ref)
            if fragment is None:
                raise create_error(
                    "FRAGMENT_NOT_FOUND",
                    fragment=ref,
                    template_id=template_id,
                    file=str(definition.source_path) if definition.source_path else None,
                )
            self._apply(fragment, layer, [*path, ref], template_id)
            layer.lineage.append(ref)

        layer.overlay(definition)
