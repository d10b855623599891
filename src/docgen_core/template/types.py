"""Template resolution and rendering type definitions."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from docgen_core.store.types import Section, TemplateKey, VariableSpec
from docgen_core.types import FallbackStep, Strictness

# Caller-supplied data tree of maps, lists and scalars
RenderContext = Mapping[str, Any]


@dataclass(frozen=True)
class ResolutionRequest:
    """What the caller asks for. Never mutated."""

    platform: str
    document_type: str
    tech_stack: str
    strictness: Strictness = Strictness.LENIENT

    @property
    def key(self) -> TemplateKey:
        return TemplateKey(self.platform, self.document_type, self.tech_stack)

    @property
    def label(self) -> str:
        return self.key.label


@dataclass(frozen=True)
class MergedTemplate:
    """Template with all baseRefs applied.

    Every section is a plain body string and no inheritance references
    remain.
    """

    template_id: str
    version: str
    sections: tuple[Section, ...] = ()
    variables: Mapping[str, VariableSpec] = field(default_factory=lambda: MappingProxyType({}))
    key: TemplateKey | None = None
    lineage: tuple[str, ...] = ()  # Fragments merged, in merge order
    description: str | None = None
    source_path: Path | None = None

    @property
    def section_names(self) -> list[str]:
        return [section.name for section in self.sections]

    def section(self, name: str) -> Section | None:
        for section in self.sections:
            if section.name == name:
                return section
        return None


@dataclass(frozen=True)
class Resolution:
    """Outcome of walking the fallback chain."""

    template: MergedTemplate
    fallback_path: tuple[str, ...]
    step: FallbackStep  # Step that produced the template

    @property
    def template_id(self) -> str:
        return self.template.template_id


@dataclass
class RenderResult:
    """Result of rendering a merged template."""

    text: str
    warnings: list[str] = field(default_factory=list)
