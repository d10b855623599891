"""Template definition data model types."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from typing import Any

# Sentinels used by the fallback chain
CUSTOM_TECH_STACK = "custom"  # tech-stack-agnostic template for a platform
ANY_PLATFORM = "any"  # platform-agnostic template for a tech stack


@dataclass(frozen=True, order=True)
class TemplateKey:
    """Lookup key of a resolvable template."""

    platform: str
    document_type: str
    tech_stack: str

    @property
    def label(self) -> str:
        """Return "platform/documentType/techStack"."""
        return f"{self.platform}/{self.document_type}/{self.tech_stack}"

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class Section:
    """Named text body of a template."""

    name: str
    body: str


@dataclass(frozen=True)
class VariableSpec:
    """Schema entry for one template variable.

    ``required`` is None when the file did not set it, so that merging
    only overrides attributes a layer actually declares.
    """

    required: bool | None = None
    default: Any = None
    has_default: bool = False
    description: str | None = None

    @property
    def is_required(self) -> bool:
        return bool(self.required)

    def overlay(self, other: "VariableSpec") -> "VariableSpec":
        """Return this spec with the attributes ``other`` declares applied on top."""
        return VariableSpec(
            required=other.required if other.required is not None else self.required,
            default=other.default if other.has_default else self.default,
            has_default=self.has_default or other.has_default,
            description=other.description or self.description,
        )


@dataclass(frozen=True)
class TemplateDefinition:
    """One parsed template file.

    Resolvable templates carry a ``key``; fragments carry a ``fragment``
    name and are only reachable through ``base_refs``.
    """

    version: str
    sections: tuple[Section, ...] = ()
    variables: Mapping[str, VariableSpec] = field(default_factory=lambda: MappingProxyType({}))
    base_refs: tuple[str, ...] = ()
    key: TemplateKey | None = None
    fragment: str | None = None
    description: str | None = None
    source_path: Path | None = None

    @property
    def is_fragment(self) -> bool:
        return self.fragment is not None

    @property
    def template_id(self) -> str:
        """Stable identifier used in results, errors and logs."""
        if self.fragment is not None:
            return f"fragment:{self.fragment}"
        if self.key is not None:
            return self.key.label
        return "<anonymous>"


@dataclass
class TemplateIndex:
    """Immutable snapshot of a loaded template tree."""

    root: Path
    templates: Mapping[TemplateKey, TemplateDefinition]
    fragments: Mapping[str, TemplateDefinition]
    file_mtimes: Mapping[str, float]  # Change detection snapshot
    loaded_at: datetime

    @classmethod
    def empty(cls, root: Path) -> "TemplateIndex":
        return cls(
            root=root,
            templates=MappingProxyType({}),
            fragments=MappingProxyType({}),
            file_mtimes=MappingProxyType({}),
            loaded_at=datetime.min,
        )

    def __len__(self) -> int:
        return len(self.templates)
