"""Template store: loading and indexing template definition files."""

from .parser import load_yaml_document, node_at, node_line, parse_template_yaml, schema_issues
from .store import TemplateStore, discover_template_files
from .types import (
    ANY_PLATFORM,
    CUSTOM_TECH_STACK,
    Section,
    TemplateDefinition,
    TemplateIndex,
    TemplateKey,
    VariableSpec,
)

__all__ = [
    "TemplateStore",
    "TemplateIndex",
    "TemplateDefinition",
    "TemplateKey",
    "Section",
    "VariableSpec",
    "ANY_PLATFORM",
    "CUSTOM_TECH_STACK",
    "parse_template_yaml",
    "load_yaml_document",
    "schema_issues",
    "node_at",
    "node_line",
    "discover_template_files",
]
