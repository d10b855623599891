"""
Pytest configuration and shared fixtures for docgen tests.
"""

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


# =============================================================================
# Template Tree Fixtures
# =============================================================================


def template_doc(
    platform: str | None = None,
    document_type: str | None = None,
    tech_stack: str | None = None,
    sections: list[dict[str, str]] | dict[str, str] | None = None,
    variables: dict[str, Any] | None = None,
    base_refs: list[str] | None = None,
    fragment: str | None = None,
    version: str = "1.0",
) -> dict[str, Any]:
    """Build a template file mapping."""
    doc: dict[str, Any] = {"version": version}
    if fragment is not None:
        doc["fragment"] = fragment
    if platform is not None:
        doc["platform"] = platform
    if document_type is not None:
        doc["documentType"] = document_type
    if tech_stack is not None:
        doc["techStack"] = tech_stack
    doc["sections"] = sections if sections is not None else [{"name": "body", "body": "text"}]
    doc["variables"] = variables or {}
    if base_refs is not None:
        doc["baseRefs"] = base_refs
    return doc


@pytest.fixture
def write_templates(tmp_path: Path) -> Callable[[dict[str, Any]], Path]:
    """Write a template tree under tmp_path/templates.

    Values may be mappings (dumped as YAML) or raw YAML strings.
    """

    def _write(files: dict[str, Any]) -> Path:
        root = tmp_path / "templates"
        root.mkdir(exist_ok=True)
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, str):
                path.write_text(content, encoding="utf-8")
            else:
                path.write_text(yaml.safe_dump(content, sort_keys=False), encoding="utf-8")
        return root

    return _write


@pytest.fixture
def sample_tree(write_templates: Callable[[dict[str, Any]], Path]) -> Path:
    """Small tree exercising every fallback step and a fragment chain."""
    return write_templates(
        {
            "fragments/base.yaml": template_doc(
                fragment="base",
                sections=[
                    {"name": "header", "body": "# {{ component.name }}"},
                    {"name": "footer", "body": "Generated by docgen"},
                ],
                variables={"component.name": {"required": True}},
            ),
            "jira/component-custom.yaml": template_doc(
                "jira",
                "component",
                "custom",
                sections=[{"name": "summary", "body": "Jira story for {{ component.name }}"}],
                base_refs=["base"],
            ),
            "jira/component-vue.yaml": template_doc(
                "jira",
                "component",
                "vue",
                sections=[{"name": "summary", "body": "Vue component {{ component.name }}"}],
            ),
            "any/component-react.yaml": template_doc(
                "any",
                "component",
                "react",
                sections=[{"name": "summary", "body": "React component {{ component.name }}"}],
            ),
        }
    )


# =============================================================================
# Markers Configuration
# =============================================================================


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "property: Property-based tests")
    config.addinivalue_line("markers", "cli: CLI tests")
