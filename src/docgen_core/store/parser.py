"""YAML template file parsing."""

from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml
from pydantic import ValidationError

from docgen_core.errors import create_error
from docgen_core.types import ValidationIssue

from .schema import TemplateFileModel, normalize_document
from .types import Section, TemplateDefinition, TemplateKey, VariableSpec


def load_yaml_document(
    yaml_content: str,
    source_path: Path | None = None,
) -> tuple[dict[str, Any], yaml.Node]:
    """Load YAML content together with its node tree for line lookups.

    Args:
        yaml_content: YAML content to parse
        source_path: Optional source file path (for error reporting)

    Returns:
        Tuple of (parsed mapping, root node)

    Raises:
        ParseError: If YAML is invalid or not a mapping
    """
    file = str(source_path) if source_path else "<string>"
    try:
        node = yaml.compose(yaml_content, Loader=yaml.SafeLoader)
        data = yaml.safe_load(yaml_content)
    except yaml.MarkedYAMLError as e:
        mark = e.problem_mark or e.context_mark
        line = mark.line + 1 if mark else 1
        raise create_error(
            "PARSE_ERROR",
            file=file,
            line=line,
            reason=e.problem or "invalid YAML",
            detail=f"Invalid YAML: {e}",
        ) from e
    except yaml.YAMLError as e:
        raise create_error(
            "PARSE_ERROR", file=file, line=1, reason="invalid YAML", detail=str(e)
        ) from e

    if node is None or data is None:
        raise create_error("PARSE_ERROR", file=file, line=1, reason="file is empty")

    if not isinstance(data, dict):
        raise create_error(
            "PARSE_ERROR",
            file=file,
            line=node.start_mark.line + 1,
            reason="top level must be a mapping",
        )

    return data, node


def node_at(root: yaml.Node, loc: tuple[Any, ...]) -> yaml.Node:
    """Find the node at ``loc``.

    Walks as deep as the location exists; a missing key yields its
    closest existing parent.

    Args:
        root: Root node from yaml.compose
        loc: Location path (mapping keys and sequence indexes)

    Returns:
        Deepest node found along the path
    """
    node = root
    for part in loc:
        child: yaml.Node | None = None
        if isinstance(node, yaml.MappingNode):
            if isinstance(part, int):
                # Shorthand mappings are normalized into lists
                if 0 <= part < len(node.value):
                    child = node.value[part][1]
            else:
                for key_node, value_node in node.value:
                    if key_node.value == str(part):
                        child = value_node
                        break
        elif isinstance(node, yaml.SequenceNode):
            if isinstance(part, int) and 0 <= part < len(node.value):
                child = node.value[part]
        if child is None:
            break
        node = child
    return node


def node_line(root: yaml.Node, loc: tuple[Any, ...]) -> int:
    """Return the 1-based line of the node at ``loc`` (see node_at)."""
    return node_at(root, loc).start_mark.line + 1


def schema_issues(data: dict[str, Any], root: yaml.Node) -> list[ValidationIssue]:
    """Check a loaded document against the template file schema.

    Args:
        data: Parsed mapping
        root: Root node (for line numbers)

    Returns:
        List of issues (empty if valid)
    """
    try:
        TemplateFileModel.model_validate(normalize_document(data))
    except ValidationError as e:
        return issues_from_validation_error(e, root)
    return []


def issues_from_validation_error(error: ValidationError, root: yaml.Node) -> list[ValidationIssue]:
    """Map pydantic errors to line-numbered issues."""
    issues: list[ValidationIssue] = []
    for item in error.errors():
        loc = tuple(item["loc"])
        path = ".".join(str(part) for part in loc) or "<root>"
        message = item["msg"]
        if item["type"] == "missing":
            message = f"missing required key '{loc[-1]}'"
        elif message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        issues.append(
            ValidationIssue(
                path=path,
                message=message,
                severity="error",
                line=node_line(root, loc),
            )
        )
    return issues


def parse_template_yaml(
    yaml_content: str,
    source_path: Path | None = None,
) -> TemplateDefinition:
    """Parse YAML content into TemplateDefinition.

    Handles both the list and mapping forms of ``sections`` and the
    scalar shorthand for ``variables``.

    Args:
        yaml_content: YAML content to parse
        source_path: Optional source file path

    Returns:
        Parsed template definition

    Raises:
        ParseError: If YAML is invalid or does not match the schema
    """
    data, root = load_yaml_document(yaml_content, source_path)
    file = str(source_path) if source_path else "<string>"

    try:
        model = TemplateFileModel.model_validate(normalize_document(data))
    except ValidationError as e:
        issues = issues_from_validation_error(e, root)
        first = issues[0]
        raise create_error(
            "PARSE_ERROR",
            file=file,
            line=first.line,
            reason=f"{first.path}: {first.message}",
            detail="; ".join(f"line {i.line}: {i.path}: {i.message}" for i in issues),
        ) from e

    return _to_definition(model, source_path)


def _to_definition(model: TemplateFileModel, source_path: Path | None) -> TemplateDefinition:
    """Convert a validated file model into the immutable definition."""
    key = None
    if model.fragment is None:
        # Identity keys are guaranteed by the model validator
        key = TemplateKey(
            platform=model.platform or "",
            document_type=model.document_type or "",
            tech_stack=model.tech_stack or "",
        )

    variables = {
        name: VariableSpec(
            required=spec.required,
            default=spec.default,
            has_default="default" in spec.model_fields_set,
            description=spec.description,
        )
        for name, spec in model.variables.items()
    }

    return TemplateDefinition(
        version=model.version,
        sections=tuple(Section(name=s.name, body=s.body) for s in model.sections),
        variables=MappingProxyType(variables),
        base_refs=tuple(model.base_refs),
        key=key,
        fragment=model.fragment,
        description=model.description,
        source_path=source_path,
    )
