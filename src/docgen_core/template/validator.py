"""Template file validation."""

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from docgen_core.errors import DocgenError, create_error
from docgen_core.store import (
    TemplateDefinition,
    TemplateKey,
    discover_template_files,
    load_yaml_document,
    node_at,
    node_line,
    parse_template_yaml,
    schema_issues,
)
from docgen_core.types import ValidationIssue, ValidationResult

from .merger import AnchorMerger
from .parser import parse_body


@dataclass
class _FileCheck:
    """Intermediate per-file state while a tree is validated."""

    path: Path
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)
    definition: TemplateDefinition | None = None
    root: yaml.Node | None = None

    def result(self) -> ValidationResult:
        return ValidationResult(valid=not self.errors, errors=self.errors, warnings=self.warnings)


class TemplateValidator:
    """Validate template files without loading them into a store.

    Checks, per file:
    - YAML syntax
    - File schema (required keys, types, unique section names)
    - Section body syntax (block balance, filters, tags)

    And across a tree:
    - Duplicate template keys and fragment names
    - baseRefs naming unknown fragments
    - Cyclic inheritance
    """

    def validate_file(self, path: str | Path) -> ValidationResult:
        """Validate a single file (no cross-file checks).

        Args:
            path: Template file

        Returns:
            ValidationResult with line-numbered issues
        """
        return self._check_file(Path(path)).result()

    def validate_path(self, path: str | Path) -> dict[str, ValidationResult]:
        """Validate every template file under a path.

        Args:
            path: Directory (searched recursively) or single file

        Returns:
            Map of file path to ValidationResult, in file order

        Raises:
            ConfigError: If the path does not exist
        """
        target = Path(path)
        if not target.exists():
            raise create_error("CONFIG_INVALID", detail=f"Path not found: {target}")

        checks = [self._check_file(file) for file in discover_template_files(target)]
        self._check_tree(checks)
        return {str(check.path): check.result() for check in checks}

    def _check_file(self, path: Path) -> _FileCheck:
        check = _FileCheck(path=path)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            check.errors.append(ValidationIssue(path="<file>", message=f"Cannot read file: {e}"))
            return check

        try:
            data, root = load_yaml_document(content, path)
        except DocgenError as e:
            check.errors.append(
                ValidationIssue(path="<file>", message=e.detail or e.message, line=e.line)
            )
            return check

        check.root = root
        issues = schema_issues(data, root)
        if issues:
            check.errors.extend(issues)
            return check

        definition = parse_template_yaml(content, path)
        check.definition = definition

        if not definition.sections:
            check.warnings.append(
                ValidationIssue(
                    path="sections",
                    message="template has no sections",
                    severity="warning",
                    line=node_line(root, ("sections",)),
                )
            )

        for position, section in enumerate(definition.sections):
            try:
                parse_body(section.body)
            except DocgenError as e:
                check.errors.append(
                    ValidationIssue(
                        path=f"sections.{section.name}.body",
                        message=str(e),
                        line=self._body_line(root, position, e.line),
                    )
                )
        return check

    def _check_tree(self, checks: list[_FileCheck]) -> None:
        loaded = [
            (c, c.definition, c.root)
            for c in checks
            if c.definition is not None and c.root is not None
        ]

        templates: dict[TemplateKey, _FileCheck] = {}
        fragments: dict[str, TemplateDefinition] = {}
        for check, definition, root in loaded:
            if definition.fragment is not None:
                first = fragments.get(definition.fragment)
                if first is not None:
                    check.errors.append(
                        ValidationIssue(
                            path="fragment",
                            message=(
                                f"duplicate fragment '{definition.fragment}' "
                                f"(first defined in {first.source_path})"
                            ),
                            line=node_line(root, ("fragment",)),
                        )
                    )
                else:
                    fragments[definition.fragment] = definition
            elif definition.key is not None:
                previous = templates.get(definition.key)
                if previous is not None:
                    check.errors.append(
                        ValidationIssue(
                            path="platform",
                            message=(
                                f"duplicate template '{definition.key.label}' "
                                f"(first defined in {previous.path})"
                            ),
                            line=node_line(root, ("platform",)),
                        )
                    )
                else:
                    templates[definition.key] = check

        merger = AnchorMerger(fragments.get)
        for check, definition, root in loaded:
            missing = False
            for position, ref in enumerate(definition.base_refs):
                if ref not in fragments:
                    missing = True
                    check.errors.append(
                        ValidationIssue(
                            path=f"baseRefs[{position}]",
                            message=f"unknown fragment '{ref}'",
                            line=node_line(root, ("baseRefs", position)),
                        )
                    )
            if missing or not definition.base_refs:
                continue
            try:
                merger.merge(definition)
            except DocgenError as e:
                # Missing fragments deeper in the chain surface here too
                check.errors.append(
                    ValidationIssue(
                        path="baseRefs",
                        message=str(e),
                        line=node_line(root, ("baseRefs",)),
                    )
                )

    @staticmethod
    def _body_line(root: yaml.Node, position: int, body_line: int | None) -> int:
        """Translate a line inside a section body to a line in the file."""
        node = node_at(root, ("sections", position, "body"))
        line = node.start_mark.line + 1
        if body_line is None:
            return line
        # Block scalars start on the line after the indicator
        if isinstance(node, yaml.ScalarNode) and node.style in ("|", ">"):
            return line + body_line
        return line + body_line - 1
