"""Unit tests for TemplateValidator."""

import pytest
from conftest import template_doc

from docgen_core.errors import ConfigError
from docgen_core.template import TemplateValidator

BODY_ERROR_TEMPLATE = """\
platform: jira
documentType: component
techStack: react
version: "1.0"
sections:
  - name: body
    body: |
      line one
      {{#if x}}
      open
variables: {}
"""


class TestValidateFile:
    """Tests for single-file validation."""

    def test_valid_file(self, sample_tree):
        result = TemplateValidator().validate_file(sample_tree / "jira" / "component-vue.yaml")

        assert result.valid
        assert result.errors == []

    def test_missing_identity_key(self, write_templates):
        root = write_templates(
            {"bad.yaml": "platform: jira\ndocumentType: component\nversion: '1'\nsections: []\nvariables: {}\n"}
        )

        result = TemplateValidator().validate_file(root / "bad.yaml")

        assert not result.valid
        [issue] = result.errors
        assert issue.line == 1
        assert "techStack" in issue.message

    def test_body_error_line_in_file(self, write_templates):
        """Body errors are reported at their line in the file."""
        root = write_templates({"body.yaml": BODY_ERROR_TEMPLATE})

        result = TemplateValidator().validate_file(root / "body.yaml")

        [issue] = result.errors
        assert issue.path == "sections.body.body"
        assert issue.line == 9
        assert "#if" in issue.message

    def test_inline_body_error_line(self, write_templates):
        root = write_templates(
            {
                "inline.yaml": (
                    "platform: a\ndocumentType: b\ntechStack: c\nversion: '1'\n"
                    "sections:\n  title: '{{ name | shout }}'\nvariables: {}\n"
                )
            }
        )

        [issue] = TemplateValidator().validate_file(root / "inline.yaml").errors

        assert issue.line == 6
        assert "shout" in issue.message

    def test_invalid_yaml(self, write_templates):
        root = write_templates({"broken.yaml": "platform: [\n"})

        [issue] = TemplateValidator().validate_file(root / "broken.yaml").errors

        assert issue.path == "<file>"
        assert issue.line is not None

    def test_no_sections_warning(self, write_templates):
        root = write_templates({"empty.yaml": template_doc("a", "b", "c", sections=[])})

        result = TemplateValidator().validate_file(root / "empty.yaml")

        assert result.valid
        assert result.warnings[0].message == "template has no sections"


class TestValidatePath:
    """Tests for tree validation."""

    def test_valid_tree(self, sample_tree):
        results = TemplateValidator().validate_path(sample_tree)

        assert len(results) == 4
        assert all(r.valid for r in results.values())

    def test_missing_path(self, tmp_path):
        with pytest.raises(ConfigError):
            TemplateValidator().validate_path(tmp_path / "nope")

    def test_unknown_fragment(self, write_templates):
        root = write_templates({"t.yaml": template_doc("a", "b", "c", base_refs=["ghost"])})

        results = TemplateValidator().validate_path(root)

        [issue] = results[str(root / "t.yaml")].errors
        assert issue.path == "baseRefs[0]"
        assert issue.message == "unknown fragment 'ghost'"

    def test_duplicate_template(self, write_templates):
        root = write_templates(
            {
                "a.yaml": template_doc("jira", "component", "react"),
                "b.yaml": template_doc("jira", "component", "react"),
            }
        )

        results = TemplateValidator().validate_path(root)

        assert results[str(root / "a.yaml")].valid
        [issue] = results[str(root / "b.yaml")].errors
        assert "duplicate template 'jira/component/react'" in issue.message

    def test_duplicate_fragment(self, write_templates):
        root = write_templates(
            {
                "a.yaml": template_doc(fragment="shared"),
                "b.yaml": template_doc(fragment="shared"),
            }
        )

        results = TemplateValidator().validate_path(root)

        assert not results[str(root / "b.yaml")].valid

    def test_cycle(self, write_templates):
        root = write_templates(
            {
                "a.yaml": template_doc(fragment="a", base_refs=["b"]),
                "b.yaml": template_doc(fragment="b", base_refs=["a"]),
            }
        )

        results = TemplateValidator().validate_path(root)

        issue = results[str(root / "a.yaml")].errors[0]
        assert issue.path == "baseRefs"
        assert "a -> b -> a" in issue.message

    def test_issue_format(self, write_templates):
        root = write_templates({"t.yaml": template_doc("a", "b", "c", base_refs=["ghost"])})
        path = str(root / "t.yaml")

        [issue] = TemplateValidator().validate_path(root)[path].errors

        assert issue.format(path) == f"{path}:{issue.line}: baseRefs[0]: unknown fragment 'ghost'"
