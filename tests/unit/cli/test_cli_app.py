"""Tests for the docgen command line."""

import json

import pytest
from conftest import template_doc

from docgen_core import __version__
from docgen_core.cli import main
from docgen_core.config import CONFIG_PATH_ENV, TEMPLATE_ROOT_ENV

pytestmark = pytest.mark.cli


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """No host config files or env overrides."""
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
    monkeypatch.delenv(TEMPLATE_ROOT_ENV, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def context_file(tmp_path):
    path = tmp_path / "context.json"
    path.write_text(json.dumps({"component": {"name": "Button"}}))
    return path


class TestGenerate:
    """Tests for `docgen generate`."""

    def test_prints_document(self, sample_tree, context_file, capsys):
        code = main(
            ["--templates", str(sample_tree), "generate", "jira", "component", "react", "-C", str(context_file)]
        )

        out = capsys.readouterr().out
        assert code == 0
        assert out == "# Button\n\nGenerated by docgen\n\nJira story for Button\n"

    def test_json_output(self, sample_tree, context_file, capsys):
        code = main(
            [
                "--templates",
                str(sample_tree),
                "generate",
                "jira",
                "component",
                "react",
                "--context",
                str(context_file),
                "--json",
            ]
        )

        data = json.loads(capsys.readouterr().out)
        assert code == 0
        assert data["success"] is True
        assert data["template_id"] == "jira/component/custom"
        assert data["fallback_path"] == ["exact-miss", "platform+docType-default-hit"]

    def test_yaml_context(self, sample_tree, tmp_path, capsys):
        path = tmp_path / "context.yaml"
        path.write_text("component:\n  name: Card\n")

        code = main(["-t", str(sample_tree), "generate", "jira", "component", "vue", "-C", str(path)])

        assert code == 0
        assert capsys.readouterr().out == "Vue component Card\n"

    def test_writes_output_file(self, sample_tree, context_file, tmp_path, capsys):
        target = tmp_path / "out.md"

        code = main(
            [
                "-t",
                str(sample_tree),
                "generate",
                "jira",
                "component",
                "vue",
                "-C",
                str(context_file),
                "-o",
                str(target),
            ]
        )

        assert code == 0
        assert target.read_text() == "Vue component Button\n"
        assert capsys.readouterr().out == ""

    def test_lenient_warnings_on_stderr(self, sample_tree, capsys):
        code = main(["-t", str(sample_tree), "generate", "jira", "component", "vue"])

        captured = capsys.readouterr()
        assert code == 0
        assert "component.name" in captured.err

    def test_strict_failure_exit_code(self, sample_tree, capsys):
        code = main(["-t", str(sample_tree), "generate", "jira", "component", "react", "--strict"])

        err = capsys.readouterr().err
        assert code == 2
        assert "UNRESOLVED_VARIABLE" in err

    def test_strict_from_config_file(self, sample_tree, tmp_path, capsys):
        config = tmp_path / "strict.yaml"
        config.write_text("render:\n  strictness: strict\n")

        code = main(["-t", str(sample_tree), "-c", str(config), "generate", "jira", "component", "react"])

        assert code == 2

    def test_missing_context_file(self, sample_tree, tmp_path, capsys):
        code = main(
            ["-t", str(sample_tree), "generate", "jira", "component", "react", "-C", str(tmp_path / "nope.json")]
        )

        assert code == 1
        assert "Context file not found" in capsys.readouterr().err

    def test_context_must_be_mapping(self, sample_tree, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        code = main(["-t", str(sample_tree), "generate", "jira", "component", "react", "-C", str(path)])

        assert code == 1

    def test_missing_arguments(self, sample_tree):
        assert main(["-t", str(sample_tree), "generate", "jira"]) == 1

    def test_missing_template_root(self, tmp_path, capsys):
        code = main(["-t", str(tmp_path / "nope"), "generate", "a", "b", "c"])

        assert code == 1
        assert "CONFIG_INVALID" in capsys.readouterr().err

    def test_load_error_exit_code(self, write_templates, capsys):
        root = write_templates({"bad.yaml": "platform: [\n"})

        code = main(["-t", str(root), "generate", "a", "b", "c"])

        assert code == 2
        assert "PARSE_ERROR" in capsys.readouterr().err

    def test_undecodable_template_exit_code(self, write_templates, capsys):
        root = write_templates({"ok.yaml": template_doc("jira", "component", "custom")})
        (root / "bad.yaml").write_bytes(b"platform: \xff\xfe\n")

        code = main(["-t", str(root), "generate", "jira", "component", "custom"])

        assert code == 2
        assert "PARSE_ERROR" in capsys.readouterr().err


class TestList:
    """Tests for `docgen list`."""

    def test_plain(self, sample_tree, capsys):
        code = main(["-t", str(sample_tree), "list", "--plain"])

        assert code == 0
        assert capsys.readouterr().out.splitlines() == [
            "any/component/react",
            "jira/component/custom",
            "jira/component/vue",
        ]

    def test_table(self, sample_tree, capsys):
        code = main(["-t", str(sample_tree), "list"])

        out = capsys.readouterr().out
        assert code == 0
        assert "Templates (3)" in out
        assert "vue" in out

    def test_template_root_from_env(self, sample_tree, monkeypatch, capsys):
        monkeypatch.setenv(TEMPLATE_ROOT_ENV, str(sample_tree))

        code = main(["list", "--plain"])

        assert code == 0
        assert "jira/component/vue" in capsys.readouterr().out


class TestValidate:
    """Tests for `docgen validate`."""

    def test_valid_tree(self, sample_tree, capsys):
        code = main(["validate", str(sample_tree)])

        assert code == 0
        assert capsys.readouterr().out.strip().endswith("4 files checked, 0 invalid")

    def test_invalid_tree(self, write_templates, capsys):
        root = write_templates(
            {
                "ok.yaml": template_doc("a", "b", "c"),
                "bad.yaml": template_doc("a", "b", "d", base_refs=["ghost"]),
            }
        )

        code = main(["validate", str(root)])

        out = capsys.readouterr().out
        assert code == 1
        assert f"{root / 'bad.yaml'}:" in out
        assert "unknown fragment 'ghost'" in out
        assert "2 files checked, 1 invalid" in out

    def test_missing_path(self, tmp_path):
        assert main(["validate", str(tmp_path / "nope")]) == 1


class TestResolve:
    """Tests for `docgen resolve`."""

    def test_text(self, sample_tree, capsys):
        code = main(["-t", str(sample_tree), "resolve", "jira", "component", "react"])

        lines = capsys.readouterr().out.splitlines()
        assert code == 0
        assert lines[0] == "template: jira/component/custom"
        assert lines[1] == "fallback path: exact-miss -> platform+docType-default-hit"
        assert lines[2] == "sections: header, footer, summary"
        assert lines[3] == "inherits: base"

    def test_json(self, sample_tree, capsys):
        code = main(["-t", str(sample_tree), "resolve", "x", "y", "z", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert code == 0
        assert data["template_id"] == "builtin:default"
        assert data["fallback_path"][-1] == "builtin-default-hit"
        assert data["source_path"] is None


def test_version(capsys):
    assert main(["version"]) == 0
    assert capsys.readouterr().out.strip() == f"docgen {__version__}"
