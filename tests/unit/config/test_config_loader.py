"""Unit tests for ConfigLoader."""

from pathlib import Path

import pytest

from docgen_core.config import (
    CONFIG_PATH_ENV,
    TEMPLATE_ROOT_ENV,
    ConfigLoader,
    DocgenConfig,
    resolve_env_vars,
)
from docgen_core.errors import ConfigError
from docgen_core.types import LogFormat, LogLevel, Strictness


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep the host environment out of config resolution."""
    monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
    monkeypatch.delenv(TEMPLATE_ROOT_ENV, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)


class TestDefaults:
    """Tests for default configuration."""

    def test_load_defaults(self):
        """Defaults match the documented values."""
        config = ConfigLoader().load_defaults()

        assert isinstance(config, DocgenConfig)
        assert config.templates.root == "templates"
        assert config.templates.document_type_aliases["comp"] == "component"
        assert config.cache.enabled is True
        assert config.cache.ttl_seconds == 300
        assert config.render.strictness == Strictness.LENIENT
        assert config.render.degraded_fallback is False
        assert config.render.section_separator == "\n\n"
        assert config.logging.level == LogLevel.INFO

    def test_no_file_uses_defaults(self):
        """Without any config file, load() falls back to defaults."""
        config = ConfigLoader().load()

        assert config.templates.root == "templates"

    def test_missing_file_without_defaults_raises(self, tmp_path):
        """use_defaults=False turns a missing file into an error."""
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader().load(tmp_path / "nope.yaml", use_defaults=False)

        assert "not found" in exc_info.value.detail


class TestLoadFromFile:
    """Tests for loading YAML config files."""

    def test_sections_converted(self, tmp_path):
        """Nested sections become dataclasses and enums."""
        path = tmp_path / "docgen-config.yaml"
        path.write_text(
            "templates:\n"
            "  root: ./tpl\n"
            "  document_type_aliases:\n"
            "    spec: specification\n"
            "cache:\n"
            "  ttl_seconds: 60\n"
            "render:\n"
            "  strictness: strict\n"
            "  degraded_fallback: true\n"
            "logging:\n"
            "  level: DEBUG\n"
            "  format: json\n"
        )

        config = ConfigLoader().load(path)

        assert config.templates.root == "./tpl"
        assert config.templates.document_type_aliases == {"spec": "specification"}
        assert config.cache.ttl_seconds == 60
        assert config.render.strictness == Strictness.STRICT
        assert config.render.degraded_fallback is True
        assert config.logging.level == LogLevel.DEBUG
        assert config.logging.format == LogFormat.JSON

    def test_local_file_discovered(self, tmp_path):
        """./docgen-config.yaml is picked up without an explicit path."""
        (tmp_path / "docgen-config.yaml").write_text("cache:\n  enabled: false\n")

        config = ConfigLoader().load()

        assert config.cache.enabled is False

    def test_env_path_wins(self, tmp_path, monkeypatch):
        """DOCGEN_CONFIG_PATH points at the config file."""
        path = tmp_path / "elsewhere.yaml"
        path.write_text("templates:\n  root: from-env-path\n")
        monkeypatch.setenv(CONFIG_PATH_ENV, str(path))

        config = ConfigLoader().load()

        assert config.templates.root == "from-env-path"

    def test_env_interpolation(self, tmp_path, monkeypatch):
        """${VAR} references are resolved from the environment."""
        monkeypatch.setenv("DOCGEN_TEST_DIR", "/srv/templates")
        path = tmp_path / "docgen-config.yaml"
        path.write_text("templates:\n  root: ${DOCGEN_TEST_DIR}/main\n")

        config = ConfigLoader().load(path)

        assert config.templates.root == "/srv/templates/main"

    def test_template_root_env_override(self, tmp_path, monkeypatch):
        """DOCGEN_TEMPLATE_ROOT overrides templates.root."""
        path = tmp_path / "docgen-config.yaml"
        path.write_text("templates:\n  root: ./tpl\n")
        monkeypatch.setenv(TEMPLATE_ROOT_ENV, "/override")

        config = ConfigLoader().load(path)

        assert config.templates.root == "/override"

    def test_invalid_yaml(self, tmp_path):
        """Broken YAML is a config error."""
        path = tmp_path / "docgen-config.yaml"
        path.write_text("templates: [unclosed\n")

        with pytest.raises(ConfigError):
            ConfigLoader().load(path)

    def test_non_mapping_file(self, tmp_path):
        """A list at the top level is rejected."""
        path = tmp_path / "docgen-config.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            ConfigLoader().load(path)

    def test_get_before_load_raises(self):
        """get() requires a prior load."""
        with pytest.raises(ConfigError):
            ConfigLoader().get()


class TestValidation:
    """Tests for ConfigLoader.validate()."""

    def test_unknown_key_is_warning(self):
        """Unknown top-level keys only warn."""
        result = ConfigLoader().validate({"plugins": {}})

        assert result.valid
        assert result.warnings[0].path == "plugins"

    @pytest.mark.parametrize(
        ("data", "path"),
        [
            ({"cache": {"ttl_seconds": 0}}, "cache.ttl_seconds"),
            ({"cache": {"ttl_seconds": "soon"}}, "cache.ttl_seconds"),
            ({"cache": {"ttl_seconds": True}}, "cache.ttl_seconds"),
            ({"render": {"strictness": "loose"}}, "render.strictness"),
            ({"logging": {"level": "TRACE"}}, "logging.level"),
            ({"templates": {"root": 5}}, "templates.root"),
            ({"templates": {"document_type_aliases": ["a"]}}, "templates.document_type_aliases"),
            ({"cache": "yes"}, "cache"),
        ],
    )
    def test_invalid_values(self, data, path):
        """Invalid values are reported with their dotted path."""
        result = ConfigLoader().validate(data)

        assert not result.valid
        assert [issue.path for issue in result.errors] == [path]

    def test_load_from_dict_raises_on_errors(self):
        """Validation errors abort loading."""
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader().load_from_dict({"render": {"strictness": "loose"}})

        assert "render.strictness" in exc_info.value.detail


class TestResolveEnvVars:
    """Tests for resolve_env_vars()."""

    def test_default_operator(self, monkeypatch):
        """${VAR:-default} falls back when unset."""
        monkeypatch.delenv("DOCGEN_UNSET", raising=False)

        assert resolve_env_vars("${DOCGEN_UNSET:-fallback}") == "fallback"

    def test_required_missing_raises(self, monkeypatch):
        """${VAR} with no value is an error."""
        monkeypatch.delenv("DOCGEN_UNSET", raising=False)

        with pytest.raises(ConfigError):
            resolve_env_vars("${DOCGEN_UNSET}")

    def test_custom_error_message(self, monkeypatch):
        """${VAR:?message} uses the message as detail."""
        monkeypatch.delenv("DOCGEN_UNSET", raising=False)

        with pytest.raises(ConfigError) as exc_info:
            resolve_env_vars("${DOCGEN_UNSET:?set the template root}")

        assert exc_info.value.detail == "set the template root"

    def test_plain_text_untouched(self):
        """Strings without references are returned as-is."""
        assert resolve_env_vars(str(Path("a") / "b")) == str(Path("a") / "b")
