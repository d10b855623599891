"""Unit tests for DocumentEngine."""

import io
import json

import pytest
from conftest import template_doc

from docgen_core.config import CacheConfig, DocgenConfig, RenderConfig, TemplatesConfig
from docgen_core.engine import DocumentEngine
from docgen_core.errors import DuplicateDefinitionError
from docgen_core.logging import DocgenLogger, LogConfig
from docgen_core.template import BUILTIN_TEMPLATE_ID
from docgen_core.types import LogFormat, LogLevel, Strictness

BUTTON = {"component": {"name": "Button"}}


def make_config(root, **render) -> DocgenConfig:
    return DocgenConfig(
        templates=TemplatesConfig(root=str(root)),
        render=RenderConfig(**render),
    )


@pytest.fixture
def engine(sample_tree):
    engine = DocumentEngine(make_config(sample_tree))
    engine.load()
    return engine


class TestGenerate:
    """Tests for DocumentEngine.generate()."""

    def test_platform_default_document(self, engine):
        """Fragments are merged and rendered in section order."""
        result = engine.generate(engine.request("jira", "component", "react"), BUTTON)

        assert result.success
        assert result.rendered_text == "# Button\n\nGenerated by docgen\n\nJira story for Button"
        assert result.template_id == "jira/component/custom"
        assert result.fallback_path == ["exact-miss", "platform+docType-default-hit"]
        assert result.cached is False
        assert result.error is None

    def test_second_call_is_cached(self, engine):
        """Identical requests return identical results from the cache."""
        request = engine.request("jira", "component", "react")

        first = engine.generate(request, BUTTON)
        second = engine.generate(request, {"component": {"name": "Button"}})

        assert second.cached
        assert second.rendered_text == first.rendered_text
        assert second.fallback_path == first.fallback_path
        assert second.template_id == first.template_id
        assert engine.stats().hits == 1

    def test_different_context_not_cached(self, engine):
        request = engine.request("jira", "component", "react")

        engine.generate(request, BUTTON)
        other = engine.generate(request, {"component": {"name": "Card"}})

        assert not other.cached
        assert other.rendered_text.startswith("# Card")

    def test_alias_shares_cache_entry(self, engine):
        """Aliased document types resolve and cache like the canonical name."""
        engine.generate(engine.request("jira", "component", "react"), BUTTON)

        aliased = engine.generate(engine.request("jira", "comp", "react"), BUTTON)

        assert aliased.cached
        assert aliased.template_id == "jira/component/custom"

    def test_lenient_warnings(self, engine):
        result = engine.generate(engine.request("jira", "component", "react"), {})

        assert result.success
        assert result.rendered_text == "# \n\nGenerated by docgen\n\nJira story for "
        assert "Unresolved variable 'component.name' in section 'header' rendered as empty" in result.warnings

    def test_strict_failure_is_a_result(self, engine):
        """Render errors come back as results, never raised."""
        request = engine.request("jira", "component", "react", Strictness.STRICT)

        result = engine.generate(request, {})

        assert not result.success
        assert result.rendered_text is None
        assert result.error.code == "UNRESOLVED_VARIABLE"
        assert result.error.path == "component.name"
        assert result.template_id == "jira/component/custom"
        assert result.fallback_path == ["exact-miss", "platform+docType-default-hit"]
        assert result.degraded_text is None

    def test_failures_not_cached(self, engine):
        request = engine.request("jira", "component", "react", Strictness.STRICT)

        engine.generate(request, {})
        again = engine.generate(request, {})

        assert not again.cached
        assert engine.stats().entries == 0

    def test_builtin_document(self, engine):
        result = engine.generate(engine.request("github", "guide", "svelte"), {})

        assert result.template_id == BUILTIN_TEMPLATE_ID
        assert result.rendered_text == "# Untitled\n\nGuide document for github (svelte)."
        assert result.warnings == []

    def test_builtin_with_context(self, engine):
        context = {
            "component": {"name": "Modal", "description": "Dialog overlay."},
            "requirements": ["Closes on escape", "Traps focus"],
            "figma": {"url": "https://figma.example/file"},
        }

        result = engine.generate(engine.request("github", "guide", "svelte"), context)

        assert result.rendered_text == (
            "# Modal\n\n"
            "Dialog overlay.\n\n"
            "## Requirements\n- Closes on escape\n- Traps focus\n\n"
            "## Resources\n- Design: https://figma.example/file"
        )

    def test_broken_template_error_carries_path(self, write_templates):
        root = write_templates(
            {
                "a.yaml": template_doc(fragment="a", base_refs=["b"]),
                "b.yaml": template_doc(fragment="b", base_refs=["a"]),
                "jira.yaml": template_doc("jira", "component", "custom", base_refs=["a"]),
                "vue.yaml": template_doc("jira", "component", "vue"),
            }
        )
        engine = DocumentEngine(make_config(root))
        engine.load()

        broken = engine.generate(engine.request("jira", "component", "react"), {})
        fine = engine.generate(engine.request("jira", "component", "vue"), {})

        assert broken.error.code == "CYCLIC_INHERITANCE"
        assert broken.fallback_path == ["exact-miss", "platform+docType-default-hit"]
        assert broken.template_id == "jira/component/custom"
        assert fine.success
        assert set(engine.broken_templates) == {"jira/component/custom", "fragment:a", "fragment:b"}

    def test_degraded_fallback(self, write_templates):
        """With degraded_fallback the built-in output is attached to failures."""
        root = write_templates(
            {"t.yaml": template_doc("jira", "component", "custom", sections={"s": "{{ x | shout }}"})}
        )
        engine = DocumentEngine(make_config(root, degraded_fallback=True))
        engine.load()

        result = engine.generate(engine.request("jira", "component", "react"), BUTTON)

        assert not result.success
        assert result.error.code == "UNKNOWN_FILTER"
        assert result.degraded
        assert result.degraded_text.startswith("# Button")

    def test_unhashable_context_is_a_result(self, engine):
        """A context too deep to fingerprint fails the request, not the caller."""
        deep: dict = {}
        for _ in range(1500):
            deep = {"child": deep}

        result = engine.generate(engine.request("jira", "component", "vue"), {**BUTTON, "deep": deep})

        assert not result.success
        assert result.error.code == "INTERNAL_ERROR"
        assert "RecursionError" in result.error.detail
        assert engine.stats().entries == 0

    def test_to_dict(self, engine):
        result = engine.generate(engine.request("jira", "component", "vue"), BUTTON)

        data = json.loads(json.dumps(result.to_dict()))

        assert data["success"] is True
        assert data["fallback_path"] == ["exact-hit"]
        assert data["error"] is None


class TestLifecycle:
    """Tests for loading, reloading and caching configuration."""

    def test_reload_invalidates_cache(self, engine, sample_tree):
        request = engine.request("jira", "component", "vue")
        engine.generate(request, BUTTON)
        (sample_tree / "jira" / "component-vue.yaml").write_text(
            "platform: jira\ndocumentType: component\ntechStack: vue\nversion: '2'\n"
            "sections:\n  summary: 'Updated {{ component.name }}'\nvariables: {}\n"
        )

        engine.reload()
        result = engine.generate(request, BUTTON)

        assert not result.cached
        assert result.rendered_text == "Updated Button"

    def test_reload_during_render_not_cached(self, engine, sample_tree, monkeypatch):
        """Output rendered from the old templates is not stored after a reload."""
        request = engine.request("jira", "component", "vue")
        render = engine._renderer.render

        def render_then_reload(*args, **kwargs):
            rendered = render(*args, **kwargs)
            (sample_tree / "jira" / "component-vue.yaml").write_text(
                "platform: jira\ndocumentType: component\ntechStack: vue\nversion: '2'\n"
                "sections:\n  summary: 'Updated {{ component.name }}'\nvariables: {}\n"
            )
            engine.reload()
            return rendered

        monkeypatch.setattr(engine._renderer, "render", render_then_reload)
        first = engine.generate(request, BUTTON)
        monkeypatch.undo()
        second = engine.generate(request, BUTTON)

        assert first.rendered_text == "Vue component Button"
        assert not second.cached
        assert second.rendered_text == "Updated Button"

    def test_load_errors_raise(self, write_templates):
        root = write_templates(
            {"a.yaml": template_doc("x", "y", "z"), "b.yaml": template_doc("x", "y", "z")}
        )

        with pytest.raises(DuplicateDefinitionError):
            DocumentEngine(make_config(root)).load()

    def test_context_manager_loads(self, sample_tree):
        with DocumentEngine(make_config(sample_tree)) as engine:
            assert engine.store.loaded
            assert len(engine.list_resolvable()) == 3

    def test_cache_disabled(self, sample_tree):
        config = make_config(sample_tree)
        config.cache = CacheConfig(enabled=False)
        engine = DocumentEngine(config)
        engine.load()
        request = engine.request("jira", "component", "vue")

        first = engine.generate(request, BUTTON)
        second = engine.generate(request, BUTTON)

        assert engine.cache is None
        assert engine.stats() is None
        assert not second.cached
        assert first.rendered_text == second.rendered_text

    def test_configured_strictness_default(self, sample_tree):
        engine = DocumentEngine(make_config(sample_tree, strictness=Strictness.STRICT))

        assert engine.request("a", "b", "c").strictness == Strictness.STRICT
        assert engine.request("a", "b", "c", Strictness.LENIENT).strictness == Strictness.LENIENT

    def test_logs_request_events(self, sample_tree):
        output = io.StringIO()
        logger = DocgenLogger(LogConfig(level=LogLevel.DEBUG, format=LogFormat.JSON, output=output))
        engine = DocumentEngine(make_config(sample_tree), logger=logger)
        engine.load()
        request = engine.request("jira", "component", "react")

        engine.generate(request, BUTTON)
        engine.generate(request, BUTTON)

        events = [json.loads(line)["event"] for line in output.getvalue().splitlines()]
        assert events[:2] == ["store_loading", "store_loaded"]
        assert "template_resolved" in events
        assert "template_rendered" in events
        assert events[-1] == "cache_hit"
