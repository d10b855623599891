"""Docgen configuration data models."""

from dataclasses import dataclass, field

from docgen_core.types import LogFormat, LogLevel, Strictness


def _default_aliases() -> dict[str, str]:
    return {
        "comp": "component",
        "authoring": "wiki",
    }


@dataclass
class TemplatesConfig:
    """Template tree configuration."""

    root: str = "templates"
    document_type_aliases: dict[str, str] = field(default_factory=_default_aliases)


@dataclass
class CacheConfig:
    """Resolution cache configuration."""

    enabled: bool = True
    ttl_seconds: int = 300  # Templates change often during development


@dataclass
class RenderConfig:
    """Render behaviour configuration."""

    strictness: Strictness = Strictness.LENIENT
    degraded_fallback: bool = False  # Attach built-in default output on render errors
    section_separator: str = "\n\n"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.COLORED
    components: dict[str, bool] = field(default_factory=dict)


@dataclass
class DocgenConfig:
    """Root configuration object."""

    templates: TemplatesConfig = field(default_factory=TemplatesConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
