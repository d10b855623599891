"""Docgen configuration."""

from .loader import (
    CONFIG_PATH_ENV,
    TEMPLATE_ROOT_ENV,
    ConfigLoader,
    load_config,
    resolve_env_vars,
)
from .models import CacheConfig, DocgenConfig, LoggingConfig, RenderConfig, TemplatesConfig

__all__ = [
    "ConfigLoader",
    "load_config",
    "resolve_env_vars",
    "CONFIG_PATH_ENV",
    "TEMPLATE_ROOT_ENV",
    "DocgenConfig",
    "TemplatesConfig",
    "CacheConfig",
    "RenderConfig",
    "LoggingConfig",
]
