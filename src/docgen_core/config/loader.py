"""Docgen configuration loader."""

import os
import re
import typing
from dataclasses import fields
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from docgen_core.errors import create_error
from docgen_core.types import LogLevel, Strictness, ValidationIssue, ValidationResult

from .models import DocgenConfig

CONFIG_PATH_ENV = "DOCGEN_CONFIG_PATH"
TEMPLATE_ROOT_ENV = "DOCGEN_TEMPLATE_ROOT"


def resolve_env_vars(value: str) -> str:
    """Resolve environment variable references in string.

    Supports:
    - ${VAR} - Required, error if not set
    - ${VAR:-default} - With default value
    - ${VAR:?error message} - Required with custom error

    Args:
        value: String with potential env var references

    Returns:
        String with env vars resolved

    Raises:
        ConfigError: If required var not set
    """
    # Pattern: ${VAR}, ${VAR:-default}, ${VAR:?error}
    pattern = r"\$\{([^}:]+)(?::([?-])([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        operator = match.group(2)  # '-' or '?' or None
        operand = match.group(3)  # default value or error message

        env_value = os.environ.get(var_name)

        if env_value is not None:
            return env_value

        if operator == "-":
            return operand or ""
        elif operator == "?":
            error_msg = operand or f"Required environment variable {var_name} not set"
            raise create_error("CONFIG_INVALID", detail=error_msg)
        else:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Required environment variable {var_name} not set",
            )

    return re.sub(pattern, replacer, value)


def _resolve_env_vars_recursive(data: Any) -> Any:
    """Recursively resolve env vars in data structure."""
    if isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return resolve_env_vars(data)
    else:
        return data


class ConfigLoader:
    """Load and validate docgen configuration."""

    def __init__(self, logger: Any = None):
        """Initialize config loader.

        Args:
            logger: Optional DocgenLogger instance
        """
        self._config: DocgenConfig | None = None
        self._config_path: Path | None = None
        self._logger = logger

    def load(self, path: str | Path | None = None, use_defaults: bool = True) -> DocgenConfig:
        """Load configuration from file.

        Resolution order if path not specified:
        1. DOCGEN_CONFIG_PATH environment variable
        2. ./docgen-config.yaml
        3. ~/.docgen/config.yaml
        4. If use_defaults=True and no file found, use default configuration

        DOCGEN_TEMPLATE_ROOT, when set, overrides templates.root.

        Args:
            path: Optional path to config file
            use_defaults: If True, use default config when no file found

        Returns:
            Loaded DocgenConfig instance

        Raises:
            ConfigError: If file not found (when use_defaults=False) or invalid
        """
        if path is None:
            path = self._resolve_config_path()

        config_path = Path(path)

        if not config_path.exists():
            if use_defaults:
                return self.load_defaults()
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Configuration file not found: {config_path}",
            )

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Invalid YAML in config file: {e}",
            ) from e

        if not isinstance(data, dict):
            raise create_error("CONFIG_INVALID", detail="Config file must contain a mapping")

        data = _resolve_env_vars_recursive(data)

        return self.load_from_dict(data, config_path)

    def load_defaults(self) -> DocgenConfig:
        """Load default configuration without a file."""
        return self.load_from_dict({})

    def load_from_dict(self, data: dict[str, Any], config_path: Path | None = None) -> DocgenConfig:
        """Load configuration from dictionary.

        Args:
            data: Configuration dictionary
            config_path: Optional path to config file (for tracking)

        Returns:
            Loaded DocgenConfig instance

        Raises:
            ConfigError: If configuration is invalid
        """
        validation = self.validate(data)
        if not validation.valid:
            error_messages = [f"- {issue.path}: {issue.message}" for issue in validation.errors]
            raise create_error(
                "CONFIG_INVALID",
                detail="Configuration validation failed:\n" + "\n".join(error_messages),
            )

        try:
            config = self._dict_to_config(data)
        except (TypeError, ValueError) as e:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Failed to parse configuration: {e}",
            ) from e

        env_root = os.environ.get(TEMPLATE_ROOT_ENV)
        if env_root:
            config.templates.root = env_root

        self._config = config
        self._config_path = config_path
        return config

    def validate(self, data: dict[str, Any]) -> ValidationResult:
        """Validate config data without loading.

        Args:
            data: Configuration dictionary

        Returns:
            ValidationResult with errors and warnings
        """
        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []

        valid_keys = {field.name for field in fields(DocgenConfig)}
        for key in data:
            if key not in valid_keys:
                warnings.append(
                    ValidationIssue(
                        path=key,
                        message=f"Unknown configuration key: {key}",
                        severity="warning",
                    )
                )

        for section in valid_keys:
            if section in data and not isinstance(data[section], dict):
                errors.append(
                    ValidationIssue(
                        path=section,
                        message=f"{section} must be a dictionary",
                    )
                )

        templates = data.get("templates")
        if isinstance(templates, dict):
            if "root" in templates and not isinstance(templates["root"], str):
                errors.append(ValidationIssue(path="templates.root", message="root must be a string"))
            aliases = templates.get("document_type_aliases")
            if aliases is not None and not isinstance(aliases, dict):
                errors.append(
                    ValidationIssue(
                        path="templates.document_type_aliases",
                        message="document_type_aliases must be a mapping",
                    )
                )

        cache = data.get("cache")
        if isinstance(cache, dict) and "ttl_seconds" in cache:
            ttl = cache["ttl_seconds"]
            if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl <= 0:
                errors.append(
                    ValidationIssue(
                        path="cache.ttl_seconds",
                        message="ttl_seconds must be a positive integer",
                    )
                )

        render = data.get("render")
        if isinstance(render, dict) and "strictness" in render:
            allowed = [s.value for s in Strictness]
            if render["strictness"] not in allowed:
                errors.append(
                    ValidationIssue(
                        path="render.strictness",
                        message=f"strictness must be one of: {', '.join(allowed)}",
                    )
                )

        logging_section = data.get("logging")
        if isinstance(logging_section, dict) and "level" in logging_section:
            allowed = [level.value for level in LogLevel]
            if logging_section["level"] not in allowed:
                errors.append(
                    ValidationIssue(
                        path="logging.level",
                        message=f"level must be one of: {', '.join(allowed)}",
                    )
                )

        return ValidationResult(valid=True, errors=errors, warnings=warnings)

    def get(self) -> DocgenConfig:
        """Get current configuration.

        Raises:
            ConfigError: If configuration not loaded
        """
        if self._config is None:
            raise create_error("CONFIG_INVALID", detail="Configuration not loaded")
        return self._config

    def _resolve_config_path(self) -> Path:
        """Resolve config file path using resolution order."""
        env_path = os.environ.get(CONFIG_PATH_ENV)
        if env_path:
            return Path(env_path)

        local_path = Path("docgen-config.yaml")
        if local_path.exists():
            return local_path

        home_path = Path.home() / ".docgen" / "config.yaml"
        if home_path.exists():
            return home_path

        return local_path

    def _dict_to_config(self, data: dict[str, Any]) -> DocgenConfig:
        """Convert dictionary to DocgenConfig, using dataclass defaults for missing sections."""
        kwargs: dict[str, Any] = {}

        for section in fields(DocgenConfig):
            raw = data.get(section.name)
            if raw is None:
                continue
            section_type = section.type
            values = {
                f.name: _coerce(f.type, raw[f.name]) for f in fields(section_type) if f.name in raw
            }
            kwargs[section.name] = section_type(**values)

        return DocgenConfig(**kwargs)


def _coerce(field_type: Any, value: Any) -> Any:
    """Turn enum values given as strings into enum members."""
    if (
        typing.get_origin(field_type) is None
        and isinstance(field_type, type)
        and issubclass(field_type, Enum)
        and isinstance(value, str)
    ):
        return field_type(value)
    return value


def load_config(path: str | Path | None = None) -> DocgenConfig:
    """Convenience function to load config.

    Args:
        path: Optional path to config file

    Returns:
        Loaded DocgenConfig instance
    """
    return ConfigLoader().load(path)
