"""Docgen Logger - Component-scoped colored logging for template resolution."""

import json
import sys
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, TextIO

from docgen_core.types import LogFormat, LogLevel

if TYPE_CHECKING:
    from pathlib import Path

# ANSI 256-color palette
RESET = "\033[0m"
CONTEXT_COLOR = "\033[38;5;153m"

LEVEL_COLORS = {
    LogLevel.DEBUG: "\033[38;5;153m",  # light blue
    LogLevel.INFO: "\033[38;5;51m",  # cyan
    LogLevel.WARN: "\033[38;5;226m",  # yellow, lenient substitutions
    LogLevel.ERROR: "\033[38;5;196m",  # red
}

COMPONENT_COLORS = {
    "store": "\033[38;5;201m",  # magenta
    "resolver": "\033[38;5;51m",  # cyan
    "render": "\033[38;5;82m",  # green
    "cache": "\033[38;5;208m",  # orange
    "engine": "\033[38;5;153m",  # light blue
}


@dataclass
class LogConfig:
    """Logger configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.COLORED
    show_context: bool = True
    truncate_at: int = 200
    components: dict[str, bool] = field(default_factory=dict)
    # stdout carries rendered documents, so logs default to stderr
    output: TextIO = field(default_factory=lambda: sys.stderr)

    def __post_init__(self) -> None:
        """Initialize default components if not provided."""
        if not self.components:
            self.components = {
                "store": True,
                "resolver": True,
                "render": True,
                "cache": True,
                "engine": True,
            }


class DocgenLogger:
    """Main logger facade. Creates component-specific loggers."""

    def __init__(self, config: LogConfig | None = None):
        """Initialize logger with configuration.

        Args:
            config: Logger configuration (defaults to LogConfig())
        """
        self.config = config or LogConfig()
        self._level_order = {
            LogLevel.DEBUG: 0,
            LogLevel.INFO: 1,
            LogLevel.WARN: 2,
            LogLevel.ERROR: 3,
        }

    def store(self) -> "StoreLogger":
        """Get a logger for template store events."""
        return StoreLogger(self)

    def request(self, request_label: str) -> "RequestLogger":
        """Get a logger scoped to one generation request.

        Args:
            request_label: "platform/documentType/techStack" label

        Returns:
            RequestLogger instance
        """
        return RequestLogger(self, request_label)

    def cache(self) -> "CacheLogger":
        """Get a logger for cache events."""
        return CacheLogger(self)

    def configure(self, config: LogConfig) -> None:
        """Update configuration.

        Args:
            config: New logger configuration
        """
        self.config = config

    def _should_log(self, level: LogLevel) -> bool:
        """Check if a log level should be logged."""
        return self._level_order.get(level, 0) >= self._level_order.get(self.config.level, 1)

    def _log(
        self,
        level: LogLevel,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Internal logging method.

        Args:
            level: Log level
            component: Component name (store, resolver, render, cache, engine)
            message: Log message
            context: Additional context data
        """
        if not self._should_log(level):
            return

        if not self.config.components.get(component, True):
            return

        if self.config.format == LogFormat.JSON:
            self._log_json(level, component, message, context)
        else:
            self._log_colored(level, component, message, context)

    def _log_json(
        self,
        level: LogLevel,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Log in JSON format (one object per line)."""
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": level.value,
            "component": component,
            "message": message,
        }
        if context:
            log_entry.update(context)

        print(json.dumps(log_entry, default=str), file=self.config.output)

    def _log_colored(
        self,
        level: LogLevel,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Log in colored format."""
        color = LEVEL_COLORS.get(level, RESET)
        component_color = COMPONENT_COLORS.get(component, RESET)

        # Format: [COMPONENT] message
        output = f"{component_color}[{component.upper()}]{RESET} {color}{message}{RESET}"

        if context and self.config.show_context:
            context_str = str(context)
            if len(context_str) > self.config.truncate_at:
                context_str = context_str[: self.config.truncate_at] + "..."
            output += f" {CONTEXT_COLOR}{context_str}{RESET}"

        print(output, file=self.config.output)


class StoreLogger:
    """Logger for template store load/reload events."""

    def __init__(self, parent: DocgenLogger):
        self.parent = parent

    def loading(self, root: "Path") -> None:
        """Log start of a template tree load."""
        self.parent._log(
            LogLevel.INFO,
            "store",
            f"Loading templates from '{root}'",
            {"event": "store_loading", "root": str(root)},
        )

    def loaded(self, templates: int, fragments: int, duration_ms: int) -> None:
        """Log a completed load.

        Args:
            templates: Number of resolvable templates indexed
            fragments: Number of fragments indexed
            duration_ms: Load duration in milliseconds
        """
        context = {
            "event": "store_loaded",
            "templates": templates,
            "fragments": fragments,
            "duration_ms": duration_ms,
        }
        message = f"Loaded {templates} templates and {fragments} fragments ✓"
        self.parent._log(LogLevel.INFO, "store", message, context)

    def load_failed(self, error: Exception) -> None:
        """Log an aborted load."""
        self.parent._log(
            LogLevel.ERROR,
            "store",
            f"Template load aborted: {error}",
            {"event": "store_load_failed", "error_type": type(error).__name__},
        )

    def broken_template(self, template_id: str, error: Exception) -> None:
        """Log a template whose inheritance cannot be merged."""
        self.parent._log(
            LogLevel.ERROR,
            "store",
            f"Template '{template_id}' is unusable: {error}",
            {
                "event": "store_broken_template",
                "template_id": template_id,
                "error_type": type(error).__name__,
            },
        )

    def reloaded(self, changed: bool) -> None:
        """Log a reload."""
        message = "Templates reloaded" if changed else "Templates unchanged, reload skipped"
        self.parent._log(LogLevel.INFO, "store", message, {"event": "store_reloaded"})


class RequestLogger:
    """Logger for a single resolve+render request."""

    def __init__(self, parent: DocgenLogger, request_label: str):
        self.parent = parent
        self.request_label = request_label

    def resolved(self, template_id: str, fallback_path: list[str]) -> None:
        """Log which template the fallback chain selected."""
        context = {
            "request": self.request_label,
            "event": "template_resolved",
            "template_id": template_id,
            "fallback_path": fallback_path,
        }
        message = f"'{self.request_label}' resolved to '{template_id}'"
        self.parent._log(LogLevel.DEBUG, "resolver", message, context)

    def rendered(self, template_id: str, duration_ms: int, warnings: int) -> None:
        """Log a successful render."""
        context = {
            "request": self.request_label,
            "event": "template_rendered",
            "template_id": template_id,
            "duration_ms": duration_ms,
            "warnings": warnings,
        }
        duration_s = duration_ms / 1000
        message = f"Rendered '{template_id}' ({duration_s:.3f}s) ✓"
        self.parent._log(LogLevel.INFO, "render", message, context)

    def substituted(self, warning: str) -> None:
        """Log a lenient-mode substitution."""
        self.parent._log(
            LogLevel.WARN,
            "render",
            warning,
            {"request": self.request_label, "event": "lenient_substitution"},
        )

    def failed(self, error: Exception) -> None:
        """Log a failed request."""
        context = {
            "request": self.request_label,
            "event": "request_failed",
            "error": str(error),
            "error_type": type(error).__name__,
        }
        message = f"'{self.request_label}' failed: {error}"
        self.parent._log(LogLevel.ERROR, "engine", message, context)

    def cache_hit(self, key: str) -> None:
        """Log a cache hit."""
        self.parent._log(
            LogLevel.DEBUG,
            "cache",
            f"Cache hit for '{self.request_label}'",
            {"event": "cache_hit", "key": key[:12]},
        )


class CacheLogger:
    """Logger for cache maintenance events."""

    def __init__(self, parent: DocgenLogger):
        self.parent = parent

    def invalidated(self, entries: int) -> None:
        """Log an explicit invalidation."""
        self.parent._log(
            LogLevel.INFO,
            "cache",
            f"Cache invalidated ({entries} entries dropped)",
            {"event": "cache_invalidated", "entries": entries},
        )

    def expired(self, entries: int) -> None:
        """Log TTL expiry of entries."""
        self.parent._log(
            LogLevel.DEBUG,
            "cache",
            f"{entries} cache entries expired",
            {"event": "cache_expired", "entries": entries},
        )
