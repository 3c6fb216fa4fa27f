"""Structured session logging utilities.

Responsibilities:
- Emit concise, deterministic event logs for catalog and session activity.
- Route all lines through `loguru` with a plain message format.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger as _loguru_logger


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


class SessionLogger:
    """Emit deterministic event logs for reader components."""

    def __init__(self, sink: TextIO | None = None, level: str = "INFO") -> None:
        """Initialize logger sink and configure deterministic formatting."""

        self._sink = sink or sys.stderr
        _loguru_logger.remove()
        _loguru_logger.add(self._sink, format="{message}", level=level, colorize=False)

    def _emit(self, level: str, component: str, event: str, **context: object) -> None:
        """Emit one structured log line."""

        line = (
            f"[session] level={level} component={component} event={event}"
            f"{_format_context(context)}"
        )
        _loguru_logger.log(level, line)

    def debug(self, component: str, event: str, **context: object) -> None:
        """Emit a debug-level event."""

        self._emit("DEBUG", component, event, **context)

    def info(self, component: str, event: str, **context: object) -> None:
        """Emit an info-level event."""

        self._emit("INFO", component, event, **context)

    def warning(self, component: str, event: str, **context: object) -> None:
        """Emit a warning-level event."""

        self._emit("WARNING", component, event, **context)

    def failure(self, component: str, event: str, exc: Exception) -> None:
        """Emit an error event carrying only the exception type, not its payload."""

        self._emit("ERROR", component, event, error_type=type(exc).__name__)
