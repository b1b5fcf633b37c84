"""
Structured Logger
=================

Structured logging with keyword fields and automatic injection of the
current pipeline/step context.

Design:
  - JSON output for production, single-line human output for development
  - Context (pipeline_id, step_id, role) carried in ContextVars so it follows
    the coroutine that set it
  - Thin wrapper over stdlib logging: handlers, levels and propagation are
    ordinary ``logging`` configuration
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

# ── Context Variables ──────────────────────────────────────────────

_pipeline_id: ContextVar[str | None] = ContextVar("pipeline_id", default=None)
_step_id: ContextVar[str | None] = ContextVar("step_id", default=None)
_role: ContextVar[str | None] = ContextVar("role", default=None)


def set_log_context(
    *,
    pipeline_id: str | None = None,
    step_id: str | None = None,
    role: str | None = None,
) -> None:
    """Set run-scoped context for log enrichment."""
    if pipeline_id is not None:
        _pipeline_id.set(pipeline_id)
    if step_id is not None:
        _step_id.set(step_id)
    if role is not None:
        _role.set(role)


def clear_log_context() -> None:
    """Clear all run-scoped context."""
    _pipeline_id.set(None)
    _step_id.set(None)
    _role.set(None)


# ── Structured Formatter ──────────────────────────────────────────

_RESERVED = {
    "name", "msg", "args", "created", "relativeCreated",
    "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "pathname", "filename", "module", "levelno", "levelname",
    "thread", "threadName", "process", "processName", "msecs",
    "taskName", "message",
}
_JSON_SAFE = (str, int, float, bool, type(None))


class StructuredFormatter(logging.Formatter):
    """JSON or human log formatter with context injection."""

    def __init__(self, *, json_output: bool = True, include_traceback: bool = True):
        super().__init__()
        self._json = json_output
        self._include_tb = include_traceback

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": record.lineno,
        }

        ctx_fields = {
            "pipeline_id": _pipeline_id.get(None),
            "step_id": _step_id.get(None),
            "role": _role.get(None),
        }
        entry["context"] = {k: v for k, v in ctx_fields.items() if v is not None}

        extras: dict[str, Any] = {}
        for key, val in record.__dict__.items():
            if key.startswith("_") or key in _RESERVED:
                continue
            extras[key] = val if isinstance(val, _JSON_SAFE) else str(val)
        if extras:
            entry["data"] = extras

        if record.exc_info and self._include_tb:
            entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info)
                if record.exc_info[2]
                else None,
            }

        if self._json:
            return json.dumps(entry, default=str, ensure_ascii=False)

        run = entry["context"].get("pipeline_id", "-")[:12]
        fields = " ".join(f"{k}={v}" for k, v in extras.items())
        line = (
            f"{entry['timestamp']} | {entry['level']:8s} | {run} | "
            f"{entry['logger']}:{entry['line']} | {entry['message']}"
        )
        return f"{line} {fields}" if fields else line


# ── Structured Logger ─────────────────────────────────────────────


class StructuredLogger:
    """
    Wrapper around a stdlib logger taking keyword fields.

    Usage:
        log = get_logger("council.execution.cascade")
        log.info("provider_succeeded", provider="groq-llama-70b", attempt=1)
    """

    __slots__ = ("_logger", "_name")

    def __init__(self, name: str):
        self._name = name
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        return self._name

    def _log(self, level: int, event: str, **kwargs: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        self._logger.log(level, event, extra=kwargs, stacklevel=3)

    def debug(self, event: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, event, **kwargs)

    def info(self, event: str, **kwargs: Any) -> None:
        self._log(logging.INFO, event, **kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, event, **kwargs)

    def error(self, event: str, exc: BaseException | None = None, **kwargs: Any) -> None:
        if exc:
            self._logger.error(event, extra=kwargs, exc_info=exc, stacklevel=2)
        else:
            self._log(logging.ERROR, event, **kwargs)

    def exception(self, event: str, **kwargs: Any) -> None:
        self._logger.exception(event, extra=kwargs, stacklevel=2)


# ── Setup ──────────────────────────────────────────────────────────

_initialized = False


def setup_logging(*, level: str = "INFO", json_output: bool | None = None) -> None:
    """
    Initialize the logging system. Call once at application startup.

    Args:
        level: Root log level
        json_output: Force JSON output. Auto-detects if None (JSON outside development)
    """
    global _initialized
    if _initialized:
        return
    _initialized = True

    if json_output is None:
        json_output = os.getenv("ENVIRONMENT", "development") != "development"

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(StructuredFormatter(json_output=json_output))
    root.addHandler(console)

    for noisy in ("httpx", "httpcore", "asyncio", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name)
