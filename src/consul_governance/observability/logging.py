from __future__ import annotations

import contextvars
import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Mapping

__all__ = ["LOG_FORMAT_CONSOLE", "LOG_FORMAT_ENV", "LOG_FORMAT_JSON", "LogContext", "StructuredConsoleFormatter", "StructuredJSONFormatter", "configure_logging", "get_logger"]


LOG_FORMAT_ENV = "CONSUL_GOVERNANCE_LOG_FORMAT"
LOG_FORMAT_JSON = "json"
LOG_FORMAT_CONSOLE = "console"

_DEFAULT_CONTEXT_KEYS = ("service_name", "instance_id", "registry_uri")
_LOG_CONTEXT: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar("consul_governance_log_context")

_DEFAULT_CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s service_name=%(service_name)s instance_id=%(instance_id)s"

_RESERVED_FIELDS = {"timestamp", "level", "logger", "message", "exception", "stack"}

_LOG_RECORD_ATTRS = {"name", "msg", "args", "levelname", "levelno", "pathname", "filename", "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName", "created", "msecs", "relativeCreated", "thread", "threadName", "processName", "process", "taskName", "message", "asctime"}


def _normalize_log_format(value: str | None) -> str:
    if not value:
        return LOG_FORMAT_CONSOLE
    normalized = value.strip().lower()
    if normalized in {LOG_FORMAT_JSON, LOG_FORMAT_CONSOLE}:
        return normalized
    return LOG_FORMAT_CONSOLE


def _json_default(value: Any) -> str:
    return str(value)


def _extract_extras(record: logging.LogRecord) -> dict[str, Any]:
    extras: dict[str, Any] = {}
    for key, value in record.__dict__.items():
        if key in _LOG_RECORD_ATTRS or key.startswith("_"):
            continue
        extras[key] = value
    return extras


def _merge_context(base: Mapping[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in updates.items():
        if value is None:
            continue
        merged[key] = value
    return merged


def _context_snapshot() -> dict[str, Any]:
    current = _LOG_CONTEXT.get({})
    snapshot: dict[str, Any] = {key: current.get(key) for key in _DEFAULT_CONTEXT_KEYS}
    for key, value in current.items():
        if key not in snapshot:
            snapshot[key] = value
    return snapshot


def _filter_reserved(values: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if key not in _RESERVED_FIELDS}


def _ensure_handler(
    logger: logging.Logger,
    formatter: logging.Formatter,
    *,
    format_kind: str,
    level: int | None,
    stream: Any,
) -> None:
    for handler in logger.handlers:
        if getattr(handler, "_consul_governance_handler", False) and getattr(
            handler, "_format_kind", None
        ) == format_kind:
            return
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    handler._consul_governance_handler = True
    handler._format_kind = format_kind
    logger.addHandler(handler)
    if level is not None:
        logger.setLevel(level)


class LogContext:
    """Async-safe structured logging context.

    Values bound here are attached to every record emitted while the context
    is active, so registry log lines carry the service being worked on.

    Args:
        service_name: Logical service name.
        instance_id: Registry instance identifier.
        registry_uri: Base URI of the registry being queried.
        **extra: Additional context values for log enrichment.
    """

    def __init__(
        self,
        service_name: str | None = None,
        instance_id: str | None = None,
        registry_uri: str | None = None,
        **extra: Any,
    ) -> None:
        values: dict[str, Any] = {
            "service_name": service_name,
            "instance_id": instance_id,
            "registry_uri": registry_uri,
        }
        values.update(extra)
        self._values = {key: value for key, value in values.items() if value is not None}
        self._token: contextvars.Token[dict[str, Any]] | None = None

    def __enter__(self) -> LogContext:
        current = _LOG_CONTEXT.get({})
        self._token = _LOG_CONTEXT.set(_merge_context(current, self._values))
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: Any,
    ) -> None:
        if self._token is not None:
            _LOG_CONTEXT.reset(self._token)
            self._token = None

    @classmethod
    def bind(cls, **values: Any) -> None:
        current = _LOG_CONTEXT.get({})
        _LOG_CONTEXT.set(_merge_context(current, values))

    @classmethod
    def clear(cls) -> None:
        _LOG_CONTEXT.set({})

    @classmethod
    def snapshot(cls) -> dict[str, Any]:
        return _context_snapshot()


class ContextFilter(logging.Filter):

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _context_snapshot().items():
            if hasattr(record, key):
                continue
            record.__dict__[key] = "-" if value is None else value
        return True


class StructuredJSONFormatter(logging.Formatter):
    """Formats log records as JSON strings.

    Args:
        datefmt: Optional date format string.
        ensure_ascii: Whether to escape non-ASCII characters.
    """

    def __init__(self, *, datefmt: str | None = None, ensure_ascii: bool = True) -> None:
        super().__init__(datefmt=datefmt)
        self._ensure_ascii = ensure_ascii

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if datefmt:
            return dt.strftime(datefmt)
        return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = _filter_reserved(_extract_extras(record))
        payload.update({key: value for key, value in extras.items() if value != "-"})
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return json.dumps(payload, default=_json_default, ensure_ascii=self._ensure_ascii)


class StructuredConsoleFormatter(logging.Formatter):

    def __init__(self, fmt: str | None = None, *, datefmt: str | None = None) -> None:
        super().__init__(fmt=fmt or _DEFAULT_CONSOLE_FORMAT, datefmt=datefmt)


def _build_formatter(resolved_format: str) -> logging.Formatter:
    if resolved_format == LOG_FORMAT_JSON:
        return StructuredJSONFormatter()
    return StructuredConsoleFormatter()


def get_logger(
    name: str,
    *,
    log_format: str | None = None,
    level: int | None = None,
    stream: Any | None = None,
) -> logging.Logger:
    """Return a logger with a structured handler attached.

    Args:
        name: Logger name.
        log_format: Optional override for log format selection.
        level: Optional log level to apply to the logger.
        stream: Optional stream for handler output.

    Returns:
        Configured logging.Logger instance.
    """
    resolved_format = _normalize_log_format(log_format or os.getenv(LOG_FORMAT_ENV))
    logger = logging.getLogger(name)
    _ensure_handler(
        logger,
        _build_formatter(resolved_format),
        format_kind=resolved_format,
        level=level,
        stream=stream,
    )
    return logger


def configure_logging(level: int, log_format: str | None = None, stream: Any | None = None) -> logging.Logger:
    """Install a structured handler on the package root logger."""
    return get_logger("consul_governance", log_format=log_format, level=level, stream=stream)
