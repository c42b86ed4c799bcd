"""
core/logging.py - Structured JSON logging.

One JSON object per line:
- timestamp (ISO 8601, UTC, milliseconds)
- level, logger, message
- code: ErrorCode value, lifted out of context when present
- context: global context merged with the per-call context

Context travels only as extra={"context": {...}}.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Iterable

# Merged into every JSON record (service name, version, ...)
_global_context: dict[str, Any] = {}

# Third-party loggers that only speak at WARNING and above
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio", "uvicorn.access")


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


class JSONFormatter(logging.Formatter):
    """
    Line-delimited JSON for log shippers.

    Example:
    {
        "timestamp": "2026-01-04T12:00:00.000+00:00",
        "level": "WARNING",
        "logger": "gateway.aggregation",
        "message": "No node could serve block:0xabc",
        "code": "ALL_CANDIDATES_EXHAUSTED",
        "context": {"cache_key": "block:0xabc", "candidates": 3}
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        context = {**_global_context, **(getattr(record, "context", None) or {})}
        if record.exc_info:
            context["exception"] = self.formatException(record.exc_info)

        entry: dict[str, Any] = {
            "timestamp": _utc_timestamp(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        code = context.pop("code", None)
        if code is not None:
            entry["code"] = code
        if context:
            entry["context"] = context

        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Single-line human format; shows the first few context fields."""

    def __init__(self, max_context_items: int = 3):
        super().__init__()
        self.max_context_items = max_context_items

    def format(self, record: logging.LogRecord) -> str:
        line = (
            f"{datetime.now().strftime('%H:%M:%S')} {record.levelname:<7} "
            f"[{record.name}] {record.getMessage()}"
        )

        context = getattr(record, "context", None) or {}
        if context:
            items = list(context.items())
            shown = " ".join(f"{k}={v}" for k, v in items[: self.max_context_items])
            hidden = len(items) - self.max_context_items
            line += f" | {shown}"
            if hidden > 0:
                line += f" (+{hidden} more)"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ContextAdapter(logging.LoggerAdapter):
    """Adds the logger's bound context to every call's context."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        call_context = kwargs.get("extra", {}).get("context", {})
        kwargs["extra"] = {"context": {**self.extra, **call_context}}
        return msg, kwargs


def set_global_context(**kwargs: Any) -> None:
    """
    Bind fields to every subsequent JSON record.

    Example:
        set_global_context(service="relaygate", version="0.1.0")
    """
    _global_context.update(kwargs)


def clear_global_context() -> None:
    _global_context.clear()


def get_logger(name: str, **context: Any) -> ContextAdapter:
    """
    Logger for a module, optionally with bound context.

    Example:
        logger = get_logger(__name__, component="liveness")
        logger.info("Sweep finished", extra={"context": {"probed": 5}})
    """
    return ContextAdapter(logging.getLogger(name), context)


def setup_logging(
    level: str = "INFO",
    json_output: bool = True,
    log_file: str | None = None,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """
    Configure the root logger.

    Args:
        level: DEBUG, INFO, WARNING or ERROR
        json_output: JSON lines on stdout (console format otherwise)
        log_file: Also write JSON lines to this file
        quiet: Logger names raised to WARNING
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))
    root.handlers.clear()

    stdout = logging.StreamHandler(sys.stdout)
    stdout.setFormatter(JSONFormatter() if json_output else ConsoleFormatter())
    root.addHandler(stdout)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        root.addHandler(file_handler)

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)

    # uvicorn installs its own handlers unless told otherwise; route through root
    for name in ("uvicorn", "uvicorn.error"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = True
