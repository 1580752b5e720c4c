"""Centralized logging configuration.

Guarantees:
- All logs go to stderr (stdout is reserved for the stdio transport)
- Idempotent configuration (a single named handler on the root logger)
- Maven-style lines by default (``[INFO] message``); one-line JSON on request
- httpx/httpcore stay at WARNING unless DEBUG is requested
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

_STDERR_HANDLER_NAME = "edm_stderr_handler"
_NOISY_LOGGERS = ("httpx", "httpcore")

# Attributes every LogRecord carries; anything else came in through extra=.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}


class _JsonFormatter(logging.Formatter):
    """One JSON object per record with timestamp, level, logger and message.

    Fields passed via ``extra=`` (e.g. ``op``, ``key``) are copied in as-is,
    falling back to ``str()`` for values json cannot encode.
    """

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name or "root",
            "message": record.getMessage(),
        }
        for k, v in record.__dict__.items():
            if k.startswith("_") or k in _STANDARD_ATTRS:
                continue
            try:
                json.dumps(v)
            except (TypeError, ValueError):
                v = str(v)
            payload[k] = v

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False)


def _build_formatter(json_logs: bool, level: int) -> logging.Formatter:
    if json_logs:
        return _JsonFormatter()
    if level <= logging.DEBUG:
        # [DEBUG] edm_version_sniffer.sniffer message
        return logging.Formatter("[%(levelname)s] %(name)s %(message)s")
    # [WARNING] No managed dependency found for g:a - ...
    return logging.Formatter("[%(levelname)s] %(message)s")


def _find_handler(root: logging.Logger) -> logging.Handler | None:
    for h in root.handlers:
        if getattr(h, "name", None) == _STDERR_HANDLER_NAME:
            return h
    return None


def _is_stdout_handler(h: logging.Handler) -> bool:
    return isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stdout


def configure_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """Configure application-wide logging.

    Parameters
    ----------
    log_level: str
        Root log level name; unknown names fall back to INFO.
    json_logs: bool
        If True, emit one-line JSON per record.
    """

    level = logging.getLevelName((log_level or "").upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    handler = _find_handler(root)
    if handler is None:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.name = _STDERR_HANDLER_NAME
        root.handlers = [h for h in root.handlers if not _is_stdout_handler(h)]
        root.addHandler(handler)
    handler.setFormatter(_build_formatter(json_logs, level))

    root.setLevel(level)

    noisy_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


__all__ = ["configure_logging"]
