# addonhub/core/logging/formatters.py
from __future__ import annotations

import json
import logging

from .context import getLogContext

__all__ = ["CONTEXT_KEYS", "DevFormatter", "JsonFormatter"]


# Context keys shown on console lines, in this order
CONTEXT_KEYS = ("planId", "modId")



class JsonFormatter(logging.Formatter):
    """One JSON object per line, for the rotating log file."""
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": int(record.created * 1000),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
            "ctx": getLogContext() or {},
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["exc"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
                "stack": self.formatException(record.exc_info),
            }
        return json.dumps(entry, ensure_ascii=False, separators=(",", ":"), default=str)



class DevFormatter(logging.Formatter):
    """Console lines: `LEVEL: [logger] message [planId/modId]`."""
    def format(self, record: logging.LogRecord) -> str:
        ctx = getLogContext() or {}
        tags = [str(ctx[key]) for key in CONTEXT_KEYS if ctx.get(key)]
        suffix = f" [{'/'.join(tags)}]" if tags else ""
        text = record.getMessage()
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return f"{record.levelname}: [{record.name}] {text}{suffix}"
