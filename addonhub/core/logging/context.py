# addonhub/core/logging/context.py
from __future__ import annotations
import contextvars
from collections.abc import Iterator
from contextlib import contextmanager

__all__ = ["getLogContext", "logContext"]


# planId / modId of the work in progress. asyncio tasks inherit a copy, so
# concurrent installs never see each other's values.
_logContextVar: contextvars.ContextVar[dict[str, object] | None] = contextvars.ContextVar("addonhub.logctx", default=None)



def getLogContext() -> dict[str, object] | None:
    return _logContextVar.get()



@contextmanager
def logContext(**kvs: object) -> Iterator[None]:
    """Add keys to the log context for the duration of the block. None values are dropped."""
    merged = dict(_logContextVar.get() or {})
    merged.update({key: value for key, value in kvs.items() if value is not None})
    token = _logContextVar.set(merged)
    try:
        yield
    finally:
        _logContextVar.reset(token)
