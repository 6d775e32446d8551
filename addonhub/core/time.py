# addonhub/core/time.py
from __future__ import annotations
import time

__all__ = ["nowMs", "HOUR_MS"]


HOUR_MS = 60 * 60 * 1000



def nowMs() -> int:
    """Wall-clock time in milliseconds, the unit catalog timestamps use."""
    return int(time.time() * 1000)
