# addonhub/core/logging/setup.py
from __future__ import annotations
import logging
import logging.handlers

from addonhub.app.settings import settings, settingsBool
from .formatters import DevFormatter, JsonFormatter

__all__ = ["NO_PROPAGATE", "QUIET_LOGGERS", "configureLogging"]


# Transport internals: never forwarded to our handlers
NO_PROPAGATE = ["asyncio", "hpack", "httpcore"]
# One line per request at INFO is too chatty next to the catalog's own logs
QUIET_LOGGERS = {"httpx": logging.WARNING}

LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3



def configureLogging(*, devMode: bool | None = None, logFile: str | None = None) -> None:
    """
    Install addonhub's handlers on the root logger, replacing any present.

      - console (stderr): DevFormatter, DEBUG in dev mode else INFO
      - `logging.file` when set: JsonFormatter, rotated
    """
    if devMode is None:
        devMode = settingsBool("debug.devModeEnabled", False)
    logFile = logFile or settings("logging.file")
    level = logging.DEBUG if devMode else logging.INFO

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)

    console = logging.StreamHandler()
    console.setFormatter(DevFormatter())
    root.addHandler(console)

    if logFile:
        rotating = logging.handlers.RotatingFileHandler(
            logFile,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
        rotating.setFormatter(JsonFormatter())
        root.addHandler(rotating)

    for name in NO_PROPAGATE:
        logging.getLogger(name).propagate = False
    for name, quietLevel in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quietLevel)
