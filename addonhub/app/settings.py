# addonhub/app/settings.py
from __future__ import annotations
import json5, os
from pydantic import JsonValue
from pathlib import Path
from typing import Any, cast
from functools import lru_cache

from addonhub.core.dictpath import getByPath

import logging
logger = logging.getLogger(__name__)

__all__ = [
    "SETTINGS", "USER_SETTINGS_PATH", "userSettingsPath", "loadUserSettings",
    "loadSettings", "deepMerge", "settings", "settingsBool", "settingsInt",
]


USER_SETTINGS_PATH = Path("~/.addonhub/addonhub.json5")

# Built-in values. The user file only needs the keys it changes.
SETTINGS: JsonValue = {
    "__source": "ADDONHUB_DEFAULTS",
    "catalog": {
        "listUrl": "https://api.mmoui.com/v4/game/ESO/filelist.json",
        "detailUrl": "https://api.mmoui.com/v4/game/ESO/filedetails/{ids}.json",
        "cacheTtlMs": 3_600_000,
        "sourceTag": "esoui",
        "gameId": "teso",
        "protocol": "vortex-esoui",
        "autoDownload": True,
    },
    "automation": {"enable": True},
    "http": {"retry": 3, "backoff": {"baseMs": 250, "maxMs": 4000}, "timeoutMs": 30_000},
    "install": {"serializeSubmissions": False},
    "debug": {"devModeEnabled": False},
    "logging": {"file": None},
}



def userSettingsPath() -> Path:
    """ADDONHUB_SETTINGS wins over the default location."""
    override = os.environ.get("ADDONHUB_SETTINGS")
    return Path(override).expanduser() if override else USER_SETTINGS_PATH.expanduser()



def loadUserSettings(path: Path | None = None) -> JsonValue:
    """Parsed user settings, or {} when the file is missing or not valid json5."""
    filePath = path or userSettingsPath()
    if not filePath.is_file():
        return {}
    try:
        data = json5.loads(filePath.read_text(encoding="utf-8"))
    except (OSError, ValueError) as err:
        logger.error("Ignoring settings file '%s': %s", filePath, err)
        return {}
    if not isinstance(data, dict):
        logger.error("Ignoring settings file '%s': top level must be an object", filePath)
        return {}
    return cast(JsonValue, data)



@lru_cache(maxsize=1)
def loadSettings() -> JsonValue:
    return deepMerge(SETTINGS, loadUserSettings())



def deepMerge(first: JsonValue, second: JsonValue) -> JsonValue:
    """
    New value with `second` laid over `first`. Objects merge key by key,
    anything else on the right replaces the left. Inputs are not modified.
    """
    if not (isinstance(first, dict) and isinstance(second, dict)):
        return second
    merged: dict[str, JsonValue] = dict(first)
    for key, value in second.items():
        merged[key] = deepMerge(merged[key], value) if key in merged else value
    return cast(JsonValue, merged)

# ---------- Typed reads over merged settings ----------

def settings(path: str, default: Any = None) -> Any:
    """Value at dotted `path`, or `default` when missing or null."""
    val = getByPath(loadSettings(), path)
    return default if val is None else val



def settingsBool(path: str, default: bool = False) -> bool:
    val = getByPath(loadSettings(), path)
    if val is None:
        return default
    if isinstance(val, str):
        return val.strip().lower() in ("1", "true", "yes", "on")
    return bool(val)



def settingsInt(path: str, default: int = 0) -> int:
    val = getByPath(loadSettings(), path)
    if val is None:
        return default
    try:
        return int(val)
    except (TypeError, ValueError):
        logger.warning("Setting '%s' is not an integer (%r), using %d", path, val, default)
        return default
