# addonhub/scan/infofiles.py
from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from addonhub.resolve.requirement import DependencySpec, parseDependsOnLine

logger = logging.getLogger(__name__)

__all__ = [
    "AddonInfo",
    "isInfoFile",
    "findInfoFiles",
    "parseInfoText",
    "readInfoFile",
    "scanInfoFiles",
]


# Only top-level "<Name>/<Name>.txt" manifests count; other .txt files are docs or data.
_INFO_FILE_RE = re.compile(r"^([^\\/]+)[\\/]\1\.txt$", re.IGNORECASE)
_DIRECTIVE_RE = re.compile(r"^\s*##\s*(?P<key>[A-Za-z]+)\s*:\s*(?P<value>.*?)\s*$")



@dataclass(slots=True)
class AddonInfo:
    """What an add-on manifest says about itself and what it needs."""
    path: str
    title: str = ""
    version: str = ""
    requires: list[DependencySpec] = field(default_factory=list)
    recommends: list[DependencySpec] = field(default_factory=list)



def isInfoFile(relPath: str) -> bool:
    return bool(_INFO_FILE_RE.match(relPath))



def findInfoFiles(files: Iterable[str]) -> list[str]:
    return [name for name in files if isInfoFile(name)]



def parseInfoText(addonPath: str, text: str) -> AddonInfo:
    """
    Parse the `## Key: value` header lines of a manifest.

    DependsOn and OptionalDependsOn may each appear more than once; their
    specs accumulate in file order.
    """
    info = AddonInfo(path=addonPath)
    for line in text.splitlines():
        mtch = _DIRECTIVE_RE.match(line)
        if not mtch:
            continue
        key = mtch.group("key").lower()
        value = mtch.group("value")
        if key == "dependson":
            info.requires.extend(parseDependsOnLine(value))
        elif key == "optionaldependson":
            info.recommends.extend(parseDependsOnLine(value))
        elif key == "title" and not info.title:
            info.title = value
        elif key == "version" and not info.version:
            info.version = value
    return info



def readInfoFile(root: Path, relPath: str) -> AddonInfo | None:
    """Manifest at root/relPath, or None when it cannot be read."""
    mtch = _INFO_FILE_RE.match(relPath)
    if not mtch:
        return None
    fullPath = root.joinpath(*re.split(r"[\\/]", relPath))
    try:
        text = fullPath.read_text(encoding="utf-8-sig", errors="replace")
    except OSError as err:
        logger.warning("Skipping unreadable add-on manifest %s: %s", fullPath, err)
        return None
    return parseInfoText(mtch.group(1), text)



def scanInfoFiles(files: Iterable[str], root: str | Path) -> list[AddonInfo]:
    """Manifests among `files` (paths relative to `root`), unreadable ones skipped."""
    rootPath = Path(root)
    out: list[AddonInfo] = []
    for relPath in findInfoFiles(files):
        info = readInfoFile(rootPath, relPath)
        if info is not None:
            out.append(info)
    logger.debug("Scanned %d add-on manifest(s) under %s", len(out), rootPath)
    return out
