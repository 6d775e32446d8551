# addonhub/core/dictpath.py
from __future__ import annotations
import re
from typing import Any
from collections.abc import Mapping

__all__ = ["getByPath", "splitPath"]


# escaped char | separator | plain run | trailing lone backslash
_TOKEN_RE = re.compile(r"\\(.)|(\.)|([^.\\]+)|(\\)", re.DOTALL)



def splitPath(path: str) -> list[str]:
    """
    "catalog.listUrl" -> ["catalog", "listUrl"]; a backslash escapes the next
    character, so "a\\.b.c" -> ["a.b", "c"].

    Raises ValueError for "", empty segments ("a..b", ".a") or a trailing
    backslash.
    """
    if not isinstance(path, str) or not path:
        raise ValueError("Path must be a non-empty string")
    parts = [""]
    for escaped, separator, text, dangling in _TOKEN_RE.findall(path):
        if dangling:
            raise ValueError(f"Path '{path}' ends with a dangling backslash")
        if separator:
            parts.append("")
        else:
            parts[-1] += escaped or text
    if "" in parts:
        raise ValueError(f"Path '{path}' contains empty segment(s)")
    return parts



def getByPath(obj: Any, path: str, default: Any | None = None) -> Any:
    """Value at `path` through nested mappings; `default` when a hop is missing or the path is invalid."""
    try:
        keys = splitPath(path)
    except ValueError:
        return default
    node = obj
    for key in keys:
        if not isinstance(node, Mapping) or key not in node:
            return default
        node = node[key]
    return node
