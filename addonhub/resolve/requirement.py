# addonhub/resolve/requirement.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from addonhub.core.errors import DependencySpecError

logger = logging.getLogger(__name__)

__all__ = [
    "DependencySpec",
    "looseInt",
    "versionSatisfies",
    "parseDependencySpec",
    "parseDependsOnLine",
]



# Leading integer, like parseInt(): "31" -> 31, "5.2" -> 5, "  7b" -> 7, "r31" -> no match
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_SPEC_RE = re.compile(r"^(?P<path>[^\s>=]+)(?:>=(?P<minVersion>\S*))?$")



def looseInt(raw: str | int | None) -> int:
    """
    Lossy numeric reading of a catalog version string.

    Only the leading integer counts. Anything without one (None, "", "beta",
    "r31") collapses to 0. This is deliberately not semantic versioning:
    "2.10" and "2.9" both read as 2.
    """
    if raw is None:
        return 0
    if isinstance(raw, int):
        return raw
    mtch = _LEADING_INT_RE.match(str(raw))
    if not mtch:
        return 0
    return int(mtch.group(1))



def versionSatisfies(addonVersion: str, minVersion: str) -> bool:
    """
    An addon satisfies a minimum when either side is empty or the loose
    integer readings compare addonVersion >= minVersion.
    """
    if not minVersion or not addonVersion:
        return True
    return looseInt(minVersion) <= looseInt(addonVersion)



@dataclass(frozen=True, slots=True)
class DependencySpec:
    """A single `providerPath[>=minVersion]` requirement."""
    path: str
    minVersion: str = ""

    def __str__(self) -> str:
        return f"{self.path}>={self.minVersion}" if self.minVersion else self.path

    def isSatisfiedBy(self, addonVersion: str) -> bool:
        return versionSatisfies(addonVersion, self.minVersion)



def parseDependencySpec(raw: str) -> DependencySpec:
    """
    Parse one dependency spec.

    Accepted forms:
        "LibAddonMenu-2.0"          -> path only, any version
        "LibAddonMenu-2.0>=31"      -> path with minimum version 31
        "LibAddonMenu-2.0>="        -> treated as path only

    Raises DependencySpecError for empty text, embedded whitespace, or a
    missing path ("  >=3").
    """
    if raw is None:
        raise DependencySpecError("Dependency spec cannot be None", raw=raw)
    text = str(raw).strip()
    if not text:
        raise DependencySpecError("Dependency spec cannot be empty", raw=raw)
    mtch = _SPEC_RE.match(text)
    if not mtch:
        raise DependencySpecError(f"Invalid dependency spec {text!r}", raw=raw)
    return DependencySpec(path=mtch.group("path"), minVersion=mtch.group("minVersion") or "")



def parseDependsOnLine(value: str) -> list[DependencySpec]:
    """
    Parse the value of a `## DependsOn:` declaration: whitespace separated
    specs. Malformed tokens are skipped, the rest are kept in order.
    """
    specs: list[DependencySpec] = []
    for token in (value or "").split():
        try:
            specs.append(parseDependencySpec(token))
        except DependencySpecError as err:
            logger.debug("Skipping dependency token %r: %s", token, err)
    return specs
