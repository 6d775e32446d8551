# addonhub/resolve/resolver.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from addonhub.catalog.client import CatalogClient
from addonhub.catalog.models import Addon, CatalogSummary
from addonhub.resolve.requirement import DependencySpec, looseInt, parseDependencySpec

logger = logging.getLogger(__name__)

__all__ = [
    "DependencyKind",
    "ResolvedDependency",
    "ProviderCandidate",
    "ResolutionResult",
    "DependencyResolver",
]


DependencyKind = Literal["requires", "recommends"]



@dataclass(frozen=True, slots=True)
class ResolvedDependency:
    kind: DependencyKind
    providerId: int
    addonPath: str
    checksum: str

    def toRule(self, gameId: str, repository: str) -> dict[str, Any]:
        """Host mod rule pointing at the provider entry."""
        return {
            "type": self.kind,
            "reference": {
                "logicalFileName": self.addonPath,
                "gameId": gameId,
                "repo": {
                    "repository": repository,
                    "modId": str(self.providerId),
                    "fileId": self.addonPath,
                },
            },
        }



@dataclass(frozen=True, slots=True)
class ProviderCandidate:
    """A catalog entry that ships the requested addon, with the matching addon."""
    entry: CatalogSummary
    addon: Addon

    @property
    def addonVersion(self) -> int:
        return looseInt(self.addon.addOnVersion)



@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """
    Result of provider selection for one dependency spec.

    - spec: the spec that was resolved.
    - candidates: every provider seen, in catalog order.
    - ranked: candidates sharing the highest addon version, most downloaded
              first. Empty when there are no candidates; the single candidate
              when there is exactly one.
    - best: ranked[0] or None.
    """
    spec: DependencySpec
    candidates: tuple[ProviderCandidate, ...]
    ranked: tuple[ProviderCandidate, ...]
    best: ProviderCandidate | None



class DependencyResolver:
    """
    Picks one catalog entry for a `path[>=version]` requirement.

    The same addon path is often bundled inside several unrelated entries (a
    shared library shipped with a handful of mods), so selection goes:

      1. no candidates       -> nothing (caller reports it, never fatal)
      2. one candidate       -> it wins, whatever its version string
      3. several candidates  -> highest loose addon version, then most
                                downloads; remaining ties keep catalog order
    """

    def __init__(self, client: CatalogClient) -> None:
        self.client = client

    async def matchCandidates(self, spec: DependencySpec | str) -> ResolutionResult:
        if isinstance(spec, str):
            spec = parseDependencySpec(spec)

        entries = await self.client.getDependents(spec.path, spec.minVersion)
        candidates: list[ProviderCandidate] = []
        for entry in entries:
            addon = entry.findAddon(spec.path)
            if addon is not None:
                candidates.append(ProviderCandidate(entry=entry, addon=addon))

        if len(candidates) <= 1:
            ranked = tuple(candidates)
        else:
            # sorted() is stable, so equal keys keep catalog order
            byVersion = sorted(candidates, key=lambda cand: cand.addonVersion, reverse=True)
            topVersion = byVersion[0].addonVersion
            newest = [cand for cand in byVersion if cand.addonVersion == topVersion]
            ranked = tuple(sorted(newest, key=lambda cand: cand.entry.downloads, reverse=True))

        return ResolutionResult(
            spec=spec,
            candidates=tuple(candidates),
            ranked=ranked,
            best=ranked[0] if ranked else None,
        )

    async def resolve(
        self,
        addonPath: str,
        minVersion: str = "",
        *,
        optional: bool = False,
    ) -> ResolvedDependency | None:
        """Best provider for `addonPath`, or None when the catalog has none."""
        spec = DependencySpec(path=addonPath, minVersion=minVersion or "")
        result = await self.matchCandidates(spec)
        if result.best is None:
            logger.debug("No catalog entry provides %s", spec)
            return None
        if len(result.candidates) > 1:
            logger.debug(
                "Resolved %s to %d among %s",
                spec,
                result.best.entry.id,
                [cand.entry.id for cand in result.candidates],
            )
        return ResolvedDependency(
            kind="recommends" if optional else "requires",
            providerId=result.best.entry.id,
            addonPath=result.best.addon.path,
            checksum=result.best.entry.checksum,
        )

    async def resolveSpec(self, spec: DependencySpec | str, *, optional: bool = False) -> ResolvedDependency | None:
        if isinstance(spec, str):
            spec = parseDependencySpec(spec)
        return await self.resolve(spec.path, spec.minVersion, optional=optional)
