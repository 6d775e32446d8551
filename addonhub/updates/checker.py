# addonhub/updates/checker.py
from __future__ import annotations

import logging
from collections.abc import Iterable

from addonhub.app.settings import settings
from addonhub.catalog.client import CatalogClient
from addonhub.host.types import ModStateStore, TrackedMod

logger = logging.getLogger(__name__)

__all__ = ["UpdateChecker"]



class UpdateChecker:
    """
    Finds tracked mods whose catalog entry was updated since install.

    Every mod found newer gets its "newestVersion" attribute set. The ids
    returned are the ones worth re-planning: a mod is left out when some
    installed mod already carries the same provider id at the fresh version.
    """

    def __init__(self, client: CatalogClient, store: ModStateStore, *, sourceTag: str | None = None) -> None:
        self.client = client
        self.store = store
        self.sourceTag: str = sourceTag or settings("catalog.sourceTag", "esoui")

    async def checkUpdates(self, trackedMods: Iterable[TrackedMod]) -> set[str]:
        allTracked = list(trackedMods)
        candidates = [
            mod for mod in allTracked
            if mod.attributes.source == self.sourceTag
            and mod.attributes.lastUpdate is not None
            and mod.providerId
        ]
        if not candidates:
            return set()

        details = await self.client.getManyModDetails(
            [mod.providerId for mod in candidates if mod.providerId],
            force=True,
        )

        changed: set[str] = set()
        for mod in candidates:
            detail = details.get(mod.providerId) if mod.providerId else None
            if detail is None:
                logger.debug("No catalog details for tracked mod %s (provider %s)", mod.id, mod.providerId)
                continue
            if detail.lastUpdate <= (mod.attributes.lastUpdate or 0):
                continue

            self.store.setAttribute(mod.id, "newestVersion", detail.version)
            alreadyPresent = any(
                other.providerId == detail.id and other.attributes.version == detail.version
                for other in allTracked
            )
            if alreadyPresent:
                logger.debug("Mod %s: version %s of %d is already installed", mod.id, detail.version, detail.id)
                continue
            changed.add(mod.id)

        if changed:
            logger.info("Updates available for %d mod%s", len(changed), "" if len(changed) == 1 else "s")
        return changed
