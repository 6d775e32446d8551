# addonhub/catalog/store.py
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence

from addonhub.catalog.models import CachedCatalog, CatalogDetail, CatalogSummary
from addonhub.core.time import HOUR_MS, nowMs

logger = logging.getLogger(__name__)

__all__ = ["CatalogStore"]



class CatalogStore:
    """
    Holds the cached catalog snapshot.

      - replaceList(): wholesale replace on a list refresh, expiry = now + TTL
      - patchDetails(): merge detail records onto matching entries, each record's
        own cacheExpiry = now + TTL; entries missing from the list are appended
      - clear(): back to empty with expiry 0

    Only CatalogClient writes here. Everyone else reads through the client.
    """

    def __init__(self, *, ttlMs: int = HOUR_MS, clock: Callable[[], int] = nowMs) -> None:
        self.ttlMs = int(ttlMs)
        self._clock = clock
        self._snapshot = CachedCatalog()

    def now(self) -> int:
        return self._clock()

    def snapshot(self) -> CachedCatalog:
        return self._snapshot

    # ----- Reads -----

    def freshList(self) -> list[CatalogSummary] | None:
        """Cached list when it exists and has not expired, else None."""
        if not self._snapshot.mods or not self._snapshot.isFresh(self.now()):
            return None
        return list(self._snapshot.mods)

    def find(self, modId: int) -> CatalogSummary | None:
        for entry in self._snapshot.mods:
            if entry.id == modId:
                return entry
        return None

    def freshDetails(self, modIds: Iterable[int]) -> dict[int, CatalogDetail] | None:
        """
        All-or-nothing batch lookup. Returns None as soon as one id is absent,
        only a summary, or an expired detail.
        """
        now = self.now()
        out: dict[int, CatalogDetail] = {}
        for modId in modIds:
            entry = self.find(modId)
            if not isinstance(entry, CatalogDetail) or not entry.isFresh(now):
                return None
            out[modId] = entry
        return out

    # ----- Writes -----

    def replaceList(self, mods: Sequence[CatalogSummary]) -> None:
        self._snapshot = CachedCatalog(cacheExpiry=self.now() + self.ttlMs, mods=list(mods))
        logger.debug("Catalog cache replaced with %d entries", len(mods))

    def patchDetails(self, details: Iterable[CatalogDetail]) -> list[CatalogDetail]:
        expiry = self.now() + self.ttlMs
        mods = list(self._snapshot.mods)
        indexById = {entry.id: idx for idx, entry in enumerate(mods)}
        patched: list[CatalogDetail] = []
        for detail in details:
            fresh = detail.model_dump(exclude_unset=True, exclude={"kind"})
            idx = indexById.get(detail.id)
            if idx is None:
                merged = CatalogDetail.model_validate({**fresh, "cacheExpiry": expiry})
                indexById[detail.id] = len(mods)
                mods.append(merged)
            else:
                base = mods[idx].model_dump(exclude={"kind"})
                merged = CatalogDetail.model_validate({**base, **fresh, "cacheExpiry": expiry})
                mods[idx] = merged
            patched.append(merged)
        self._snapshot = CachedCatalog(cacheExpiry=self._snapshot.cacheExpiry, mods=mods)
        return patched

    def clear(self) -> None:
        self._snapshot = CachedCatalog()
        logger.debug("Catalog cache cleared")
