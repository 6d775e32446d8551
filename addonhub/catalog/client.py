# addonhub/catalog/client.py
from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from pydantic import ValidationError

from addonhub.app.settings import settings, settingsInt
from addonhub.catalog.models import CatalogDetail, CatalogSummary
from addonhub.catalog.singleflight import SingleFlight
from addonhub.catalog.store import CatalogStore
from addonhub.core.errors import CatalogError, CatalogNotFoundError
from addonhub.core.time import HOUR_MS
from addonhub.http.client import getJson
from addonhub.resolve.requirement import versionSatisfies

logger = logging.getLogger(__name__)

__all__ = ["CatalogClient", "FetchJson"]


FetchJson = Callable[[str], Awaitable[Any]]



def _defaultFetchJson() -> FetchJson:
    return functools.partial(
        getJson,
        retries=settingsInt("http.retry", 3),
        backoffBaseMs=settingsInt("http.backoff.baseMs", 250),
        backoffMaxMs=settingsInt("http.backoff.maxMs", 4000),
        timeoutMs=settingsInt("http.timeoutMs", 30_000),
    )



def _validateMany(raw: Any, model: type[CatalogSummary], url: str) -> list[Any]:
    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list):
        raise CatalogError(f"Expected a JSON array from {url}, got {type(raw).__name__}", url=url)
    out = []
    for item in raw:
        try:
            out.append(model.model_validate(item))
        except ValidationError as err:
            logger.warning(
                "Skipping malformed catalog record from %s (id=%r): %s",
                url,
                item.get("id") if isinstance(item, dict) else None,
                err.errors()[0]["msg"] if err.errors() else err,
            )
    return out



class CatalogClient:
    """
    Cached, retried access to the remote add-on catalog.

    The client owns the CatalogStore snapshot. Concurrent identical requests
    (the list, or the same detail id set) are coalesced through SingleFlight.
    """

    def __init__(
        self,
        *,
        store: CatalogStore | None = None,
        fetchJson: FetchJson | None = None,
        listUrl: str | None = None,
        detailUrl: str | None = None,
    ) -> None:
        self.store = store or CatalogStore(ttlMs=settingsInt("catalog.cacheTtlMs", HOUR_MS))
        self._fetchJson = fetchJson or _defaultFetchJson()
        self.listUrl: str = listUrl or settings("catalog.listUrl")
        self.detailUrl: str = detailUrl or settings("catalog.detailUrl")
        self._flights: SingleFlight[Any] = SingleFlight()

    # ----- List -----

    async def getCatalog(self, force: bool = False) -> list[CatalogSummary]:
        """Whole catalog, from cache unless expired, empty or `force`."""
        if not force:
            cached = self.store.freshList()
            if cached is not None:
                return cached
        return await self._flights.do("list", self._fetchList)

    async def _fetchList(self) -> list[CatalogSummary]:
        try:
            raw = await self._fetchJson(self.listUrl)
        except CatalogNotFoundError:
            logger.warning("Catalog list endpoint %s reported not found", self.listUrl)
            return []
        mods = _validateMany(raw, CatalogSummary, self.listUrl)
        self.store.replaceList(mods)
        logger.info("Fetched catalog list: %d entries", len(mods))
        return mods

    # ----- Details -----

    async def getModDetails(self, modId: int | str, force: bool = False) -> CatalogDetail | None:
        """Detail record for one id, or None when the catalog does not know it."""
        details = await self.getManyModDetails([modId], force)
        return details.get(int(modId))

    async def getManyModDetails(
        self,
        modIds: Iterable[int | str],
        force: bool = False,
    ) -> dict[int, CatalogDetail]:
        """
        Detail records for a set of ids, in one batched request.

        The cache answers only when every id is cached as an unexpired detail
        record. One stale, missing or summary-only member refetches the whole
        batch. Ids the catalog does not return are absent from the result.
        """
        ids: list[int] = []
        for modId in modIds:
            value = int(modId)
            if value not in ids:
                ids.append(value)
        if not ids:
            return {}

        if not force:
            cached = self.store.freshDetails(ids)
            if cached is not None:
                return cached

        key = ("details", tuple(sorted(ids)))
        return await self._flights.do(key, lambda: self._fetchDetails(ids))

    async def _fetchDetails(self, ids: list[int]) -> dict[int, CatalogDetail]:
        url = self.detailUrl.format(ids=",".join(str(modId) for modId in ids))
        try:
            raw = await self._fetchJson(url)
        except CatalogNotFoundError:
            logger.info("Catalog has no details for %s", ids)
            return {}
        details = _validateMany(raw, CatalogDetail, url)
        patched = self.store.patchDetails(details)
        out = {detail.id: detail for detail in patched}
        missing = [modId for modId in ids if modId not in out]
        if missing:
            logger.info("Catalog returned no details for %s", missing)
        return out

    # ----- Queries over the cached list -----

    async def getDependents(
        self,
        addonPath: str,
        minVersion: str = "",
        force: bool = False,
    ) -> list[CatalogSummary]:
        """Entries shipping an addon at `addonPath` whose version satisfies `minVersion`."""
        mods = await self.getCatalog(force)
        return [
            entry
            for entry in mods
            if any(
                addon.path == addonPath and versionSatisfies(addon.addOnVersion, minVersion)
                for addon in entry.addons
            )
        ]

    async def findEntry(self, modId: int) -> CatalogSummary | None:
        for entry in await self.getCatalog():
            if entry.id == modId:
                return entry
        return None

    async def findByChecksum(self, checksum: str) -> CatalogSummary | None:
        if not checksum:
            return None
        for entry in await self.getCatalog():
            if entry.checksum == checksum:
                return entry
        return None

    def clearCache(self) -> None:
        self.store.clear()
