# addonhub/integrations/attributes.py
from __future__ import annotations

import logging
from typing import Any

from addonhub.app.settings import settings
from addonhub.catalog.client import CatalogClient
from addonhub.host.types import ModStateStore

logger = logging.getLogger(__name__)

__all__ = ["extractAttributes"]



async def extractAttributes(
    client: CatalogClient,
    checksum: str,
    *,
    installedId: str | None = None,
    store: ModStateStore | None = None,
) -> dict[str, Any] | None:
    """
    Tracked-mod attributes for a downloaded archive, matched to the catalog by
    the archive's MD5. When `installedId` and `store` are given the attributes
    are also written onto that installed mod.
    """
    entry = await client.findByChecksum(checksum)
    if entry is None:
        return None

    attributes: dict[str, Any] = {
        "author": entry.author,
        "version": entry.version,
        "modId": entry.id,
        "name": entry.title,
        "downloadGame": settings("catalog.gameId", "teso"),
        "lastUpdate": entry.lastUpdate,
        "modPage": entry.fileInfoUri,
        "fileId": entry.addons[0].path if entry.addons else "",
        "source": settings("catalog.sourceTag", "esoui"),
    }
    logger.debug("Archive %s matched catalog entry %d", checksum, entry.id)

    if installedId and store is not None:
        for key, value in attributes.items():
            store.setAttribute(installedId, key, value)
    return attributes
