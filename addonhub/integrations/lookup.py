# addonhub/integrations/lookup.py
from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from addonhub.app.settings import settings
from addonhub.catalog.client import CatalogClient

logger = logging.getLogger(__name__)

__all__ = ["RepositoryLookupDetails", "RepositoryLookupResult", "lookupRepository"]



class RepositoryLookupDetails(BaseModel):
    modId: str
    fileId: str
    author: str = ""
    category: str = ""
    description: str = ""
    homepage: str = ""



class RepositoryLookupResult(BaseModel):
    """Answer to "where do I download <modId>/<fileId> from?"."""
    key: str
    fileName: str
    fileVersion: str
    sourceURI: str
    source: str
    gameId: str
    logicalFileName: str
    fileSizeBytes: int = 1          # unknown until downloaded
    archived: bool = False
    rules: list[dict] = Field(default_factory=list)
    details: RepositoryLookupDetails



async def lookupRepository(
    client: CatalogClient,
    modId: int | str,
    fileId: str,
    gameId: str | None = None,
) -> RepositoryLookupResult | None:
    """
    Resolve a catalog reference (as stored in a dependency rule) to a download.
    `fileId` is the addon path the rule was written for. None when the catalog
    has no such entry.
    """
    gameId = gameId or settings("catalog.gameId", "teso")
    detail = await client.getModDetails(int(modId))
    if detail is None:
        logger.info("Repository lookup: no catalog entry %s", modId)
        return None

    return RepositoryLookupResult(
        key=f"{gameId}_{detail.title}_{detail.version}",
        fileName=detail.fileName,
        fileVersion=detail.version,
        sourceURI=detail.downloadUri,
        source=settings("catalog.sourceTag", "esoui"),
        gameId=gameId,
        logicalFileName=fileId,
        details=RepositoryLookupDetails(
            modId=str(modId),
            fileId=fileId,
            author=detail.author,
            homepage=detail.fileInfoUri or detail.downloadUri,
        ),
    )
