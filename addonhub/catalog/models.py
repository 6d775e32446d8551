# addonhub/catalog/models.py
from __future__ import annotations
from typing import Annotated, Any, Literal, Union
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

__all__ = [
    "Addon",
    "Image",
    "CatalogSummary",
    "CatalogDetail",
    "CatalogEntry",
    "CachedCatalog",
    "isDetail",
]



def _textOrEmpty(value: Any) -> Any:
    # The catalog sends versions as strings, numbers or null depending on the uploader.
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value



def _listOrEmpty(value: Any) -> Any:
    return [] if value is None else value



LooseText = Annotated[str, BeforeValidator(_textOrEmpty)]
LooseList = Annotated[list[str], BeforeValidator(_listOrEmpty)]



class Addon(BaseModel):
    """One add-on folder shipped inside a catalog entry. `path` is what dependency specs name."""
    model_config = ConfigDict(extra="ignore")

    path: str
    addOnVersion: LooseText = ""
    apiVersion: LooseText = ""
    requiredDependencies: LooseList = Field(default_factory=list)
    optionalDependencies: LooseList = Field(default_factory=list)



class Image(BaseModel):
    model_config = ConfigDict(extra="ignore")

    thumbUrl: str = ""
    imageUrl: str = ""
    description: str = ""



class CatalogSummary(BaseModel):
    """Record produced by the list endpoint."""
    model_config = ConfigDict(extra="ignore")

    kind: Literal["summary"] = "summary"
    id: int
    categoryId: int | None = None
    title: LooseText = ""
    author: LooseText = ""
    version: LooseText = ""
    lastUpdate: int = 0              # ms since epoch
    fileInfoUri: LooseText = ""      # human-facing mod page
    downloads: int = 0
    downloadsMonthly: int = 0
    favorites: int = 0
    checksum: LooseText = ""         # md5 of the archive
    addons: Annotated[list[Addon], BeforeValidator(_listOrEmpty)] = Field(default_factory=list)

    def findAddon(self, path: str) -> Addon | None:
        for addon in self.addons:
            if addon.path == path:
                return addon
        return None

    def requiredDependencySpecs(self) -> list[str]:
        """Every required spec across all addons, in addon order."""
        out: list[str] = []
        for addon in self.addons:
            out.extend(addon.requiredDependencies)
        return out



class CatalogDetail(CatalogSummary):
    """Record produced by the detail endpoint; a superset of CatalogSummary."""

    kind: Literal["detail"] = "detail"  # type: ignore[assignment]
    description: LooseText = ""
    changeLog: LooseText = ""
    downloadUri: LooseText = ""
    fileName: LooseText = ""
    images: Annotated[list[Image], BeforeValidator(_listOrEmpty)] = Field(default_factory=list)
    cacheExpiry: int = 0            # ms since epoch, set when cached

    def isFresh(self, nowMs: int) -> bool:
        return self.cacheExpiry > nowMs



CatalogEntry = Annotated[Union[CatalogSummary, CatalogDetail], Field(discriminator="kind")]



class CachedCatalog(BaseModel):
    """Snapshot of the whole catalog as last fetched. Expiry 0 means never fetched."""
    cacheExpiry: int = 0
    mods: list[CatalogEntry] = Field(default_factory=list)

    def isFresh(self, nowMs: int) -> bool:
        return self.cacheExpiry > nowMs



def isDetail(entry: CatalogSummary | None) -> bool:
    return isinstance(entry, CatalogDetail)
