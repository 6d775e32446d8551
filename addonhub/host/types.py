# addonhub/host/types.py
from __future__ import annotations
from typing import Any, Protocol, runtime_checkable
from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "TrackedModAttributes",
    "TrackedMod",
    "ModStateStore",
    "ProfileState",
    "InstallExecutor",
]



class TrackedModAttributes(BaseModel):
    """Attributes the host keeps for an installed mod. Unknown keys are preserved."""
    model_config = ConfigDict(extra="allow")

    source: str | None = None           # which catalog the mod came from
    modId: int | None = None            # catalog (provider) id
    version: str | None = None          # installed version
    lastUpdate: int | None = None       # catalog lastUpdate at install time
    newestVersion: str | None = None    # pending update marker



class TrackedMod(BaseModel):
    """An installed mod as the host reports it. `id` is the host's install id."""
    id: str
    attributes: TrackedModAttributes = Field(default_factory=TrackedModAttributes)
    rules: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def providerId(self) -> int | None:
        return self.attributes.modId



@runtime_checkable
class ModStateStore(Protocol):
    """Key-value view of the host's installed mods."""

    def getTrackedMods(self) -> list[TrackedMod]:
        ...

    def setAttribute(self, modId: str, key: str, value: Any) -> None:
        ...



@runtime_checkable
class ProfileState(Protocol):
    """Enable state of installed mods in the active profile."""

    def isEnabled(self, installedId: str) -> bool:
        ...

    def setEnabled(self, installedIds: list[str], enabled: bool, *, willBeReplaced: bool = False) -> None:
        ...



@runtime_checkable
class InstallExecutor(Protocol):
    """
    Host download/install pipeline.

    download() resolves with the download id once the archive is on disk;
    install() resolves with the installed mod id. Both raise on failure.
    """

    async def download(
        self,
        uris: list[str],
        metadata: dict[str, Any],
        fileName: str,
        *,
        conflictPolicy: str = "replace",
        allowInstall: bool = False,
    ) -> str:
        ...

    async def install(self, downloadId: str, *, allowAutoEnable: bool, unattended: bool = True) -> str:
        ...
