# addonhub/service.py
from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from addonhub.app.settings import settings, settingsBool
from addonhub.catalog.client import CatalogClient
from addonhub.catalog.models import CatalogDetail
from addonhub.core.errors import CatalogError
from addonhub.core.logging import logContext
from addonhub.host.types import InstallExecutor, ModStateStore, ProfileState, TrackedMod
from addonhub.install.pipeline import InstallOutcome, InstallPipeline
from addonhub.install.planner import InstallPlanner, PlanRequest, PlanResult
from addonhub.resolve.resolver import DependencyResolver, ResolvedDependency
from addonhub.scan.infofiles import scanInfoFiles
from addonhub.updates.checker import UpdateChecker

logger = logging.getLogger(__name__)

__all__ = ["BackupEntry", "InstallReport", "CatalogService"]



class BackupEntry(BaseModel):
    """One line of a mod-list backup."""
    name: str = ""
    game: str = ""
    modId: int
    fileId: int | str | None = None
    source: str | None = None
    enabled: bool | None = None
    installedId: str | None = None



class InstallReport(BaseModel):
    """Plan plus what the host did with it."""
    planId: str
    plan: list[int]
    advisories: list[str]
    outcomes: list[dict[str, Any]]

    @classmethod
    def build(cls, planId: str, result: PlanResult, outcomes: Sequence[InstallOutcome]) -> InstallReport:
        return cls(
            planId=planId,
            plan=[cand.id for cand in result.candidates],
            advisories=[f"{adv.spec}: {adv.reason} (required by {adv.requestedBy})" for adv in result.advisories],
            outcomes=[
                {
                    "id": outcome.candidate.id,
                    "title": outcome.candidate.title,
                    "status": outcome.status,
                    "installedId": outcome.installedId,
                    "isUpdate": outcome.isUpdate,
                    "error": outcome.error,
                }
                for outcome in outcomes
            ],
        )



class CatalogService:
    """
    Entry points the host calls into: installs, updates, protocol links,
    backup restore and installer-time dependency rules.

    Wires one CatalogClient (and so one cache snapshot) through the resolver,
    planner, pipeline and update checker.
    """

    def __init__(
        self,
        *,
        mods: ModStateStore,
        profile: ProfileState,
        executor: InstallExecutor,
        client: CatalogClient | None = None,
        pipeline: InstallPipeline | None = None,
    ) -> None:
        self.mods = mods
        self.profile = profile
        self.client = client or CatalogClient()
        self.resolver = DependencyResolver(self.client)
        self.planner = InstallPlanner(self.client, self.resolver)
        self.pipeline = pipeline or InstallPipeline(executor, profile)
        self.sourceTag: str = settings("catalog.sourceTag", "esoui")
        self.gameId: str = settings("catalog.gameId", "teso")
        self.checker = UpdateChecker(self.client, mods, sourceTag=self.sourceTag)
        self._protocolRe = re.compile(rf"^{re.escape(settings('catalog.protocol', 'vortex-esoui'))}://install/(\d+)$")

    # ----- Host state -----

    def trackedMods(self) -> list[TrackedMod]:
        return list(self.mods.getTrackedMods())

    def trackedProviderIds(self) -> set[int]:
        return {
            mod.providerId
            for mod in self.trackedMods()
            if mod.providerId and mod.attributes.source == self.sourceTag
        }

    # ----- Installs -----

    async def installMods(self, roots: Iterable[CatalogDetail | PlanRequest]) -> InstallReport:
        planId = uuid.uuid4().hex[:8]
        with logContext(planId=planId):
            tracked = self.trackedMods()
            result = await self.planner.planDetailed(roots, self.trackedProviderIds())
            outcomes = await self.pipeline.submitPlan(result.candidates, tracked)
            return InstallReport.build(planId, result, outcomes)

    async def installMod(self, entry: CatalogDetail, *, installDisabled: bool = False) -> InstallReport:
        return await self.installMods([PlanRequest(entry=entry, installDisabled=installDisabled)])

    async def installUpdate(self, modId: str | int) -> InstallReport | None:
        """Reinstall a tracked mod from the catalog. `modId` is an installed id or a catalog id."""
        tracked = self.trackedMods()
        mod = next((item for item in tracked if item.id == str(modId)), None)
        if mod is None:
            mod = next((item for item in tracked if str(item.providerId) == str(modId)), None)
        if mod is None:
            logger.info("Update requested for unknown mod %s", modId)
            return None
        if mod.attributes.source != self.sourceTag or not mod.providerId:
            logger.debug("Mod %s is not from this catalog, not updating", mod.id)
            return None

        detail = await self.client.getModDetails(mod.providerId, force=True)
        if detail is None:
            logger.warning("Catalog no longer lists mod %s (%d)", mod.id, mod.providerId)
            return None
        return await self.installMod(detail)

    # ----- Updates -----

    async def checkForUpdates(self, gameId: str | None = None) -> set[str]:
        if gameId is not None and gameId != self.gameId:
            return set()
        return await self.checker.checkUpdates(self.trackedMods())

    def getModsToUpdate(self) -> list[TrackedMod]:
        return [
            mod
            for mod in self.trackedMods()
            if mod.attributes.newestVersion
            and mod.attributes.version
            and mod.attributes.newestVersion != mod.attributes.version
        ]

    async def onGameActivated(self, gameId: str) -> list[InstallReport]:
        """Warm the catalog cache; when auto-update is on, update every outdated mod."""
        try:
            await self.client.getCatalog()
        except CatalogError as err:
            logger.warning("Could not pre-warm the catalog cache: %s", err)

        autoUpdate = settingsBool("catalog.autoDownload", True) and settingsBool("automation.enable", True)
        if not autoUpdate or gameId != self.gameId:
            return []

        await self.checkForUpdates(gameId)
        reports: list[InstallReport] = []
        for mod in self.getModsToUpdate():
            logger.info("Auto-updating %s to %s", mod.id, mod.attributes.newestVersion)
            report = await self.installUpdate(mod.id)
            if report is not None:
                reports.append(report)
        return reports

    # ----- Links and backups -----

    async def handleProtocolUrl(self, url: str) -> InstallReport | None:
        mtch = self._protocolRe.match(url or "")
        if not mtch:
            logger.debug("Ignoring link %r", url)
            return None
        detail = await self.client.getModDetails(int(mtch.group(1)))
        if detail is None:
            logger.warning("Link %s points at an unknown catalog entry", url)
            return None
        return await self.installMod(detail)

    async def restoreFromBackup(self, entries: Iterable[BackupEntry | dict[str, Any]]) -> InstallReport:
        parsed = [entry if isinstance(entry, BackupEntry) else BackupEntry.model_validate(entry) for entry in entries]
        details = await self.client.getManyModDetails([entry.modId for entry in parsed])
        requests: list[PlanRequest] = []
        for entry in parsed:
            detail = details.get(entry.modId)
            if detail is None:
                logger.warning("Backup entry %s (%d) is not in the catalog, skipping", entry.name, entry.modId)
                continue
            requests.append(PlanRequest(entry=detail, installDisabled=entry.enabled is False))
        return await self.installMods(requests)

    # ----- Dependency rules -----

    async def dependencyRulesFor(self, files: Iterable[str], destination: str | Path) -> list[ResolvedDependency]:
        """Resolve the DependsOn/OptionalDependsOn lines of the manifests in an unpacked archive."""
        rules: list[ResolvedDependency] = []
        for info in scanInfoFiles(files, destination):
            declared = [(spec, False) for spec in info.requires] + [(spec, True) for spec in info.recommends]
            for spec, optional in declared:
                resolved = await self.resolver.resolveSpec(spec, optional=optional)
                if resolved is None:
                    logger.warning("%s: no catalog entry provides %s", info.path, spec)
                    continue
                rules.append(resolved)
        return rules

    def getDependencyRulesForMod(self, providerId: int | str) -> dict[str, list[dict[str, Any]]]:
        """Rules of tracked mods that point at catalog entry `providerId`, keyed by installed id."""
        out: dict[str, list[dict[str, Any]]] = {}
        for mod in self.trackedMods():
            relevant = [rule for rule in mod.rules if _ruleTargets(rule, self.sourceTag, str(providerId))]
            if relevant:
                out[mod.id] = relevant
        return out



def _ruleTargets(rule: dict[str, Any], sourceTag: str, providerId: str) -> bool:
    repo = (rule.get("reference") or {}).get("repo") or {}
    return repo.get("repository") == sourceTag and str(repo.get("modId")) == providerId
