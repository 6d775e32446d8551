# addonhub/install/pipeline.py
from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Literal

from addonhub.app.settings import settings, settingsBool
from addonhub.core.logging import logContext
from addonhub.host.types import InstallExecutor, ProfileState, TrackedMod
from addonhub.install.planner import InstallCandidate

logger = logging.getLogger(__name__)

__all__ = ["InstallOutcome", "InstallPipeline"]



@dataclass(slots=True)
class InstallOutcome:
    """What happened to one candidate. `error` is set only when status is "failed"."""
    candidate: InstallCandidate
    status: Literal["installed", "failed"]
    downloadId: str | None = None
    installedId: str | None = None
    isUpdate: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "installed"



class InstallPipeline:
    """
    Hands an install plan to the host executor, one download then one
    install per candidate, and keeps profile enable state consistent when a
    candidate replaces an existing install.

    A failed candidate becomes a "failed" outcome; the rest of the plan
    still goes through.
    """

    def __init__(
        self,
        executor: InstallExecutor,
        profile: ProfileState,
        *,
        autoEnable: bool | None = None,
        serialize: bool | None = None,
        gameId: str | None = None,
        sourceTag: str | None = None,
    ) -> None:
        self.executor = executor
        self.profile = profile
        self.autoEnable = settingsBool("automation.enable", True) if autoEnable is None else autoEnable
        self.serialize = settingsBool("install.serializeSubmissions", False) if serialize is None else serialize
        self.gameId: str = gameId or settings("catalog.gameId", "teso")
        self.sourceTag: str = sourceTag or settings("catalog.sourceTag", "esoui")

    async def submitPlan(
        self,
        candidates: Sequence[InstallCandidate],
        tracked: Sequence[TrackedMod] = (),
    ) -> list[InstallOutcome]:
        if not candidates:
            return []
        logger.info(
            "Submitting %d install%s (%s)",
            len(candidates),
            "" if len(candidates) == 1 else "s",
            "serial" if self.serialize else "interleaved",
        )
        if self.serialize:
            outcomes = []
            for candidate in candidates:
                outcomes.append(await self.submitOne(candidate, tracked))
        else:
            outcomes = list(await asyncio.gather(*(self.submitOne(cand, tracked) for cand in candidates)))

        failed = [outcome for outcome in outcomes if not outcome.ok]
        if failed:
            logger.warning(
                "%d of %d installs failed: %s",
                len(failed),
                len(outcomes),
                ", ".join(f"{outcome.candidate.title} ({outcome.error})" for outcome in failed),
            )
        return outcomes

    async def submitOne(self, candidate: InstallCandidate, tracked: Sequence[TrackedMod] = ()) -> InstallOutcome:
        alreadyInstalled = [mod for mod in tracked if mod.providerId == candidate.id]
        wasActive = any(self.profile.isEnabled(mod.id) for mod in alreadyInstalled)
        allowAutoEnable = not candidate.installDisabled and (not alreadyInstalled or wasActive)
        outcome = InstallOutcome(candidate=candidate, status="failed", isUpdate=bool(alreadyInstalled))

        with logContext(modId=candidate.id):
            try:
                outcome.downloadId = await self.executor.download(
                    [candidate.downloadUri],
                    self._downloadMetadata(candidate),
                    candidate.fileName,
                    conflictPolicy="replace",
                    allowInstall=False,
                )
                outcome.installedId = await self.executor.install(
                    outcome.downloadId,
                    allowAutoEnable=allowAutoEnable,
                    unattended=True,
                )
            except asyncio.CancelledError:
                raise
            except Exception as err:
                logger.warning("Install of %s (%d) failed: %s", candidate.title, candidate.id, err)
                outcome.error = str(err) or type(err).__name__
                return outcome

            outcome.status = "installed"
            logger.info("Installed %s (%d) as %s", candidate.title, candidate.id, outcome.installedId)

            if candidate.installDisabled or not alreadyInstalled or not wasActive:
                return outcome

            # Replacing an active install: the new copy takes over its enabled state.
            if not self.autoEnable:
                self.profile.setEnabled([outcome.installedId], True)
            superseded = [
                mod.id
                for mod in alreadyInstalled
                if mod.id != outcome.installedId and self.profile.isEnabled(mod.id)
            ]
            if superseded:
                self.profile.setEnabled(superseded, False, willBeReplaced=True)
        return outcome

    def _downloadMetadata(self, candidate: InstallCandidate) -> dict[str, Any]:
        return {
            "game": self.gameId,
            "name": candidate.title,
            "source": self.sourceTag,
            "modId": candidate.id,
            "modPage": candidate.modPage,
        }
