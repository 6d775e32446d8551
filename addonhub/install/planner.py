# addonhub/install/planner.py
from __future__ import annotations

import logging
from collections import deque
from collections.abc import Collection, Iterable
from dataclasses import dataclass, field
from typing import Literal

from addonhub.catalog.client import CatalogClient
from addonhub.catalog.models import CatalogDetail
from addonhub.core.errors import CatalogUnavailableError, DependencySpecError
from addonhub.resolve.requirement import parseDependencySpec
from addonhub.resolve.resolver import DependencyResolver

logger = logging.getLogger(__name__)

__all__ = [
    "InstallCandidate",
    "PlanRequest",
    "PlanAdvisory",
    "PlanResult",
    "InstallPlanner",
]



@dataclass(slots=True)
class InstallCandidate:
    id: int
    title: str
    downloadUri: str
    fileName: str
    modPage: str
    installDisabled: bool = False



@dataclass(frozen=True, slots=True)
class PlanRequest:
    """A root the caller wants installed, optionally installed disabled."""
    entry: CatalogDetail
    installDisabled: bool = False



@dataclass(frozen=True, slots=True)
class PlanAdvisory:
    """Something the plan had to leave out. Reported to the user, never fatal."""
    reason: Literal["unresolved", "unavailable", "malformed"]
    requestedBy: int
    spec: str
    providerId: int | None = None



@dataclass(slots=True)
class PlanResult:
    candidates: list[InstallCandidate] = field(default_factory=list)
    advisories: list[PlanAdvisory] = field(default_factory=list)



@dataclass(slots=True)
class _PlanningRecord:
    candidate: InstallCandidate
    entry: CatalogDetail
    planned: bool = False
    # ids enqueued because this record required them
    discovered: list[int] = field(default_factory=list)



class InstallPlanner:
    """
    Breadth-first expansion of required dependencies into an install plan.

    Every id gets at most one planning record (held in an arena keyed by id),
    so cycles and shared dependencies terminate and de-duplicate naturally.
    A dependency ends up enabled when any path that reaches it is enabled.
    """

    def __init__(self, client: CatalogClient, resolver: DependencyResolver | None = None) -> None:
        self.client = client
        self.resolver = resolver or DependencyResolver(client)

    async def plan(
        self,
        roots: Iterable[CatalogDetail | PlanRequest],
        alreadyTracked: Collection[int] = (),
    ) -> list[InstallCandidate]:
        result = await self.planDetailed(roots, alreadyTracked)
        return result.candidates

    async def planDetailed(
        self,
        roots: Iterable[CatalogDetail | PlanRequest],
        alreadyTracked: Collection[int] = (),
    ) -> PlanResult:
        tracked = set(alreadyTracked)
        arena: dict[int, _PlanningRecord] = {}
        worklist: deque[int] = deque()
        rootIds: set[int] = set()
        result = PlanResult()

        for root in roots:
            request = root if isinstance(root, PlanRequest) else PlanRequest(entry=root)
            existing = arena.get(request.entry.id)
            if existing is not None:
                if not request.installDisabled:
                    existing.candidate.installDisabled = False
                continue
            modPage = await self._modPageFor(request.entry)
            arena[request.entry.id] = _PlanningRecord(
                candidate=_candidateFrom(request.entry, modPage, request.installDisabled),
                entry=request.entry,
            )
            rootIds.add(request.entry.id)
            worklist.append(request.entry.id)

        while worklist:
            currentId = worklist.popleft()
            record = arena[currentId]
            if record.planned:
                continue
            if currentId in tracked and currentId not in rootIds:
                continue

            for rawSpec in record.entry.requiredDependencySpecs():
                await self._expand(record, rawSpec, arena, worklist, tracked, result)

            record.planned = True
            result.candidates.append(record.candidate)

        if result.advisories:
            logger.warning(
                "Install plan left out %d dependenc%s: %s",
                len(result.advisories),
                "y" if len(result.advisories) == 1 else "ies",
                ", ".join(f"{adv.spec} ({adv.reason})" for adv in result.advisories),
            )
        logger.info("Install plan: %s", [cand.id for cand in result.candidates])
        return result

    async def _expand(
        self,
        record: _PlanningRecord,
        rawSpec: str,
        arena: dict[int, _PlanningRecord],
        worklist: deque[int],
        tracked: set[int],
        result: PlanResult,
    ) -> None:
        currentId = record.candidate.id
        disabled = record.candidate.installDisabled
        try:
            spec = parseDependencySpec(rawSpec)
        except DependencySpecError as err:
            logger.debug("Mod %d declares a malformed dependency %r: %s", currentId, rawSpec, err)
            result.advisories.append(PlanAdvisory("malformed", currentId, str(rawSpec)))
            return

        try:
            resolved = await self.resolver.resolve(spec.path, spec.minVersion)
        except CatalogUnavailableError as err:
            logger.warning("Could not resolve %s for mod %d: %s", spec, currentId, err)
            result.advisories.append(PlanAdvisory("unavailable", currentId, str(spec)))
            return
        if resolved is None:
            result.advisories.append(PlanAdvisory("unresolved", currentId, str(spec)))
            return

        depId = resolved.providerId
        if depId in arena:
            if not disabled:
                _enable(arena, depId)
            return
        if depId in tracked:
            return

        try:
            detail = await self.client.getModDetails(depId)
            modPage = await self._modPageFor(detail) if detail is not None else ""
        except CatalogUnavailableError as err:
            logger.warning("Could not fetch dependency %d of mod %d: %s", depId, currentId, err)
            detail = None
        if detail is None:
            result.advisories.append(PlanAdvisory("unavailable", currentId, str(spec), providerId=depId))
            return

        arena[depId] = _PlanningRecord(
            candidate=_candidateFrom(detail, modPage, disabled),
            entry=detail,
        )
        record.discovered.append(depId)
        worklist.append(depId)

    async def _modPageFor(self, entry: CatalogDetail) -> str:
        listed = await self.client.findEntry(entry.id)
        if listed is not None and listed.fileInfoUri:
            return listed.fileInfoUri
        return entry.fileInfoUri



def _candidateFrom(entry: CatalogDetail, modPage: str, installDisabled: bool) -> InstallCandidate:
    return InstallCandidate(
        id=entry.id,
        title=entry.title,
        downloadUri=entry.downloadUri,
        fileName=entry.fileName,
        modPage=modPage,
        installDisabled=installDisabled,
    )



def _enable(arena: dict[int, _PlanningRecord], modId: int) -> None:
    # Enabling a record also enables whatever it discovered while disabled.
    stack = [modId]
    while stack:
        record = arena[stack.pop()]
        if not record.candidate.installDisabled:
            continue
        record.candidate.installDisabled = False
        stack.extend(record.discovered)
