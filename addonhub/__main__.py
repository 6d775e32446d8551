# addonhub/__main__.py
"""Command-line access to the add-on catalog: browse entries and dry-run install plans."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Any

from addonhub.catalog.client import CatalogClient
from addonhub.core.errors import CatalogError, DependencySpecError
from addonhub.core.logging import configureLogging
from addonhub.core.utils import largeNumToString
from addonhub.install.planner import InstallPlanner, PlanRequest
from addonhub.resolve.resolver import DependencyResolver

logger = logging.getLogger("addonhub.cli")



def _emit(data: Any, fmt: str, textLines: list[str]) -> None:
    if fmt == "json":
        print(json.dumps(data, indent=2, sort_keys=True, default=str))
    else:
        for line in textLines:
            print(line)



async def _cmdList(client: CatalogClient, args: argparse.Namespace) -> int:
    mods = await client.getCatalog(force=args.refresh)
    if args.search:
        needle = args.search.lower()
        mods = [entry for entry in mods if needle in entry.title.lower() or needle in entry.author.lower()]
    mods = sorted(mods, key=lambda entry: entry.downloads, reverse=True)[: args.limit]
    _emit(
        [entry.model_dump(include={"id", "title", "author", "version", "downloads"}) for entry in mods],
        args.format,
        [
            f"{entry.id:>6}  {entry.title}  v{entry.version}  by {entry.author}  ({largeNumToString(entry.downloads).strip()} downloads)"
            for entry in mods
        ],
    )
    return 0



async def _cmdShow(client: CatalogClient, args: argparse.Namespace) -> int:
    detail = await client.getModDetails(args.id, force=args.refresh)
    if detail is None:
        print(f"No catalog entry {args.id}")
        return 1
    lines = [
        f"{detail.title} v{detail.version} by {detail.author}",
        f"Page:      {detail.fileInfoUri}",
        f"Download:  {detail.downloadUri}",
        f"Downloads: {largeNumToString(detail.downloads).strip()}  Favorites: {largeNumToString(detail.favorites).strip()}",
    ]
    for addon in detail.addons:
        lines.append(f"  {addon.path} {addon.addOnVersion}".rstrip())
        for spec in addon.requiredDependencies:
            lines.append(f"    requires   {spec}")
        for spec in addon.optionalDependencies:
            lines.append(f"    recommends {spec}")
    _emit(detail.model_dump(mode="json"), args.format, lines)
    return 0



async def _cmdDeps(client: CatalogClient, args: argparse.Namespace) -> int:
    resolver = DependencyResolver(client)
    result = await resolver.matchCandidates(f"{args.path}>={args.minVersion}" if args.minVersion else args.path)
    rows = [
        {
            "id": cand.entry.id,
            "title": cand.entry.title,
            "addOnVersion": cand.addon.addOnVersion,
            "downloads": cand.entry.downloads,
            "best": result.best is not None and cand.entry.id == result.best.entry.id,
        }
        for cand in result.candidates
    ]
    lines = [f"{'*' if row['best'] else ' '} {row['id']:>6}  {row['title']}  addon v{row['addOnVersion'] or '?'}  {row['downloads']} downloads" for row in rows]
    if not rows:
        lines = [f"Nothing in the catalog provides {result.spec}"]
    _emit({"spec": str(result.spec), "candidates": rows}, args.format, lines)
    return 0 if rows else 1



async def _cmdPlan(client: CatalogClient, args: argparse.Namespace) -> int:
    details = await client.getManyModDetails(args.ids, force=args.refresh)
    missing = [modId for modId in args.ids if modId not in details]
    if missing:
        print(f"Unknown catalog entries: {', '.join(str(modId) for modId in missing)}")
        return 1
    planner = InstallPlanner(client)
    result = await planner.planDetailed(
        [PlanRequest(entry=details[modId], installDisabled=args.disabled) for modId in args.ids],
        alreadyTracked=args.tracked or (),
    )
    lines = [
        f"{idx + 1:>3}. {cand.id:>6}  {cand.title}{'  (disabled)' if cand.installDisabled else ''}"
        for idx, cand in enumerate(result.candidates)
    ]
    lines.extend(f"  ! {adv.spec}: {adv.reason} (required by {adv.requestedBy})" for adv in result.advisories)
    _emit(
        {
            "candidates": [
                {"id": cand.id, "title": cand.title, "installDisabled": cand.installDisabled}
                for cand in result.candidates
            ],
            "advisories": [
                {"reason": adv.reason, "spec": adv.spec, "requestedBy": adv.requestedBy}
                for adv in result.advisories
            ],
        },
        args.format,
        lines,
    )
    return 0



COMMANDS = {
    "list": _cmdList,
    "show": _cmdShow,
    "deps": _cmdDeps,
    "plan": _cmdPlan,
}



def buildParser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="addonhub", description="Browse the add-on catalog and dry-run install plans")
    parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format")
    parser.add_argument("--refresh", action="store_true", help="Bypass the catalog cache")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    listCmd = sub.add_parser("list", help="List catalog entries, most downloaded first")
    listCmd.add_argument("--search", default="", help="Filter by title or author")
    listCmd.add_argument("--limit", type=int, default=50)

    showCmd = sub.add_parser("show", help="Show one catalog entry")
    showCmd.add_argument("id", type=int)

    depsCmd = sub.add_parser("deps", help="Show which entries provide an addon path")
    depsCmd.add_argument("path")
    depsCmd.add_argument("minVersion", nargs="?", default="")

    planCmd = sub.add_parser("plan", help="Print the install plan for one or more entries")
    planCmd.add_argument("ids", type=int, nargs="+")
    planCmd.add_argument("--tracked", type=int, nargs="*", help="Catalog ids to treat as already installed")
    planCmd.add_argument("--disabled", action="store_true", help="Plan the roots as installed disabled")
    return parser



def main(argv: list[str] | None = None) -> int:
    args = buildParser().parse_args(argv)
    configureLogging(devMode=True if args.debug else None)
    client = CatalogClient()
    try:
        return asyncio.run(COMMANDS[args.command](client, args))
    except CatalogError as err:
        logger.error("Catalog request failed: %s", err)
        return 2
    except DependencySpecError as err:
        print(f"Invalid dependency: {err}")
        return 2



if __name__ == "__main__":
    raise SystemExit(main())
