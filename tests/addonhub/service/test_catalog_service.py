from pathlib import Path

import pytest

from addonhub.app import settings as settings_module
from addonhub.install.pipeline import InstallPipeline
from addonhub.service import BackupEntry, CatalogService

from catalogdata import CatalogFeed, addonRecord, entryRecord, makeClient
from hostfakes import FakeExecutor, FakeModStore, FakeProfile, trackedMod


def _entries():
    return [
        entryRecord(1, "Root", [addonRecord("Root", "1", requires=["LibA"])], version="1.1", lastUpdate=200),
        entryRecord(2, "LibA", [addonRecord("LibA", "4")], version="4", lastUpdate=50),
        entryRecord(3, "Other", [addonRecord("Other", "1")]),
    ]


def _service(tracked=(), enabled=()):
    feed = CatalogFeed(_entries())
    mods = FakeModStore(list(tracked))
    profile = FakeProfile(set(enabled))
    executor = FakeExecutor()
    pipeline = InstallPipeline(executor, profile, autoEnable=True, serialize=True, gameId="teso", sourceTag="esoui")
    service = CatalogService(mods=mods, profile=profile, executor=executor, client=makeClient(feed), pipeline=pipeline)
    return service, feed, mods, executor


@pytest.mark.asyncio
async def test_protocol_link_installs_entry_and_dependencies():
    service, _, _, executor = _service()

    report = await service.handleProtocolUrl("vortex-esoui://install/1")

    assert report is not None
    assert report.plan == [1, 2]
    assert [outcome["status"] for outcome in report.outcomes] == ["installed", "installed"]
    assert [download["metadata"]["modId"] for download in executor.downloads] == [1, 2]


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["vortex-esoui://install/abc", "https://example.com/install/1", "vortex-esoui://install/1/x", ""])
async def test_other_links_are_ignored(url):
    service, feed, _, executor = _service()
    assert await service.handleProtocolUrl(url) is None
    assert executor.downloads == []
    assert feed.detailCalls == []


@pytest.mark.asyncio
async def test_protocol_link_to_unknown_entry_does_nothing():
    service, _, _, executor = _service()
    assert await service.handleProtocolUrl("vortex-esoui://install/404") is None
    assert executor.downloads == []


@pytest.mark.asyncio
async def test_install_skips_dependencies_already_tracked():
    service, _, _, executor = _service(tracked=[trackedMod("lib", 2, version="4", lastUpdate=50)])
    root = await service.client.getModDetails(1)

    report = await service.installMod(root)

    assert report.plan == [1]
    assert len(executor.downloads) == 1


@pytest.mark.asyncio
async def test_install_update_by_installed_or_catalog_id():
    service, feed, _, executor = _service(
        tracked=[trackedMod("root-old", 1, version="1.0", lastUpdate=100), trackedMod("lib", 2, version="4", lastUpdate=50)],
        enabled={"root-old"},
    )

    first = await service.installUpdate("root-old")
    second = await service.installUpdate(1)

    assert first.plan == second.plan == [1]
    assert feed.detailCalls == [[1], [1]]
    assert all(outcome["isUpdate"] for outcome in first.outcomes)
    assert executor.installs[0]["allowAutoEnable"] is True


@pytest.mark.asyncio
async def test_install_update_ignores_foreign_and_unknown_mods():
    service, feed, _, _ = _service(tracked=[trackedMod("foreign", 1, source="nexus")])
    assert await service.installUpdate("foreign") is None
    assert await service.installUpdate("nobody") is None
    assert feed.detailCalls == []


@pytest.mark.asyncio
async def test_restore_from_backup_keeps_disabled_state():
    service, _, _, executor = _service()

    report = await service.restoreFromBackup([
        {"name": "Other", "game": "teso", "modId": 3, "enabled": False},
        BackupEntry(name="Root", game="teso", modId=1, enabled=True),
        {"name": "Vanished", "modId": 99},
    ])

    assert report.plan == [3, 1, 2]
    autoEnable = {install["downloadId"]: install["allowAutoEnable"] for install in executor.installs}
    assert autoEnable == {"dl-3": False, "dl-1": True, "dl-2": True}


def test_mods_to_update_need_both_versions_and_a_difference():
    service, _, _, _ = _service(tracked=[
        trackedMod("a", 1, version="1.0", newestVersion="1.1"),
        trackedMod("b", 2, version="4", newestVersion="4"),
        trackedMod("c", 3, newestVersion="2.0"),
        trackedMod("d", 4, version="1.0"),
    ])
    assert [mod.id for mod in service.getModsToUpdate()] == ["a"]


@pytest.mark.asyncio
async def test_game_activation_prewarms_and_auto_updates():
    service, feed, mods, executor = _service(
        tracked=[trackedMod("root-old", 1, version="1.0", lastUpdate=100)],
        enabled={"root-old"},
    )

    reports = await service.onGameActivated("teso")

    assert feed.listCalls == 1
    assert mods.mods["root-old"].attributes.newestVersion == "1.1"
    assert [report.plan for report in reports] == [[1, 2]]
    assert {download["metadata"]["modId"] for download in executor.downloads} == {1, 2}


@pytest.mark.asyncio
async def test_game_activation_for_other_game_only_prewarms():
    service, feed, _, executor = _service(tracked=[trackedMod("root-old", 1, version="1.0", lastUpdate=100)])

    assert await service.onGameActivated("skyrim") == []
    assert feed.listCalls == 1
    assert feed.detailCalls == []
    assert executor.downloads == []


@pytest.mark.asyncio
async def test_game_activation_respects_auto_download_setting(monkeypatch):
    monkeypatch.setattr(settings_module, "loadUserSettings", lambda path=None: {"catalog": {"autoDownload": False}})
    settings_module.loadSettings.cache_clear()
    service, feed, _, executor = _service(tracked=[trackedMod("root-old", 1, version="1.0", lastUpdate=100)])

    assert await service.onGameActivated("teso") == []
    assert feed.detailCalls == []
    assert executor.downloads == []


@pytest.mark.asyncio
async def test_dependency_rules_from_unpacked_archive(tmp_path: Path):
    (tmp_path / "Root").mkdir()
    (tmp_path / "Root" / "Root.txt").write_text(
        "## Title: Root\n## DependsOn: LibA>=3 LibNowhere\n## OptionalDependsOn: Other\n",
        encoding="utf-8",
    )
    service, _, _, _ = _service()

    rules = await service.dependencyRulesFor(["Root\\Root.txt", "Root\\Root.lua"], tmp_path)

    assert [(rule.kind, rule.providerId, rule.addonPath) for rule in rules] == [
        ("requires", 2, "LibA"),
        ("recommends", 3, "Other"),
    ]


def test_dependency_rules_for_mod_filters_by_repository_and_id():
    rule = {"type": "requires", "reference": {"repo": {"repository": "esoui", "modId": "2", "fileId": "LibA"}}}
    foreign = {"type": "requires", "reference": {"repo": {"repository": "nexus", "modId": "2"}}}
    withRules = trackedMod("root", 1)
    withRules.rules = [rule, foreign]
    service, _, _, _ = _service(tracked=[withRules, trackedMod("lib", 2)])

    assert service.getDependencyRulesForMod(2) == {"root": [rule]}
    assert service.getDependencyRulesForMod("3") == {}
