import pytest

from addonhub.install.pipeline import InstallPipeline
from addonhub.install.planner import InstallCandidate

from hostfakes import FakeExecutor, FakeProfile, trackedMod


def _candidate(modId: int, *, disabled: bool = False) -> InstallCandidate:
    return InstallCandidate(
        id=modId,
        title=f"Mod {modId}",
        downloadUri=f"https://cdn.test/{modId}.zip",
        fileName=f"{modId}.zip",
        modPage=f"https://catalog.test/info{modId}.html",
        installDisabled=disabled,
    )


def _pipeline(executor, profile, **kwargs) -> InstallPipeline:
    kwargs.setdefault("autoEnable", True)
    kwargs.setdefault("serialize", False)
    return InstallPipeline(executor, profile, gameId="teso", sourceTag="esoui", **kwargs)


@pytest.mark.asyncio
async def test_fresh_install_downloads_then_installs_with_auto_enable():
    executor = FakeExecutor()
    outcomes = await _pipeline(executor, FakeProfile()).submitPlan([_candidate(1)])

    assert [outcome.status for outcome in outcomes] == ["installed"]
    assert outcomes[0].installedId == "mod-1-new"
    assert outcomes[0].isUpdate is False
    assert executor.downloads == [{
        "uris": ["https://cdn.test/1.zip"],
        "metadata": {
            "game": "teso",
            "name": "Mod 1",
            "source": "esoui",
            "modId": 1,
            "modPage": "https://catalog.test/info1.html",
        },
        "fileName": "1.zip",
        "conflictPolicy": "replace",
        "allowInstall": False,
    }]
    assert executor.installs == [{"downloadId": "dl-1", "allowAutoEnable": True, "unattended": True}]


@pytest.mark.asyncio
async def test_disabled_candidate_never_auto_enables_or_toggles():
    executor = FakeExecutor()
    profile = FakeProfile(enabled={"old-1"})
    tracked = [trackedMod("old-1", 1)]

    await _pipeline(executor, profile, autoEnable=False).submitPlan([_candidate(1, disabled=True)], tracked)

    assert executor.installs[0]["allowAutoEnable"] is False
    assert profile.calls == []


@pytest.mark.asyncio
async def test_update_of_inactive_mod_stays_inactive():
    executor = FakeExecutor()
    profile = FakeProfile()
    tracked = [trackedMod("old-1", 1)]

    outcomes = await _pipeline(executor, profile).submitPlan([_candidate(1)], tracked)

    assert outcomes[0].isUpdate is True
    assert executor.installs[0]["allowAutoEnable"] is False
    assert profile.calls == []


@pytest.mark.asyncio
async def test_update_of_active_mod_disables_superseded_install():
    executor = FakeExecutor()
    profile = FakeProfile(enabled={"old-1"})
    tracked = [trackedMod("old-1", 1)]

    await _pipeline(executor, profile, autoEnable=True).submitPlan([_candidate(1)], tracked)

    assert executor.installs[0]["allowAutoEnable"] is True
    assert profile.calls == [(["old-1"], False, True)]


@pytest.mark.asyncio
async def test_update_without_auto_enable_enables_new_install_explicitly():
    executor = FakeExecutor()
    profile = FakeProfile(enabled={"old-1"})
    tracked = [trackedMod("old-1", 1)]

    await _pipeline(executor, profile, autoEnable=False).submitPlan([_candidate(1)], tracked)

    assert profile.calls == [(["mod-1-new"], True, False), (["old-1"], False, True)]
    assert profile.enabled == {"mod-1-new"}


@pytest.mark.asyncio
async def test_failure_is_an_outcome_not_an_abort():
    executor = FakeExecutor(failFor={2})
    outcomes = await _pipeline(executor, FakeProfile()).submitPlan([_candidate(1), _candidate(2), _candidate(3)])

    assert [outcome.status for outcome in outcomes] == ["installed", "failed", "installed"]
    assert outcomes[1].error == "download failed"
    assert [install["downloadId"] for install in executor.installs] == ["dl-1", "dl-3"]


@pytest.mark.asyncio
async def test_serial_submission_finishes_each_entry_before_the_next():
    executor = FakeExecutor()
    await _pipeline(executor, FakeProfile(), serialize=True).submitPlan([_candidate(1), _candidate(2)])

    assert executor.events == ["download:1", "install:dl-1", "download:2", "install:dl-2"]


@pytest.mark.asyncio
async def test_interleaved_submission_starts_every_download_first():
    executor = FakeExecutor()
    outcomes = await _pipeline(executor, FakeProfile(), serialize=False).submitPlan([_candidate(1), _candidate(2)])

    assert executor.events[:2] == ["download:1", "download:2"]
    assert [outcome.candidate.id for outcome in outcomes] == [1, 2]


@pytest.mark.asyncio
async def test_empty_plan_submits_nothing():
    executor = FakeExecutor()
    assert await _pipeline(executor, FakeProfile()).submitPlan([]) == []
    assert executor.events == []
