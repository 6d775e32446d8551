from addonhub.catalog.models import CatalogDetail, CatalogSummary
from addonhub.catalog.store import CatalogStore
from addonhub.core.time import HOUR_MS

from catalogdata import FakeClock, entryRecord


def _summary(modId: int, title: str) -> CatalogSummary:
    return CatalogSummary.model_validate(entryRecord(modId, title))


def _detail(modId: int, title: str, **changes) -> CatalogDetail:
    return CatalogDetail.model_validate({**entryRecord(modId, title), **changes})


def test_new_store_is_empty_and_expired():
    store = CatalogStore(clock=FakeClock())
    assert store.snapshot().cacheExpiry == 0
    assert store.freshList() is None


def test_replace_list_sets_expiry_one_ttl_ahead():
    clock = FakeClock()
    store = CatalogStore(ttlMs=HOUR_MS, clock=clock)
    store.replaceList([_summary(1, "Alpha")])

    assert store.snapshot().cacheExpiry == clock.now + HOUR_MS
    assert [entry.id for entry in store.freshList()] == [1]

    clock.advance(HOUR_MS)
    assert store.freshList() is None


def test_patch_details_merges_and_keeps_list_expiry():
    clock = FakeClock()
    store = CatalogStore(clock=clock)
    store.replaceList([_summary(1, "Alpha"), _summary(2, "Beta")])
    listExpiry = store.snapshot().cacheExpiry

    clock.advance(1_000)
    patched = store.patchDetails([_detail(2, "Beta", version="2.0")])

    assert store.snapshot().cacheExpiry == listExpiry
    entry = store.find(2)
    assert isinstance(entry, CatalogDetail)
    assert entry.version == "2.0"
    assert entry.cacheExpiry == clock.now + HOUR_MS
    assert patched == [entry]
    assert isinstance(store.find(1), CatalogSummary)
    assert not isinstance(store.find(1), CatalogDetail)


def test_patch_details_appends_unknown_entries():
    store = CatalogStore(clock=FakeClock())
    store.patchDetails([_detail(5, "Gamma")])
    assert [entry.id for entry in store.snapshot().mods] == [5]
    # a detail alone does not make the list fresh
    assert store.freshList() is None


def test_fresh_details_is_all_or_nothing():
    clock = FakeClock()
    store = CatalogStore(ttlMs=1_000, clock=clock)
    store.replaceList([_summary(1, "Alpha"), _summary(2, "Beta")])
    store.patchDetails([_detail(1, "Alpha")])

    assert store.freshDetails([1]) is not None
    assert store.freshDetails([1, 2]) is None  # 2 is only a summary
    assert store.freshDetails([1, 3]) is None  # 3 is unknown

    clock.advance(1_000)
    assert store.freshDetails([1]) is None


def test_clear_resets_to_empty():
    store = CatalogStore(clock=FakeClock())
    store.replaceList([_summary(1, "Alpha")])
    store.clear()
    assert store.snapshot().mods == []
    assert store.snapshot().cacheExpiry == 0
