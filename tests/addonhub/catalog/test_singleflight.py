import asyncio

import pytest

from addonhub.catalog.singleflight import SingleFlight


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_call():
    flights: SingleFlight[int] = SingleFlight()
    release = asyncio.Event()
    calls = 0

    async def fetch() -> int:
        nonlocal calls
        calls += 1
        await release.wait()
        return 42

    first = asyncio.create_task(flights.do("list", fetch))
    second = asyncio.create_task(flights.do("list", fetch))
    await asyncio.sleep(0)
    assert flights.inFlight("list")

    release.set()
    assert await asyncio.gather(first, second) == [42, 42]
    assert calls == 1
    assert not flights.inFlight("list")


@pytest.mark.asyncio
async def test_settled_key_starts_a_new_call():
    flights: SingleFlight[int] = SingleFlight()
    calls = 0

    async def fetch() -> int:
        nonlocal calls
        calls += 1
        return calls

    assert await flights.do("k", fetch) == 1
    assert await flights.do("k", fetch) == 2


@pytest.mark.asyncio
async def test_distinct_keys_do_not_coalesce():
    flights: SingleFlight[str] = SingleFlight()
    release = asyncio.Event()

    async def fetch(value: str) -> str:
        await release.wait()
        return value

    first = asyncio.create_task(flights.do(("details", (1,)), lambda: fetch("a")))
    second = asyncio.create_task(flights.do(("details", (1, 2)), lambda: fetch("b")))
    await asyncio.sleep(0)
    release.set()
    assert await asyncio.gather(first, second) == ["a", "b"]


@pytest.mark.asyncio
async def test_failure_reaches_every_waiter_and_is_forgotten():
    flights: SingleFlight[int] = SingleFlight()
    release = asyncio.Event()

    async def fetch() -> int:
        await release.wait()
        raise RuntimeError("down")

    first = asyncio.create_task(flights.do("list", fetch))
    second = asyncio.create_task(flights.do("list", fetch))
    await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(first, second, return_exceptions=True)

    assert all(isinstance(result, RuntimeError) for result in results)
    assert not flights.inFlight("list")


@pytest.mark.asyncio
async def test_cancelling_one_waiter_keeps_the_shared_call_alive():
    flights: SingleFlight[int] = SingleFlight()
    release = asyncio.Event()

    async def fetch() -> int:
        await release.wait()
        return 7

    first = asyncio.create_task(flights.do("list", fetch))
    second = asyncio.create_task(flights.do("list", fetch))
    await asyncio.sleep(0)

    first.cancel()
    await asyncio.sleep(0)
    release.set()

    assert await second == 7
    with pytest.raises(asyncio.CancelledError):
        await first
