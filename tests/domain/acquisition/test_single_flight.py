from __future__ import annotations

import asyncio

import pytest

from dossier.domain.acquisition.single_flight import KeyedLocks, SingleFlight


def test_concurrent_callers_share_one_invocation() -> None:
    flights: SingleFlight[int] = SingleFlight()
    calls = 0

    async def work() -> int:
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        return 42

    async def scenario() -> list[int]:
        return await asyncio.gather(*(flights.do("key", work) for _ in range(10)))

    assert asyncio.run(scenario()) == [42] * 10
    assert calls == 1
    assert not flights.in_flight("key")


def test_key_is_released_after_failure() -> None:
    flights: SingleFlight[int] = SingleFlight()
    attempts = 0

    async def work() -> int:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise RuntimeError("first attempt fails")
        return attempts

    async def scenario() -> int:
        with pytest.raises(RuntimeError):
            await flights.do("key", work)
        return await flights.do("key", work)

    assert asyncio.run(scenario()) == 2


def test_cancelled_caller_does_not_abort_shared_work() -> None:
    flights: SingleFlight[str] = SingleFlight()

    async def work() -> str:
        await asyncio.sleep(0.02)
        return "done"

    async def scenario() -> str:
        impatient = asyncio.ensure_future(flights.do("key", work))
        patient = asyncio.ensure_future(flights.do("key", work))
        await asyncio.sleep(0)
        impatient.cancel()
        return await patient

    assert asyncio.run(scenario()) == "done"


def test_keyed_locks_serialise_same_key_only() -> None:
    locks = KeyedLocks()
    events: list[str] = []

    async def worker(key: str, name: str) -> None:
        async with locks.hold(key):
            events.append(f"{name}-start")
            await asyncio.sleep(0.01)
            events.append(f"{name}-end")

    async def scenario() -> None:
        await asyncio.gather(worker("a", "first"), worker("a", "second"))

    asyncio.run(scenario())

    assert events == ["first-start", "first-end", "second-start", "second-end"]
    assert locks._locks == {}  # noqa: SLF001
