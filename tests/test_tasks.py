from __future__ import annotations

import asyncio

import pytest

from pyhydrate._tasks import gather_keyed


@pytest.mark.asyncio
async def test_results_keep_input_keys_and_order() -> None:
    async def _value(value: int, delay: float) -> int:
        await asyncio.sleep(delay)
        return value

    results = await gather_keyed(
        {
            "slow": lambda: _value(1, 0.02),
            "fast": lambda: _value(2, 0.0),
        }
    )

    assert list(results) == ["slow", "fast"]
    assert results == {"slow": 1, "fast": 2}


@pytest.mark.asyncio
async def test_empty_mapping() -> None:
    assert await gather_keyed({}) == {}


@pytest.mark.asyncio
async def test_first_error_is_raised_unwrapped_and_others_cancelled() -> None:
    cancelled = asyncio.Event()

    async def _slow() -> int:
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise
        return 1

    async def _fail() -> int:
        await asyncio.sleep(0)
        raise KeyError("boom")

    with pytest.raises(KeyError):
        await gather_keyed({"slow": _slow, "fail": _fail})

    assert cancelled.is_set()
