"""Keyed task group: one task per key, join all, first failure wins."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from typing import TypeVar

T = TypeVar("T")


def _first_leaf(group: BaseExceptionGroup) -> BaseException:
    first = group.exceptions[0]
    while isinstance(first, BaseExceptionGroup):
        first = first.exceptions[0]
    return first


async def gather_keyed(factories: Mapping[str, Callable[[], Awaitable[T]]]) -> dict[str, T]:
    """Run ``factories[key]()`` concurrently for every key.

    Results come back under the same keys, in the input order.  When a task
    fails the remaining ones are cancelled and the first failure is raised
    as-is (not wrapped in an exception group).
    """
    if not factories:
        return {}
    tasks: dict[str, asyncio.Task[T]] = {}
    try:
        async with asyncio.TaskGroup() as group:
            for key, factory in factories.items():
                tasks[key] = group.create_task(_run(factory))
    except BaseExceptionGroup as exc_group:
        raise _first_leaf(exc_group) from None
    return {key: task.result() for key, task in tasks.items()}


async def _run(factory: Callable[[], Awaitable[T]]) -> T:
    return await factory()
