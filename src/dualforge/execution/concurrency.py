"""Scatter/gather helper over asyncio.TaskGroup."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from typing import TypeVar

T = TypeVar("T")


async def gather_all(awaitables: Iterable[Awaitable[T]]) -> list[T]:
    """Run every awaitable as its own task and return results in input order.

    The first failure cancels the remaining tasks and is re-raised as-is
    rather than wrapped in an ExceptionGroup.
    """

    async def _await(aw: Awaitable[T]) -> T:
        return await aw

    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(_await(aw)) for aw in awaitables]
    except ExceptionGroup as group:
        first = group.exceptions[0]
        raise first from first.__cause__
    return [task.result() for task in tasks]
