"""
Scheduling primitives for job watches.

The poller never touches timers directly; it sleeps and spawns through a
Scheduler so tests can run watches without wall-clock delays.
"""

import asyncio
from typing import Any, Coroutine, List


class CancellationToken:
    """One-way cancellation flag shared between a watch and its owner."""

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class Scheduler:
    """Default scheduler backed by the running asyncio loop."""

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> "asyncio.Task[Any]":
        return asyncio.get_running_loop().create_task(coro)


class ImmediateScheduler(Scheduler):
    """
    Scheduler that yields instead of sleeping.

    Requested delays are recorded in `delays` so callers can assert on the
    cadence a watch asked for.
    """

    def __init__(self):
        self.delays: List[float] = []

    async def sleep(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)
