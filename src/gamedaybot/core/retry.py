"""Bounded polling with a fixed interval.

``RetryPolicy`` runs an attempt function against some state until the state
reports done or the attempt budget runs out, then calls ``on_exhausted``.
Exceptions from an attempt propagate to the caller; the policy does not
decide which failures are terminal.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

S = TypeVar("S")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy(Generic[S]):
    interval_seconds: float
    max_attempts: int
    is_done: Callable[[S], bool]
    on_exhausted: Callable[[S], Awaitable[None]]

    async def run(
        self,
        state: S,
        attempt: Callable[[S, int], Awaitable[None]],
        sleep: Sleep = asyncio.sleep,
    ) -> bool:
        """Poll until done. Returns True if done, False if the budget ran out."""
        for number in range(1, self.max_attempts + 1):
            if self.is_done(state):
                return True
            await attempt(state, number)
            if self.is_done(state):
                return True
            if number < self.max_attempts:
                await sleep(self.interval_seconds)
        await self.on_exhausted(state)
        return False
