"""Bounded fixed-interval polling."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to probe and how long to wait between probes."""

    max_attempts: int
    interval_seconds: float

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")

    @property
    def budget_seconds(self) -> float:
        return self.max_attempts * self.interval_seconds


@dataclass(frozen=True)
class PollOutcome(Generic[T]):
    """Result of ``poll_until``: whether the predicate held and on which attempt."""

    succeeded: bool
    attempts: int
    value: T | None = None


async def poll_until(
    probe: Callable[[int], Awaitable[T]],
    predicate: Callable[[T], bool],
    policy: RetryPolicy,
) -> PollOutcome[T]:
    """Call ``probe`` until ``predicate`` accepts its value or attempts run out.

    ``probe`` receives the 1-based attempt number. Probing stops on the
    first accepted value. There is no sleep after the final attempt, so a
    run that never succeeds waits ``(max_attempts - 1) * interval_seconds``.
    Cancelling the awaiting task interrupts the sleep.
    """
    value: T | None = None
    for attempt in range(1, policy.max_attempts + 1):
        value = await probe(attempt)
        if predicate(value):
            return PollOutcome(succeeded=True, attempts=attempt, value=value)

        if attempt < policy.max_attempts:
            await asyncio.sleep(policy.interval_seconds)

    return PollOutcome(succeeded=False, attempts=policy.max_attempts, value=value)
