from __future__ import annotations

import time
from typing import Awaitable, Callable, Generic, List, Optional, TypeVar

T = TypeVar("T")


class CollectionCache(Generic[T]):
    """Cached copy of one collection with explicit staleness rules.

    The cache is fresh when it holds a value fetched under the current
    ``generation`` and, if ``max_age`` is set, younger than ``max_age``
    seconds. :meth:`invalidate` bumps the generation, so a fetch that was
    started before the invalidation cannot repopulate the cache with data
    that is already known to be stale.
    """

    def __init__(
        self,
        max_age: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_age = max_age
        self.clock = clock
        self.generation = 0
        self._value: Optional[List[T]] = None
        self._fetched_at: float = 0.0
        self._fetched_generation = -1

    def is_fresh(self) -> bool:
        if self._value is None or self._fetched_generation != self.generation:
            return False
        if self.max_age is None:
            return True
        return self.clock() - self._fetched_at < self.max_age

    def peek(self) -> Optional[List[T]]:
        return self._value

    def set(self, value: List[T]) -> None:
        self._value = list(value)
        self._fetched_at = self.clock()
        self._fetched_generation = self.generation

    def invalidate(self) -> None:
        self.generation += 1
        self._value = None

    async def get_or_fetch(self, fetch: Callable[[], Awaitable[List[T]]]) -> List[T]:
        if self.is_fresh():
            return list(self._value or [])
        started = self.generation
        value = await fetch()
        if started == self.generation:
            self.set(value)
        return list(value)


__all__ = ["CollectionCache"]
