from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Hashable, Tuple

logger = logging.getLogger(__name__)


class Debouncer:
    """Trailing debounce keyed by an arbitrary hashable (usually a note id).

    Every :meth:`call` for a key restarts that key's timer and replaces its
    arguments, so a burst of calls collapses into one invocation with the
    last arguments once ``delay`` seconds pass without a new call.
    """

    def __init__(self, delay: float, callback: Callable[..., Awaitable[Any]]) -> None:
        self.delay = delay
        self.callback = callback
        self._pending: Dict[Hashable, Tuple[asyncio.Task, tuple]] = {}

    @property
    def pending(self) -> int:
        return len(self._pending)

    def call(self, key: Hashable, *args: Any) -> None:
        entry = self._pending.pop(key, None)
        if entry is not None:
            entry[0].cancel()
        task = asyncio.get_running_loop().create_task(self._fire_later(key, args))
        self._pending[key] = (task, args)

    async def flush(self) -> None:
        """Run every pending invocation now instead of waiting for its timer."""
        pending, self._pending = self._pending, {}
        for task, args in pending.values():
            task.cancel()
            await self._run(args)

    def cancel(self) -> None:
        pending, self._pending = self._pending, {}
        for task, _ in pending.values():
            task.cancel()

    # ------------------------------------------------------------------
    async def _fire_later(self, key: Hashable, args: tuple) -> None:
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:  # superseded by a newer call
            return
        self._pending.pop(key, None)
        await self._run(args)

    async def _run(self, args: tuple) -> None:
        try:
            await self.callback(*args)
        except Exception:
            logger.exception("debounced call failed")


__all__ = ["Debouncer"]
