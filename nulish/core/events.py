"""Typed change notifications for cross-component refresh.

Components that cache notes or tags (sidebar, tag suggestions, sync
mirrors) subscribe to a :class:`ChangeEvent` and are called whenever the
corresponding collection changed structurally.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, List, Set

logger = logging.getLogger(__name__)


class ChangeEvent(str, Enum):
    NOTES_CHANGED = "notes-changed"
    TAGS_CHANGED = "tags-changed"


Listener = Callable[[ChangeEvent, Any], Any]


class EventBus:
    """Minimal observer registry.

    Listeners may be plain callables or coroutine functions; coroutines are
    scheduled on the running loop. A failing listener is logged and does not
    stop delivery to the others.
    """

    def __init__(self) -> None:
        self._listeners: Dict[ChangeEvent, List[Listener]] = defaultdict(list)
        self._tasks: Set[asyncio.Future] = set()

    def subscribe(self, event: ChangeEvent, listener: Listener) -> Callable[[], None]:
        self._listeners[event].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[event]:
                self._listeners[event].remove(listener)

        return unsubscribe

    def publish(self, event: ChangeEvent, payload: Any = None) -> None:
        logger.debug("publish %s", event.value)
        for listener in list(self._listeners[event]):
            try:
                result = listener(event, payload)
                if inspect.isawaitable(result):
                    task = asyncio.ensure_future(result)
                    self._tasks.add(task)
                    task.add_done_callback(partial(self._finished, event))
            except Exception:
                logger.exception("listener for %s failed", event.value)

    async def wait(self) -> None:
        """Wait for coroutine listeners that are still running."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _finished(self, event: ChangeEvent, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "listener for %s failed", event.value, exc_info=(type(exc), exc, exc.__traceback__)
            )


__all__ = ["ChangeEvent", "EventBus", "Listener"]
