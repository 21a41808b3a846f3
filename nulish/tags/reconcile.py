"""Decide whether a rebuilt tag set has to be persisted and announced."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, List, Literal

from nulish.core.events import ChangeEvent, EventBus
from nulish.core.models import Tag

from .tree import tag_paths

if TYPE_CHECKING:
    from nulish.storage.base import TagStore

logger = logging.getLogger(__name__)

FingerprintMode = Literal["names", "paths"]


def fingerprint(tags: Iterable[Tag], mode: FingerprintMode = "names") -> List[str]:
    """Cheap comparison key for a tag set.

    ``names`` compares the sorted tag names only, so a tag that moves to a
    different parent under the same name is not noticed. ``paths`` compares
    full slash-delimited paths instead.
    """
    tags = list(tags)
    if mode == "paths":
        return sorted(tag_paths(tags).values())
    return sorted(t.name for t in tags)


class ReconciliationPolicy:
    """Persist and announce a rebuilt tag set only when it changed."""

    def __init__(
        self,
        store: TagStore,
        events: EventBus | None = None,
        mode: FingerprintMode = "names",
    ) -> None:
        self.store = store
        self.events = events
        self.mode = mode

    def has_changed(self, new: Iterable[Tag], previous: Iterable[Tag]) -> bool:
        return fingerprint(new, self.mode) != fingerprint(previous, self.mode)

    async def reconcile(self, new: List[Tag], previous: List[Tag]) -> bool:
        """Replace the stored tag collection with ``new`` if it differs.

        Returns True when a write happened. The store error, if any,
        propagates and no notification is sent.
        """
        if not self.has_changed(new, previous):
            logger.debug("tag set unchanged (%d tags)", len(new))
            return False
        await self.store.replace_all(new)
        logger.info(
            "tag set replaced", extra={"tags_before": len(previous), "tags_after": len(new)}
        )
        if self.events is not None:
            self.events.publish(ChangeEvent.TAGS_CHANGED, new)
        return True


__all__ = ["FingerprintMode", "fingerprint", "ReconciliationPolicy"]
