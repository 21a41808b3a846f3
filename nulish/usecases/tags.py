from __future__ import annotations

import logging
from typing import List, Optional

from nulish.core.exceptions import StoreError
from nulish.core.models import Note, Tag
from nulish.storage.base import NoteStore, TagStore
from nulish.tags import ReconciliationPolicy, build_tag_tree

logger = logging.getLogger(__name__)


class RebuildTags:
    """Re-derive the tag tree from every note and reconcile it with the store."""

    def __init__(
        self,
        notes: NoteStore,
        tags: TagStore,
        policy: ReconciliationPolicy,
        *,
        case_sensitive: bool = True,
    ) -> None:
        self.notes = notes
        self.tags = tags
        self.policy = policy
        self.case_sensitive = case_sensitive

    # ------------------------------------------------------------------
    async def __call__(self, notes: Optional[List[Note]] = None) -> bool:
        """Return True when the stored tag set was replaced.

        Without a readable note collection nothing is rebuilt: an empty
        rebuild would wipe every stored tag.
        """
        if notes is None:
            try:
                notes = await self.notes.list()
            except StoreError as exc:
                logger.error("tag rebuild skipped, notes unavailable: %s", exc)
                return False

        previous = await self.current_tags()
        rebuilt = build_tag_tree(notes, previous, case_sensitive=self.case_sensitive)
        logger.debug("rebuilt %d tags from %d notes", len(rebuilt), len(notes))
        return await self.policy.reconcile(rebuilt, previous)

    async def current_tags(self) -> List[Tag]:
        try:
            return await self.tags.list()
        except StoreError as exc:
            logger.error("reading stored tags failed: %s", exc)
            return []


__all__ = ["RebuildTags"]
