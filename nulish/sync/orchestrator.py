"""Local-first mirroring of notes and tags to a remote store.

Reads are served from the local cache and trigger a background refresh;
writes land in the local cache immediately and are copied to the remote
store in the background. Remote failures are logged, never raised to the
caller of a local operation.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Dict, List, Optional, Sequence, Set

from nulish.core.events import ChangeEvent, EventBus
from nulish.core.models import Note, Tag
from nulish.storage.base import NoteStore, TagStore
from nulish.storage.local_store import NOTES, TAGS, LocalStore

logger = logging.getLogger(__name__)

ALL_TAGS = "*"


class SyncOutcome(str, Enum):
    PUSHED = "pushed"  # remote was empty, local records were uploaded
    PULLED = "pulled"  # remote differed, local cache overwritten
    UNCHANGED = "unchanged"
    FAILED = "failed"


def _snapshot(items: Sequence[Any]) -> List[Dict[str, Any]]:
    """JSON-comparable form of a collection, independent of row order."""
    return [i.model_dump(mode="json") for i in sorted(items, key=lambda i: i.id)]


class SyncOrchestrator:
    """Keep the :class:`LocalStore` and a remote note/tag store in step.

    At most one refresh per collection runs at a time; a read that arrives
    while one is in flight reuses it.
    """

    def __init__(
        self,
        local: LocalStore,
        remote_notes: NoteStore,
        remote_tags: TagStore,
        events: EventBus | None = None,
    ) -> None:
        self.local = local
        self.remote_notes = remote_notes
        self.remote_tags = remote_tags
        self.events = events
        self._refreshing: Dict[str, asyncio.Task] = {}
        self._mirrors: Dict[str, Set[asyncio.Task]] = {NOTES: set(), TAGS: set()}
        # note ids (or ALL_TAGS) whose last remote write failed; the local
        # copy wins over the remote one until a retry succeeds
        self._unsynced: Dict[str, Set[str]] = {NOTES: set(), TAGS: set()}

    # ------------------------------------------------------------------
    # reads
    async def get_notes(self) -> List[Note]:
        notes = self.local.load_notes()
        self.schedule_refresh(NOTES)
        return notes

    async def get_tags(self) -> List[Tag]:
        tags = self.local.load_tags()
        self.schedule_refresh(TAGS)
        return tags

    def schedule_refresh(self, kind: str) -> asyncio.Task:
        task = self._refreshing.get(kind)
        if task is not None and not task.done():
            return task
        task = asyncio.get_running_loop().create_task(self.refresh(kind))
        self._refreshing[kind] = task
        return task

    async def refresh(self, kind: str) -> SyncOutcome:
        """Run one sync cycle for ``kind`` (``notes`` or ``tags``)."""
        if kind not in self._mirrors:
            raise ValueError(f"unknown collection {kind!r}")
        try:
            await self._settle(kind)
            if kind == NOTES:
                return await self._refresh_notes()
            return await self._refresh_tags()
        except Exception as exc:
            logger.warning("refresh of %s failed: %s", kind, exc)
            return SyncOutcome.FAILED

    # ------------------------------------------------------------------
    # writes
    def save_note(self, note: Note) -> None:
        self.local.upsert_note(note)
        self._mirror(NOTES, note.id, self.remote_notes.upsert(note), f"upsert note {note.id}")

    def delete_note(self, note_id: str) -> None:
        self.local.delete_note(note_id)
        self._mirror(NOTES, note_id, self.remote_notes.delete(note_id), f"delete note {note_id}")

    def replace_tags(self, tags: Sequence[Tag]) -> None:
        tags = list(tags)
        self.local.save_tags(tags)
        self._mirror(TAGS, ALL_TAGS, self.remote_tags.replace_all(tags), f"replace {len(tags)} tags")

    async def drain(self) -> None:
        """Wait for every background mirror and refresh task to finish."""
        while True:
            pending = [t for group in self._mirrors.values() for t in group]
            pending += [t for t in self._refreshing.values() if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # helpers
    async def _refresh_notes(self) -> SyncOutcome:
        local = self.local.load_notes()
        await self._retry_notes(local)
        remote = await self.remote_notes.list()
        if not remote:
            if not local:
                return SyncOutcome.UNCHANGED
            for note in local:
                await self.remote_notes.upsert(note)
            self._unsynced[NOTES].clear()
            logger.info("pushed local notes to empty remote", extra={"count": len(local)})
            return SyncOutcome.PUSHED
        unsynced = self._unsynced[NOTES]
        if unsynced:
            kept = [n for n in local if n.id in unsynced]
            remote = [n for n in remote if n.id not in unsynced] + kept
        if _snapshot(remote) == _snapshot(local):
            return SyncOutcome.UNCHANGED
        self.local.save_notes(remote)
        logger.info("pulled remote notes", extra={"count": len(remote)})
        self._publish(ChangeEvent.NOTES_CHANGED, remote)
        return SyncOutcome.PULLED

    async def _refresh_tags(self) -> SyncOutcome:
        local = self.local.load_tags()
        if ALL_TAGS in self._unsynced[TAGS]:
            await self._best_effort(
                TAGS, ALL_TAGS, self.remote_tags.replace_all(local), "retry tag replace"
            )
            if ALL_TAGS in self._unsynced[TAGS]:
                return SyncOutcome.FAILED
        remote = await self.remote_tags.list()
        if not remote:
            if not local:
                return SyncOutcome.UNCHANGED
            await self.remote_tags.replace_all(local)
            logger.info("pushed local tags to empty remote", extra={"count": len(local)})
            return SyncOutcome.PUSHED
        if _snapshot(remote) == _snapshot(local):
            return SyncOutcome.UNCHANGED
        self.local.save_tags(remote)
        logger.info("pulled remote tags", extra={"count": len(remote)})
        self._publish(ChangeEvent.TAGS_CHANGED, remote)
        return SyncOutcome.PULLED

    def _mirror(self, kind: str, key: str, call: Awaitable[None], what: str) -> None:
        task = asyncio.ensure_future(self._best_effort(kind, key, call, what))
        group = self._mirrors[kind]
        group.add(task)
        task.add_done_callback(group.discard)

    async def _best_effort(self, kind: str, key: str, call: Awaitable[None], what: str) -> None:
        try:
            await call
        except Exception as exc:
            self._unsynced[kind].add(key)
            logger.warning("remote %s failed, keeping local copy: %s", what, exc)
        else:
            self._unsynced[kind].discard(key)

    async def _retry_notes(self, local: Sequence[Note]) -> None:
        by_id = {n.id: n for n in local}
        for note_id in sorted(self._unsynced[NOTES]):
            note = by_id.get(note_id)
            if note is None:
                call = self.remote_notes.delete(note_id)
            else:
                call = self.remote_notes.upsert(note)
            await self._best_effort(NOTES, note_id, call, f"retry note {note_id}")

    async def _settle(self, kind: str) -> None:
        # Local writes that are still on their way must reach the remote
        # before it is compared with the cache.
        pending = list(self._mirrors.get(kind, ()))
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def _publish(self, event: ChangeEvent, payload: Optional[Any]) -> None:
        if self.events is not None:
            self.events.publish(event, payload)


class LocalFirstNoteStore(NoteStore):
    """:class:`NoteStore` view of a :class:`SyncOrchestrator`."""

    def __init__(self, sync: SyncOrchestrator) -> None:
        self.sync = sync

    async def list(self) -> List[Note]:
        return await self.sync.get_notes()

    async def upsert(self, note: Note) -> None:
        self.sync.save_note(note)

    async def delete(self, note_id: str) -> None:
        self.sync.delete_note(note_id)


class LocalFirstTagStore(TagStore):
    """:class:`TagStore` view of a :class:`SyncOrchestrator`."""

    def __init__(self, sync: SyncOrchestrator) -> None:
        self.sync = sync

    async def list(self) -> List[Tag]:
        return await self.sync.get_tags()

    async def replace_all(self, tags: Sequence[Tag]) -> None:
        self.sync.replace_tags(tags)


__all__ = ["SyncOutcome", "SyncOrchestrator", "LocalFirstNoteStore", "LocalFirstTagStore"]
