from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from nulish.core.debounce import Debouncer
from nulish.core.events import ChangeEvent, EventBus
from nulish.core.exceptions import StoreError
from nulish.core.models import Note, NoteUpdate, new_id, utcnow
from nulish.storage.base import NoteStore
from nulish.sync.cache import CollectionCache

from .tags import RebuildTags

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled"

PartialNote = Union[NoteUpdate, Dict[str, Any]]


class NoteRepository:
    """CRUD surface for notes; every save re-derives the tag tree.

    Reads go through a short-lived :class:`CollectionCache` which every
    write invalidates. Store failures on read are logged and turn into an
    empty result; failures on write propagate to the caller.
    """

    def __init__(
        self,
        notes: NoteStore,
        rebuild_tags: RebuildTags,
        events: EventBus | None = None,
        *,
        debounce_seconds: float = 1.0,
        rebuild_on_delete: bool = False,
        cache_max_age: float | None = 0.1,
    ) -> None:
        self.notes = notes
        self.rebuild_tags = rebuild_tags
        self.events = events
        self.rebuild_on_delete = rebuild_on_delete
        self.cache: CollectionCache[Note] = CollectionCache(max_age=cache_max_age)
        self.debouncer = Debouncer(debounce_seconds, self.save)

    # ------------------------------------------------------------------
    # reads
    async def list(self) -> List[Note]:
        try:
            return await self.cache.get_or_fetch(self.notes.list)
        except StoreError as exc:
            logger.error("failed to list notes: %s", exc)
            return []

    async def get(self, note_id: str) -> Optional[Note]:
        for note in await self.list():
            if note.id == note_id:
                return note
        return None

    async def get_published(self, note_id: str) -> Optional[Note]:
        return await self.notes.get_published(note_id)

    # ------------------------------------------------------------------
    # writes
    async def save(self, partial: PartialNote) -> Note:
        """Create or update a note from the fields present in ``partial``.

        A known ``id`` merges into that note and bumps ``updated_at``; an
        unknown or missing ``id`` creates a new note with a fresh id.
        """
        if not isinstance(partial, NoteUpdate):
            partial = NoteUpdate.model_validate(partial)
        fields = partial.model_dump(exclude_unset=True, exclude_none=True, exclude={"id"})

        existing = await self.get(partial.id) if partial.id else None
        now = utcnow()
        if existing is not None:
            note = existing.model_copy(update=fields)
            note.created_at = existing.created_at
            note.updated_at = max(now, existing.updated_at)
        else:
            fields.setdefault("title", "")
            if not fields["title"].strip():
                fields["title"] = DEFAULT_TITLE
            note = Note(id=new_id(), updated_at=now, created_at=now, **fields)

        await self.notes.upsert(note)
        self.cache.invalidate()
        logger.info("note saved", extra={"note_id": note.id, "created": existing is None})
        self._publish(ChangeEvent.NOTES_CHANGED, note)
        await self._rebuild()
        return note

    def save_later(self, partial: PartialNote, *, draft_key: str | None = None) -> None:
        """Debounced :meth:`save`; only the last call per note fires.

        Calls are grouped by note id. A note that has no id yet is grouped by
        ``draft_key`` (one per open editor); without either, the call gets a
        timer of its own and never replaces another pending draft.
        """
        if not isinstance(partial, NoteUpdate):
            partial = NoteUpdate.model_validate(partial)
        key = partial.id or draft_key or f"draft:{new_id()}"
        self.debouncer.call(key, partial)

    async def flush(self) -> None:
        await self.debouncer.flush()

    async def delete(self, note_id: str) -> None:
        await self.notes.delete(note_id)
        self.cache.invalidate()
        logger.info("note deleted", extra={"note_id": note_id})
        self._publish(ChangeEvent.NOTES_CHANGED, note_id)
        if self.rebuild_on_delete:
            await self._rebuild()

    # ------------------------------------------------------------------
    # helpers
    async def _rebuild(self) -> None:
        try:
            await self.rebuild_tags()
        except StoreError as exc:
            # the note itself is stored; tags catch up on the next save
            logger.error("tag rebuild failed: %s", exc)

    def _publish(self, event: ChangeEvent, payload: Any) -> None:
        if self.events is not None:
            self.events.publish(event, payload)


__all__ = ["NoteRepository", "PartialNote", "DEFAULT_TITLE"]
