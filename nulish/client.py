"""Local-first client wiring: local cache, remote API and the tag engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from nulish.core.events import EventBus
from nulish.core.exceptions import StoreError
from nulish.core.models import Note
from nulish.core.settings import Settings, get_settings
from nulish.storage import HttpNoteStore, HttpTagStore, LocalStore, NoteStore, RemoteClient, TagStore
from nulish.sync import LocalFirstNoteStore, LocalFirstTagStore, SyncOrchestrator
from nulish.tags import ReconciliationPolicy
from nulish.usecases import NoteRepository, RebuildTags, Search
from nulish.usecases.seed import seed_welcome_note

logger = logging.getLogger(__name__)


@dataclass
class NotesClient:
    events: EventBus
    sync: SyncOrchestrator
    notes: NoteRepository
    search: Search

    async def seed_welcome_note(self) -> Optional[Note]:
        """Save the welcome note on a first run, when no store has any notes."""
        if self.sync.local.load_notes():
            return None
        try:
            if await self.sync.remote_notes.list():
                return None
        except StoreError as exc:
            # offline: the remote may still hold notes from another device
            logger.warning("not seeding, remote notes unavailable: %s", exc)
            return None
        return await seed_welcome_note(self.notes)

    async def aclose(self) -> None:
        await self.notes.flush()
        await self.sync.drain()
        await self.events.wait()


def build_repository(
    notes: NoteStore,
    tags: TagStore,
    events: EventBus,
    settings: Settings | None = None,
) -> NoteRepository:
    """Note repository with tag rebuild configured from ``settings``."""
    settings = settings or get_settings()
    policy = ReconciliationPolicy(tags, events, mode=settings.tag_fingerprint)
    rebuild = RebuildTags(notes, tags, policy, case_sensitive=settings.tag_case_sensitive)
    return NoteRepository(
        notes,
        rebuild,
        events,
        debounce_seconds=settings.save_debounce_seconds,
        rebuild_on_delete=settings.rebuild_tags_on_delete,
    )


def build_client(
    settings: Settings | None = None,
    *,
    remote_notes: NoteStore | None = None,
    remote_tags: TagStore | None = None,
) -> NotesClient:
    """Assemble a local-first client.

    The remote stores default to the HTTP API at ``settings.remote_url``.
    """
    settings = settings or get_settings()
    if remote_notes is None or remote_tags is None:
        remote = RemoteClient(settings.remote_url, timeout=settings.remote_timeout)
        remote_notes = remote_notes or HttpNoteStore(remote)
        remote_tags = remote_tags or HttpTagStore(remote)

    events = EventBus()
    sync = SyncOrchestrator(LocalStore(settings.data_dir), remote_notes, remote_tags, events)
    repo = build_repository(LocalFirstNoteStore(sync), LocalFirstTagStore(sync), events, settings)
    return NotesClient(events=events, sync=sync, notes=repo, search=Search(repo))


__all__ = ["NotesClient", "build_client", "build_repository"]
