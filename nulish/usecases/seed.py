from __future__ import annotations

import logging
from typing import Optional

from nulish.core.exceptions import StoreError
from nulish.core.models import Note, NoteUpdate

from .notes import NoteRepository

logger = logging.getLogger(__name__)

WELCOME_NOTE = NoteUpdate(
    title="Welcome to Nulish",
    content=(
        "# Welcome to Nulish\n\n"
        "Nulish is built for focus.\n\n"
        "- Write in **markdown**.\n"
        "- Tag inline with #ideas or nest tags like #work/planning.\n"
        "- Tags from every note show up in the sidebar.\n"
        "- Publish a note to share it read-only.\n\n"
        "Happy writing! #nulish/getting_started"
    ),
    is_pinned=True,
)


async def seed_welcome_note(repo: NoteRepository) -> Optional[Note]:
    """Save the welcome note into an empty store; return it when created."""
    try:
        existing = await repo.notes.list()
    except StoreError as exc:
        logger.warning("not seeding, note store unavailable: %s", exc)
        return None
    if existing:
        return None
    note = await repo.save(WELCOME_NOTE.model_copy())
    logger.info("seeded welcome note", extra={"note_id": note.id})
    return note


__all__ = ["WELCOME_NOTE", "seed_welcome_note"]
