from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from nulish.core.models import Note, Tag


class NoteStore(ABC):
    """Abstract persistence interface for notes."""

    @abstractmethod
    async def list(self) -> List[Note]:
        """Return every note, most recently updated first."""

    @abstractmethod
    async def upsert(self, note: Note) -> None:
        """Insert or fully replace the note with ``note.id``.

        Every column is replaced, ``created_at`` included; callers that want
        to keep the original creation time must send it back.
        """

    @abstractmethod
    async def delete(self, note_id: str) -> None:
        """Remove the note; deleting an unknown id is not an error."""

    async def get_published(self, note_id: str) -> Optional[Note]:
        """Return the note only when it is flagged published."""
        for note in await self.list():
            if note.id == note_id:
                return note if note.is_published else None
        return None


class TagStore(ABC):
    """Abstract persistence interface for the derived tag set."""

    @abstractmethod
    async def list(self) -> List[Tag]:
        """Return every stored tag, oldest first."""

    @abstractmethod
    async def replace_all(self, tags: Sequence[Tag]) -> None:
        """Make ``tags`` the entire stored tag collection."""


__all__ = ["NoteStore", "TagStore"]
