import os
import sys
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

# Ensure project root on sys.path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings are cached on first use; point them at a throwaway database and
# cache directory before anything from the package is imported.
_TMP = tempfile.mkdtemp(prefix="nulish-tests-")
os.environ.setdefault("DATABASE_URI", f"sqlite+aiosqlite:///{_TMP}/api.db")
os.environ.setdefault("DATA_DIR", _TMP)
os.environ.setdefault("SEED_WELCOME_NOTE", "false")
os.environ.setdefault("SAVE_DEBOUNCE_SECONDS", "0.05")

from nulish.core.exceptions import StoreError
from nulish.core.models import Note, Tag
from nulish.storage.base import NoteStore, TagStore


class MemoryNoteStore(NoteStore):
    """In-process note store; set ``fail`` to simulate an outage."""

    def __init__(self) -> None:
        self.rows: Dict[str, Note] = {}
        self.fail = False
        self.upserts = 0

    def _check(self) -> None:
        if self.fail:
            raise StoreError("note store unavailable")

    async def list(self) -> List[Note]:
        self._check()
        return sorted(self.rows.values(), key=lambda n: n.updated_at, reverse=True)

    async def upsert(self, note: Note) -> None:
        self._check()
        self.upserts += 1
        self.rows[note.id] = note.model_copy(deep=True)

    async def delete(self, note_id: str) -> None:
        self._check()
        self.rows.pop(note_id, None)


class MemoryTagStore(TagStore):
    """In-process tag store counting full replacements."""

    def __init__(self) -> None:
        self.tags: List[Tag] = []
        self.fail = False
        self.writes = 0

    async def list(self) -> List[Tag]:
        if self.fail:
            raise StoreError("tag store unavailable")
        return list(self.tags)

    async def replace_all(self, tags: Sequence[Tag]) -> None:
        if self.fail:
            raise StoreError("tag store unavailable")
        self.writes += 1
        self.tags = list(tags)


@pytest.fixture()
def note_store() -> MemoryNoteStore:
    return MemoryNoteStore()


@pytest.fixture()
def tag_store() -> MemoryTagStore:
    return MemoryTagStore()


@pytest.fixture()
def client(note_store, tag_store):
    """FastAPI test client with stores overridden."""

    from apps.api.main import app, get_note_store, get_tag_store

    app.dependency_overrides[get_note_store] = lambda: note_store
    app.dependency_overrides[get_tag_store] = lambda: tag_store

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def make_note(note_id: Optional[str] = None, **fields) -> Note:
    if note_id is not None:
        fields["id"] = note_id
    return Note(**fields)


@pytest.fixture()
def note_factory():
    return make_note
