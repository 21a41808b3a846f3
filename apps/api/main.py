from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from nulish.client import build_repository
from nulish.core.events import EventBus
from nulish.core.exceptions import NotFoundError, StoreError
from nulish.core.models import Note, NoteUpdate, SearchResult, Tag
from nulish.core.settings import get_settings
from nulish.db import SqlNoteStore, SqlTagStore, init_db
from nulish.logging import setup_logging
from nulish.storage.base import NoteStore, TagStore
from nulish.tags import nest_tags, sort_tags, suggest_tags
from nulish.usecases import NoteRepository, Search
from nulish.usecases.seed import seed_welcome_note

_events = EventBus()


# ---------------------------------------------------------------------------
# Dependency factories


def get_events() -> EventBus:
    return _events


def get_note_store() -> NoteStore:
    return SqlNoteStore()


def get_tag_store() -> TagStore:
    return SqlTagStore()


def get_repository(
    notes: NoteStore = Depends(get_note_store),
    tags: TagStore = Depends(get_tag_store),
    events: EventBus = Depends(get_events),
) -> NoteRepository:
    return build_repository(notes, tags, events, get_settings())


def search_uc(repo: NoteRepository = Depends(get_repository)) -> Search:
    return Search(repo)


# ---------------------------------------------------------------------------
# Pydantic schemas


class SaveNoteResponse(BaseModel):
    success: bool = True
    note: Note
    updated_at: datetime


class SuccessResponse(BaseModel):
    success: bool = True


# ---------------------------------------------------------------------------
# FastAPI application


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    setup_logging()
    await init_db()
    if settings.seed_welcome_note:
        repo = build_repository(SqlNoteStore(), SqlTagStore(), _events, settings)
        await seed_welcome_note(repo)
    yield


app = FastAPI(title="Nulish API", lifespan=lifespan)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> PlainTextResponse:
    return PlainTextResponse(str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> PlainTextResponse:
    return PlainTextResponse(str(exc), status_code=status.HTTP_404_NOT_FOUND)


def _missing_id() -> PlainTextResponse:
    return PlainTextResponse("Missing ID", status_code=status.HTTP_400_BAD_REQUEST)


# Routes ---------------------------------------------------------------------


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/api/notes", response_model=List[Note])
async def list_notes(store: NoteStore = Depends(get_note_store)) -> List[Note]:
    return await store.list()


@app.post("/api/notes", response_model=SaveNoteResponse)
async def save_note(
    req: NoteUpdate, repo: NoteRepository = Depends(get_repository)
) -> SaveNoteResponse:
    note = await repo.save(req)
    return SaveNoteResponse(note=note, updated_at=note.updated_at)


@app.put("/api/notes", response_model=SuccessResponse)
async def put_note(note: Note, store: NoteStore = Depends(get_note_store)) -> SuccessResponse:
    """Store a complete note as sent; used by local-first clients to mirror."""
    await store.upsert(note)
    return SuccessResponse()


@app.delete("/api/notes", response_model=SuccessResponse)
async def delete_note(
    id: Optional[str] = Query(None),
    repo: NoteRepository = Depends(get_repository),
) -> Any:
    if not id:
        return _missing_id()
    await repo.delete(id)
    return SuccessResponse()


@app.get("/api/tags", response_model=List[Tag])
async def list_tags(store: TagStore = Depends(get_tag_store)) -> List[Tag]:
    return await store.list()


@app.post("/api/tags", response_model=SuccessResponse)
async def replace_tags(
    tags: List[Tag], store: TagStore = Depends(get_tag_store)
) -> SuccessResponse:
    await store.replace_all(tags)
    return SuccessResponse()


@app.get("/api/tags/tree")
async def tag_tree(store: TagStore = Depends(get_tag_store)) -> List[Dict[str, Any]]:
    return nest_tags(await store.list())


@app.get("/api/tags/suggest")
async def tag_suggestions(
    q: str = Query(""),
    limit: int = Query(10, ge=1, le=50),
    store: TagStore = Depends(get_tag_store),
) -> List[str]:
    return suggest_tags(sort_tags(await store.list()), q, limit)


@app.get("/api/public/notes", response_model=Note)
async def public_note(
    id: Optional[str] = Query(None),
    store: NoteStore = Depends(get_note_store),
) -> Any:
    if not id:
        return _missing_id()
    note = await store.get_published(id)
    if note is None or not note.is_published:
        raise NotFoundError("Note not found or not published")
    return note


@app.get("/api/search", response_model=List[SearchResult])
async def search(
    q: str = Query(""),
    tag: Optional[str] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    uc: Search = Depends(search_uc),
) -> List[SearchResult]:
    return await uc(q, tag, limit)


__all__ = ["app"]
