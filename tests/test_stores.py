import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker

from nulish.core.exceptions import StoreError
from nulish.core.models import Note, Tag
from nulish.db import SqlNoteStore, SqlTagStore, init_db, make_engine, models
from nulish.storage import HttpNoteStore, HttpTagStore, LocalStore, RemoteClient
from nulish.storage.local_store import NOTES, TAGS

WHEN = datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)


# ----------------------------------------------------------------------
# local cache


def test_local_store_uses_namespaced_keys(tmp_path: Path):
    store = LocalStore(tmp_path)
    store.save_notes([Note(id="n1", title="t")])
    assert store.key(NOTES) == "nulish:notes"
    assert json.loads(store.path_for(NOTES).read_text())[0]["id"] == "n1"
    assert store.load_tags() == []


def test_local_store_defaults_missing_fields(tmp_path: Path):
    store = LocalStore(tmp_path)
    store.write_raw(NOTES, [{"id": "old", "title": "From an older version"}])
    store.write_raw(TAGS, [{"id": "t", "name": "a"}, {"id": "broken"}, "junk"])

    (note,) = store.load_notes()
    assert note.tags == [] and note.is_published is False and note.content == ""
    assert [t.id for t in store.load_tags()] == ["t"]


def test_local_store_unreadable_file_reads_empty(tmp_path: Path):
    store = LocalStore(tmp_path)
    store.path_for(NOTES).write_text("{not json", encoding="utf-8")
    assert store.load_notes() == []


def test_local_store_upsert_and_delete(tmp_path: Path):
    store = LocalStore(tmp_path)
    store.upsert_note(Note(id="a", title="1"))
    store.upsert_note(Note(id="b"))
    store.upsert_note(Note(id="a", title="2"))
    assert [(n.id, n.title) for n in store.load_notes()] == [("a", "2"), ("b", "")]
    store.delete_note("a")
    assert [n.id for n in store.load_notes()] == ["b"]


# ----------------------------------------------------------------------
# relational stores


def test_sql_stores_round_trip(tmp_path: Path):
    async def run():
        engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'notes.db'}")
        await init_db(engine)
        sessionmaker = async_sessionmaker(engine, expire_on_commit=False)
        notes, tags = SqlNoteStore(sessionmaker), SqlTagStore(sessionmaker)

        draft = Note(id="d", title="draft", tags=["a/b"], updated_at=WHEN, created_at=WHEN)
        public = Note(id="p", title="public", is_published=True, updated_at=WHEN, created_at=WHEN)
        await notes.upsert(draft)
        await notes.upsert(public)
        await notes.upsert(draft.model_copy(update={"title": "draft v2"}))

        listed = await notes.list()
        published = await notes.get_published("p")
        hidden = await notes.get_published("d")

        await tags.replace_all([Tag(id="1", name="a", created_at=WHEN)])
        await tags.replace_all(
            [Tag(id="2", name="b", created_at=WHEN), Tag(id="3", name="c", parent_id="2", created_at=WHEN)]
        )
        stored_tags = await tags.list()

        await notes.delete("d")
        await notes.delete("missing")
        remaining = await notes.list()
        await engine.dispose()
        return listed, published, hidden, stored_tags, remaining

    listed, published, hidden, stored_tags, remaining = asyncio.run(run())

    assert sorted((n.id, n.title) for n in listed) == [("d", "draft v2"), ("p", "public")]
    assert next(n for n in listed if n.id == "d").tags == ["a/b"]
    assert listed[0].updated_at == WHEN
    assert published is not None and published.id == "p"
    assert hidden is None
    assert sorted((t.id, t.parent_id) for t in stored_tags) == [("2", None), ("3", "2")]
    assert [n.id for n in remaining] == ["p"]


def test_sql_malformed_tags_column_reads_as_no_tags(tmp_path: Path):
    async def run():
        engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'notes.db'}")
        await init_db(engine)
        sessionmaker = async_sessionmaker(engine, expire_on_commit=False)
        async with sessionmaker() as session:
            session.add(models.Note(id="bad", title="x", content="#still", tags="{oops"))
            await session.commit()
        result = await SqlNoteStore(sessionmaker).list()
        await engine.dispose()
        return result

    (note,) = asyncio.run(run())
    assert note.tags == []
    assert note.content == "#still"


# ----------------------------------------------------------------------
# remote stores


def _remote(handler) -> RemoteClient:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://api")
    return RemoteClient("http://api", client=client)


def test_http_stores_speak_the_api():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, request.url.params.get("id")))
        if request.method == "GET" and request.url.path == "/api/notes":
            return httpx.Response(200, json=[{"id": "n1", "title": "t", "tags": '["x"]'}])
        if request.method == "GET" and request.url.path == "/api/tags":
            return httpx.Response(200, json=[{"id": "t1", "name": "x", "parent_id": None}])
        if request.url.path == "/api/public/notes":
            if request.url.params.get("id") == "pub":
                return httpx.Response(200, json={"id": "pub", "is_published": True})
            return httpx.Response(404, text="Note not found or not published")
        return httpx.Response(200, json={"success": True})

    async def run():
        remote = _remote(handler)
        notes, tags = HttpNoteStore(remote), HttpTagStore(remote)
        listed = await notes.list()
        await notes.upsert(Note(id="n2"))
        await notes.delete("n2")
        tag_list = await tags.list()
        await tags.replace_all(tag_list)
        public = await notes.get_published("pub")
        missing = await notes.get_published("draft")
        await remote.aclose()
        return listed, tag_list, public, missing

    listed, tag_list, public, missing = asyncio.run(run())

    assert listed[0].tags == ["x"]
    assert tag_list[0].name == "x"
    assert public is not None and public.id == "pub"
    assert missing is None
    assert ("PUT", "/api/notes", None) in seen
    assert ("DELETE", "/api/notes", "n2") in seen
    assert ("POST", "/api/tags", None) in seen


def test_http_errors_become_store_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="database is locked")

    async def run():
        remote = _remote(handler)
        try:
            await HttpNoteStore(remote).list()
        finally:
            await remote.aclose()

    with pytest.raises(StoreError):
        asyncio.run(run())


def test_remote_client_requires_url():
    with pytest.raises(RuntimeError):
        RemoteClient("")
