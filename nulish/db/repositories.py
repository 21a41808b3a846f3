"""Relational note and tag stores built on the async ORM."""

from __future__ import annotations

import json
from typing import List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nulish.core import models as domain
from nulish.core.exceptions import StoreError
from nulish.storage.base import NoteStore, TagStore

from . import models
from .database import SessionLocal, get_session


def note_from_row(row: models.Note) -> domain.Note:
    return domain.Note(
        id=row.id,
        title=row.title,
        content=row.content,
        tags=row.tags,
        updated_at=row.updated_at,
        created_at=row.created_at,
        is_pinned=bool(row.is_pinned),
        is_published=bool(row.is_published),
    )


def note_to_row(note: domain.Note) -> models.Note:
    return models.Note(
        id=note.id,
        title=note.title,
        content=note.content,
        tags=json.dumps(note.tags, ensure_ascii=False),
        updated_at=note.updated_at,
        created_at=note.created_at,
        is_pinned=note.is_pinned,
        is_published=note.is_published,
    )


def tag_from_row(row: models.Tag) -> domain.Tag:
    return domain.Tag(
        id=row.id,
        name=row.name,
        parent_id=row.parent_id,
        created_at=row.created_at,
    )


class SqlNoteStore(NoteStore):
    """Note store over the ``notes`` table."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession] | None = None) -> None:
        self.sessionmaker = sessionmaker or SessionLocal

    async def list(self) -> List[domain.Note]:
        try:
            async with get_session(self.sessionmaker) as session:
                res = await session.execute(
                    select(models.Note).order_by(models.Note.updated_at.desc())
                )
                return [note_from_row(r) for r in res.scalars().all()]
        except SQLAlchemyError as exc:
            raise StoreError(f"listing notes failed: {exc}") from exc

    async def upsert(self, note: domain.Note) -> None:
        try:
            async with get_session(self.sessionmaker) as session:
                await session.merge(note_to_row(note))
        except SQLAlchemyError as exc:
            raise StoreError(f"saving note {note.id} failed: {exc}") from exc

    async def delete(self, note_id: str) -> None:
        try:
            async with get_session(self.sessionmaker) as session:
                await session.execute(delete(models.Note).where(models.Note.id == note_id))
        except SQLAlchemyError as exc:
            raise StoreError(f"deleting note {note_id} failed: {exc}") from exc

    async def get_published(self, note_id: str) -> Optional[domain.Note]:
        stmt = select(models.Note).where(
            models.Note.id == note_id, models.Note.is_published.is_(True)
        )
        try:
            async with get_session(self.sessionmaker) as session:
                row = (await session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StoreError(f"reading note {note_id} failed: {exc}") from exc
        return note_from_row(row) if row is not None else None


class SqlTagStore(TagStore):
    """Tag store over the ``tags`` table; writes replace the whole table."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession] | None = None) -> None:
        self.sessionmaker = sessionmaker or SessionLocal

    async def list(self) -> List[domain.Tag]:
        try:
            async with get_session(self.sessionmaker) as session:
                res = await session.execute(
                    select(models.Tag).order_by(models.Tag.created_at.asc())
                )
                return [tag_from_row(r) for r in res.scalars().all()]
        except SQLAlchemyError as exc:
            raise StoreError(f"listing tags failed: {exc}") from exc

    async def replace_all(self, tags: Sequence[domain.Tag]) -> None:
        try:
            async with get_session(self.sessionmaker) as session:
                await session.execute(delete(models.Tag))
                session.add_all(
                    models.Tag(
                        id=t.id, name=t.name, parent_id=t.parent_id, created_at=t.created_at
                    )
                    for t in tags
                )
        except SQLAlchemyError as exc:
            raise StoreError(f"replacing tags failed: {exc}") from exc


__all__ = ["SqlNoteStore", "SqlTagStore", "note_from_row", "note_to_row", "tag_from_row"]
