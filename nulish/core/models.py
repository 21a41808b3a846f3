"""Pydantic models representing core domain entities."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


def coerce_tag_list(value: Any) -> List[str]:
    """Decode a stored tag list, falling back to no tags on bad input.

    Rows from the relational store and older cache files keep tags as a JSON
    encoded string, so both shapes are accepted.
    """
    if value is None:
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value or "[]")
        except ValueError:
            return []
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, str)]


def as_utc(value: datetime) -> datetime:
    # SQLite and hand-written cache files hand back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Note(BaseModel):
    """A markdown note together with its explicit tag assignments."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=new_id)
    title: str = ""
    content: str = ""
    tags: List[str] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow)
    is_pinned: bool = False
    is_published: bool = False

    @field_validator("tags", mode="before")
    @classmethod
    def _decode_tags(cls, v: Any) -> List[str]:
        return coerce_tag_list(v)

    @field_validator("title", "content", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("updated_at", "created_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class NoteUpdate(BaseModel):
    """Partial note accepted by :meth:`NoteRepository.save`.

    Only fields that were explicitly provided are merged into an existing
    note; use ``model_dump(exclude_unset=True)`` to read them.
    """

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[List[str]] = None
    is_pinned: Optional[bool] = None
    is_published: Optional[bool] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _decode_tags(cls, v: Any) -> Optional[List[str]]:
        if v is None:
            return None
        return coerce_tag_list(v)


class Tag(BaseModel):
    """One segment of the hierarchical tag tree.

    ``(name, parent_id)`` is the identity of a tag; ``id`` is only a handle
    that children point at.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=new_id)
    name: str
    parent_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @property
    def key(self) -> tuple[str, Optional[str]]:
        return (self.name, self.parent_id)


class SearchResult(BaseModel):
    """Single search result item."""

    id: str
    title: str
    snippet: str
    tags: List[str] = Field(default_factory=list)
    updated_at: datetime
    is_pinned: bool = False


__all__ = [
    "Note",
    "NoteUpdate",
    "Tag",
    "SearchResult",
    "as_utc",
    "coerce_tag_list",
    "new_id",
    "utcnow",
]
