"""Note and tag stores backed by the Nulish HTTP API."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

import httpx

from nulish.core.exceptions import StoreError
from nulish.core.models import Note, Tag
from nulish.core.settings import get_settings

from .base import NoteStore, TagStore

logger = logging.getLogger(__name__)


class RemoteClient:
    """Thin wrapper around :class:`httpx.AsyncClient` raising ``StoreError``."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url if base_url is not None else settings.remote_url).rstrip("/")
        if client is None:
            if not self.base_url:
                raise RuntimeError("REMOTE_URL is not set")
            client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=timeout if timeout is not None else settings.remote_timeout,
            )
        self.client = client

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self.client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            status = getattr(getattr(exc, "response", None), "status_code", None)
            raise StoreError(f"{method} {path} failed: {status or ''} {exc}".strip()) from exc
        return response

    async def aclose(self) -> None:
        await self.client.aclose()


class HttpNoteStore(NoteStore):
    """Remote note collection served by ``/api/notes``."""

    def __init__(self, remote: RemoteClient) -> None:
        self.remote = remote

    async def list(self) -> List[Note]:
        response = await self.remote.request("GET", "/api/notes")
        return [Note.model_validate(row) for row in response.json()]

    async def upsert(self, note: Note) -> None:
        await self.remote.request("PUT", "/api/notes", json=note.model_dump(mode="json"))

    async def delete(self, note_id: str) -> None:
        await self.remote.request("DELETE", "/api/notes", params={"id": note_id})

    async def get_published(self, note_id: str) -> Optional[Note]:
        try:
            response = await self.remote.request(
                "GET", "/api/public/notes", params={"id": note_id}
            )
        except StoreError as exc:
            cause = exc.__cause__
            if isinstance(cause, httpx.HTTPStatusError) and cause.response.status_code == 404:
                return None
            raise
        return Note.model_validate(response.json())


class HttpTagStore(TagStore):
    """Remote tag collection served by ``/api/tags``."""

    def __init__(self, remote: RemoteClient) -> None:
        self.remote = remote

    async def list(self) -> List[Tag]:
        response = await self.remote.request("GET", "/api/tags")
        return [Tag.model_validate(row) for row in response.json()]

    async def replace_all(self, tags: Sequence[Tag]) -> None:
        await self.remote.request(
            "POST", "/api/tags", json=[t.model_dump(mode="json") for t in tags]
        )


__all__ = ["RemoteClient", "HttpNoteStore", "HttpTagStore"]
