from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from nulish.core.models import Note, Tag

logger = logging.getLogger(__name__)

NOTES = "notes"
TAGS = "tags"

M = TypeVar("M", bound=BaseModel)


class LocalStore:
    """File based cache holding the ``notes`` and ``tags`` collections.

    Each collection is a JSON array stored under a namespaced key
    (``nulish:notes``, ``nulish:tags``), one file per key. There is no schema
    version: records are validated on read, missing fields take their model
    defaults and records that cannot be understood are dropped.
    """

    def __init__(self, base_dir: Path, namespace: str = "nulish") -> None:
        self.base_dir = Path(base_dir)
        self.namespace = namespace

    # ------------------------------------------------------------------
    # public API
    def key(self, kind: str) -> str:
        return f"{self.namespace}:{kind}"

    def path_for(self, kind: str) -> Path:
        return self.base_dir / (self.key(kind).replace(":", "__") + ".json")

    def read_raw(self, kind: str) -> List[Dict[str, Any]]:
        path = self.path_for(kind)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8") or "[]")
        except (OSError, ValueError) as exc:
            logger.warning("unreadable cache %s: %s", self.key(kind), exc)
            return []
        if not isinstance(data, list):
            logger.warning("cache %s is not a list, ignoring", self.key(kind))
            return []
        return [item for item in data if isinstance(item, dict)]

    def write_raw(self, kind: str, records: List[Dict[str, Any]]) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(kind)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(records, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, path)

    def load_notes(self) -> List[Note]:
        return self._load(NOTES, Note)

    def save_notes(self, notes: List[Note]) -> None:
        self.write_raw(NOTES, [n.model_dump(mode="json") for n in notes])

    def load_tags(self) -> List[Tag]:
        return self._load(TAGS, Tag)

    def save_tags(self, tags: List[Tag]) -> None:
        self.write_raw(TAGS, [t.model_dump(mode="json") for t in tags])

    def upsert_note(self, note: Note) -> None:
        notes = [n for n in self.load_notes() if n.id != note.id]
        notes.insert(0, note)
        self.save_notes(notes)

    def delete_note(self, note_id: str) -> None:
        self.save_notes([n for n in self.load_notes() if n.id != note_id])

    # ------------------------------------------------------------------
    # helpers
    def _load(self, kind: str, model: Type[M]) -> List[M]:
        items: List[M] = []
        for record in self.read_raw(kind):
            try:
                items.append(model.model_validate(record))
            except PydanticValidationError as exc:
                logger.warning(
                    "dropping unreadable %s record %r: %s",
                    kind,
                    record.get("id"),
                    exc.error_count(),
                )
        return items


__all__ = ["LocalStore", "NOTES", "TAGS"]
