"""Extraction of tag paths from note text and explicit tag lists."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterable, List

logger = logging.getLogger(__name__)

# "#work", "#work/planning", "#a/b/c"; a bare "#" or "# Heading" is not a tag
HASHTAG_RE = re.compile(r"#(\w+(?:/\w+)*)")

TagPath = List[str]


def split_tag(raw: str) -> TagPath:
    """Turn one explicit tag entry into a path.

    A single leading ``#`` is dropped, the rest is split on ``/`` and every
    segment is trimmed; empty segments disappear.
    """
    text = raw.strip()
    if text.startswith("#"):
        text = text[1:]
    return [seg.strip() for seg in text.split("/") if seg.strip()]


def paths_from_content(content: str) -> List[TagPath]:
    if not content:
        return []
    return [m.group(1).split("/") for m in HASHTAG_RE.finditer(content)]


def paths_from_tags(tags: Any) -> List[TagPath]:
    if not tags:
        return []
    if isinstance(tags, str):
        try:
            tags = json.loads(tags)
        except ValueError:
            logger.debug("skipping undecodable tag list %r", tags[:80])
            return []
    if not isinstance(tags, (list, tuple)):
        logger.debug("skipping tag list of type %s", type(tags).__name__)
        return []
    paths: List[TagPath] = []
    for entry in tags:
        if not isinstance(entry, str):
            continue
        path = split_tag(entry)
        if path:
            paths.append(path)
    return paths


def extract_tag_paths(content: Any, tags: Any) -> List[TagPath]:
    """Return every tag path mentioned by one note.

    Content hashtags come first, then explicit tags. Duplicates are kept;
    de-duplication happens when the tree is built. Bad input never raises,
    it simply contributes nothing.
    """
    paths: List[TagPath] = []
    if isinstance(content, str):
        paths.extend(paths_from_content(content))
    paths.extend(paths_from_tags(tags))
    return paths


def note_tag_paths(notes: Iterable[Any]) -> List[TagPath]:
    """Collect tag paths across notes or raw note rows."""
    paths: List[TagPath] = []
    for note in notes:
        if isinstance(note, dict):
            content, tags = note.get("content"), note.get("tags")
        else:
            content, tags = getattr(note, "content", None), getattr(note, "tags", None)
        paths.extend(extract_tag_paths(content, tags))
    return paths


__all__ = [
    "HASHTAG_RE",
    "TagPath",
    "split_tag",
    "paths_from_content",
    "paths_from_tags",
    "extract_tag_paths",
    "note_tag_paths",
]
