"""Derivation of the canonical tag tree from note content.

The tag set is a materialized view: every rebuild starts from an empty map
keyed by ``(name, parent_id)`` and walks every tag path of every note, so
tags nobody mentions any more simply do not come back.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from nulish.core.models import Tag, new_id, utcnow

from .parser import note_tag_paths

TagKey = Tuple[str, Optional[str]]


def _identity(name: str) -> str:
    return name


def sort_tags(tags: Iterable[Tag]) -> List[Tag]:
    """Presentation order: case-folded name, ties broken by the raw name."""
    return sorted(tags, key=lambda t: (t.name.casefold(), t.name))


def build_tag_tree(
    notes: Iterable[Any],
    previous: Iterable[Tag] = (),
    *,
    now: datetime | None = None,
    id_factory: Callable[[], str] | None = None,
    case_sensitive: bool = True,
) -> List[Tag]:
    """Build the de-duplicated tag forest for ``notes``.

    ``previous`` is the currently persisted tag set. A key that existed there
    keeps its ``id`` and ``created_at``; new keys get a fresh id and the
    rebuild start time. Identity is always the composite key, never the id.
    """
    started = now or utcnow()
    make_id = id_factory or new_id
    fold = _identity if case_sensitive else str.casefold

    known: Dict[TagKey, Tag] = {(fold(t.name), t.parent_id): t for t in previous}
    tree: Dict[TagKey, Tag] = {}

    for path in note_tag_paths(notes):
        parent_id: Optional[str] = None
        for segment in path:
            key = (fold(segment), parent_id)
            tag = tree.get(key)
            if tag is None:
                prior = known.get(key)
                if prior is not None:
                    tag = Tag(
                        id=prior.id,
                        name=segment,
                        parent_id=parent_id,
                        created_at=prior.created_at,
                    )
                else:
                    tag = Tag(
                        id=make_id(),
                        name=segment,
                        parent_id=parent_id,
                        created_at=started,
                    )
                tree[key] = tag
            parent_id = tag.id

    return sort_tags(tree.values())


# ----------------------------------------------------------------------
# read helpers for the sidebar and the tag input


def tag_paths(tags: Iterable[Tag]) -> Dict[str, str]:
    """Map tag id to its full slash-delimited path."""
    by_id = {t.id: t for t in tags}
    paths: Dict[str, str] = {}

    def resolve(tag: Tag) -> str:
        if tag.id in paths:
            return paths[tag.id]
        segments = [tag.name]
        seen = {tag.id}
        parent = by_id.get(tag.parent_id) if tag.parent_id else None
        # stored sets may be hand-edited; stop on dangling or cyclic parents
        while parent is not None and parent.id not in seen:
            seen.add(parent.id)
            segments.append(parent.name)
            parent = by_id.get(parent.parent_id) if parent.parent_id else None
        paths[tag.id] = "/".join(reversed(segments))
        return paths[tag.id]

    for tag in by_id.values():
        resolve(tag)
    return paths


def nest_tags(tags: Iterable[Tag]) -> List[Dict[str, Any]]:
    """Return the tag forest as nested dictionaries, roots first.

    Tags whose parent is missing from the set are shown as roots.
    """
    ordered = sort_tags(tags)
    ids = {t.id for t in ordered}
    paths = tag_paths(ordered)
    children: Dict[Optional[str], List[Tag]] = {}
    for tag in ordered:
        parent = tag.parent_id if tag.parent_id in ids else None
        children.setdefault(parent, []).append(tag)

    def node(tag: Tag, seen: frozenset[str]) -> Dict[str, Any]:
        kids = [c for c in children.get(tag.id, []) if c.id not in seen]
        return {
            "id": tag.id,
            "name": tag.name,
            "path": paths[tag.id],
            "children": [node(c, seen | {c.id}) for c in kids],
        }

    return [node(t, frozenset({t.id})) for t in children.get(None, [])]


def suggest_tags(tags: Iterable[Tag], query: str, limit: int = 10) -> List[str]:
    """Full paths of tags whose name contains ``query``, case-insensitively."""
    needle = query.strip().lstrip("#").casefold()
    if not needle:
        return []
    tags = list(tags)
    paths = tag_paths(tags)
    matches = sorted(
        {paths[t.id] for t in tags if needle in t.name.casefold()},
        key=lambda p: (p.casefold(), p),
    )
    return matches[:limit]


__all__ = [
    "TagKey",
    "build_tag_tree",
    "sort_tags",
    "tag_paths",
    "nest_tags",
    "suggest_tags",
]
