from __future__ import annotations

from typing import List, Optional

from nulish.core.models import Note, SearchResult
from nulish.tags.parser import extract_tag_paths, split_tag

from .notes import NoteRepository

MAX_SNIPPET_LEN = 200
SNIPPET_LEAD = 40


def _snippet(note: Note, terms: List[str]) -> str:
    text = " ".join(note.content.split())
    start = 0
    if terms:
        hit = text.casefold().find(terms[0])
        if hit > SNIPPET_LEAD:
            start = hit - SNIPPET_LEAD
    prefix = "..." if start else ""
    budget = MAX_SNIPPET_LEN - len(prefix)
    snippet = text[start:]
    if len(snippet) > budget:
        snippet = snippet[: budget - 3].rstrip() + "..."
    return prefix + snippet


def _has_tag(note: Note, wanted: List[str]) -> bool:
    for path in extract_tag_paths(note.content, note.tags):
        folded = [seg.casefold() for seg in path]
        if folded[: len(wanted)] == wanted:
            return True
    return False


class Search:
    """Lightweight full-text and tag search over the user's notes.

    Every whitespace separated term must occur in the title or body
    (case-insensitive). A tag filter matches the tag itself and anything
    nested below it, so ``work`` also finds notes tagged ``#work/planning``.
    """

    def __init__(self, notes: NoteRepository) -> None:
        self.notes = notes

    # ------------------------------------------------------------------
    async def __call__(
        self, query: str = "", tag: Optional[str] = None, limit: int = 20
    ) -> List[SearchResult]:
        terms = [t.casefold() for t in query.split()]
        wanted = [seg.casefold() for seg in split_tag(tag)] if tag else []

        hits: List[Note] = []
        for note in await self.notes.list():
            haystack = f"{note.title}\n{note.content}".casefold()
            if any(term not in haystack for term in terms):
                continue
            if wanted and not _has_tag(note, wanted):
                continue
            hits.append(note)

        hits.sort(key=lambda n: (not n.is_pinned, -n.updated_at.timestamp()))
        return [
            SearchResult(
                id=n.id,
                title=n.title,
                snippet=_snippet(n, terms),
                tags=n.tags,
                updated_at=n.updated_at,
                is_pinned=n.is_pinned,
            )
            for n in hits[:limit]
        ]


__all__ = ["Search", "MAX_SNIPPET_LEN"]
