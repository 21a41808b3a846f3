from .notes import NoteRepository
from .search import Search
from .tags import RebuildTags

__all__ = ["NoteRepository", "RebuildTags", "Search"]
