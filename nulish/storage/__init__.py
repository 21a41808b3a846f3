"""Note and tag store interfaces with local and remote implementations."""

from .base import NoteStore, TagStore
from .local_store import LocalStore
from .remote_store import HttpNoteStore, HttpTagStore, RemoteClient

__all__ = [
    "NoteStore",
    "TagStore",
    "LocalStore",
    "RemoteClient",
    "HttpNoteStore",
    "HttpTagStore",
]
