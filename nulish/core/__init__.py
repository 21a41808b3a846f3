"""Core library exposing domain models, settings, events and exceptions."""

from .settings import Settings, get_settings
from .exceptions import DomainError, NotFoundError, ValidationError, StoreError, Error
from .models import Note, NoteUpdate, Tag, SearchResult
from .events import ChangeEvent, EventBus

__all__ = [
    "Settings",
    "get_settings",
    "DomainError",
    "NotFoundError",
    "ValidationError",
    "StoreError",
    "Error",
    "Note",
    "NoteUpdate",
    "Tag",
    "SearchResult",
    "ChangeEvent",
    "EventBus",
]
