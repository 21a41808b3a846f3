"""Local cache and local-first synchronisation with a remote store."""

from .cache import CollectionCache
from .orchestrator import (
    LocalFirstNoteStore,
    LocalFirstTagStore,
    SyncOrchestrator,
    SyncOutcome,
)

__all__ = [
    "CollectionCache",
    "SyncOrchestrator",
    "SyncOutcome",
    "LocalFirstNoteStore",
    "LocalFirstTagStore",
]
