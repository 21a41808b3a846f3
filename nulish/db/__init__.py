"""Database utilities for Nulish."""

from . import models
from .database import get_session, init_db, make_engine
from .repositories import SqlNoteStore, SqlTagStore

__all__ = ["models", "get_session", "init_db", "make_engine", "SqlNoteStore", "SqlTagStore"]
