"""Database package for English Coach."""

from .base import (
    Base,
    close_all,
    configure_database,
    get_session_maker,
    init_databases,
)
from .repositories import SqlLearnerStore, SqlSessionStore

__all__ = [
    "Base",
    "close_all",
    "configure_database",
    "get_session_maker",
    "init_databases",
    "SqlLearnerStore",
    "SqlSessionStore",
]
