"""SQLite Repository Implementations"""

from ...exceptions import UniqueConstraintError
from .database import Database, DatabaseError
from .meta_repository import SQLiteMetaRepository

__all__ = [
    "Database",
    "DatabaseError",
    "UniqueConstraintError",
    "SQLiteMetaRepository",
]
