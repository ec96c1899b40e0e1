"""In-memory Repository Implementations"""

from .meta_repository import InMemoryMetaRepository

__all__ = [
    "InMemoryMetaRepository",
]
