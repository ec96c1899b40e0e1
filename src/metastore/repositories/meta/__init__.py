"""Meta repository implementations"""

from .interface import IMetaRepository

# Note: Concrete implementations should be imported from their specific packages
# to avoid circular imports. Use:
# from ..sqlite import SQLiteMetaRepository
# from ..memory import InMemoryMetaRepository

__all__ = [
    "IMetaRepository",
]
