"""
Meta Repository Interface

Defines contract for meta storage providers (SQLite, in-memory, etc.)
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional, Sequence

from ...models import MetaRecord, MetaScope


class IMetaRepository(ABC):
    """Interface for meta storage repositories"""

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the repository (create tables, connections, etc.)"""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close repository connections and cleanup"""
        pass

    # Record lookups
    @abstractmethod
    async def find_one(self, scope: MetaScope, key: str) -> Optional[MetaRecord]:
        """
        Find the record stored at a scope and key.

        Args:
            scope: Addressing scope
            key: Validated meta key

        Returns:
            Stored record or None if not found
        """
        pass

    @abstractmethod
    async def find_many(
        self,
        scope: MetaScope,
        keys: Optional[Sequence[str]] = None,
        pattern: Optional[str] = None
    ) -> List[MetaRecord]:
        """
        Find records within a scope, ordered by key ascending.

        Args:
            scope: Addressing scope
            keys: Restrict to these keys (optional)
            pattern: Restrict to keys matching a '*' wildcard pattern (optional)

        Returns:
            Matching records
        """
        pass

    @abstractmethod
    async def count(self, scope: MetaScope) -> int:
        """
        Count records within a scope.

        Args:
            scope: Addressing scope

        Returns:
            Number of records
        """
        pass

    # Record writes
    @abstractmethod
    async def insert(self, record: MetaRecord) -> MetaRecord:
        """
        Insert a new record.

        Args:
            record: Record without id

        Returns:
            Stored record with id and timestamps

        Raises:
            UniqueConstraintError: If scope and key are already taken
        """
        pass

    @abstractmethod
    async def update(self, record: MetaRecord) -> MetaRecord:
        """
        Overwrite an existing record identified by its id.

        Args:
            record: Record with id, scope, key, value and type to store

        Returns:
            Stored record with refreshed updated_at
        """
        pass

    @abstractmethod
    async def delete_many(self, scope: MetaScope, keys: Optional[Sequence[str]] = None) -> int:
        """
        Delete records within a scope.

        Args:
            scope: Addressing scope
            keys: Only delete these keys; None deletes the whole scope

        Returns:
            Number of records deleted
        """
        pass

    @abstractmethod
    async def get_repository_info(self) -> Dict[str, Any]:
        """
        Get repository implementation information.

        Returns:
            Repository metadata (type, connection info, stats, etc.)
        """
        pass
