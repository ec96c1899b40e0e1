"""
Meta Service Interface

Defines contract for meta service implementations
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Iterable, List, Optional, Union

from ...models import MetaScope

KeyType = Union[str, int]


class IMetaService(ABC):
    """Interface for meta services"""

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the meta service"""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close service connections and cleanup"""
        pass

    @abstractmethod
    def scope(self, owner_type: Any = "", owner_id: Any = "", realm: Optional[str] = None) -> MetaScope:
        """
        Build an addressing scope.

        Args:
            owner_type: Owner discriminator, empty for no owner
            owner_id: Owner identifier, empty for no owner
            realm: Realm name, the configured default realm when None

        Returns:
            Scope to pass to every other operation
        """
        pass

    # Writes
    @abstractmethod
    async def set(self, scope: MetaScope, key: KeyType, value: Any, type: Optional[str] = None) -> None:
        """
        Set meta at given key, overwriting any existing value.

        Args:
            scope: Addressing scope
            key: Meta key (string or integer, up to 128 chars)
            value: None, bool, int, float, str or a list/dict of those
            type: Optional type hint, validated but the value decides the stored type
        """
        pass

    @abstractmethod
    async def create(self, scope: MetaScope, key: KeyType, value: Any, type: Optional[str] = None) -> None:
        """
        Create meta at given key.

        Raises:
            AlreadyExists: If meta already exists at scope and key
        """
        pass

    @abstractmethod
    async def update(self, scope: MetaScope, key: KeyType, value: Any, type: Optional[str] = None) -> None:
        """
        Update meta at given key.

        Raises:
            NotFound: If no meta exists at scope and key
        """
        pass

    # Reads
    @abstractmethod
    async def get(self, scope: MetaScope, key: KeyType, default: Any = None) -> Any:
        """
        Get meta at given key.

        Returns:
            Decoded value, or default when the key is missing
        """
        pass

    @abstractmethod
    async def exists(self, scope: MetaScope, key: KeyType) -> bool:
        """Check if meta exists at given key"""
        pass

    @abstractmethod
    async def count(self, scope: MetaScope) -> int:
        """Count meta within scope"""
        pass

    @abstractmethod
    async def all(self, scope: MetaScope) -> Dict[str, Any]:
        """Get all meta within scope as key -> value, ordered by key"""
        pass

    @abstractmethod
    async def keys(self, scope: MetaScope) -> List[str]:
        """Get all meta keys within scope, ordered"""
        pass

    @abstractmethod
    async def query(self, scope: MetaScope, pattern: str, default: Any = None) -> Any:
        """
        Get meta whose keys match a wildcard pattern.

        Args:
            scope: Addressing scope
            pattern: Key pattern where '*' matches any run of characters
            default: Returned when nothing matches

        Returns:
            Ordered key -> value mapping, or default
        """
        pass

    # Deletes
    @abstractmethod
    async def remove(self, scope: MetaScope, keys: Union[KeyType, Iterable[KeyType]]) -> int:
        """
        Remove meta at given key or keys. Missing keys are ignored.

        Returns:
            Number of records deleted
        """
        pass

    @abstractmethod
    async def purge(self, scope: MetaScope) -> int:
        """
        Remove every meta within scope.

        Returns:
            Number of records deleted
        """
        pass

    # Service info
    @abstractmethod
    async def get_service_info(self) -> Dict[str, Any]:
        """
        Get service implementation information.

        Returns:
            Service metadata (type, capabilities, stats, etc.)
        """
        pass
