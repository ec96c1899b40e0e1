"""
Meta Service Implementation

Business logic layer for scoped meta operations using repository pattern.
Values pass through the codec on every read and write.
"""

from typing import Dict, Any, Iterable, List, Optional, Tuple, Union
import structlog

from ... import codec
from ...codec import ValueType
from ...exceptions import AlreadyExists, NotFound, UniqueConstraintError
from ...models import MetaRecord, MetaScope
from ...repositories.meta import IMetaRepository
from .interface import IMetaService, KeyType

logger = structlog.get_logger(__name__)


class MetaService(IMetaService):
    """Meta service implementation using repository pattern"""

    def __init__(self, meta_repository: IMetaRepository, default_realm: str = "metastore"):
        self.repository = meta_repository
        self.default_realm = default_realm
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize the meta service"""
        if not self._initialized:
            await self.repository.initialize()
            self._initialized = True
            logger.info("Meta service initialized", default_realm=self.default_realm)

    async def close(self) -> None:
        """Close service connections and cleanup"""
        await self.repository.close()
        self._initialized = False
        logger.info("Meta service closed")

    def scope(self, owner_type: Any = "", owner_id: Any = "", realm: Optional[str] = None) -> MetaScope:
        """Build a scope, falling back to the default realm"""
        return MetaScope.build(
            realm=self.default_realm if realm is None else realm,
            owner_type=owner_type,
            owner_id=owner_id,
        )

    # Writes
    async def set(self, scope: MetaScope, key: KeyType, value: Any, type: Optional[str] = None) -> None:
        """Set meta at given key, overwriting any existing value"""
        await self._ensure_initialized()
        key, value_type, payload = self._prepare_write(scope, key, value, type)

        record = await self.repository.find_one(scope, key)
        if record is None:
            await self.repository.insert(_new_record(scope, key, value_type, payload))
            logger.info("Created meta", realm=scope.realm, owner_type=scope.owner_type,
                        owner_id=scope.owner_id, key=key, type=value_type.value)
        else:
            # The whole scope is re-asserted, not just the value
            await self.repository.update(
                record.with_scope(scope).model_copy(update={"value": payload, "type": value_type})
            )
            logger.info("Overwrote meta", realm=scope.realm, owner_type=scope.owner_type,
                        owner_id=scope.owner_id, key=key, type=value_type.value)

    async def create(self, scope: MetaScope, key: KeyType, value: Any, type: Optional[str] = None) -> None:
        """Create meta at given key, failing if it exists"""
        await self._ensure_initialized()
        key, value_type, payload = self._prepare_write(scope, key, value, type)

        if await self.repository.find_one(scope, key) is not None:
            raise AlreadyExists(scope, key)

        try:
            await self.repository.insert(_new_record(scope, key, value_type, payload))
        except UniqueConstraintError as e:
            # Lost a race against a concurrent writer
            raise AlreadyExists(scope, key) from e

        logger.info("Created meta", realm=scope.realm, owner_type=scope.owner_type,
                    owner_id=scope.owner_id, key=key, type=value_type.value)

    async def update(self, scope: MetaScope, key: KeyType, value: Any, type: Optional[str] = None) -> None:
        """Update meta at given key, failing if it doesn't exist"""
        await self._ensure_initialized()
        key, value_type, payload = self._prepare_write(scope, key, value, type)

        record = await self.repository.find_one(scope, key)
        if record is None:
            raise NotFound(scope, key)

        await self.repository.update(
            record.with_scope(scope).model_copy(update={"value": payload, "type": value_type})
        )
        logger.info("Updated meta", realm=scope.realm, owner_type=scope.owner_type,
                    owner_id=scope.owner_id, key=key, type=value_type.value)

    # Reads
    async def get(self, scope: MetaScope, key: KeyType, default: Any = None) -> Any:
        """Get meta at given key, or default"""
        await self._ensure_initialized()
        key = codec.validate_key(key)

        record = await self.repository.find_one(scope, key)
        logger.debug("Get meta", realm=scope.realm, key=key, found=record is not None)

        if record is None:
            return default
        return codec.decode(record.type, record.value)

    async def exists(self, scope: MetaScope, key: KeyType) -> bool:
        """Check if meta exists at given key"""
        await self._ensure_initialized()
        key = codec.validate_key(key)
        return await self.repository.find_one(scope, key) is not None

    async def count(self, scope: MetaScope) -> int:
        """Count meta within scope"""
        await self._ensure_initialized()
        return await self.repository.count(scope)

    async def all(self, scope: MetaScope) -> Dict[str, Any]:
        """Get all meta within scope, ordered by key"""
        await self._ensure_initialized()
        records = await self.repository.find_many(scope)
        logger.debug("All meta", realm=scope.realm, count=len(records))
        return _to_mapping(records)

    async def keys(self, scope: MetaScope) -> List[str]:
        """Get all meta keys within scope, ordered"""
        await self._ensure_initialized()
        return [record.key for record in await self.repository.find_many(scope)]

    async def query(self, scope: MetaScope, pattern: str, default: Any = None) -> Any:
        """Get meta whose keys match a '*' wildcard pattern, or default"""
        await self._ensure_initialized()
        if not isinstance(pattern, str):
            raise TypeError(f"Query pattern must be a string, got {type(pattern).__name__}")

        records = await self.repository.find_many(scope, pattern=pattern)
        logger.debug("Query meta", realm=scope.realm, pattern=pattern, count=len(records))

        if not records:
            return default
        return _to_mapping(records)

    # Deletes
    async def remove(self, scope: MetaScope, keys: Union[KeyType, Iterable[KeyType]]) -> int:
        """Remove meta at given key or keys"""
        await self._ensure_initialized()
        if isinstance(keys, (str, int)) and not isinstance(keys, bool):
            key_list = [codec.validate_key(keys)]
        else:
            try:
                candidates = list(keys)
            except TypeError:
                # Not iterable, let validate_key report it
                candidates = [keys]
            key_list = [codec.validate_key(key) for key in candidates]

        deleted = await self.repository.delete_many(scope, list(dict.fromkeys(key_list)))
        logger.info("Removed meta", realm=scope.realm, owner_type=scope.owner_type,
                    owner_id=scope.owner_id, keys=key_list, deleted=deleted)
        return deleted

    async def purge(self, scope: MetaScope) -> int:
        """Remove every meta within scope"""
        await self._ensure_initialized()
        deleted = await self.repository.delete_many(scope)
        logger.info("Purged meta", realm=scope.realm, owner_type=scope.owner_type,
                    owner_id=scope.owner_id, deleted=deleted)
        return deleted

    # Service info
    async def get_service_info(self) -> Dict[str, Any]:
        """Get service implementation information"""
        repo_info = await self.repository.get_repository_info()

        return {
            "type": "meta_service",
            "version": "1.0.0",
            "initialized": self._initialized,
            "default_realm": self.default_realm,
            "repository": repo_info,
            "value_types": [value_type.value for value_type in ValueType],
            "capabilities": [
                "typed_values",
                "realm_scoping",
                "owner_scoping",
                "wildcard_query"
            ]
        }

    # Private methods
    async def _ensure_initialized(self) -> None:
        """Ensure service is initialized"""
        if not self._initialized:
            await self.initialize()

    def _prepare_write(
        self,
        scope: MetaScope,
        key: KeyType,
        value: Any,
        type_hint: Optional[str]
    ) -> Tuple[str, ValueType, Optional[str]]:
        """Validate key and hint, encode value"""
        key = codec.validate_key(key)
        value_type, payload = codec.encode(value)

        if type_hint is not None:
            hinted = ValueType.parse(type_hint)
            if hinted is not value_type:
                logger.debug("Type hint differs from value, storing inferred type",
                             realm=scope.realm, key=key, hint=hinted.value, type=value_type.value)

        return key, value_type, payload


def _new_record(scope: MetaScope, key: str, value_type: ValueType, payload: Optional[str]) -> MetaRecord:
    return MetaRecord(
        realm=scope.realm,
        owner_type=scope.owner_type,
        owner_id=scope.owner_id,
        key=key,
        value=payload,
        type=value_type,
    )


def _to_mapping(records: List[MetaRecord]) -> Dict[str, Any]:
    return {record.key: codec.decode(record.type, record.value) for record in records}
