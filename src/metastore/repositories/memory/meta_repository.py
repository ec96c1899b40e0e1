"""
In-memory Meta Repository Implementation

Keeps records in a dict keyed by (realm, owner_type, owner_id, key). Useful
for tests and for processes that don't need persistence.
"""

import itertools
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional, Sequence, Tuple
import structlog

from ...codec import compile_pattern
from ...exceptions import StorageError, UniqueConstraintError
from ...models import MetaRecord, MetaScope
from ..meta.interface import IMetaRepository

logger = structlog.get_logger(__name__)

RecordKey = Tuple[str, str, str, str]


class InMemoryMetaRepository(IMetaRepository):
    """Dict-backed implementation of meta repository"""

    def __init__(self) -> None:
        self._records: Dict[RecordKey, MetaRecord] = {}
        self._ids = itertools.count(1)

    async def initialize(self) -> None:
        logger.info("In-memory meta repository initialized")

    async def close(self) -> None:
        self._records.clear()

    async def find_one(self, scope: MetaScope, key: str) -> Optional[MetaRecord]:
        return self._records.get(_record_key(scope, key))

    async def find_many(
        self,
        scope: MetaScope,
        keys: Optional[Sequence[str]] = None,
        pattern: Optional[str] = None
    ) -> List[MetaRecord]:
        records = self._in_scope(scope)
        if keys is not None:
            wanted = set(keys)
            records = [record for record in records if record.key in wanted]
        if pattern is not None:
            regex = compile_pattern(pattern)
            records = [record for record in records if regex.fullmatch(record.key)]
        return sorted(records, key=lambda record: record.key)

    async def count(self, scope: MetaScope) -> int:
        return len(self._in_scope(scope))

    async def insert(self, record: MetaRecord) -> MetaRecord:
        record_key = _record_key(record.scope, record.key)
        if record_key in self._records:
            raise UniqueConstraintError(f"Meta record already exists: {record_key}")

        now = datetime.now(timezone.utc)
        stored = record.model_copy(update={"id": next(self._ids), "created_at": now, "updated_at": now})
        self._records[record_key] = stored
        return stored

    async def update(self, record: MetaRecord) -> MetaRecord:
        current_key = self._key_for_id(record.id)
        if current_key is None:
            raise StorageError(f"Meta record {record.id} not found")

        new_key = _record_key(record.scope, record.key)
        if new_key != current_key and new_key in self._records:
            raise UniqueConstraintError(f"Meta record already exists: {new_key}")

        stored = record.model_copy(update={"updated_at": datetime.now(timezone.utc)})
        del self._records[current_key]
        self._records[new_key] = stored
        return stored

    async def delete_many(self, scope: MetaScope, keys: Optional[Sequence[str]] = None) -> int:
        doomed = [
            _record_key(scope, record.key)
            for record in await self.find_many(scope, keys)
        ]
        for record_key in doomed:
            del self._records[record_key]
        return len(doomed)

    async def get_repository_info(self) -> Dict[str, Any]:
        return {
            "type": "in_memory_meta_repository",
            "version": "1.0.0",
            "total_records": len(self._records),
            "total_realms": len({record.realm for record in self._records.values()}),
            "capabilities": [
                "scoped_storage",
                "unique_scope_key",
                "wildcard_query"
            ]
        }

    def _in_scope(self, scope: MetaScope) -> List[MetaRecord]:
        return [record for record in self._records.values() if record.scope == scope]

    def _key_for_id(self, record_id: Optional[int]) -> Optional[RecordKey]:
        if record_id is None:
            return None
        for record_key, record in self._records.items():
            if record.id == record_id:
                return record_key
        return None


def _record_key(scope: MetaScope, key: str) -> RecordKey:
    return scope.realm, scope.owner_type, scope.owner_id, key
