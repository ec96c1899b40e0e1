"""
SQLite Meta Repository Implementation

Stores scoped meta records in a single SQLite table with a unique index on
(realm, owner_type, owner_id, key).
"""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, List, Optional, Sequence, Tuple, Union
import structlog

from ...codec import to_glob
from ...exceptions import UniqueConstraintError
from ...models import MetaRecord, MetaScope
from ..meta.interface import IMetaRepository
from .database import Database, DatabaseError
from .schemas import validate_table_name

logger = structlog.get_logger(__name__)

SCOPE_FILTER = "realm = ? AND owner_type = ? AND owner_id = ?"

RECORD_COLUMNS = 'id, realm, owner_type, owner_id, "key", value, type, created_at, updated_at'


class SQLiteMetaRepository(IMetaRepository):
    """SQLite implementation of meta repository"""

    def __init__(
        self,
        db_path: Union[str, Path] = "./metastore.db",
        table_name: str = "meta",
        echo: bool = False
    ):
        self.table = validate_table_name(table_name)
        self.database = Database(db_path, table_name=table_name, echo=echo)

    async def initialize(self) -> None:
        """Initialize the repository and database"""
        await self.database.initialize()
        logger.info("SQLite meta repository initialized", table_name=self.table)

    async def close(self) -> None:
        """Close repository connections"""
        await self.database.close()

    # Record lookups
    async def find_one(self, scope: MetaScope, key: str) -> Optional[MetaRecord]:
        """Find the record stored at a scope and key"""
        cursor = await self._execute(
            f'SELECT {RECORD_COLUMNS} FROM {self.table} WHERE {SCOPE_FILTER} AND "key" = ?',
            (*_scope_params(scope), key),
            operation="find_one",
        )
        row = cursor.fetchone()
        return _row_to_record(row) if row else None

    async def find_many(
        self,
        scope: MetaScope,
        keys: Optional[Sequence[str]] = None,
        pattern: Optional[str] = None
    ) -> List[MetaRecord]:
        """Find records within a scope, ordered by key"""
        sql = f"SELECT {RECORD_COLUMNS} FROM {self.table} WHERE {SCOPE_FILTER}"
        params: List[Any] = list(_scope_params(scope))

        if keys is not None:
            if not keys:
                return []
            placeholders = ", ".join("?" for _ in keys)
            sql += f' AND "key" IN ({placeholders})'
            params.extend(keys)

        if pattern is not None:
            sql += ' AND "key" GLOB ?'
            params.append(to_glob(pattern))

        sql += ' ORDER BY "key" ASC'

        cursor = await self._execute(sql, tuple(params), operation="find_many")
        return [_row_to_record(row) for row in cursor.fetchall()]

    async def count(self, scope: MetaScope) -> int:
        """Count records within a scope"""
        cursor = await self._execute(
            f"SELECT COUNT(*) FROM {self.table} WHERE {SCOPE_FILTER}",
            _scope_params(scope),
            operation="count",
        )
        return cursor.fetchone()[0]

    # Record writes
    async def insert(self, record: MetaRecord) -> MetaRecord:
        """Insert a new record"""
        connection = await self.database.get_connection()
        now = datetime.now(timezone.utc)

        try:
            cursor = connection.execute(f"""
                INSERT INTO {self.table}
                (realm, owner_type, owner_id, "key", value, type, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                record.realm,
                record.owner_type,
                record.owner_id,
                record.key,
                record.value,
                record.type.value,
                now.isoformat(),
                now.isoformat()
            ))
            connection.commit()

        except sqlite3.IntegrityError as e:
            connection.rollback()
            if "UNIQUE constraint failed" in str(e):
                logger.info("Meta insert rejected by unique index", realm=record.realm, key=record.key)
                raise UniqueConstraintError(f"Meta record already exists: {e}") from e
            logger.error("Failed to insert meta", realm=record.realm, key=record.key, error=str(e))
            raise DatabaseError(f"Failed to insert meta: {e}") from e
        except sqlite3.Error as e:
            connection.rollback()
            logger.error("Failed to insert meta", realm=record.realm, key=record.key, error=str(e))
            raise DatabaseError(f"Failed to insert meta: {e}") from e

        logger.debug("Inserted meta", realm=record.realm, key=record.key, record_id=cursor.lastrowid)
        return record.model_copy(update={"id": cursor.lastrowid, "created_at": now, "updated_at": now})

    async def update(self, record: MetaRecord) -> MetaRecord:
        """Overwrite an existing record identified by its id"""
        if record.id is None:
            raise DatabaseError("Can't update a meta record without id")

        now = datetime.now(timezone.utc)
        cursor = await self._execute(f"""
            UPDATE {self.table}
            SET realm = ?, owner_type = ?, owner_id = ?, "key" = ?, value = ?, type = ?, updated_at = ?
            WHERE id = ?
        """, (
            record.realm,
            record.owner_type,
            record.owner_id,
            record.key,
            record.value,
            record.type.value,
            now.isoformat(),
            record.id
        ), operation="update", commit=True)

        if cursor.rowcount == 0:
            raise DatabaseError(f"Meta record {record.id} not found")

        logger.debug("Updated meta", realm=record.realm, key=record.key, record_id=record.id)
        return record.model_copy(update={"updated_at": now})

    async def delete_many(self, scope: MetaScope, keys: Optional[Sequence[str]] = None) -> int:
        """Delete records within a scope"""
        sql = f"DELETE FROM {self.table} WHERE {SCOPE_FILTER}"
        params: List[Any] = list(_scope_params(scope))

        if keys is not None:
            if not keys:
                return 0
            placeholders = ", ".join("?" for _ in keys)
            sql += f' AND "key" IN ({placeholders})'
            params.extend(keys)

        cursor = await self._execute(sql, tuple(params), operation="delete_many", commit=True)
        return cursor.rowcount

    async def get_repository_info(self) -> Dict[str, Any]:
        """Get repository implementation information"""
        cursor = await self._execute(
            f"SELECT COUNT(*), COUNT(DISTINCT realm) FROM {self.table}",
            (),
            operation="get_repository_info",
        )
        total_records, total_realms = cursor.fetchone()

        return {
            "type": "sqlite_meta_repository",
            "version": "1.0.0",
            "database_path": str(self.database.db_path),
            "table_name": self.table,
            "total_records": total_records,
            "total_realms": total_realms,
            "capabilities": [
                "scoped_storage",
                "unique_scope_key",
                "wildcard_query"
            ]
        }

    # Private methods
    async def _execute(
        self,
        sql: str,
        params: Tuple[Any, ...],
        operation: str,
        commit: bool = False
    ) -> sqlite3.Cursor:
        """Execute a statement, wrapping driver errors in DatabaseError"""
        connection = await self.database.get_connection()
        try:
            cursor = connection.execute(sql, params)
            if commit:
                connection.commit()
            return cursor
        except sqlite3.Error as e:
            if commit:
                connection.rollback()
            logger.error("Meta query failed", operation=operation, table_name=self.table, error=str(e))
            raise DatabaseError(f"Failed to {operation.replace('_', ' ')}: {e}") from e


def _scope_params(scope: MetaScope) -> Tuple[str, str, str]:
    return scope.realm, scope.owner_type, scope.owner_id


def _row_to_record(row: sqlite3.Row) -> MetaRecord:
    return MetaRecord(
        id=row["id"],
        realm=row["realm"],
        owner_type=row["owner_type"],
        owner_id=row["owner_id"],
        key=row["key"],
        value=row["value"],
        type=row["type"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
