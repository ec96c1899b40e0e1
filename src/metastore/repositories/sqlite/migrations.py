"""
SQLite Database Migrations

Handles schema versioning and migration for SQLite meta tables.
"""

import sqlite3
from typing import Dict, Any
import structlog

from .database import DatabaseError
from .schemas import SCHEMA_MIGRATIONS_SQL, SQLITE_MIGRATIONS, render_migration_sql

logger = structlog.get_logger(__name__)


async def get_current_schema_version(connection: sqlite3.Connection, table_name: str) -> int:
    """Get current schema version of a meta table"""
    try:
        cursor = connection.execute("""
            SELECT name FROM sqlite_master
            WHERE type='table' AND name='schema_migrations'
        """)

        if cursor.fetchone():
            cursor = connection.execute("""
                SELECT MAX(version) as version FROM schema_migrations
                WHERE table_name = ?
            """, (table_name,))
            row = cursor.fetchone()
            version = row[0] if row else None
            return int(version) if version is not None else 0
        else:
            return 0

    except sqlite3.Error:
        return 0


async def apply_migration(connection: sqlite3.Connection, migration: Dict[str, Any], table_name: str) -> None:
    """Apply a single SQLite migration to a meta table"""
    version = migration["version"]
    description = migration["description"]
    sql = render_migration_sql(migration["sql"], table_name)

    logger.info("Applying SQLite migration", version=version, description=description, table_name=table_name)

    try:
        # Split SQL statements and execute each one
        statements = [stmt.strip() for stmt in sql.split(";") if stmt.strip()]

        for statement in statements:
            connection.execute(statement)

        # Record migration in tracking table
        connection.execute(
            """
            INSERT OR REPLACE INTO schema_migrations (table_name, version, description)
            VALUES (?, ?, ?)
        """,
            (table_name, version, description),
        )

        connection.commit()

        logger.info("SQLite migration applied successfully", version=version, table_name=table_name)

    except sqlite3.Error as e:
        connection.rollback()
        raise DatabaseError(f"Failed to apply SQLite migration {version}: {e}") from e


async def run_migrations(connection: sqlite3.Connection, table_name: str) -> None:
    """Run all pending SQLite migrations for a meta table"""
    connection.execute(SCHEMA_MIGRATIONS_SQL)
    connection.commit()

    current_version = await get_current_schema_version(connection, table_name)

    logger.info("Current SQLite schema version", version=current_version, table_name=table_name)

    pending_migrations = [
        migration for migration in SQLITE_MIGRATIONS
        if isinstance(migration["version"], int) and migration["version"] > current_version
    ]

    if not pending_migrations:
        logger.info("No pending SQLite migrations", table_name=table_name)
        return

    logger.info("Found pending SQLite migrations", count=len(pending_migrations), table_name=table_name)

    for migration in pending_migrations:
        await apply_migration(connection, migration, table_name)

    final_version = await get_current_schema_version(connection, table_name)
    logger.info("SQLite schema updated", version=final_version, table_name=table_name)


async def reset_table(connection: sqlite3.Connection, table_name: str) -> None:
    """Drop a meta table and recreate it (for development/testing)"""
    logger.warning("Resetting SQLite meta table - all data will be lost", table_name=table_name)

    try:
        connection.execute(render_migration_sql("DROP TABLE IF EXISTS {table}", table_name))
        connection.execute("DELETE FROM schema_migrations WHERE table_name = ?", (table_name,))
        connection.commit()

        # Run migrations to recreate schema
        await run_migrations(connection, table_name)

    except sqlite3.Error as e:
        connection.rollback()
        raise DatabaseError(f"Failed to reset SQLite meta table {table_name}: {e}") from e
