"""
SQLite Schema Definitions

Contains table creation SQL and migrations for the SQLite implementation.
Table names are substituted at migration time so a single database can hold
several meta tables.
"""

import re
from typing import Dict, Any, List

TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,63}$")

# Tracking table shared by every meta table in the database
SCHEMA_MIGRATIONS_SQL = """
    CREATE TABLE IF NOT EXISTS schema_migrations (
        table_name TEXT NOT NULL,
        version INTEGER NOT NULL,
        description TEXT NOT NULL,
        applied_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (table_name, version)
    )
"""

# Migration definitions for SQLite, "{table}" is replaced with the meta table name
SQLITE_MIGRATIONS: List[Dict[str, Any]] = [
    {
        "version": 1,
        "description": "Initial schema - scoped meta table",
        "sql": """
            CREATE TABLE IF NOT EXISTS {table} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                realm TEXT NOT NULL CHECK (length(realm) <= 128),
                owner_type TEXT NOT NULL DEFAULT '' CHECK (length(owner_type) <= 128),
                owner_id TEXT NOT NULL DEFAULT '' CHECK (length(owner_id) <= 128),
                "key" TEXT NOT NULL CHECK (length("key") <= 128),
                value TEXT,
                type TEXT NOT NULL DEFAULT 'string'
                    CHECK (type IN ('null', 'string', 'int', 'float', 'bool', 'array')),
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
            );

            CREATE UNIQUE INDEX IF NOT EXISTS ux_{table}_scope_key
                ON {table}(realm, owner_type, owner_id, "key");
        """,
    },
]


def validate_table_name(table_name: str) -> str:
    """Ensure a table name is a plain SQL identifier before it is interpolated"""
    if not TABLE_NAME_PATTERN.match(table_name):
        raise ValueError(f"Invalid table name: {table_name!r}")
    return table_name


def render_migration_sql(sql: str, table_name: str) -> str:
    """Substitute the meta table name into migration SQL"""
    return sql.replace("{table}", validate_table_name(table_name))
