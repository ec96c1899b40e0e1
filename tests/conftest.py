"""
Pytest configuration and fixtures for meta store tests
"""

import pytest
import tempfile
from pathlib import Path

from metastore.config import Settings
from metastore.repositories.memory import InMemoryMetaRepository
from metastore.repositories.sqlite import Database, SQLiteMetaRepository
from metastore.services.meta import MetaService


@pytest.fixture
def db_path():
    """Path of a temporary SQLite database file"""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as tmp:
        path = Path(tmp.name)

    yield path

    for leftover in (path, Path(f"{path}-wal"), Path(f"{path}-shm")):
        if leftover.exists():
            leftover.unlink()


@pytest.fixture
async def test_database(db_path):
    """Create a temporary test database"""
    database = Database(db_path)
    await database.initialize()

    yield database

    await database.close()


@pytest.fixture
async def sqlite_repository(db_path):
    """Initialized SQLite meta repository on a temporary database"""
    repository = SQLiteMetaRepository(db_path)
    await repository.initialize()

    yield repository

    await repository.close()


@pytest.fixture(params=["sqlite", "memory"])
async def meta_service(request, db_path):
    """Meta service running against each repository implementation"""
    if request.param == "sqlite":
        repository = SQLiteMetaRepository(db_path)
    else:
        repository = InMemoryMetaRepository()

    service = MetaService(repository, default_realm="test-realm")
    await service.initialize()

    yield service

    await service.close()


@pytest.fixture
def mock_settings():
    """Settings for testing, isolated from any .env file"""
    return Settings(
        _env_file=None,
        default_realm="test-realm",
        table_name="meta",
        database_path=":memory:",
        meta_repository="memory",
    )


@pytest.fixture
def sample_values():
    """One value of every supported type"""
    return {
        "null": None,
        "string": "hello world",
        "empty": "",
        "int": 42,
        "negative": -7,
        "float": 3.14159,
        "true": True,
        "false": False,
        "list": ["a", "b"],
        "nested": {"theme": "dark", "sizes": [1, 2.5, None], "flags": {"on": True}},
    }
