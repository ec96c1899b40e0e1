"""
Repository Factory

Creates repository instances based on configuration.
"""

import structlog

from ..config import Settings
from ..repositories.meta import IMetaRepository
from ..repositories.memory import InMemoryMetaRepository
from ..repositories.sqlite import SQLiteMetaRepository

logger = structlog.get_logger(__name__)


class RepositoryFactory:
    """Factory for creating repository instances"""

    @staticmethod
    def create_meta_repository(settings: Settings) -> IMetaRepository:
        """
        Create meta repository based on configuration.

        Args:
            settings: Meta store settings

        Returns:
            Configured meta repository instance

        Raises:
            ValueError: If repository type is not supported
        """
        repo_type = settings.meta_repository.lower()

        logger.info("Creating meta repository", repository_type=repo_type, table_name=settings.table_name)

        if repo_type == "sqlite":
            return SQLiteMetaRepository(
                settings.database_path_resolved,
                table_name=settings.table_name,
                echo=settings.sqlite_echo
            )
        elif repo_type == "memory":
            return InMemoryMetaRepository()
        else:
            raise ValueError(f"Unsupported meta repository: {repo_type}")

    @staticmethod
    def get_available_repositories() -> dict[str, list[str]]:
        """Get list of available repository types"""
        return {
            "meta": ["sqlite", "memory"]
        }
