"""
Dependency Injection Container

Centralized dependency resolution for the meta store.
"""

from typing import Dict, Any, Optional
import structlog

from .config import Settings, get_settings
from .factories import RepositoryFactory, ServiceFactory
from .log import configure_logging
from .repositories.meta import IMetaRepository
from .services.meta import IMetaService

logger = structlog.get_logger(__name__)


class DIContainer:
    """
    Dependency Injection Container for managing meta store dependencies.

    Provides lazy initialization and caching of the repository and service
    with proper lifecycle management.
    """

    def __init__(self, settings: Optional[Settings] = None, setup_logging: bool = False):
        self.settings = settings or get_settings()
        self._services: Dict[str, Any] = {}
        self._initialized = False

        if setup_logging:
            configure_logging(self.settings.log_level)

        logger.info("DI Container initialized",
                    meta_repo=self.settings.meta_repository,
                    default_realm=self.settings.default_realm,
                    table_name=self.settings.table_name)

    async def initialize(self) -> None:
        """Initialize all async dependencies"""
        if self._initialized:
            return

        # Initializing the service creates the database schema
        await self.get_meta_service()

        self._initialized = True
        logger.info("DI Container fully initialized")

    async def close(self) -> None:
        """Clean up all dependencies"""
        # The service closes the repository it owns
        if 'meta_service' in self._services:
            await self._services['meta_service'].close()
        elif 'meta_repository' in self._services:
            await self._services['meta_repository'].close()

        self._services.clear()
        self._initialized = False
        logger.info("DI Container closed")

    async def __aenter__(self) -> 'DIContainer':
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # Repositories
    def get_meta_repository(self) -> IMetaRepository:
        """Get meta repository instance (lazy creation)"""
        if 'meta_repository' not in self._services:
            self._services['meta_repository'] = RepositoryFactory.create_meta_repository(self.settings)
            logger.debug("Meta repository created", type=self.settings.meta_repository)
        return self._services['meta_repository']

    # Services
    async def get_meta_service(self) -> IMetaService:
        """Get meta service instance (lazy initialization)"""
        if 'meta_service' not in self._services:
            service = ServiceFactory.create_meta_service(self.get_meta_repository(), self.settings)
            await service.initialize()
            self._services['meta_service'] = service
            logger.debug("Meta service created and initialized")
        return self._services['meta_service']

    # Service Info
    def get_container_info(self) -> Dict[str, Any]:
        """Get container status and dependency information"""
        return {
            "initialized": self._initialized,
            "cached_services": list(self._services.keys()),
            "settings": {
                "meta_repository": self.settings.meta_repository,
                "default_realm": self.settings.default_realm,
                "table_name": self.settings.table_name,
                "database_path": self.settings.database_path_resolved
            }
        }
