"""
Service Factory

Creates service instances using repository dependencies.
"""

import structlog

from ..config import Settings
from ..repositories.meta import IMetaRepository
from ..services.meta import IMetaService, MetaService

logger = structlog.get_logger(__name__)


class ServiceFactory:
    """Factory for creating service instances with proper dependency injection"""

    @staticmethod
    def create_meta_service(meta_repository: IMetaRepository, settings: Settings) -> IMetaService:
        """
        Create meta service with repository dependency.

        Args:
            meta_repository: Meta repository (initialized lazily by the service)
            settings: Meta store settings providing the default realm

        Returns:
            Configured meta service instance
        """
        logger.info("Creating meta service", default_realm=settings.default_realm)
        return MetaService(meta_repository, default_realm=settings.default_realm)
