"""
Factory classes for Dependency Injection

Provides factory methods to create implementations based on configuration.
"""

from .repository_factory import RepositoryFactory
from .service_factory import ServiceFactory

__all__ = [
    "RepositoryFactory",
    "ServiceFactory",
]
