"""Meta service implementations"""

from .interface import IMetaService
from .service import MetaService

__all__ = [
    "IMetaService",
    "MetaService"
]
