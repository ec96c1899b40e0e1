"""
metastore

Typed key-value metadata scoped by realm and optional owner, stored in SQLite.
"""

__version__ = "0.1.0"

from .codec import ValueType, decode, encode, validate_key
from .config import Settings, get_settings
from .di_container import DIContainer
from .exceptions import (
    AlreadyExists,
    InvalidKey,
    InvalidScope,
    InvalidType,
    MetaError,
    NotFound,
    StorageError,
    UniqueConstraintError,
    UnsupportedValueType,
)
from .models import MetaRecord, MetaScope
from .services.meta import IMetaService, MetaService

__all__ = [
    "AlreadyExists",
    "DIContainer",
    "IMetaService",
    "InvalidKey",
    "InvalidScope",
    "InvalidType",
    "MetaError",
    "MetaRecord",
    "MetaScope",
    "MetaService",
    "NotFound",
    "Settings",
    "StorageError",
    "UniqueConstraintError",
    "UnsupportedValueType",
    "ValueType",
    "decode",
    "encode",
    "get_settings",
    "validate_key",
]
