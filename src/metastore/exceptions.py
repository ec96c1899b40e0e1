"""
Error taxonomy for the meta store

Every failure raised by the codec, the service layer and the storage
backends derives from MetaError.
"""

from typing import Any, Optional


class MetaError(Exception):
    """Base class for all meta store errors"""
    pass


class InvalidKey(MetaError, ValueError):
    """Key has a wrong type or is longer than 128 characters"""
    pass


class InvalidScope(MetaError, ValueError):
    """Realm, owner type or owner id is malformed"""
    pass


class InvalidType(MetaError, ValueError):
    """Type tag is not one of the allowed tags"""
    pass


class UnsupportedValueType(MetaError, TypeError):
    """Value cannot be encoded into (or decoded from) a stored row"""
    pass


class AlreadyExists(MetaError):
    """Create was called for a scope and key that already hold a record"""

    def __init__(self, scope: Any, key: str, message: Optional[str] = None):
        self.scope = scope
        self.key = key
        super().__init__(message or f"Can't create meta (key: {key}). Meta already exists in {scope}")


class NotFound(MetaError):
    """Update was called for a scope and key without a record"""

    def __init__(self, scope: Any, key: str, message: Optional[str] = None):
        self.scope = scope
        self.key = key
        super().__init__(message or f"Can't update meta (key: {key}). Meta doesn't exist in {scope}")


class StorageError(MetaError):
    """Opaque storage backend failure"""
    pass


class UniqueConstraintError(StorageError):
    """Insert or update rejected by the (realm, owner_type, owner_id, key) uniqueness constraint"""
    pass
