"""
Meta store models

MetaScope addresses a bucket of keys; MetaRecord is one stored row.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .codec import MAX_KEY_LENGTH, ValueType
from .exceptions import InvalidScope


class MetaScope(BaseModel):
    """Addressing scope (realm, owner type, owner id)"""

    model_config = ConfigDict(frozen=True)

    realm: str = Field(max_length=MAX_KEY_LENGTH)
    owner_type: str = Field(default="", max_length=MAX_KEY_LENGTH)
    owner_id: str = Field(default="", max_length=MAX_KEY_LENGTH)

    @field_validator("owner_type", "owner_id", mode="before")
    @classmethod
    def coerce_owner(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @classmethod
    def build(cls, realm: str, owner_type: Any = "", owner_id: Any = "") -> "MetaScope":
        """Create a scope, raising InvalidScope instead of a pydantic error"""
        try:
            return cls(realm=realm, owner_type=owner_type, owner_id=owner_id)
        except ValidationError as e:
            raise InvalidScope(f"Invalid meta scope: {e}") from e

    @property
    def has_owner(self) -> bool:
        return bool(self.owner_type or self.owner_id)

    def __str__(self) -> str:
        if self.has_owner:
            return f"realm '{self.realm}' ({self.owner_type}:{self.owner_id})"
        return f"realm '{self.realm}'"


class MetaRecord(BaseModel):
    """Stored meta row with its encoded value"""

    id: Optional[int] = None
    realm: str
    owner_type: str = ""
    owner_id: str = ""
    key: str
    value: Optional[str] = None
    type: ValueType = ValueType.STRING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, value: Any) -> ValueType:
        return ValueType.parse(value)

    @property
    def scope(self) -> MetaScope:
        return MetaScope(realm=self.realm, owner_type=self.owner_type, owner_id=self.owner_id)

    def with_scope(self, scope: MetaScope) -> "MetaRecord":
        """Copy of this record re-asserted onto the given scope"""
        return self.model_copy(
            update={"realm": scope.realm, "owner_type": scope.owner_type, "owner_id": scope.owner_id}
        )
