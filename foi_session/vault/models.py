"""
Cache record and lookup result types.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Union

import orjson
from pydantic import BaseModel, ConfigDict, Field


class CacheEntry(BaseModel):
    """Persisted record of one encrypted document.

    Serialized with camelCase field names and ISO-8601 instants.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    document_id: str = Field(alias="documentId", min_length=1)
    encrypted_data: str = Field(alias="encryptedData")
    iv: str
    timestamp: datetime
    expires_at: datetime = Field(alias="expiresAt")

    @classmethod
    def create(
        cls,
        document_id: str,
        encrypted_data: str,
        iv: str,
        now: datetime,
        ttl: timedelta,
    ) -> "CacheEntry":
        return cls(
            document_id=document_id,
            encrypted_data=encrypted_data,
            iv=iv,
            timestamp=now,
            expires_at=now + ttl,
        )

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def dumps(self) -> bytes:
        return orjson.dumps(self.model_dump(mode="json", by_alias=True))

    @classmethod
    def loads(cls, raw: Union[bytes, str]) -> "CacheEntry":
        """Parse a stored record.

        Raises:
            orjson.JSONDecodeError: If the record is not JSON.
            pydantic.ValidationError: If fields are missing or malformed.
        """
        return cls.model_validate(orjson.loads(raw))


@dataclass(frozen=True)
class CacheHit:
    data: bytes
    hit = True


@dataclass(frozen=True)
class CacheMiss:
    reason: str
    hit = False


# reasons
MISS_ABSENT = "absent"
MISS_EXPIRED = "expired"
MISS_UNREADABLE = "unreadable"
MISS_STORAGE = "storage-error"
MISS_CLEARED = "panic-cleared"

LookupResult = Union[CacheHit, CacheMiss]
