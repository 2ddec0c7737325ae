from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


class StorageError(Exception):
    """A storage backend call failed. The message is for server logs only."""


@dataclass
class StorageEntry:
    # Name relative to the listed prefix; sub-folders appear without a trailing "/"
    name: str
    size: Optional[int] = None
    updated_at: Optional[datetime] = None


@dataclass
class BucketInfo:
    name: str
    public: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StorageProvider:
    def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        raise NotImplementedError

    def get_public_url(self, bucket: str, key: str) -> str:
        raise NotImplementedError

    def list(self, bucket: str, prefix: str = "", limit: int = 1000) -> List[StorageEntry]:
        raise NotImplementedError

    def delete(self, bucket: str, key: str) -> None:
        raise NotImplementedError

    def list_buckets(self) -> List[BucketInfo]:
        raise NotImplementedError
