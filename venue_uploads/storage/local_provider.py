"""
Local filesystem storage provider for development.
Stores objects under ``<base_dir>/<bucket>/<key>`` instead of Azure Blob Storage.
"""
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List
from urllib.parse import quote

from .provider import BucketInfo, StorageEntry, StorageError, StorageProvider


class LocalStorageProvider(StorageProvider):
    """Local filesystem storage provider for development."""

    def __init__(self, base_dir: str, public_base_url: str, buckets: Iterable[str] = ()):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")
        for bucket in buckets:
            (self.base_dir / bucket).mkdir(exist_ok=True)

    def resolve_path(self, bucket: str, key: str) -> Path:
        """Map a bucket/key pair to a path, refusing anything outside the bucket."""
        bucket_dir = (self.base_dir / bucket).resolve()
        if bucket_dir.parent != self.base_dir.resolve():
            raise StorageError(f"invalid bucket {bucket!r}")
        path = (bucket_dir / key.lstrip("/").replace("\\", "/")).resolve()
        if path != bucket_dir and bucket_dir not in path.parents:
            raise StorageError(f"key {key!r} escapes bucket {bucket!r}")
        return path

    def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        if not (self.base_dir / bucket).is_dir():
            raise StorageError(f"bucket {bucket!r} not found")
        path = self.resolve_path(bucket, key)
        if path.exists():
            raise StorageError(f"object {bucket}/{key} already exists")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise StorageError(f"write of {bucket}/{key} failed: {e}") from e

    def get_public_url(self, bucket: str, key: str) -> str:
        return f"{self.public_base_url}/files/local/{quote(bucket)}/{quote(key.lstrip('/'))}"

    def list(self, bucket: str, prefix: str = "", limit: int = 1000) -> List[StorageEntry]:
        directory = self.resolve_path(bucket, prefix)
        if not directory.is_dir():
            return []
        entries: List[StorageEntry] = []
        for child in sorted(directory.iterdir(), key=lambda p: p.name)[:limit]:
            if child.is_dir():
                entries.append(StorageEntry(name=child.name))
            else:
                stat = child.stat()
                entries.append(
                    StorageEntry(
                        name=child.name,
                        size=stat.st_size,
                        updated_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                    )
                )
        return entries

    def delete(self, bucket: str, key: str) -> None:
        path = self.resolve_path(bucket, key)
        try:
            if path.is_file():
                path.unlink()
        except OSError as e:
            raise StorageError(f"delete of {bucket}/{key} failed: {e}") from e

    def list_buckets(self) -> List[BucketInfo]:
        buckets: List[BucketInfo] = []
        for child in sorted(self.base_dir.iterdir(), key=lambda p: p.name):
            if child.is_dir():
                mtime = datetime.fromtimestamp(child.stat().st_mtime, tz=timezone.utc)
                buckets.append(BucketInfo(name=child.name, public=True, updated_at=mtime))
        return buckets
