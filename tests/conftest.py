from datetime import datetime, timezone
from typing import Callable, Dict, List, Tuple

import pytest
from fastapi.testclient import TestClient

from venue_uploads.config import Settings
from venue_uploads.main import create_app
from venue_uploads.storage.factory import get_storage
from venue_uploads.storage.provider import BucketInfo, StorageEntry, StorageError, StorageProvider


ACCESS_TOKEN = "test-secret"


class FakeStorage(StorageProvider):
    """In-memory stand-in for the blob backend, with switchable failures."""

    def __init__(self, buckets):
        self.objects: Dict[str, Dict[str, Tuple[bytes, str]]] = {b: {} for b in buckets}
        self.fail_upload: Callable[[str], bool] = lambda key: False
        self.fail_list = False
        self.fail_delete = False
        self.deleted: List[Tuple[str, str]] = []

    def upload(self, bucket, key, data, content_type):
        if bucket not in self.objects:
            raise StorageError(f"bucket {bucket} not found")
        if self.fail_upload(key):
            raise StorageError(f"simulated failure for {key}")
        self.objects[bucket][key] = (data, content_type)

    def get_public_url(self, bucket, key):
        return f"https://storage.test/{bucket}/{key}"

    def list(self, bucket, prefix="", limit=1000):
        if self.fail_list:
            raise StorageError("simulated list failure")
        start = f"{prefix.strip('/')}/" if prefix else ""
        entries: Dict[str, StorageEntry] = {}
        for key, (data, _) in sorted(self.objects.get(bucket, {}).items()):
            if not key.startswith(start):
                continue
            rest = key[len(start):]
            if "/" in rest:
                folder = rest.split("/", 1)[0]
                entries.setdefault(folder, StorageEntry(name=folder))
            else:
                entries[rest] = StorageEntry(
                    name=rest, size=len(data), updated_at=datetime(2024, 5, 1, tzinfo=timezone.utc)
                )
        return list(entries.values())[:limit]

    def delete(self, bucket, key):
        if self.fail_delete:
            raise StorageError("simulated delete failure")
        self.objects.get(bucket, {}).pop(key, None)
        self.deleted.append((bucket, key))

    def list_buckets(self):
        return [BucketInfo(name=name, public=True) for name in self.objects]


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        access_token=ACCESS_TOKEN,
        storage_provider="local",
        local_storage_dir=str(tmp_path / "storage"),
        validate_buckets_on_startup=False,
        rate_limit_enabled=False,
        metrics_enabled=False,
        max_file_size=1024 * 1024,
    )


@pytest.fixture
def storage(settings) -> FakeStorage:
    return FakeStorage(settings.buckets.values())


@pytest.fixture
def app(settings, storage):
    app = create_app(settings)
    app.dependency_overrides[get_storage] = lambda: storage
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {ACCESS_TOKEN}"}


@pytest.fixture
def access_token() -> str:
    return ACCESS_TOKEN
