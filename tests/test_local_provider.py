import pytest
from fastapi.testclient import TestClient

from venue_uploads.main import create_app
from venue_uploads.storage.factory import build_storage
from venue_uploads.storage.local_provider import LocalStorageProvider
from venue_uploads.storage.provider import StorageError


@pytest.fixture
def local(tmp_path):
    return LocalStorageProvider(
        base_dir=str(tmp_path / "store"),
        public_base_url="http://testserver/",
        buckets=["photos", "menus"],
    )


def test_factory_builds_local_provider(settings):
    assert isinstance(build_storage(settings), LocalStorageProvider)


def test_factory_refuses_blob_without_connection(settings):
    settings.storage_provider = "blob"
    settings.azure_blob_connection = None
    with pytest.raises(RuntimeError, match="AZURE_BLOB_CONNECTION"):
        build_storage(settings)


def test_factory_rejects_unknown_provider(settings):
    settings.storage_provider = "s3"
    with pytest.raises(RuntimeError, match="STORAGE_PROVIDER"):
        build_storage(settings)


def test_upload_and_list(local):
    local.upload("photos", "venue/cat/a.png", b"abc", "image/png")
    local.upload("photos", "venue/b.png", b"abcd", "image/png")

    root = local.list("photos")
    assert [e.name for e in root] == ["venue"]
    assert root[0].size is None

    entries = local.list("photos", "venue")
    assert [e.name for e in entries] == ["b.png", "cat"]
    assert entries[0].size == 4
    assert entries[0].updated_at is not None


def test_list_missing_prefix_is_empty(local):
    assert local.list("photos", "nobody") == []


def test_upload_refuses_overwrite(local):
    local.upload("menus", "v/a.pdf", b"1", "application/pdf")
    with pytest.raises(StorageError):
        local.upload("menus", "v/a.pdf", b"2", "application/pdf")


def test_upload_to_unknown_bucket(local):
    with pytest.raises(StorageError):
        local.upload("pricing", "v/a.txt", b"1", "text/plain")


def test_keys_cannot_escape_bucket(local):
    with pytest.raises(StorageError):
        local.resolve_path("photos", "../menus/x.pdf")
    with pytest.raises(StorageError):
        local.resolve_path("..", "x")


def test_delete_is_idempotent(local):
    local.upload("photos", "v/a.png", b"1", "image/png")
    local.delete("photos", "v/a.png")
    local.delete("photos", "v/a.png")
    assert local.list("photos", "v") == []


def test_public_url(local):
    assert local.get_public_url("photos", "v/a b.png") == "http://testserver/files/local/photos/v/a%20b.png"


def test_list_buckets(local):
    assert [b.name for b in local.list_buckets()] == ["menus", "photos"]


def test_local_files_are_served(settings, tmp_path):
    settings.public_base_url = "http://testserver"
    client = TestClient(create_app(settings))
    res = client.post(
        "/api/upload/photos",
        headers={"Authorization": f"Bearer {settings.access_token}"},
        data={"venueName": "Oakview Manor"},
        files=[("files", ("a.png", b"\x89PNG....", "image/png"))],
    )
    assert res.status_code == 200
    url = res.json()["uploads"][0]["url"]
    assert url.startswith("http://testserver/files/local/photos/oakview-manor/")

    served = client.get(url)
    assert served.status_code == 200
    assert served.content == b"\x89PNG...."
    assert served.headers["content-type"] == "image/png"

    assert client.get("/files/local/photos/oakview-manor/missing.png").status_code == 404
