from fastapi import Depends

from ..config import Settings, get_settings
from .blob_provider import BlobStorageProvider
from .local_provider import LocalStorageProvider
from .provider import StorageProvider


def build_storage(settings: Settings) -> StorageProvider:
    """
    Pick the storage backend from configuration.
    STORAGE_PROVIDER=blob needs AZURE_BLOB_CONNECTION; a blob deployment
    without it is a configuration error, never a silent switch to local disk.
    """
    provider = settings.storage_provider.lower()
    if provider == "blob":
        if not settings.azure_blob_connection:
            raise RuntimeError("STORAGE_PROVIDER=blob requires AZURE_BLOB_CONNECTION to be set")
        return BlobStorageProvider(settings.azure_blob_connection)
    if provider == "local":
        return LocalStorageProvider(
            base_dir=settings.local_storage_dir,
            public_base_url=settings.public_base_url,
            buckets=settings.buckets.values(),
        )
    raise RuntimeError(f"Unknown STORAGE_PROVIDER {settings.storage_provider!r}; expected 'blob' or 'local'")


def get_storage(settings: Settings = Depends(get_settings)) -> StorageProvider:
    return build_storage(settings)
