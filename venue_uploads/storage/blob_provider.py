from itertools import islice
from typing import List, Optional

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobPrefix, BlobServiceClient, ContentSettings

from ..logging import get_logger
from .provider import BucketInfo, StorageEntry, StorageError, StorageProvider


logger = get_logger(__name__)


class BlobStorageProvider(StorageProvider):
    """Azure Blob Storage backend. Each bucket is a blob container.

    Containers are expected to allow anonymous blob reads, so public URLs
    are the plain blob URLs.
    """

    def __init__(self, connection_string: Optional[str]) -> None:
        if not connection_string:
            raise RuntimeError("AZURE_BLOB_CONNECTION must be set")
        self._service = BlobServiceClient.from_connection_string(connection_string)

    def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        client = self._service.get_blob_client(bucket, key.lstrip("/"))
        try:
            client.upload_blob(
                data,
                overwrite=False,
                content_settings=ContentSettings(content_type=content_type),
            )
        except AzureError as e:
            raise StorageError(f"upload of {bucket}/{key} failed: {e}") from e

    def get_public_url(self, bucket: str, key: str) -> str:
        return self._service.get_blob_client(bucket, key.lstrip("/")).url

    def list(self, bucket: str, prefix: str = "", limit: int = 1000) -> List[StorageEntry]:
        start = f"{prefix.strip('/')}/" if prefix.strip("/") else ""
        container = self._service.get_container_client(bucket)
        entries: List[StorageEntry] = []
        try:
            # Delimiter walk yields direct children only, with sub-folders as BlobPrefix
            items = container.walk_blobs(name_starts_with=start or None, delimiter="/")
            for item in islice(items, limit):
                name = item.name[len(start):].rstrip("/")
                if not name:
                    continue
                if isinstance(item, BlobPrefix):
                    entries.append(StorageEntry(name=name))
                else:
                    entries.append(
                        StorageEntry(name=name, size=item.size, updated_at=item.last_modified)
                    )
        except AzureError as e:
            raise StorageError(f"listing {bucket}/{start} failed: {e}") from e
        return entries

    def delete(self, bucket: str, key: str) -> None:
        client = self._service.get_blob_client(bucket, key.lstrip("/"))
        try:
            client.delete_blob()
        except ResourceNotFoundError:
            logger.info("delete_missing_blob", bucket=bucket, key=key)
        except AzureError as e:
            raise StorageError(f"delete of {bucket}/{key} failed: {e}") from e

    def list_buckets(self) -> List[BucketInfo]:
        try:
            return [
                BucketInfo(
                    name=c.name,
                    public=bool(c.public_access),
                    updated_at=c.last_modified,
                )
                for c in self._service.list_containers()
            ]
        except AzureError as e:
            raise StorageError(f"listing containers failed: {e}") from e
