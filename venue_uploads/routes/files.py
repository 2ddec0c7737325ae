from mimetypes import guess_type

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from ..storage.factory import get_storage
from ..storage.local_provider import LocalStorageProvider
from ..storage.provider import StorageError, StorageProvider


router = APIRouter(prefix="/files", tags=["files"])


@router.get("/local/{bucket}/{file_path:path}")
def serve_local_file(bucket: str, file_path: str, storage: StorageProvider = Depends(get_storage)):
    """Serve objects from local storage for development."""
    if not isinstance(storage, LocalStorageProvider):
        raise HTTPException(status_code=404, detail="File not found")

    try:
        path = storage.resolve_path(bucket, file_path)
    except StorageError:
        raise HTTPException(status_code=403, detail="Access denied")

    if not path.is_file():
        raise HTTPException(status_code=404, detail="File not found")

    content_type = guess_type(path.name)[0] or "application/octet-stream"
    return FileResponse(path=str(path), media_type=content_type, filename=path.name)
