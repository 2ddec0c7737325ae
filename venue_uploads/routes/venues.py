from fastapi import APIRouter, Depends

from ..auth.security import require_access_token
from ..config import Settings, get_settings
from ..schemas.venues import (
    DeletedFile,
    DeleteResponse,
    VenueFilesResponse,
    VenueListResponse,
)
from ..services import venues as venue_service
from ..storage.factory import get_storage
from ..storage.provider import StorageProvider


router = APIRouter(
    prefix="/api/venues",
    tags=["venues"],
    dependencies=[Depends(require_access_token)],
)


@router.get("", response_model=VenueListResponse)
def list_venues(
    settings: Settings = Depends(get_settings),
    storage: StorageProvider = Depends(get_storage),
):
    venues = venue_service.list_venues(storage, settings.buckets, limit=settings.list_limit)
    return VenueListResponse(success=True, venues=venues, count=len(venues))


@router.get("/{venue_name}/files", response_model=VenueFilesResponse)
def list_venue_files(
    venue_name: str,
    settings: Settings = Depends(get_settings),
    storage: StorageProvider = Depends(get_storage),
):
    files = venue_service.list_venue_files(
        storage, settings.buckets, venue_name, limit=settings.list_limit
    )
    return VenueFilesResponse(
        success=True,
        venue=venue_name,
        files=files,
        total_files=sum(len(v) for v in files.values()),
    )


@router.delete("/{venue_name}/files/{bucket}/{file_name}", response_model=DeleteResponse)
def delete_venue_file(
    venue_name: str,
    bucket: str,
    file_name: str,
    settings: Settings = Depends(get_settings),
    storage: StorageProvider = Depends(get_storage),
):
    path = venue_service.delete_venue_file(storage, settings.buckets, venue_name, bucket, file_name)
    return DeleteResponse(
        success=True,
        message="File deleted successfully",
        deleted_file=DeletedFile(venue=venue_name, bucket=bucket, file_name=file_name, file_path=path),
    )
