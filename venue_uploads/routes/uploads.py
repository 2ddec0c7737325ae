from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from ..auth.security import require_access_token
from ..config import Settings, get_settings
from ..errors import UpstreamFailure
from ..logging import get_logger
from ..schemas.uploads import BucketStatus, StatusResponse, UploadResponse
from ..services.uploads import require_venue_name, upload_files, validate_batch
from ..storage.factory import get_storage
from ..storage.provider import StorageError, StorageProvider
from .forms import read_upload_form


router = APIRouter(
    prefix="/api/upload",
    tags=["uploads"],
    dependencies=[Depends(require_access_token)],
)
logger = get_logger(__name__)


async def _handle_upload(
    kind: str,
    request: Request,
    settings: Settings,
    storage: StorageProvider,
    accept_category: bool = False,
) -> UploadResponse:
    files, fields = await read_upload_form(request, settings)
    validate_batch(files, settings)
    venue = require_venue_name(fields.get("venueName"))
    category: Optional[str] = (fields.get("category") or None) if accept_category else None
    bucket = settings.buckets[kind]

    results = await run_in_threadpool(upload_files, storage, files, bucket, venue, category)

    succeeded = sum(1 for r in results if r.success)
    logger.info(
        "upload_batch_completed",
        bucket=bucket,
        venue=venue,
        files=len(results),
        succeeded=succeeded,
    )
    if succeeded == len(results):
        message = f"Successfully uploaded {succeeded} file(s) to {kind} bucket"
    else:
        message = f"Uploaded {succeeded} of {len(results)} file(s) to {kind} bucket"
    return UploadResponse(
        success=succeeded > 0,
        message=message,
        uploads=results,
        bucket=bucket,
        venue=venue,
        category=(category or "general") if accept_category else None,
    )


@router.post("/photos", response_model=UploadResponse, response_model_exclude_none=True)
async def upload_photos(
    request: Request,
    settings: Settings = Depends(get_settings),
    storage: StorageProvider = Depends(get_storage),
):
    return await _handle_upload("photos", request, settings, storage, accept_category=True)


@router.post("/menus", response_model=UploadResponse, response_model_exclude_none=True)
async def upload_menus(
    request: Request,
    settings: Settings = Depends(get_settings),
    storage: StorageProvider = Depends(get_storage),
):
    return await _handle_upload("menus", request, settings, storage)


@router.post("/pricing", response_model=UploadResponse, response_model_exclude_none=True)
async def upload_pricing(
    request: Request,
    settings: Settings = Depends(get_settings),
    storage: StorageProvider = Depends(get_storage),
):
    return await _handle_upload("pricing", request, settings, storage)


@router.get("/status", response_model=StatusResponse, response_model_exclude_none=True)
def upload_status(
    settings: Settings = Depends(get_settings),
    storage: StorageProvider = Depends(get_storage),
):
    configured = set(settings.buckets.values())
    try:
        buckets = storage.list_buckets()
    except StorageError as e:
        logger.error("status_check_failed", error=str(e))
        raise UpstreamFailure("Unable to retrieve upload status")
    return StatusResponse(
        success=True,
        buckets={
            b.name: BucketStatus(
                name=b.name, public=b.public, created_at=b.created_at, updated_at=b.updated_at
            )
            for b in buckets
            if b.name in configured
        },
        allowed_buckets=settings.buckets,
        server_time=datetime.now(timezone.utc),
    )
