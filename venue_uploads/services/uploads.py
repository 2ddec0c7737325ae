"""
Upload batch validation and per-file upload to a storage bucket.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from ..config import Settings
from ..errors import EmptyFile, FileTooLarge, MissingField, NoFilesProvided
from ..logging import get_logger
from ..schemas.uploads import UploadResult
from ..storage.provider import StorageError, StorageProvider
from . import naming


logger = get_logger(__name__)


@dataclass
class FileRecord:
    original_name: str
    mime_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


def validate_batch(files: Sequence[FileRecord], settings: Settings) -> None:
    """Reject empty batches, oversized files and empty files, in that order."""
    if not files:
        raise NoFilesProvided()
    for f in files:
        if not naming.validate_file_size(f.size, settings.max_file_size):
            raise FileTooLarge(settings.max_file_size_mb, filename=f.original_name)
        if f.size == 0:
            raise EmptyFile(f.original_name)


def require_venue_name(venue_name: Optional[str]) -> str:
    venue = (venue_name or "").strip()
    if not venue:
        raise MissingField("Please provide a venue name", field="venueName")
    if not naming.sanitize_venue_name(venue):
        raise MissingField(
            "Venue name must contain at least one letter or digit", field="venueName"
        )
    return venue


def upload_file(
    storage: StorageProvider,
    record: FileRecord,
    bucket: str,
    venue_name: str,
    category: Optional[str] = None,
) -> UploadResult:
    folder = naming.folder_path(venue_name, category)
    name = naming.object_name(venue_name, record.original_name, category)
    path = naming.object_path(folder, name)

    storage.upload(bucket, path, record.content, record.mime_type)

    return UploadResult(
        original_name=record.original_name,
        success=True,
        object_name=name,
        folder=folder,
        file_path=path,
        url=storage.get_public_url(bucket, path),
        size_bytes=record.size,
        formatted_size=naming.format_file_size(record.size),
        mime_type=record.mime_type,
        category=naming.file_category(record.mime_type),
        uploaded_at=datetime.now(timezone.utc),
    )


def upload_files(
    storage: StorageProvider,
    files: Sequence[FileRecord],
    bucket: str,
    venue_name: str,
    category: Optional[str] = None,
) -> List[UploadResult]:
    """Upload each file in turn. A failure is recorded for that file only."""
    results: List[UploadResult] = []
    for record in files:
        try:
            results.append(upload_file(storage, record, bucket, venue_name, category))
        except StorageError as e:
            logger.warning(
                "upload_failed", bucket=bucket, original_name=record.original_name, error=str(e)
            )
            results.append(
                UploadResult(original_name=record.original_name, success=False, error="Upload failed")
            )
        except Exception:
            logger.exception(
                "upload_unexpected_error", bucket=bucket, original_name=record.original_name
            )
            results.append(
                UploadResult(
                    original_name=record.original_name,
                    success=False,
                    error="Unexpected upload error",
                )
            )
    return results
