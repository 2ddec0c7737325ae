"""
Venue listing and file management across the configured buckets.

Venues are not stored anywhere; they are the top-level "folders" of each
bucket. A root entry counts as a venue folder when its name has no ".".
That heuristic breaks for venue names containing a period and for
extension-less files, and is kept for compatibility with existing data.
"""
from typing import Dict, List, Mapping

from ..errors import UnknownBucket, UpstreamFailure
from ..logging import get_logger
from ..schemas.venues import VenueFile
from ..storage.provider import StorageEntry, StorageError, StorageProvider


logger = get_logger(__name__)


def looks_like_folder(entry: StorageEntry) -> bool:
    return bool(entry.name) and "." not in entry.name


def list_venues(storage: StorageProvider, buckets: Mapping[str, str], limit: int = 1000) -> List[str]:
    venues = set()
    for bucket in buckets.values():
        try:
            entries = storage.list(bucket, "", limit=limit)
        except StorageError as e:
            logger.error("list_venues_failed", bucket=bucket, error=str(e))
            raise UpstreamFailure("Unable to retrieve venue list")
        venues.update(entry.name for entry in entries if looks_like_folder(entry))
    return sorted(venues)


def list_venue_files(
    storage: StorageProvider, buckets: Mapping[str, str], venue_name: str, limit: int = 1000
) -> Dict[str, List[VenueFile]]:
    """Files directly under ``venue_name`` in each bucket, keyed by bucket kind.

    Sub-folders (photo categories) are skipped, same as on the root listing.
    """
    files: Dict[str, List[VenueFile]] = {}
    for kind, bucket in buckets.items():
        try:
            entries = storage.list(bucket, venue_name, limit=limit)
        except StorageError as e:
            logger.error("list_venue_files_failed", bucket=bucket, venue=venue_name, error=str(e))
            raise UpstreamFailure("Unable to retrieve files for this venue")
        files[kind] = [
            VenueFile(
                name=entry.name,
                size=entry.size or 0,
                last_modified=entry.updated_at,
                url=storage.get_public_url(bucket, f"{venue_name}/{entry.name}"),
            )
            for entry in entries
            if entry.name and not looks_like_folder(entry)
        ]
    return files


def delete_venue_file(
    storage: StorageProvider,
    buckets: Mapping[str, str],
    venue_name: str,
    bucket: str,
    file_name: str,
) -> str:
    if bucket not in buckets.values():
        raise UnknownBucket()
    path = f"{venue_name}/{file_name}"
    try:
        storage.delete(bucket, path)
    except StorageError as e:
        logger.error("delete_failed", bucket=bucket, path=path, error=str(e))
        raise UpstreamFailure("Unable to delete the specified file")
    logger.info("file_deleted", bucket=bucket, path=path)
    return path
