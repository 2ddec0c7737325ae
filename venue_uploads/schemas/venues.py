from datetime import datetime
from typing import Dict, List, Optional

from .uploads import ApiModel


class VenueListResponse(ApiModel):
    success: bool
    venues: List[str]
    count: int


class VenueFile(ApiModel):
    name: str
    size: int
    last_modified: Optional[datetime] = None
    url: str


class VenueFilesResponse(ApiModel):
    success: bool
    venue: str
    files: Dict[str, List[VenueFile]]
    total_files: int


class DeletedFile(ApiModel):
    venue: str
    bucket: str
    file_name: str
    file_path: str


class DeleteResponse(ApiModel):
    success: bool
    message: str
    deleted_file: DeletedFile
