from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    # Clients speak camelCase; Python code uses snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadResult(ApiModel):
    original_name: str
    success: bool
    object_name: Optional[str] = None
    folder: Optional[str] = None
    file_path: Optional[str] = None
    url: Optional[str] = None
    size_bytes: Optional[int] = None
    formatted_size: Optional[str] = None
    mime_type: Optional[str] = None
    category: Optional[str] = None  # image | document | other
    uploaded_at: Optional[datetime] = None
    error: Optional[str] = None


class UploadResponse(ApiModel):
    success: bool
    message: str
    uploads: List[UploadResult]
    bucket: str
    venue: str
    category: Optional[str] = None  # photos only


class BucketStatus(ApiModel):
    name: str
    public: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StatusResponse(ApiModel):
    success: bool
    buckets: Dict[str, BucketStatus]
    allowed_buckets: Dict[str, str]
    server_time: datetime
