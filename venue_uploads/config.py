from functools import lru_cache
from typing import Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


IMAGE_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
)

DOCUMENT_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.oasis.opendocument.text",
    "text/plain",
)

ALLOWED_TYPES = frozenset(IMAGE_TYPES + DOCUMENT_TYPES)

# Bucket kinds exposed in the API, in listing order
BUCKET_KINDS = ("photos", "menus", "pricing")


class Settings(BaseSettings):
    # Core
    environment: str = Field(default="development", alias="ENVIRONMENT")
    app_name: str = Field(default="Wedding Venue Upload Tool API")
    app_version: str = Field(default="1.0.0")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000, alias="PORT")

    # Auth: single shared secret; None means the deployment is misconfigured
    access_token: Optional[str] = Field(default=None, alias="ACCESS_TOKEN")

    # Uploads
    max_file_size: int = Field(default=10 * 1024 * 1024, alias="MAX_FILE_SIZE")
    max_files_per_request: int = Field(default=10, alias="MAX_FILES_PER_REQUEST")
    upload_field_name: str = Field(default="files")

    # Buckets
    photos_bucket: str = Field(default="photos", alias="PHOTOS_BUCKET")
    menus_bucket: str = Field(default="menus", alias="MENUS_BUCKET")
    pricing_bucket: str = Field(default="pricing", alias="PRICING_BUCKET")
    list_limit: int = Field(default=1000, alias="LIST_LIMIT")

    # Storage
    storage_provider: str = Field(default="blob", alias="STORAGE_PROVIDER")
    azure_blob_connection: Optional[str] = Field(default=None, alias="AZURE_BLOB_CONNECTION")
    local_storage_dir: str = Field(default="var/storage", alias="LOCAL_STORAGE_DIR")
    public_base_url: str = Field(default="http://localhost:5000", alias="PUBLIC_BASE_URL")
    validate_buckets_on_startup: bool = Field(default=True, alias="VALIDATE_BUCKETS_ON_STARTUP")

    # CORS
    cors_origins: List[str] = Field(
        default=[
            "http://localhost:5173",
            "http://localhost:3000",
            "https://wedding-file-upload.netlify.app",
        ],
        alias="CORS_ORIGINS",
    )
    cors_origin_regex: Optional[str] = Field(
        default=r"https://.*\.(netlify\.app|manus\.space)",
        alias="CORS_ORIGIN_REGEX",
    )

    # Rate limit
    rate_limit: str = Field(default="100/15minutes", alias="RATE_LIMIT")
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    rate_limit_storage_uri: str = Field(default="memory://", alias="RATE_LIMIT_STORAGE_URI")

    # Observability
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    metrics_enabled: bool = Field(default=True, alias="METRICS_ENABLED")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        populate_by_name = True

    @property
    def buckets(self) -> Dict[str, str]:
        return {
            "photos": self.photos_bucket,
            "menus": self.menus_bucket,
            "pricing": self.pricing_bucket,
        }

    @property
    def allowed_types(self) -> frozenset:
        return ALLOWED_TYPES

    @property
    def max_file_size_mb(self) -> int:
        return round(self.max_file_size / (1024 * 1024))

    @property
    def max_request_size(self) -> int:
        # Full batch of files plus room for multipart headers and form fields
        return self.max_files_per_request * self.max_file_size + 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    return Settings()
