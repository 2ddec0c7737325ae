"""
Storage path and object naming for venue uploads.

Objects are stored as ``<venue>[/<category>]/<venue>[_<category>]_<timestamp>_<id><ext>``.
The timestamp has second precision and the id is the first 8 characters of a
UUID4, so two uploads landing in the same second still get distinct names.

Every function here is total: it accepts any string and never raises.
"""
import os
import re
import uuid
from datetime import datetime, timezone
from typing import AbstractSet, Optional

from ..config import DOCUMENT_TYPES


_VENUE_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_CATEGORY_DISALLOWED = re.compile(r"[^a-z0-9]")
_WHITESPACE_RUN = re.compile(r"\s+")
_HYPHEN_RUN = re.compile(r"-+")

SUFFIX_LENGTH = 8


def sanitize_venue_name(raw: str) -> str:
    """Reduce free text to a lowercase, hyphen-separated path segment.

    "Grand Ballroom!!" becomes "grand-ballroom". May return an empty string;
    callers reject empty venues before naming anything.
    """
    value = _VENUE_DISALLOWED.sub("", raw.lower())
    value = _WHITESPACE_RUN.sub("-", value)
    value = _HYPHEN_RUN.sub("-", value)
    return value.strip("-")


def sanitize_category(raw: Optional[str]) -> str:
    if not raw:
        return ""
    return _CATEGORY_DISALLOWED.sub("", raw.lower())


def file_extension(filename: str) -> str:
    return os.path.splitext(filename)[1].lower()


def format_timestamp(now: datetime) -> str:
    # ISO-8601 at second precision with ':' and '.' swapped for '-'
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return re.sub(r"[:.]", "-", now.replace(microsecond=0, tzinfo=None).isoformat())[:19]


def random_suffix() -> str:
    return str(uuid.uuid4())[:SUFFIX_LENGTH]


def folder_path(venue_name: str, category: Optional[str] = None) -> str:
    venue = sanitize_venue_name(venue_name)
    cat = sanitize_category(category)
    if cat:
        return f"{venue}/{cat}"
    return venue


def object_name(
    venue_name: str,
    original_name: str,
    category: Optional[str] = None,
    now: Optional[datetime] = None,
    suffix: Optional[str] = None,
) -> str:
    """Build a collision-resistant object name for one uploaded file.

    ``now`` defaults to the current UTC time and ``suffix`` to a fresh
    UUID4 prefix; tests pass both to get a deterministic name.
    """
    parts = [sanitize_venue_name(venue_name)]
    cat = sanitize_category(category)
    if cat:
        parts.append(cat)
    parts.append(format_timestamp(now or datetime.now(timezone.utc)))
    parts.append(suffix if suffix is not None else random_suffix())
    return "_".join(parts) + file_extension(original_name)


def object_path(folder: str, name: str) -> str:
    return f"{folder}/{name}"


def validate_file_type(mime_type: str, allowed_types: AbstractSet[str]) -> bool:
    return mime_type in allowed_types


def validate_file_size(size: int, max_size: int) -> bool:
    return size <= max_size


def file_category(mime_type: str) -> str:
    """Advisory classification: "image", "document" or "other".

    Not used to accept or reject files; the allow-list does that.
    """
    if mime_type.startswith("image/"):
        return "image"
    if mime_type == "application/pdf" or "document" in mime_type or "word" in mime_type:
        return "document"
    return "other"


def is_image_file(mime_type: str) -> bool:
    return mime_type.startswith("image/")


def is_document_file(mime_type: str) -> bool:
    return mime_type in DOCUMENT_TYPES


_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(num_bytes: int) -> str:
    if num_bytes <= 0:
        return "0 Bytes"
    i = 0
    while num_bytes >= 1024 ** (i + 1) and i < len(_SIZE_UNITS) - 1:
        i += 1
    # Two decimals at most, trailing zeros dropped: 2.00 -> "2", 1.50 -> "1.5"
    text = f"{num_bytes / 1024 ** i:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[i]}"
