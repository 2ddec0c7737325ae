import re
from datetime import datetime, timedelta, timezone

import pytest

from venue_uploads.config import ALLOWED_TYPES
from venue_uploads.services import naming


SANITIZED = re.compile(r"^([a-z0-9]+(-[a-z0-9]+)*)?$")
FIXED_NOW = datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Grand Ballroom!!", "grand-ballroom"),
        ("  --Multi   Space--  ", "multi-space"),
        ("The Grand Hotel", "the-grand-hotel"),
        ("Café Royale", "caf-royale"),
        ("a - b", "a-b"),
        ("Tab\tand\nnewline", "tab-and-newline"),
        ("St. Mary's Hall", "st-marys-hall"),
        ("!!!", ""),
        ("", ""),
        ("----", ""),
    ],
)
def test_sanitize_venue_name(raw, expected):
    assert naming.sanitize_venue_name(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        "Grand Ballroom!!",
        "  --Multi   Space--  ",
        "Ünïcödé Hall № 5",
        "x" * 300,
        "-a-",
        " \t- -\t ",
        "日本語の会場",
        "UPPER_and_lower 123",
    ],
)
def test_sanitize_venue_name_is_idempotent_and_well_formed(raw):
    once = naming.sanitize_venue_name(raw)
    assert SANITIZED.match(once)
    assert naming.sanitize_venue_name(once) == once


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Ceremony", "ceremony"),
        ("Reception Hall", "receptionhall"),
        ("first-dance!", "firstdance"),
        ("", ""),
        (None, ""),
    ],
)
def test_sanitize_category(raw, expected):
    assert naming.sanitize_category(raw) == expected


def test_folder_path():
    assert naming.folder_path("The Grand Hotel", "") == "the-grand-hotel"
    assert naming.folder_path("The Grand Hotel", None) == "the-grand-hotel"
    assert naming.folder_path("The Grand Hotel", "Ceremony") == "the-grand-hotel/ceremony"


def test_folder_path_ignores_category_that_sanitizes_to_nothing():
    assert naming.folder_path("The Grand Hotel", "!!!") == "the-grand-hotel"


def test_format_timestamp_has_no_colons_or_periods():
    assert naming.format_timestamp(FIXED_NOW) == "2024-05-01T12-30-45"


def test_format_timestamp_converts_to_utc():
    plus_two = timezone(timedelta(hours=2))
    local = datetime(2024, 5, 1, 14, 30, 45, tzinfo=plus_two)
    assert naming.format_timestamp(local) == "2024-05-01T12-30-45"


def test_object_name_deterministic_with_injected_clock_and_suffix():
    name = naming.object_name("Oakview Manor", "Menu.PDF", now=FIXED_NOW, suffix="abcd1234")
    assert name == "oakview-manor_2024-05-01T12-30-45_abcd1234.pdf"


def test_object_name_with_category():
    name = naming.object_name(
        "Oakview Manor", "IMG_001.jpeg", category="First Dance", now=FIXED_NOW, suffix="abcd1234"
    )
    assert name == "oakview-manor_firstdance_2024-05-01T12-30-45_abcd1234.jpeg"


def test_object_name_without_extension():
    name = naming.object_name("Oakview Manor", "README", now=FIXED_NOW, suffix="abcd1234")
    assert name == "oakview-manor_2024-05-01T12-30-45_abcd1234"


def test_object_names_differ_by_suffix():
    a = naming.object_name("Oakview Manor", "menu.pdf", now=FIXED_NOW, suffix="aaaaaaaa")
    b = naming.object_name("Oakview Manor", "menu.pdf", now=FIXED_NOW, suffix="bbbbbbbb")
    assert a != b


def test_object_names_differ_by_timestamp():
    a = naming.object_name("Oakview Manor", "menu.pdf", now=FIXED_NOW, suffix="aaaaaaaa")
    b = naming.object_name(
        "Oakview Manor", "menu.pdf", now=FIXED_NOW + timedelta(seconds=1), suffix="aaaaaaaa"
    )
    assert a != b


def test_object_name_default_suffix_is_random():
    names = {naming.object_name("Oakview Manor", "menu.pdf", now=FIXED_NOW) for _ in range(50)}
    assert len(names) == 50
    for name in names:
        assert re.match(r"^oakview-manor_2024-05-01T12-30-45_[0-9a-f]{8}\.pdf$", name)


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("photo.JPG", ".jpg"),
        ("archive.tar.gz", ".gz"),
        ("noext", ""),
        (".hidden", ""),
    ],
)
def test_file_extension(filename, expected):
    assert naming.file_extension(filename) == expected


def test_validate_file_type_is_exact_membership():
    assert naming.validate_file_type("image/webp", ALLOWED_TYPES)
    assert not naming.validate_file_type("application/zip", ALLOWED_TYPES)
    assert not naming.validate_file_type("image/*", ALLOWED_TYPES)
    assert not naming.validate_file_type("IMAGE/PNG", ALLOWED_TYPES)


def test_validate_file_size():
    assert naming.validate_file_size(10, 10)
    assert naming.validate_file_size(0, 10)
    assert not naming.validate_file_size(11, 10)


@pytest.mark.parametrize(
    "mime_type, expected",
    [
        ("image/png", "image"),
        ("image/gif", "image"),
        ("application/pdf", "document"),
        ("application/msword", "document"),
        ("application/vnd.openxmlformats-officedocument.wordprocessingml.document", "document"),
        ("text/plain", "other"),
        ("text/csv", "other"),
    ],
)
def test_file_category(mime_type, expected):
    assert naming.file_category(mime_type) == expected


def test_is_document_file_uses_the_document_allow_list():
    assert naming.is_document_file("text/plain")
    assert not naming.is_document_file("text/csv")
    assert naming.is_image_file("image/webp")


@pytest.mark.parametrize(
    "size, expected",
    [
        (0, "0 Bytes"),
        (512, "512 Bytes"),
        (2048, "2 KB"),
        (1536, "1.5 KB"),
        (10 * 1024 * 1024, "10 MB"),
        (3 * 1024 ** 3, "3 GB"),
    ],
)
def test_format_file_size(size, expected):
    assert naming.format_file_size(size) == expected
