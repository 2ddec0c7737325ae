"""
Streaming multipart reader for upload requests.

The body is fed chunk by chunk to python-multipart's parser, so per-file
limits are enforced while bytes arrive instead of after the whole form
has been spooled.
"""
from typing import Dict, List, Optional, Tuple

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header
from starlette.requests import Request

from ..config import Settings
from ..errors import FileTooLarge, InvalidForm, TooManyFiles, UnexpectedField, UnsupportedFileType
from ..services import naming
from ..services.uploads import FileRecord


MAX_FIELD_SIZE = 64 * 1024
MAX_FIELDS = 50
DEFAULT_FILE_TYPE = "application/octet-stream"


def _decode(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


class UploadFormReader:
    """
    Collects file parts and plain fields from parser callbacks.
    File parts are checked in arrival order: count, field name, declared
    MIME type as soon as their headers are complete, then size while their
    data arrives.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.files: List[FileRecord] = []
        self.fields: Dict[str, str] = {}
        # Bytes held in memory for accepted parts
        self.buffered = 0
        self._field_count = 0
        self._reset_part()

    def _reset_part(self) -> None:
        self._header_field = b""
        self._header_value = b""
        self._headers: Dict[bytes, bytes] = {}
        self._name = ""
        self._filename: Optional[str] = None
        self._mime_type = DEFAULT_FILE_TYPE
        self._chunks: List[bytes] = []
        self._size = 0

    @property
    def callbacks(self):
        return {
            "on_part_begin": self._reset_part,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_headers_finished": self.on_headers_finished,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
        }

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        self._headers[self._header_field.lower()] = self._header_value
        self._header_field = b""
        self._header_value = b""

    def on_headers_finished(self) -> None:
        _, options = parse_options_header(self._headers.get(b"content-disposition", b""))
        self._name = _decode(options.get(b"name", b""))
        filename = options.get(b"filename")
        if filename is None:
            self._field_count += 1
            if self._field_count > MAX_FIELDS:
                raise InvalidForm(f"Too many form fields; at most {MAX_FIELDS} are accepted")
            return

        self._filename = _decode(filename)
        settings = self.settings
        if len(self.files) >= settings.max_files_per_request:
            raise TooManyFiles(settings.max_files_per_request)
        if self._name != settings.upload_field_name:
            raise UnexpectedField(self._name, settings.upload_field_name)
        mime_type = _decode(self._headers.get(b"content-type", b"")).strip()
        self._mime_type = mime_type or DEFAULT_FILE_TYPE
        if not naming.validate_file_type(self._mime_type, settings.allowed_types):
            raise UnsupportedFileType(self._mime_type, settings.allowed_types)

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        chunk = data[start:end]
        self._size += len(chunk)
        if self._filename is not None:
            if self._size > self.settings.max_file_size:
                raise FileTooLarge(self.settings.max_file_size_mb, self._filename or None)
        elif self._size > MAX_FIELD_SIZE:
            raise InvalidForm(f'Form field "{self._name}" is too large')
        self._chunks.append(chunk)
        self.buffered += len(chunk)

    def on_part_end(self) -> None:
        content = b"".join(self._chunks)
        if self._filename is None:
            self.fields.setdefault(self._name, _decode(content))
        else:
            self.files.append(
                FileRecord(original_name=self._filename or "upload", mime_type=self._mime_type, content=content)
            )


def _check_content_length(request: Request, settings: Settings) -> None:
    declared = request.headers.get("content-length")
    if declared is None:
        return
    try:
        length = int(declared)
    except ValueError:
        raise InvalidForm("Invalid Content-Length header")
    if length > settings.max_request_size:
        raise FileTooLarge(settings.max_file_size_mb)


async def read_upload_form(request: Request, settings: Settings) -> Tuple[List[FileRecord], Dict[str, str]]:
    """Parse an upload request into file records and plain form fields."""
    _check_content_length(request, settings)
    content_type, options = parse_options_header(request.headers.get("content-type", ""))

    if content_type == b"application/x-www-form-urlencoded":
        form = await request.form(max_fields=MAX_FIELDS)
        try:
            return [], {key: value for key, value in form.items() if isinstance(value, str)}
        finally:
            await form.close()
    if content_type != b"multipart/form-data":
        return [], {}

    boundary = options.get(b"boundary")
    if not boundary:
        raise InvalidForm("Missing multipart boundary")

    reader = UploadFormReader(settings)
    parser = MultipartParser(boundary, reader.callbacks)
    try:
        async for chunk in request.stream():
            if chunk:
                parser.write(chunk)
        parser.finalize()
    except MultipartParseError as e:
        raise InvalidForm(f"Malformed multipart body: {e}") from e
    return reader.files, reader.fields
