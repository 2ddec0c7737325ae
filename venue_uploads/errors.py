"""
API error types and their JSON rendering.

Services and dependencies raise ``ApiError`` subclasses; the handlers
registered by ``register_exception_handlers`` turn them into
``{"success": false, "error": <code>, "message": <text>}`` bodies.
"""
from typing import Any, Dict, Iterable, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .logging import get_logger


logger = get_logger(__name__)


class ApiError(Exception):
    code = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, **extra: Any) -> None:
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "error": self.code, "message": self.message}
        body.update(self.extra)
        return body


# Auth

class MissingCredential(ApiError):
    code = "missing_credential"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Please provide a valid access token"


class InvalidCredential(ApiError):
    code = "invalid_credential"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "The provided access token is not valid"


class ServerMisconfigured(ApiError):
    code = "server_misconfigured"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Authentication not properly configured"


# Request validation

class MissingField(ApiError):
    code = "missing_field"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "A required field is missing"


class InvalidForm(ApiError):
    code = "invalid_form"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "The upload form could not be read"


class NoFilesProvided(ApiError):
    code = "no_files_provided"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Please select at least one file to upload"


class EmptyFile(ApiError):
    code = "empty_file"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, filename: str) -> None:
        super().__init__(f'File "{filename}" is empty', fileName=filename)


class FileTooLarge(ApiError):
    code = "file_too_large"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, max_size_mb: int, filename: Optional[str] = None) -> None:
        if filename:
            message = f'File "{filename}" exceeds the maximum size limit'
            super().__init__(message, fileName=filename, maxSize=f"{max_size_mb}MB")
        else:
            message = f"File size exceeds the maximum limit of {max_size_mb}MB"
            super().__init__(message, maxSize=f"{max_size_mb}MB")


class TooManyFiles(ApiError):
    code = "too_many_files"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, max_files: int) -> None:
        super().__init__(f"Maximum {max_files} files allowed per upload", maxFiles=max_files)


class UnexpectedField(ApiError):
    code = "unexpected_field"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, field: str, expected: str) -> None:
        super().__init__(
            f'Unexpected file field "{field}"; please use the "{expected}" field',
            field=field,
        )


class UnsupportedFileType(ApiError):
    code = "unsupported_file_type"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, mime_type: str, allowed_types: Iterable[str]) -> None:
        super().__init__(
            f"File type {mime_type} is not allowed",
            allowedTypes=sorted(allowed_types),
        )


class UnknownBucket(ApiError):
    code = "unknown_bucket"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Specified bucket does not exist"


# Upstream / generic

class UpstreamFailure(ApiError):
    code = "upstream_failure"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "The storage backend request failed"


class NotFound(ApiError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "The requested endpoint does not exist"


class RateLimited(ApiError):
    code = "rate_limited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Please try again later"


class HttpError(ApiError):
    code = "http_error"

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(message)


def _json(exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error("api_error", code=exc.code, path=request.url.path)
        return _json(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        fields = [str(err["loc"][-1]) for err in exc.errors() if err.get("loc")]
        message = f"Invalid or missing field(s): {', '.join(fields)}" if fields else None
        return _json(MissingField(message))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            # Starlette's own "Not Found" means no route matched
            return _json(NotFound(None if exc.detail == "Not Found" else str(exc.detail)))
        return _json(HttpError(exc.status_code, str(exc.detail)))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("unhandled_exception", path=request.url.path, exc_info=exc)
        return _json(ApiError())
