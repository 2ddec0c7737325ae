import secrets
from typing import Optional

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import Settings, get_settings
from ..errors import InvalidCredential, MissingCredential, ServerMisconfigured
from ..logging import get_logger


http_bearer = HTTPBearer(auto_error=False)
logger = get_logger(__name__)


def extract_token(
    creds: Optional[HTTPAuthorizationCredentials], query_token: Optional[str]
) -> Optional[str]:
    # Authorization header wins over ?token=
    if creds is not None and creds.credentials:
        return creds.credentials
    return query_token or None


def tokens_match(supplied: str, expected: str) -> bool:
    return secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def require_access_token(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
    token: Optional[str] = Query(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    supplied = extract_token(creds, token)
    if not supplied:
        raise MissingCredential()
    if not settings.access_token:
        logger.error("access_token_not_configured")
        raise ServerMisconfigured()
    if not tokens_match(supplied, settings.access_token):
        raise InvalidCredential()
