from typing import List

from fastapi import Request
from limits import RateLimitItem, parse_many
from limits.storage import storage_from_string
from limits.strategies import FixedWindowRateLimiter
from slowapi.util import get_remote_address

from .config import Settings
from .errors import RateLimited
from .logging import get_logger


logger = get_logger(__name__)


class ClientRateLimiter:
    """
    Per-client request budget shared by every route of the app.
    Clients are keyed by remote address; each configured window is hit once
    per request.
    """

    def __init__(self, limit: str, enabled: bool = True, storage_uri: str = "memory://") -> None:
        self.items: List[RateLimitItem] = parse_many(limit)
        self.enabled = enabled
        self.strategy = FixedWindowRateLimiter(storage_from_string(storage_uri))

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClientRateLimiter":
        return cls(
            settings.rate_limit,
            enabled=settings.rate_limit_enabled,
            storage_uri=settings.rate_limit_storage_uri,
        )

    def check(self, request: Request) -> None:
        if not self.enabled:
            return
        key = get_remote_address(request)
        for item in self.items:
            if not self.strategy.hit(item, key):
                logger.warning("rate_limited", client=key, limit=str(item), path=request.url.path)
                raise RateLimited()


def enforce_rate_limit(request: Request) -> None:
    request.app.state.rate_limiter.check(request)
