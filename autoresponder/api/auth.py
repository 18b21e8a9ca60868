"""
Optional API key authentication.

When ``settings.api_key`` is configured every request must carry it, either as
``Authorization: Bearer <key>`` (approval UI, admin tooling) or as an
``X-API-Key`` header (storefront hooks that cannot set bearer tokens).
"""
from typing import Optional
import hmac

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from autoresponder.config import settings

_bearer_scheme = HTTPBearer(auto_error=False)
_header_scheme = APIKeyHeader(name="X-API-Key", auto_error=False)


def _matches(candidate: Optional[str]) -> bool:
    return candidate is not None and hmac.compare_digest(candidate, settings.api_key)


async def verify_api_key(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    header_key: Optional[str] = Depends(_header_scheme),
) -> None:
    if not settings.api_key:
        return

    bearer = credentials.credentials if credentials is not None else None
    if not (_matches(bearer) or _matches(header_key)):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
            headers={"WWW-Authenticate": "Bearer"},
        )
