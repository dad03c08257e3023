"""Middleware: API key authentication."""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from longshot.api.errors import ApiError

if TYPE_CHECKING:
    from longshot.config import Settings

_bearer_scheme = HTTPBearer(auto_error=False)


async def verify_api_key(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> None:
    """Reject requests whose Bearer token does not match LONGSHOT_API_KEY.

    Authentication is disabled when no key is configured.
    """
    settings: Settings = request.app.state.settings
    expected = settings.api_key
    if expected is None:
        return

    presented = credentials.credentials if credentials is not None else ""
    if not secrets.compare_digest(presented.encode(), expected.encode()):
        raise ApiError(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
            kind="unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
