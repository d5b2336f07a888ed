"""
Resolve the caller's session for protected procedures.
"""

from __future__ import annotations

import hmac
from typing import Optional

from fastapi import Depends, Header, Request

from outfits.adapter import SqlAuthAdapter
from outfits.db import utcnow
from outfits.dependencies import get_auth_adapter, get_settings_from_app
from outfits.errors import AuthorizationError
from outfits.records import UserRecord


def read_session_token(request: Request) -> Optional[str]:
    """Session token from the auth library's cookie or a bearer header."""
    settings = get_settings_from_app(request)
    for cookie_name in settings.session_cookie_names:
        token = request.cookies.get(cookie_name)
        if token:
            return token
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def get_optional_user(
    request: Request,
    adapter: SqlAuthAdapter = Depends(get_auth_adapter),
) -> Optional[UserRecord]:
    token = read_session_token(request)
    if not token:
        return None
    found = adapter.get_session_and_user(token)
    if found is None:
        return None
    session, user = found
    if session.expires <= utcnow():
        return None
    return user


def require_user(
    user: Optional[UserRecord] = Depends(get_optional_user),
) -> UserRecord:
    """Dependency for protected procedures."""
    if user is None:
        raise AuthorizationError()
    return user


def require_adapter_secret(
    request: Request,
    x_adapter_secret: Optional[str] = Header(default=None),
) -> None:
    expected = get_settings_from_app(request).adapter_secret
    if not expected or not x_adapter_secret:
        raise AuthorizationError("Adapter access denied")
    if not hmac.compare_digest(expected, x_adapter_secret):
        raise AuthorizationError("Adapter access denied")
