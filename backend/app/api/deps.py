# backend/app/api/deps.py
from typing import Optional

from fastapi import Depends, Request
from fastapi.security.utils import get_authorization_scheme_param

from backend.app.core.config import settings
from backend.app.core.errors import AuthenticationError, ForbiddenError
from backend.app.schemas.user import TokenPayload
from backend.app.security.jwt import InvalidTokenError, decode_access_token
from backend.app.services import premium_service
from backend.app.storage.base import Store


def get_store(request: Request) -> Store:
    return request.app.state.store


def extract_token(request: Request) -> Optional[str]:
    """Bearer header first, then the session cookie."""
    scheme, param = get_authorization_scheme_param(request.headers.get("Authorization"))
    if scheme.lower() == "bearer" and param:
        return param
    return request.cookies.get(settings.SESSION_COOKIE_NAME) or None


async def get_current_identity(request: Request) -> TokenPayload:
    token = extract_token(request)
    if not token:
        raise AuthenticationError("Authentication required", reason="no token")

    try:
        return decode_access_token(token)
    except InvalidTokenError as exc:
        raise AuthenticationError("Invalid or expired token", reason=str(exc)) from exc


async def require_admin(
    identity: TokenPayload = Depends(get_current_identity),
) -> TokenPayload:
    if not identity.is_admin:
        raise ForbiddenError("Admin access required")
    return identity


async def require_premium(
    identity: TokenPayload = Depends(get_current_identity),
    store: Store = Depends(get_store),
) -> TokenPayload:
    if not await premium_service.is_premium(store, identity.id):
        raise ForbiddenError("Premium access required")
    return identity
