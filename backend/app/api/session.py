# backend/app/api/session.py
from fastapi import Response

from backend.app.core.config import settings
from backend.app.core.errors import NotFoundError
from backend.app.schemas.user import SessionResponse, UserPublic
from backend.app.security.jwt import create_session_token
from backend.app.services import premium_service
from backend.app.storage.base import Store
from backend.app.storage.records import UserRecord


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.session_cookie_max_age,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME, path="/")


async def public_profile(store: Store, user_id: int) -> UserPublic:
    """Public view of the user with premium status checked live."""
    await premium_service.is_premium(store, user_id)
    user = await store.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return UserPublic.model_validate(user)


async def issue_session(
    response: Response, store: Store, user: UserRecord, message: str
) -> SessionResponse:
    token = create_session_token(user)
    set_session_cookie(response, token)
    return SessionResponse(
        message=message,
        token=token,
        user=await public_profile(store, user.id),
    )
