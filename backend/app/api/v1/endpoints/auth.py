# backend/app/api/v1/endpoints/auth.py
from typing import Union

from fastapi import APIRouter, Depends, Response, status

from backend.app.api.deps import get_current_identity, get_store
from backend.app.api.session import clear_session_cookie, issue_session, public_profile
from backend.app.schemas.settings import UserSettingsResponse
from backend.app.schemas.user import (
    LoginRequest,
    MeResponse,
    MeUser,
    MessageResponse,
    RegisterResponse,
    SessionResponse,
    TokenPayload,
    TwoFactorRequiredResponse,
    UserCreate,
    UserSummary,
)
from backend.app.services import auth_service, settings_service
from backend.app.storage.base import Store

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(user_in: UserCreate, store: Store = Depends(get_store)):
    user = await auth_service.register(store, user_in)
    return RegisterResponse(
        message="User registered successfully",
        user=UserSummary.model_validate(user),
    )


@router.post("/login", response_model=Union[SessionResponse, TwoFactorRequiredResponse])
async def login(
    credentials: LoginRequest,
    response: Response,
    store: Store = Depends(get_store),
):
    outcome = await auth_service.authenticate(store, credentials.username, credentials.password)

    # No token and no cookie until the second factor is validated
    if outcome.requires_2fa:
        return TwoFactorRequiredResponse(
            message="2FA enabled, please validate",
            user_id=outcome.user.id,
            username=outcome.user.username,
            pending_token=outcome.pending_token,
        )

    return await issue_session(response, store, outcome.user, "Login successful")


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    identity: TokenPayload = Depends(get_current_identity),
):
    clear_session_cookie(response)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=MeResponse)
async def me(
    identity: TokenPayload = Depends(get_current_identity),
    store: Store = Depends(get_store),
):
    profile = await public_profile(store, identity.id)
    user_settings = await settings_service.get_settings(store, identity.id)
    return MeResponse(
        user=MeUser(
            **profile.model_dump(),
            settings=UserSettingsResponse.model_validate(user_settings),
        )
    )
