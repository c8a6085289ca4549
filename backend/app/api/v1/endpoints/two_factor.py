# backend/app/api/v1/endpoints/two_factor.py
from fastapi import APIRouter, Depends, Response

from backend.app.api.deps import get_current_identity, get_store
from backend.app.api.session import issue_session
from backend.app.schemas.two_factor import (
    TwoFactorDisableRequest,
    TwoFactorSetupRequest,
    TwoFactorSetupResponse,
    TwoFactorValidateRequest,
    TwoFactorVerifyRequest,
)
from backend.app.schemas.user import MessageResponse, SessionResponse, TokenPayload
from backend.app.services import auth_service, two_factor_service
from backend.app.storage.base import Store

router = APIRouter()


@router.post("/setup", response_model=TwoFactorSetupResponse)
async def setup(
    body: TwoFactorSetupRequest,
    identity: TokenPayload = Depends(get_current_identity),
    store: Store = Depends(get_store),
):
    enrollment = await two_factor_service.begin_setup(store, identity.id, body.password)
    return TwoFactorSetupResponse(
        message="2FA setup initiated",
        secret=enrollment.secret,
        otpauth_url=enrollment.otpauth_url,
        qr_code_url=enrollment.qr_code_url,
        recovery_codes=enrollment.recovery_codes,
    )


@router.post("/verify", response_model=MessageResponse)
async def verify(
    body: TwoFactorVerifyRequest,
    identity: TokenPayload = Depends(get_current_identity),
    store: Store = Depends(get_store),
):
    await two_factor_service.confirm_setup(store, identity.id, body.token)
    return MessageResponse(message="2FA has been enabled successfully")


@router.post("/disable", response_model=MessageResponse)
async def disable(
    body: TwoFactorDisableRequest,
    identity: TokenPayload = Depends(get_current_identity),
    store: Store = Depends(get_store),
):
    await two_factor_service.disable(store, identity.id, body.password, body.token)
    return MessageResponse(message="2FA has been disabled successfully")


# Second login step; no session exists yet
@router.post("/validate", response_model=SessionResponse)
async def validate(
    body: TwoFactorValidateRequest,
    response: Response,
    store: Store = Depends(get_store),
):
    user = await auth_service.validate_second_factor(
        store,
        body.username,
        body.pending_token,
        token=body.token,
        recovery_code=body.recovery_code,
    )
    return await issue_session(response, store, user, "2FA validation successful")
