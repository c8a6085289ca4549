# backend/app/api/v1/endpoints/premium.py
from fastapi import APIRouter, Depends

from backend.app.api.deps import get_current_identity, get_store, require_premium
from backend.app.schemas.premium import (
    PremiumStatus,
    RedeemedPremiumStatus,
    RedeemRequest,
    RedeemResponse,
)
from backend.app.schemas.settings import (
    PremiumFeaturesResponse,
    PremiumFeatureState,
    PremiumFeaturesUpdate,
    PremiumFeaturesUpdateResponse,
    PremiumFeatureToggle,
    PremiumFeatureToggleResponse,
)
from backend.app.schemas.user import TokenPayload
from backend.app.services import premium_service, settings_service
from backend.app.storage.base import Store

router = APIRouter()


@router.post("/redeem", response_model=RedeemResponse)
async def redeem(
    body: RedeemRequest,
    identity: TokenPayload = Depends(get_current_identity),
    store: Store = Depends(get_store),
):
    redemption = await premium_service.redeem(store, body.code, identity.id)
    return RedeemResponse(
        message="Premium code redeemed successfully",
        premium_status=RedeemedPremiumStatus(
            is_premium=redemption.user.is_premium,
            expires_at=redemption.user.premium_expiry,
            duration=redemption.code.duration,
            duration_hours=redemption.code.duration_hours,
        ),
    )


@router.get("/status", response_model=PremiumStatus)
async def premium_status(
    identity: TokenPayload = Depends(get_current_identity),
    store: Store = Depends(get_store),
):
    state = await premium_service.get_status(store, identity.id)
    return PremiumStatus(is_premium=state.is_premium, expires_at=state.expires_at)


@router.get("/features", response_model=PremiumFeaturesResponse)
async def premium_features(
    identity: TokenPayload = Depends(require_premium),
    store: Store = Depends(get_store),
):
    features = await settings_service.premium_features(store, identity.id)
    return PremiumFeaturesResponse(premium_settings=features)


@router.patch("/features", response_model=PremiumFeaturesUpdateResponse)
async def update_premium_features(
    body: PremiumFeaturesUpdate,
    identity: TokenPayload = Depends(require_premium),
    store: Store = Depends(get_store),
):
    changes = body.model_dump(exclude_none=True)
    features = await settings_service.update_premium_features(store, identity.id, changes)
    return PremiumFeaturesUpdateResponse(
        message="Premium settings updated successfully",
        premium_settings=features,
    )


@router.post("/features/toggle/{feature}", response_model=PremiumFeatureToggleResponse)
async def toggle_premium_feature(
    feature: str,
    body: PremiumFeatureToggle,
    identity: TokenPayload = Depends(require_premium),
    store: Store = Depends(get_store),
):
    field, enabled = await settings_service.toggle_premium_feature(
        store, identity.id, feature, body.enabled
    )
    state = "enabled" if enabled else "disabled"
    return PremiumFeatureToggleResponse(
        message=f"Premium feature {feature} {state} successfully",
        feature=PremiumFeatureState(name=field, enabled=enabled),
    )
