# backend/app/api/v1/endpoints/admin.py
from fastapi import APIRouter, Depends, status

from backend.app.api.deps import get_store, require_admin
from backend.app.core.config import settings
from backend.app.schemas.premium import (
    PremiumCodeCreate,
    PremiumCodeCreated,
    PremiumCodeList,
    PremiumCodeResponse,
)
from backend.app.schemas.user import BootstrapResponse, TokenPayload
from backend.app.services import auth_service, premium_service
from backend.app.storage.base import Store

router = APIRouter()


@router.post(
    "/premium/generate",
    response_model=PremiumCodeCreated,
    status_code=status.HTTP_201_CREATED,
)
async def generate_premium_code(
    body: PremiumCodeCreate,
    admin: TokenPayload = Depends(require_admin),
    store: Store = Depends(get_store),
):
    record = await premium_service.generate_code(
        store,
        duration=body.duration,
        duration_hours=body.duration_hours,
        notes=body.notes,
        created_by=admin.id,
    )
    return PremiumCodeCreated(
        message="Premium code generated successfully",
        code=PremiumCodeResponse.model_validate(record),
    )


@router.get("/premium/codes", response_model=PremiumCodeList)
async def list_premium_codes(
    admin: TokenPayload = Depends(require_admin),
    store: Store = Depends(get_store),
):
    records = await premium_service.list_codes(store)
    return PremiumCodeList(codes=[PremiumCodeResponse.model_validate(r) for r in records])


# Unauthenticated: only ever succeeds once, and only with a configured password
@router.post("/bootstrap", response_model=BootstrapResponse, status_code=status.HTTP_201_CREATED)
async def bootstrap_admin(store: Store = Depends(get_store)):
    admin = await auth_service.bootstrap_admin(store, settings)
    return BootstrapResponse(
        message="Admin account created successfully",
        username=admin.username,
        role=admin.role,
    )
