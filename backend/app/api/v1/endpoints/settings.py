# backend/app/api/v1/endpoints/settings.py
from fastapi import APIRouter, Depends

from backend.app.api.deps import get_current_identity, get_store
from backend.app.schemas.settings import (
    SettingsEnvelope,
    UserSettingsResponse,
    UserSettingsUpdate,
)
from backend.app.schemas.user import TokenPayload
from backend.app.services import settings_service
from backend.app.storage.base import Store

router = APIRouter()


@router.get("", response_model=SettingsEnvelope)
async def read_settings(
    identity: TokenPayload = Depends(get_current_identity),
    store: Store = Depends(get_store),
):
    record = await settings_service.get_settings(store, identity.id)
    return SettingsEnvelope(settings=UserSettingsResponse.model_validate(record))


@router.patch("", response_model=SettingsEnvelope)
async def update_settings(
    body: UserSettingsUpdate,
    identity: TokenPayload = Depends(get_current_identity),
    store: Store = Depends(get_store),
):
    changes = body.model_dump(exclude_none=True)
    record = await settings_service.update_settings(store, identity.id, changes)
    return SettingsEnvelope(settings=UserSettingsResponse.model_validate(record))
