# backend/app/services/settings_service.py
import logging
from typing import Dict, Tuple

from backend.app.core.errors import ForbiddenError, NotFoundError
from backend.app.services import premium_service
from backend.app.storage.base import Store
from backend.app.storage.records import PREMIUM_SETTING_FIELDS, UserSettingsRecord

logger = logging.getLogger(__name__)


async def get_settings(store: Store, user_id: int) -> UserSettingsRecord:
    """Settings row for the user, created with defaults when missing."""
    record = await store.get_user_settings(user_id)
    if record is None:
        record = await store.create_user_settings(user_id)
    return record


async def update_settings(store: Store, user_id: int, changes: Dict) -> UserSettingsRecord:
    # Switching a premium-only toggle on needs live premium; switching off never does
    enabling_premium = [field for field in PREMIUM_SETTING_FIELDS if changes.get(field)]
    if enabling_premium and not await premium_service.is_premium(store, user_id):
        raise ForbiddenError("Premium access required")

    record = await get_settings(store, user_id)
    if not changes:
        return record
    return await store.update_user_settings(user_id, **changes)


async def premium_features(store: Store, user_id: int) -> Dict[str, bool]:
    record = await get_settings(store, user_id)
    return {field: getattr(record, field) for field in PREMIUM_SETTING_FIELDS}


async def update_premium_features(store: Store, user_id: int, changes: Dict) -> Dict[str, bool]:
    unknown = set(changes) - set(PREMIUM_SETTING_FIELDS)
    if unknown:
        raise NotFoundError("Unknown premium feature")
    await update_settings(store, user_id, changes)
    return await premium_features(store, user_id)


def _camel(field: str) -> str:
    head, *rest = field.split("_")
    return head + "".join(part.title() for part in rest)


def resolve_premium_feature(feature: str) -> str:
    """Map a premium toggle given as field name or camelCase name to its field."""
    for field in PREMIUM_SETTING_FIELDS:
        if feature in (field, _camel(field)):
            return field
    raise NotFoundError("Unknown premium feature")


async def toggle_premium_feature(
    store: Store, user_id: int, feature: str, enabled: bool
) -> Tuple[str, bool]:
    field = resolve_premium_feature(feature)
    record = await update_settings(store, user_id, {field: enabled})
    logger.info("Premium feature %s set to %s for user id=%s", field, enabled, user_id)
    return field, getattr(record, field)
