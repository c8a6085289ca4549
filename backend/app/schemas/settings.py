# backend/app/schemas/settings.py
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserSettingsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    theme: str
    font_size: str = Field(..., alias="fontSize")
    motion_effects: bool = Field(..., alias="motionEffects")
    save_history: bool = Field(..., alias="saveHistory")
    proxy_method: str = Field(..., alias="proxyMethod")
    enable_notifications: bool = Field(..., alias="enableNotifications")
    advanced_search_tools: bool = Field(..., alias="advancedSearchTools")
    instant_results: bool = Field(..., alias="instantResults")
    extended_history: bool = Field(..., alias="extendedHistory")
    priority_proxy: bool = Field(..., alias="priorityProxy")


# PATCH body: every field optional, only sent fields are applied
class UserSettingsUpdate(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    theme: Optional[str] = Field(None, max_length=20)
    font_size: Optional[str] = Field(None, alias="fontSize", max_length=20)
    motion_effects: Optional[bool] = Field(None, alias="motionEffects")
    save_history: Optional[bool] = Field(None, alias="saveHistory")
    proxy_method: Optional[str] = Field(None, alias="proxyMethod", max_length=20)
    enable_notifications: Optional[bool] = Field(None, alias="enableNotifications")
    advanced_search_tools: Optional[bool] = Field(None, alias="advancedSearchTools")
    instant_results: Optional[bool] = Field(None, alias="instantResults")
    extended_history: Optional[bool] = Field(None, alias="extendedHistory")
    priority_proxy: Optional[bool] = Field(None, alias="priorityProxy")


class SettingsEnvelope(BaseModel):
    settings: UserSettingsResponse


class PremiumFeaturesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    premium_settings: dict = Field(..., alias="premiumSettings")


# PATCH /premium/features: the premium-only toggles, nothing else
class PremiumFeaturesUpdate(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    advanced_search_tools: Optional[bool] = Field(None, alias="advancedSearchTools")
    instant_results: Optional[bool] = Field(None, alias="instantResults")
    extended_history: Optional[bool] = Field(None, alias="extendedHistory")
    priority_proxy: Optional[bool] = Field(None, alias="priorityProxy")


class PremiumFeaturesUpdateResponse(PremiumFeaturesResponse):
    message: str


class PremiumFeatureToggle(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool

    # "true", 1 and friends are refused rather than coerced
    @field_validator("enabled", mode="before")
    @classmethod
    def must_be_boolean(cls, value):
        if not isinstance(value, bool):
            raise ValueError("Enabled status must be a boolean")
        return value


class PremiumFeatureState(BaseModel):
    name: str
    enabled: bool


class PremiumFeatureToggleResponse(BaseModel):
    message: str
    feature: PremiumFeatureState
