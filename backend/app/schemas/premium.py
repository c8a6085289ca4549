# backend/app/schemas/premium.py
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from backend.app.schemas.user import RequestModel, ResponseModel


class RedeemRequest(RequestModel):
    code: str = Field(..., min_length=1, max_length=32)


class PremiumStatus(ResponseModel):
    is_premium: bool = Field(..., alias="isPremium")
    expires_at: Optional[datetime] = Field(None, alias="expiresAt")


class RedeemedPremiumStatus(PremiumStatus):
    duration: str
    duration_hours: int = Field(..., alias="durationHours")


class RedeemResponse(ResponseModel):
    message: str
    premium_status: RedeemedPremiumStatus = Field(..., alias="premiumStatus")


class PremiumCodeCreate(RequestModel):
    duration: str = Field(..., min_length=1, max_length=32)
    duration_hours: int = Field(..., alias="durationHours", gt=0, le=24 * 366)
    notes: Optional[str] = Field(None, max_length=500)


class PremiumCodeResponse(ResponseModel):
    id: int
    code: str
    duration: str
    duration_hours: int = Field(..., alias="durationHours")
    expires_at: datetime = Field(..., alias="expiresAt")
    created_at: datetime = Field(..., alias="createdAt")
    is_used: bool = Field(..., alias="isUsed")
    used_by: Optional[int] = Field(None, alias="usedBy")
    used_at: Optional[datetime] = Field(None, alias="usedAt")
    notes: Optional[str] = None
    created_by: Optional[int] = Field(None, alias="createdBy")


class PremiumCodeCreated(ResponseModel):
    message: str
    code: PremiumCodeResponse


class PremiumCodeList(ResponseModel):
    codes: List[PremiumCodeResponse]
