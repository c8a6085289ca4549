# backend/app/schemas/user.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from backend.app.schemas.settings import UserSettingsResponse

BCRYPT_MAX_BYTES = 72


class RequestModel(BaseModel):
    """Immutable request body; unknown fields are rejected."""
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class ResponseModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


def check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes long")
    return value


# Schema used when a client registers
class UserCreate(RequestModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    password: str = Field(..., min_length=8, description="Password must be at least 8 characters long")
    confirm_password: str = Field(..., alias="confirmPassword")

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return check_password_bytes(value)

    @model_validator(mode="after")
    def passwords_match(self) -> "UserCreate":
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class LoginRequest(RequestModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)


# Public profile; never carries the password hash or 2FA material
class UserPublic(ResponseModel):
    id: int
    username: str
    email: str
    role: str
    is_premium: bool = Field(False, alias="isPremium")
    premium_expiry: Optional[datetime] = Field(None, alias="premiumExpiry")
    two_factor_enabled: bool = Field(False, alias="twoFactorEnabled")


class UserSummary(ResponseModel):
    id: int
    username: str
    email: str


class RegisterResponse(ResponseModel):
    message: str
    user: UserSummary


class SessionResponse(ResponseModel):
    message: str
    token: str
    user: UserPublic


class TwoFactorRequiredResponse(ResponseModel):
    message: str
    requires_2fa: bool = Field(True, alias="requires2FA")
    user_id: int = Field(..., alias="userId")
    username: str
    # Handed back to /2fa/validate; not a session token
    pending_token: str = Field(..., alias="pendingToken")


class MeUser(UserPublic):
    settings: Optional[UserSettingsResponse] = None


class MeResponse(ResponseModel):
    user: MeUser


class MessageResponse(ResponseModel):
    message: str


class BootstrapResponse(ResponseModel):
    message: str
    username: str
    role: str


# Decoded session token claims attached to each authenticated request
class TokenPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    sub: Optional[str] = None
    id: int
    username: str
    email: str
    role: Literal["user", "admin"] = "user"
    exp: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
