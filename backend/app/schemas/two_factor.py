# backend/app/schemas/two_factor.py
"""
Pydantic schemas for two-factor authentication endpoints.

Codes are validated for shape only; whether they are correct is decided
by the TOTP check or the recovery code lookup.
"""
from typing import List, Optional

from pydantic import Field, model_validator

from backend.app.schemas.user import RequestModel, ResponseModel


class TwoFactorSetupRequest(RequestModel):
    """Password re-check before a new secret is issued."""
    password: str = Field(..., min_length=1)


class TwoFactorSetupResponse(ResponseModel):
    """
    Everything the client needs to enrol an authenticator app.

    - secret: base32 secret for manual entry
    - otpauth_url: provisioning URI
    - qr_code_url: PNG data URL of the provisioning URI
    - recovery_codes: one-time backup codes, shown exactly once
    """
    message: str
    secret: str
    otpauth_url: str = Field(..., alias="otpauthUrl")
    qr_code_url: str = Field(..., alias="qrCodeUrl")
    recovery_codes: List[str] = Field(..., alias="recoveryCodes")


class TwoFactorVerifyRequest(RequestModel):
    token: str = Field(..., min_length=1, max_length=16)


class TwoFactorDisableRequest(RequestModel):
    password: str = Field(..., min_length=1)
    # Required only while 2FA is enabled; checked by the service
    token: Optional[str] = Field(None, max_length=16)


class TwoFactorValidateRequest(RequestModel):
    """Second login step: the pending token from /login plus a TOTP code or a recovery code."""
    username: str = Field(..., min_length=1, max_length=50)
    pending_token: str = Field(..., alias="pendingToken", min_length=1, max_length=2048)
    token: Optional[str] = Field(None, max_length=16)
    recovery_code: Optional[str] = Field(None, alias="recoveryCode", max_length=32)

    @model_validator(mode="after")
    def require_a_factor(self) -> "TwoFactorValidateRequest":
        if not self.token and not self.recovery_code:
            raise ValueError("Username and token or recovery code are required")
        return self
