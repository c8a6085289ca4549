# backend/app/api/v1/router.py
from fastapi import APIRouter

from backend.app.api.v1.endpoints import admin, auth, premium, settings, two_factor

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(two_factor.router, prefix="/auth/2fa", tags=["2fa"])
api_router.include_router(premium.router, prefix="/premium", tags=["premium"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
