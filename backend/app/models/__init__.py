from backend.app.models.premium_code import PremiumCode
from backend.app.models.user import User
from backend.app.models.user_settings import UserSettings

__all__ = ["PremiumCode", "User", "UserSettings"]
