from .schemas import CurrentUser
from .session import AuthSession, require_user

__all__ = ["AuthSession", "CurrentUser", "require_user"]
