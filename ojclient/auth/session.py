from typing import Any, Dict, Optional, Union

from ojclient.auth.schemas import CurrentUser
from ojclient.config import logger
from ojclient.errors import PreconditionException

auth_logger = logger.getChild("auth")


class AuthSession:
    """
    Holds the signed-in user and the opaque credential attached to outgoing
    requests. Token issuance happens elsewhere; this only stores the result.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        user: Union[CurrentUser, Dict[str, Any], None] = None,
    ):
        self._token: Optional[str] = None
        self._user: Optional[CurrentUser] = None
        if token is not None or user is not None:
            self.set_auth_data(token, user)

    def set_auth_data(
        self, token: Optional[str], user: Union[CurrentUser, Dict[str, Any], None]
    ) -> None:
        self._token = token
        if isinstance(user, dict):
            user = CurrentUser.model_validate(user)
        self._user = user
        if user is not None:
            auth_logger.info(f"Session opened for user {user.id}")

    def is_authenticated(self) -> bool:
        return bool(self._token)

    def get_current_user(self) -> Optional[CurrentUser]:
        return self._user

    @property
    def token(self) -> Optional[str]:
        return self._token

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"} if self._token else {}

    def logout(self) -> None:
        if self._user is not None:
            auth_logger.info(f"Session closed for user {self._user.id}")
        self._token = None
        self._user = None


def require_user(
    session: Optional[AuthSession],
    detail: str = "You must be logged in to save solutions",
) -> CurrentUser:
    """Return the signed-in user or fail before any network call is made."""
    user = session.get_current_user() if session is not None else None
    if user is None:
        raise PreconditionException(detail=detail)
    return user
