# findme/client/errors.py
from typing import Any, Optional

SESSION_ERROR_CODES = ("no_session", "invalid_session")
# messages the auth service uses for refresh failures
AUTH_ERROR_MARKERS = ("Invalid Refresh Token", "refresh_token_not_found", "invalid_grant")


class ApiError(Exception):
    def __init__(self, status: int, error: str, message: str, body: Any = None):
        super().__init__(message)
        self.status = status
        self.error = error
        self.message = message
        self.body = body

    def __repr__(self):
        return f"{type(self).__name__}(status={self.status}, error={self.error!r}, message={self.message!r})"


class AuthApiError(ApiError):
    """The session is missing, expired or was rejected."""


def is_auth_error(error: Optional[BaseException]) -> bool:
    if error is None:
        return False
    if isinstance(error, AuthApiError):
        return True
    message = getattr(error, "message", None) or str(error)
    return any(marker in message for marker in AUTH_ERROR_MARKERS)
