# findme/core/errors.py
"""
Error kinds shared by services and routes.

- SessionError: missing or unusable auth session. Rendered as 401 with a
  redirect hint so clients sign out and go to /login.
- PersistenceError: unexpected database failure. Rendered as a generic 500.

Expected absence (a lookup with zero rows) is not an error: repositories
return None / [] for it.
"""
from typing import Optional

LOGIN_PATH = "/login"


class SessionError(Exception):
    code = "session_error"

    def __init__(self, message: str = "Session error"):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, "redirect": LOGIN_PATH}


class MissingSessionError(SessionError):
    code = "no_session"

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class InvalidSessionError(SessionError):
    code = "invalid_session"

    def __init__(self, message: str = "Invalid or expired session"):
        super().__init__(message)


class PersistenceError(Exception):
    """Unexpected failure talking to the data store."""

    def __init__(self, message: str = "Persistence failure", cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def to_dict(self) -> dict:
        return {"error": "persistence_error", "message": self.message}
