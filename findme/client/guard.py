# findme/client/guard.py
"""
Session bookkeeping for protected pages.

One SessionGuard per tab holds the last identity it saw and is the single
subscriber to the client's auth state changes. It decides when the page
must go back to /login or be reloaded because another tab signed in as
someone else.
"""
import logging
from typing import Any, Callable, Dict, MutableMapping, Optional

import httpx

from findme.client.api import FindMeClient
from findme.client.errors import ApiError, AuthApiError, is_auth_error

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
DASHBOARD_PATH = "/dashboard"

Navigate = Callable[..., None]


class SessionGuard:
    def __init__(self, client: FindMeClient, navigate: Navigate,
                 session_storage: Optional[MutableMapping[str, str]] = None):
        self.client = client
        self.navigate = navigate
        self.session_storage = session_storage if session_storage is not None else {}
        self.current_user_id: Optional[str] = None
        self._unsubscribe = client.on_auth_state_change(self.on_auth_event)

    def close(self) -> None:
        self._unsubscribe()

    async def resolve(self) -> Optional[Dict[str, Any]]:
        """
        Current user for a protected page load. No session -> /login.
        Invalid session -> sign out, clear local auth state, /login.
        """
        try:
            user = await self.client.get_user()
        except AuthApiError as exc:
            logger.info("Authentication error: %s", exc.message)
            await self.handle_auth_error(exc)
            return None
        if not user:
            self.navigate(LOGIN_PATH)
            return None
        self.current_user_id = user["id"]
        return user

    async def on_visibility_change(self, hidden: bool) -> None:
        if hidden:
            return
        try:
            user = await self.client.get_user()
        except AuthApiError:
            user = None
        except (ApiError, httpx.HTTPError) as exc:
            # cannot tell who is signed in; keep the last known identity
            logger.warning("Identity check on visibility change failed: %r", exc)
            return
        new_user_id = user["id"] if user else None
        previous = self.current_user_id

        if previous and new_user_id and previous != new_user_id:
            logger.info("Session changed in another tab, redirecting to login")
            await self.client.sign_out()
            self.navigate(LOGIN_PATH)
            return

        if previous and not new_user_id:
            logger.info("Logged out in another tab, redirecting")
            self.navigate(LOGIN_PATH)
            return

        self.current_user_id = new_user_id

    def on_auth_event(self, event: str, session: Optional[Dict[str, Any]]) -> None:
        if event == "SIGNED_OUT":
            self.current_user_id = None
        elif event in ("SIGNED_IN", "TOKEN_REFRESHED"):
            user = (session or {}).get("user") or {}
            new_user_id = user.get("id")
            if self.current_user_id and new_user_id and self.current_user_id != new_user_id:
                logger.info("User changed, forcing page reload")
                self.navigate(DASHBOARD_PATH, reload=True)
            elif new_user_id:
                self.current_user_id = new_user_id

    async def handle_auth_error(self, error: BaseException) -> bool:
        """
        Recover from an expired/invalid session. Returns True when the error
        was a session error and has been dealt with; other errors are left
        to the caller.
        """
        if not is_auth_error(error):
            return False
        logger.info("Session expired or invalid, cleaning up and redirecting to login")
        await self.client.sign_out()
        # sign_out already cleared the auth keys; also drop per-tab state
        self.client.clear_session()
        self.session_storage.clear()
        self.navigate(LOGIN_PATH)
        return True
