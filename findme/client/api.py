# findme/client/api.py
"""
Async HTTP client for the FindMe API.

The session (access + refresh token) is kept in a caller-supplied mapping,
the equivalent of browser local storage. It is read on every request, so
several clients sharing one mapping behave like tabs of the same browser:
signing in on one changes the identity seen by the others.

Auth state changes are reported through `on_auth_state_change`:
- SIGNED_IN after sign-in/sign-up/code exchange
- TOKEN_REFRESHED after a transparent refresh
- SIGNED_OUT after sign-out
"""
import json
import logging
from typing import Any, Callable, Dict, List, MutableMapping, Optional

import httpx

from findme.client.errors import SESSION_ERROR_CODES, ApiError, AuthApiError

logger = logging.getLogger(__name__)

AUTH_KEY_PREFIX = "findme.auth."
TOKEN_KEY = AUTH_KEY_PREFIX + "token"
DEFAULT_TIMEOUT = 10.0

AuthListener = Callable[[str, Optional[Dict[str, Any]]], None]


def _error_from(resp: httpx.Response) -> ApiError:
    try:
        body = resp.json()
    except ValueError:
        body = None
    error, message = "http_error", resp.reason_phrase or "Request failed"
    if isinstance(body, dict):
        if "error" in body:
            error = body["error"]
            message = body.get("message") or message
        elif "detail" in body:
            detail = body["detail"]
            message = detail if isinstance(detail, str) else json.dumps(detail)
    if resp.status_code == 401 and error in SESSION_ERROR_CODES:
        return AuthApiError(resp.status_code, error, message, body)
    return ApiError(resp.status_code, error, message, body)


class FindMeClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        storage: Optional[MutableMapping[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.storage = storage if storage is not None else {}
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self._listeners: List[AuthListener] = []

    async def aclose(self):
        await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    # session storage

    @property
    def session(self) -> Optional[Dict[str, Any]]:
        raw = self.storage.get(TOKEN_KEY)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable stored session")
            return None

    def _store_session(self, session: Dict[str, Any]) -> None:
        self.storage[TOKEN_KEY] = json.dumps({
            "access_token": session["access_token"],
            "refresh_token": session.get("refresh_token"),
            "user": session.get("user"),
        })

    def clear_session(self) -> None:
        """Remove every auth key this client (or another tab) stored."""
        for key in [k for k in self.storage.keys() if k.startswith(AUTH_KEY_PREFIX)]:
            del self.storage[key]
        self._http.cookies.clear()

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: str, session: Optional[Dict[str, Any]]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, session)
            except Exception:
                logger.exception("Auth state listener failed for %s", event)

    # transport

    async def _send(self, method: str, path: str, *, auth: bool = True, **kwargs) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        session = self.session if auth else None
        if session:
            headers["Authorization"] = f"Bearer {session['access_token']}"
        return await self._http.request(method, path, headers=headers, **kwargs)

    async def _request(self, method: str, path: str, *, auth: bool = True, **kwargs) -> Any:
        resp = await self._send(method, path, auth=auth, **kwargs)
        if resp.status_code == 401 and auth and self.session and self.session.get("refresh_token"):
            err = _error_from(resp)
            if err.error == "invalid_session":
                # access token expired or rejected: refresh once and retry
                await self.refresh_session()
                resp = await self._send(method, path, auth=auth, **kwargs)
        if resp.status_code >= 400:
            raise _error_from(resp)
        if not resp.content:
            return None
        return resp.json()

    # auth

    async def sign_up(self, email: str, password: str, user_type: str, *, confirm_password: Optional[str] = None,
                      name: Optional[str] = None, company_name: Optional[str] = None) -> Dict[str, Any]:
        body = {
            "email": email,
            "password": password,
            "confirm_password": confirm_password if confirm_password is not None else password,
            "user_type": user_type,
            "name": name,
            "company_name": company_name,
        }
        session = await self._request("POST", "/auth/signup", auth=False, json=body)
        self._store_session(session)
        self._emit("SIGNED_IN", session)
        return session

    async def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        session = await self._request("POST", "/auth/login", auth=False, json={"email": email, "password": password})
        self._store_session(session)
        self._emit("SIGNED_IN", session)
        return session

    async def refresh_session(self) -> Dict[str, Any]:
        current = self.session or {}
        token = current.get("refresh_token")
        if not token:
            raise AuthApiError(401, "no_session", "Auth session missing!")
        session = await self._request("POST", "/auth/refresh", auth=False, json={"refresh_token": token})
        self._store_session(session)
        self._emit("TOKEN_REFRESHED", session)
        return session

    async def sign_out(self) -> None:
        current = self.session or {}
        try:
            if current.get("refresh_token"):
                await self._request("POST", "/auth/logout", auth=False, json={"refresh_token": current["refresh_token"]})
        except (ApiError, httpx.HTTPError):
            logger.exception("Error during sign out")
        finally:
            self.clear_session()
            self._emit("SIGNED_OUT", None)

    async def get_user(self) -> Optional[Dict[str, Any]]:
        """None when there is no stored session; AuthApiError when it is no longer valid."""
        if not self.session:
            return None
        return await self._request("GET", "/auth/user")

    async def create_auth_code(self) -> Dict[str, Any]:
        return await self._request("POST", "/auth/codes")

    async def exchange_code(self, code: str, redirect_to: Optional[str] = None,
                            user_type: Optional[str] = None) -> str:
        """
        Complete a redirect-based sign-in. Returns the path the callback
        redirected to; on success the session cookies become the stored session.
        """
        params = {"code": code}
        if redirect_to:
            params["redirectTo"] = redirect_to
        if user_type:
            params["userType"] = user_type
        resp = await self._http.get("/auth/callback", params=params, follow_redirects=False)
        location = resp.headers.get("location", "")
        access = resp.cookies.get("access_token")
        if access:
            session = {"access_token": access, "refresh_token": resp.cookies.get("refresh_token")}
            self._store_session(session)
            self._emit("SIGNED_IN", session)
        return location

    # profile

    async def get_profile(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/v1/profile")

    async def save_job_seeker_profile(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", "/api/v1/profile/job-seeker", json=data)

    async def save_company_profile(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", "/api/v1/profile/company", json=data)

    # vacancies (companies)

    async def list_vacancies(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/v1/vacancies")

    async def create_vacancy(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/api/v1/vacancies", json=data)

    async def update_vacancy(self, vacancy_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/api/v1/vacancies/{vacancy_id}", json=data)

    async def toggle_vacancy(self, vacancy_id: str) -> Dict[str, Any]:
        return await self._request("POST", f"/api/v1/vacancies/{vacancy_id}/toggle")

    async def delete_vacancy(self, vacancy_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/api/v1/vacancies/{vacancy_id}")

    # swiping and matches

    async def candidates(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/v1/swipe/candidates")

    async def swipe(self, kind: str, target_id: str, decision: str) -> Dict[str, Any]:
        body = {"target": {"kind": kind, "id": target_id}, "decision": decision}
        return await self._request("POST", "/api/v1/swipes", json=body)

    async def match_count(self) -> int:
        return (await self._request("GET", "/api/v1/matches/count"))["count"]

    async def dashboard_matches(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/v1/dashboard/matches")

    # chat

    async def conversations(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/v1/chat/conversations")

    async def conversation(self, partner_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/api/v1/chat/{partner_id}")

    async def send_message(self, partner_id: str, text: str) -> Dict[str, Any]:
        return await self._request("POST", f"/api/v1/chat/{partner_id}/messages", json={"message": text})

    async def mark_read(self, partner_id: str) -> int:
        return (await self._request("POST", f"/api/v1/chat/{partner_id}/read"))["updated"]
