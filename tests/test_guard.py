# tests/test_guard.py
import json

import httpx
import pytest

from findme.client.api import TOKEN_KEY
from findme.client.errors import ApiError, AuthApiError, is_auth_error
from findme.client.guard import SessionGuard


async def _signed_in(client, make_actor, user_type="job_seeker"):
    actor = await make_actor(user_type)
    await client.sign_in(actor["email"], "secret123")
    return actor


@pytest.mark.asyncio
async def test_resolve_without_session_goes_to_login(make_client, navigator):
    guard = SessionGuard(make_client(), navigator)
    assert await guard.resolve() is None
    assert navigator.paths == ["/login"]


@pytest.mark.asyncio
async def test_resolve_returns_current_user(make_client, make_actor, navigator):
    client = make_client()
    actor = await _signed_in(client, make_actor)
    guard = SessionGuard(client, navigator)

    user = await guard.resolve()
    assert user["id"] == actor["id"]
    assert guard.current_user_id == actor["id"]
    assert navigator.calls == []


@pytest.mark.asyncio
async def test_expired_access_token_is_refreshed_transparently(make_client, make_actor, navigator):
    storage = {}
    client = make_client(storage)
    actor = await _signed_in(client, make_actor)
    events = []
    client.on_auth_state_change(lambda event, session: events.append(event))

    session = json.loads(storage[TOKEN_KEY])
    session["access_token"] = "expired"
    storage[TOKEN_KEY] = json.dumps(session)

    user = await SessionGuard(client, navigator).resolve()
    assert user["id"] == actor["id"]
    assert events == ["TOKEN_REFRESHED"]
    assert json.loads(storage[TOKEN_KEY])["access_token"] != "expired"


@pytest.mark.asyncio
async def test_revoked_refresh_token_signs_out_and_redirects(api, make_client, make_actor, navigator):
    storage = {"findme.auth.other": "x", "unrelated": "kept"}
    session_storage = {"swipe_session_u_job_seeker": "{}"}
    client = make_client(storage)
    await _signed_in(client, make_actor)
    guard = SessionGuard(client, navigator, session_storage=session_storage)

    session = json.loads(storage[TOKEN_KEY])
    await api.post("/auth/logout", json={"refresh_token": session["refresh_token"]})
    session["access_token"] = "expired"
    storage[TOKEN_KEY] = json.dumps(session)

    assert await guard.resolve() is None
    assert navigator.paths == ["/login"]
    assert storage == {"unrelated": "kept"}
    assert session_storage == {}


@pytest.mark.asyncio
async def test_other_tab_signing_in_as_someone_else(make_client, make_actor, navigator):
    shared = {}
    tab_a = make_client(shared)
    tab_b = make_client(shared)
    await _signed_in(tab_a, make_actor)
    guard = SessionGuard(tab_a, navigator)
    await guard.resolve()

    await _signed_in(tab_b, make_actor, "company")
    await guard.on_visibility_change(hidden=False)

    assert navigator.paths == ["/login"]
    assert TOKEN_KEY not in shared


@pytest.mark.asyncio
async def test_other_tab_signing_out(make_client, make_actor, navigator):
    shared = {}
    tab_a = make_client(shared)
    tab_b = make_client(shared)
    await _signed_in(tab_a, make_actor)
    guard = SessionGuard(tab_a, navigator)
    await guard.resolve()

    await guard.on_visibility_change(hidden=True)
    assert navigator.calls == []

    await tab_b.sign_out()
    await guard.on_visibility_change(hidden=False)
    assert navigator.paths == ["/login"]


@pytest.mark.asyncio
async def test_same_user_coming_back_stays_put(make_client, make_actor, navigator):
    client = make_client()
    actor = await _signed_in(client, make_actor)
    guard = SessionGuard(client, navigator)
    await guard.resolve()

    await guard.on_visibility_change(hidden=False)
    assert navigator.calls == []
    assert guard.current_user_id == actor["id"]


@pytest.mark.asyncio
async def test_sign_in_as_different_user_reloads(make_client, make_actor, navigator):
    client = make_client()
    await _signed_in(client, make_actor)
    guard = SessionGuard(client, navigator)
    await guard.resolve()

    await _signed_in(client, make_actor, "company")
    assert navigator.calls == [("/dashboard", {"reload": True})]


@pytest.mark.asyncio
async def test_sign_out_event_forgets_identity_and_close_unsubscribes(make_client, make_actor, navigator):
    client = make_client()
    await _signed_in(client, make_actor)
    guard = SessionGuard(client, navigator)
    await guard.resolve()

    await client.sign_out()
    assert guard.current_user_id is None

    guard.close()
    await _signed_in(client, make_actor)
    assert guard.current_user_id is None


@pytest.mark.asyncio
async def test_handle_auth_error_ignores_other_errors(make_client, navigator):
    guard = SessionGuard(make_client(), navigator)
    assert await guard.handle_auth_error(ApiError(500, "persistence_error", "boom")) is False
    assert navigator.calls == []


def test_is_auth_error():
    assert is_auth_error(AuthApiError(401, "invalid_session", "Invalid or expired session"))
    assert is_auth_error(ApiError(400, "http_error", "Invalid Refresh Token: Refresh Token Not Found"))
    assert is_auth_error(RuntimeError("invalid_grant"))
    assert not is_auth_error(ApiError(404, "http_error", "Vacancy not found"))
    assert not is_auth_error(None)


@pytest.mark.asyncio
async def test_visibility_check_keeps_identity_on_transport_error(make_client, make_actor, navigator, monkeypatch):
    client = make_client()
    actor = await _signed_in(client, make_actor)
    guard = SessionGuard(client, navigator)
    await guard.resolve()

    async def unreachable():
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(client, "get_user", unreachable)
    await guard.on_visibility_change(hidden=False)

    assert navigator.calls == []
    assert guard.current_user_id == actor["id"]


@pytest.mark.asyncio
async def test_visibility_check_keeps_identity_on_server_error(make_client, make_actor, navigator, monkeypatch):
    client = make_client()
    actor = await _signed_in(client, make_actor)
    guard = SessionGuard(client, navigator)
    await guard.resolve()

    async def failing():
        raise ApiError(500, "persistence_error", "Something went wrong. Please try again.")

    monkeypatch.setattr(client, "get_user", failing)
    await guard.on_visibility_change(hidden=False)

    assert navigator.calls == []
    assert guard.current_user_id == actor["id"]
