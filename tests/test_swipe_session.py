# tests/test_swipe_session.py
import asyncio

import pytest

from findme.client.cursor import SessionCursor
from findme.client.errors import ApiError
from findme.client.guard import SessionGuard
from findme.client.swipe_session import SwipeSession
from findme.db.mongo import SWIPES_COLLECTION
from findme.repositories import users as users_repo
from findme.services.auth import hash_password, issue_session

NOW = 1_700_000_000.0


@pytest.fixture
def deck(make_client, make_actor, make_vacancy, navigator):
    """A job seeker's swipe session over three open vacancies."""
    async def _build(n=3, clock=lambda: NOW):
        company = await make_actor("company")
        vacancies = [await make_vacancy(company, title=f"Role {i}") for i in range(n)]
        seeker = await make_actor("job_seeker")
        client = make_client()
        await client.sign_in(seeker["email"], "secret123")
        tab = {}
        guard = SessionGuard(client, navigator, session_storage=tab)
        session = SwipeSession(client, guard, tab, clock=clock)
        return company, seeker, vacancies, session

    return _build


@pytest.mark.asyncio
async def test_swiping_through_the_deck(deck):
    company, seeker, vacancies, session = await deck()
    await session.load()

    assert session.loading is False
    assert [c["id"] for c in session.candidates] == [v["id"] for v in vacancies]
    assert session.current["id"] == vacancies[0]["id"]

    outcome = await session.swipe("like")
    assert outcome["status"] == "recorded"
    assert session.index == 1
    assert session.cursor.load() == 1

    await session.swipe("pass")
    await session.swipe("like")
    assert session.index == 3
    assert session.has_more is False
    assert session.current is None
    # finishing the deck drops the saved position
    assert session.cursor.key not in session.storage

    assert await session.swipe("like") is None


@pytest.mark.asyncio
async def test_reload_resumes_saved_position(deck):
    company, seeker, vacancies, session = await deck()
    SessionCursor(session.storage, seeker["id"], "job_seeker", clock=lambda: NOW - 60).save(2)

    await session.load()
    assert session.index == 2
    assert session.current["id"] == vacancies[2]["id"]


@pytest.mark.asyncio
async def test_stale_position_starts_from_the_top(deck):
    company, seeker, vacancies, session = await deck()
    SessionCursor(session.storage, seeker["id"], "job_seeker", clock=lambda: NOW - 2 * 3600).save(2)

    await session.load()
    assert session.index == 0


@pytest.mark.asyncio
async def test_second_swipe_while_in_flight_is_dropped(deck, test_db):
    company, seeker, vacancies, session = await deck()
    await session.load()

    session.swiping = True
    assert await session.swipe("like") is None
    assert session.index == 0
    assert await test_db[SWIPES_COLLECTION].count_documents({"swiper_id": seeker["id"]}) == 0


@pytest.mark.asyncio
async def test_failed_swipe_does_not_advance(deck, monkeypatch):
    company, seeker, vacancies, session = await deck()
    await session.load()

    async def failing_swipe(*args, **kwargs):
        raise ApiError(500, "persistence_error", "Failed to record swipe")

    monkeypatch.setattr(session.client, "swipe", failing_swipe)
    assert await session.swipe("like") is None
    assert session.index == 0
    assert session.swiping is False
    assert ("error", "Failed to record swipe") in session.notifier.items


@pytest.mark.asyncio
async def test_mutual_like_bumps_match_counter(deck, api):
    company, seeker, vacancies, session = await deck(n=1)
    await api.post("/api/v1/swipes", json={"target": {"kind": "profile", "id": seeker["id"]}, "decision": "like"},
                   headers=company["headers"])
    await session.load()

    outcome = await session.swipe("like")
    assert outcome["match"] is True
    assert session.matches == 1
    assert ("success", "It's a match!") in session.notifier.items


@pytest.mark.asyncio
async def test_duplicate_swipe_advances_without_error(deck, api):
    company, seeker, vacancies, session = await deck()
    seeker_headers = {"Authorization": f"Bearer {seeker['access_token']}"}
    # the same pass already landed, e.g. from another tab
    await api.post("/api/v1/swipes", json={"target": {"kind": "vacancy", "id": vacancies[0]["id"]}, "decision": "pass"},
                   headers=seeker_headers)
    await session.load()

    outcome = await session.swipe("pass")
    assert outcome["status"] == "duplicate"
    assert session.index == 1
    assert not [m for level, m in session.notifier.items if level == "error"]


@pytest.mark.asyncio
async def test_reset_reloads_without_likes(deck):
    company, seeker, vacancies, session = await deck()
    await session.load()
    await session.swipe("like")
    await session.swipe("pass")

    await session.reset()
    assert session.index == 0
    assert [c["id"] for c in session.candidates] == [vacancies[1]["id"], vacancies[2]["id"]]
    assert session.notifier.items[-1][0] == "success"


@pytest.mark.asyncio
async def test_slow_load_is_cut_off(deck, monkeypatch):
    company, seeker, vacancies, session = await deck()
    session.load_timeout = 0.05

    async def slow_initialize():
        await asyncio.sleep(5)

    monkeypatch.setattr(session, "_initialize", slow_initialize)
    await session.load()
    assert session.loading is False
    assert session.candidates == []


@pytest.mark.asyncio
async def test_account_without_profile_needs_one(make_client, navigator):
    user = await users_repo.create_user("fresh@example.com", hash_password("secret123"))
    client = make_client()
    client._store_session(await issue_session(user))
    session = SwipeSession(client, SessionGuard(client, navigator), {})

    await session.load()
    assert session.user["id"] == user["id"]
    assert session.needs_profile is True
    assert session.candidates == []


@pytest.mark.asyncio
async def test_load_without_session_redirects(make_client, navigator):
    client = make_client()
    session = SwipeSession(client, SessionGuard(client, navigator), {})

    await session.load()
    assert session.user is None
    assert navigator.paths == ["/login"]
