# tests/conftest.py
import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from findme.client.api import FindMeClient
from findme.db import mongo
from findme.main import app
from findme.services.realtime import reset_feed


@pytest.fixture(autouse=True)
async def test_db(monkeypatch):
    """Every test gets a fresh in-memory database with the real indexes."""
    monkeypatch.setattr(mongo, "_mongo_client", AsyncMongoMockClient())
    await mongo.ensure_indexes()
    yield mongo.get_db()


@pytest.fixture(autouse=True)
def fresh_feed():
    reset_feed()
    yield
    reset_feed()


@pytest.fixture
async def api():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def make_actor(api):
    """Sign up a job seeker or company; returns the session plus auth headers."""
    async def _make(user_type="job_seeker", email=None, name=None):
        email = email or f"{uuid.uuid4().hex[:10]}@example.com"
        body = {
            "email": email,
            "password": "secret123",
            "confirm_password": "secret123",
            "user_type": user_type,
        }
        if user_type == "company":
            body["company_name"] = name or "Acme Corp"
        else:
            body["name"] = name or "Jane Doe"
        r = await api.post("/auth/signup", json=body)
        assert r.status_code == 201, r.text
        session = r.json()
        session["id"] = session["user"]["id"]
        session["email"] = email
        session["headers"] = {"Authorization": f"Bearer {session['access_token']}"}
        return session

    return _make


@pytest.fixture
def make_vacancy(api):
    async def _make(company, **overrides):
        body = {"title": "Backend Engineer", "skills_required": "python, mongodb", "location": "Remote"}
        body.update(overrides)
        r = await api.post("/api/v1/vacancies", json=body, headers=company["headers"])
        assert r.status_code == 201, r.text
        return r.json()

    return _make


@pytest.fixture
async def make_client():
    """FindMeClient factory; clients sharing a storage dict act like browser tabs."""
    clients = []

    def _make(storage=None):
        client = FindMeClient(base_url="http://testserver", storage=storage, transport=ASGITransport(app=app))
        clients.append(client)
        return client

    yield _make
    for c in clients:
        await c.aclose()


class Navigator:
    """Records navigation requests made by the session guard."""

    def __init__(self):
        self.calls = []

    def __call__(self, path, **kwargs):
        self.calls.append((path, kwargs))

    @property
    def paths(self):
        return [p for p, _ in self.calls]


@pytest.fixture
def navigator():
    return Navigator()
