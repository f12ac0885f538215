# tests/test_swipes.py
import pytest
from pymongo.errors import PyMongoError, WriteError

from findme.core.errors import PersistenceError
from findme.db.mongo import SWIPES_COLLECTION
from findme.models.swipe import SwipeTarget
from findme.repositories import actors as actors_repo
from findme.repositories import swipes as swipes_repo
from findme.services import swipes as swipe_service


def _vacancy_swipe(vacancy_id, decision="like"):
    return {"target": {"kind": "vacancy", "id": vacancy_id}, "decision": decision}


def _profile_swipe(profile_id, decision="like"):
    return {"target": {"kind": "profile", "id": profile_id}, "decision": decision}


@pytest.mark.asyncio
async def test_job_seeker_deck_shows_vacancies_with_company(api, make_actor, make_vacancy):
    company = await make_actor("company", name="Acme Corp")
    seeker = await make_actor("job_seeker")
    vacancy = await make_vacancy(company)

    r = await api.get("/api/v1/swipe/candidates", headers=seeker["headers"])
    assert r.status_code == 200
    body = r.json()
    assert body["user_type"] == "job_seeker"
    assert body["match_count"] == 0
    [item] = body["items"]
    assert item["kind"] == "vacancy"
    assert item["id"] == vacancy["id"]
    assert item["company"]["id"] == company["id"]
    assert item["company"]["company_name"] == "Acme Corp"


@pytest.mark.asyncio
async def test_repeat_like_is_idempotent(api, make_actor, make_vacancy, test_db):
    company = await make_actor("company")
    seeker = await make_actor("job_seeker")
    vacancy = await make_vacancy(company)

    r1 = await api.post("/api/v1/swipes", json=_vacancy_swipe(vacancy["id"]), headers=seeker["headers"])
    assert r1.status_code == 200
    assert r1.json()["status"] == "recorded"
    assert r1.json()["swiped_id"] == company["id"]
    assert r1.json()["vacancy_id"] == vacancy["id"]

    r2 = await api.post("/api/v1/swipes", json=_vacancy_swipe(vacancy["id"]), headers=seeker["headers"])
    assert r2.status_code == 200
    assert r2.json()["status"] == "duplicate"

    assert await test_db[SWIPES_COLLECTION].count_documents(
        {"swiper_id": seeker["id"], "swiped_id": company["id"], "vacancy_id": vacancy["id"]}
    ) == 1

    # liked vacancies leave the deck
    deck = await api.get("/api/v1/swipe/candidates", headers=seeker["headers"])
    assert deck.json()["items"] == []


@pytest.mark.asyncio
async def test_passed_vacancy_comes_back_and_can_still_be_liked(api, make_actor, make_vacancy):
    company = await make_actor("company")
    seeker = await make_actor("job_seeker")
    vacancy = await make_vacancy(company)

    r = await api.post("/api/v1/swipes", json=_vacancy_swipe(vacancy["id"], "pass"), headers=seeker["headers"])
    assert r.json()["status"] == "recorded"

    deck = await api.get("/api/v1/swipe/candidates", headers=seeker["headers"])
    assert [c["id"] for c in deck.json()["items"]] == [vacancy["id"]]

    r2 = await api.post("/api/v1/swipes", json=_vacancy_swipe(vacancy["id"]), headers=seeker["headers"])
    assert r2.json()["status"] == "recorded"


@pytest.mark.asyncio
async def test_company_deck_is_capped_and_skips_liked(api, make_actor):
    company = await make_actor("company")
    for i in range(25):
        await actors_repo.provision_actor(f"seeker-{i:02d}", "job_seeker", f"s{i}@example.com")

    r = await api.get("/api/v1/swipe/candidates", headers=company["headers"])
    items = r.json()["items"]
    assert len(items) == 20
    assert all(c["kind"] == "profile" for c in items)
    assert company["id"] not in {c["id"] for c in items}

    first = items[0]["id"]
    await api.post("/api/v1/swipes", json=_profile_swipe(first), headers=company["headers"])
    r2 = await api.get("/api/v1/swipe/candidates", headers=company["headers"])
    assert first not in {c["id"] for c in r2.json()["items"]}


@pytest.mark.asyncio
async def test_mutual_like_reports_match(api, make_actor, make_vacancy):
    company = await make_actor("company")
    seeker = await make_actor("job_seeker")
    vacancy = await make_vacancy(company)

    r1 = await api.post("/api/v1/swipes", json=_vacancy_swipe(vacancy["id"]), headers=seeker["headers"])
    assert r1.json()["match"] is False

    r2 = await api.post("/api/v1/swipes", json=_profile_swipe(seeker["id"]), headers=company["headers"])
    assert r2.json() == {"status": "recorded", "match": True, "swiped_id": seeker["id"], "vacancy_id": None}


@pytest.mark.asyncio
async def test_pass_never_reports_match(api, make_actor, make_vacancy):
    company = await make_actor("company")
    seeker = await make_actor("job_seeker")
    vacancy = await make_vacancy(company)
    await api.post("/api/v1/swipes", json=_vacancy_swipe(vacancy["id"]), headers=seeker["headers"])

    r = await api.post("/api/v1/swipes", json=_profile_swipe(seeker["id"], "pass"), headers=company["headers"])
    assert r.json()["match"] is False


@pytest.mark.asyncio
async def test_swipe_target_rules(api, make_actor, make_vacancy):
    company = await make_actor("company")
    seeker = await make_actor("job_seeker")
    vacancy = await make_vacancy(company)

    r = await api.post("/api/v1/swipes", json=_profile_swipe(company["id"]), headers=seeker["headers"])
    assert r.status_code == 403

    r = await api.post("/api/v1/swipes", json=_vacancy_swipe(vacancy["id"]), headers=company["headers"])
    assert r.status_code == 403

    r = await api.post("/api/v1/swipes", json=_vacancy_swipe("missing"), headers=seeker["headers"])
    assert r.status_code == 404

    await api.post(f"/api/v1/vacancies/{vacancy['id']}/toggle", headers=company["headers"])
    r = await api.post("/api/v1/swipes", json=_vacancy_swipe(vacancy["id"]), headers=seeker["headers"])
    assert r.status_code == 404

    r = await api.post("/api/v1/swipes", json=_profile_swipe(company["id"]), headers=company["headers"])
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_record_swipe_retries_without_vacancy_field(monkeypatch, test_db):
    calls = []
    real_insert = swipes_repo.insert_swipe

    async def picky_insert(*args, include_vacancy=True, **kwargs):
        calls.append(include_vacancy)
        if include_vacancy:
            raise WriteError("Document failed validation", code=121)
        return await real_insert(*args, include_vacancy=include_vacancy, **kwargs)

    monkeypatch.setattr(swipes_repo, "insert_swipe", picky_insert)
    target = SwipeTarget(swiped_id="company-1", vacancy_id="vacancy-1")

    status = await swipe_service.record_swipe("seeker-1", target, "like")

    assert status == "recorded"
    assert calls == [True, False]
    row = await test_db[SWIPES_COLLECTION].find_one({"swiper_id": "seeker-1"})
    assert "vacancy_id" not in row


@pytest.mark.asyncio
async def test_record_swipe_surfaces_other_failures(monkeypatch):
    async def broken_insert(*args, **kwargs):
        raise PyMongoError("connection reset")

    monkeypatch.setattr(swipes_repo, "insert_swipe", broken_insert)

    with pytest.raises(PersistenceError):
        await swipe_service.record_swipe("seeker-1", SwipeTarget(swiped_id="company-1"), "like")


@pytest.mark.asyncio
async def test_persistence_failure_is_a_500(api, make_actor, make_vacancy, monkeypatch):
    company = await make_actor("company")
    seeker = await make_actor("job_seeker")
    vacancy = await make_vacancy(company)

    async def broken_insert(*args, **kwargs):
        raise PyMongoError("connection reset")

    monkeypatch.setattr(swipes_repo, "insert_swipe", broken_insert)
    r = await api.post("/api/v1/swipes", json=_vacancy_swipe(vacancy["id"]), headers=seeker["headers"])
    assert r.status_code == 500
    assert r.json() == {"error": "persistence_error", "message": "Failed to record swipe"}


@pytest.mark.asyncio
async def test_match_check_failure_keeps_the_swipe(monkeypatch, make_actor, make_vacancy, api, test_db):
    company = await make_actor("company")
    seeker = await make_actor("job_seeker")
    vacancy = await make_vacancy(company)

    async def broken_find_like(*args, **kwargs):
        raise PyMongoError("timeout")

    monkeypatch.setattr(swipes_repo, "find_like", broken_find_like)
    r = await api.post("/api/v1/swipes", json=_vacancy_swipe(vacancy["id"]), headers=seeker["headers"])
    assert r.status_code == 200
    assert r.json()["status"] == "recorded"
    assert r.json()["match"] is False
    assert await test_db[SWIPES_COLLECTION].count_documents({"swiper_id": seeker["id"], "swiped_id": company["id"]}) == 1
