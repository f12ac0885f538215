# findme/repositories/vacancies.py
from typing import Any, Dict, Iterable, List, Optional

from findme.db.mongo import VACANCIES_COLLECTION, get_db
from findme.db.utils import new_id, now, to_id


async def create_vacancy(company_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    db = get_db()
    ts = now()
    doc = {
        **data,
        "_id": new_id(),
        "company_id": company_id,
        "is_active": True,
        "applications_count": 0,
        "views_count": 0,
        "posted_at": ts,
        "created_at": ts,
        "updated_at": ts,
    }
    await db[VACANCIES_COLLECTION].insert_one(doc)
    return to_id(doc)


async def get_vacancy(vacancy_id: str) -> Optional[Dict[str, Any]]:
    db = get_db()
    return to_id(await db[VACANCIES_COLLECTION].find_one({"_id": vacancy_id}))


async def get_owned_vacancy(vacancy_id: str, company_id: str) -> Optional[Dict[str, Any]]:
    db = get_db()
    return to_id(await db[VACANCIES_COLLECTION].find_one({"_id": vacancy_id, "company_id": company_id}))


async def list_company_vacancies(company_id: str) -> List[Dict[str, Any]]:
    db = get_db()
    cur = db[VACANCIES_COLLECTION].find({"company_id": company_id}).sort("created_at", -1)
    out = []
    async for d in cur:
        out.append(to_id(d))
    return out


async def list_active_vacancies(exclude_ids: Iterable[str], limit: int) -> List[Dict[str, Any]]:
    db = get_db()
    query = {"is_active": True, "_id": {"$nin": list(exclude_ids)}}
    cur = db[VACANCIES_COLLECTION].find(query).sort([("created_at", 1), ("_id", 1)]).limit(limit)
    out = []
    async for d in cur:
        out.append(to_id(d))
    return out


async def update_vacancy(vacancy_id: str, company_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    db = get_db()
    changes = {**changes, "updated_at": now()}
    res = await db[VACANCIES_COLLECTION].update_one({"_id": vacancy_id, "company_id": company_id}, {"$set": changes})
    if res.matched_count == 0:
        return None
    return await get_vacancy(vacancy_id)


async def delete_vacancy(vacancy_id: str, company_id: str) -> bool:
    db = get_db()
    res = await db[VACANCIES_COLLECTION].delete_one({"_id": vacancy_id, "company_id": company_id})
    return res.deleted_count > 0
