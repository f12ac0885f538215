# findme/repositories/actors.py
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pymongo.errors import DuplicateKeyError

from findme.db.mongo import COMPANIES_COLLECTION, JOB_SEEKERS_COLLECTION, get_db
from findme.db.utils import now, to_id

logger = logging.getLogger(__name__)

JOB_SEEKER_SUMMARY_FIELDS = ("name", "bio", "skills", "address")
COMPANY_SUMMARY_FIELDS = (
    "company_name", "description", "industry", "location", "company_size", "culture", "benefits",
)


def _projection(fields: Iterable[str]) -> Dict[str, int]:
    return {f: 1 for f in fields}


async def get_job_seeker(actor_id: str) -> Optional[Dict[str, Any]]:
    db = get_db()
    return to_id(await db[JOB_SEEKERS_COLLECTION].find_one({"_id": actor_id}))


async def get_company(actor_id: str) -> Optional[Dict[str, Any]]:
    db = get_db()
    return to_id(await db[COMPANIES_COLLECTION].find_one({"_id": actor_id}))


async def resolve_actor_type(actor_id: str) -> Tuple[Optional[str], Optional[Dict[str, Any]]]:
    """Job seekers are checked first, then companies. (None, None) when neither exists."""
    seeker = await get_job_seeker(actor_id)
    if seeker:
        return "job_seeker", seeker
    company = await get_company(actor_id)
    if company:
        return "company", company
    return None, None


def _default_name(email: Optional[str], metadata: Dict[str, Any], fallback: str, *keys: str) -> str:
    for key in keys:
        if metadata.get(key):
            return metadata[key]
    if email and "@" in email:
        return email.split("@")[0]
    return fallback


async def provision_actor(actor_id: str, user_type: str, email: Optional[str], metadata: Optional[Dict[str, Any]] = None) -> bool:
    """
    Create the actor record for an account if it does not exist yet.
    Returns True when a record was created.
    """
    metadata = metadata or {}
    db = get_db()
    ts = now()
    if user_type == "job_seeker":
        collection = JOB_SEEKERS_COLLECTION
        doc = {
            "_id": actor_id,
            "name": _default_name(email, metadata, "User", "name", "full_name"),
            "email": email,
            "skills": [],
            "preferences": [],
        }
    elif user_type == "company":
        collection = COMPANIES_COLLECTION
        doc = {
            "_id": actor_id,
            "company_name": _default_name(email, metadata, "Company", "company_name", "name", "full_name"),
            "email": email,
            "benefits": [],
            "subscription_status": "trial",
        }
    else:
        raise ValueError(f"unknown user type: {user_type!r}")

    if await db[collection].find_one({"_id": actor_id}, {"_id": 1}):
        return False
    doc["created_at"] = ts
    doc["updated_at"] = ts
    try:
        await db[collection].insert_one(doc)
    except DuplicateKeyError:
        # provisioned concurrently (e.g. signup and callback racing)
        return False
    logger.info("Provisioned %s profile for %s", user_type, actor_id)
    return True


async def _upsert(collection: str, actor_id: str, email: Optional[str], data: Dict[str, Any]) -> Dict[str, Any]:
    db = get_db()
    ts = now()
    await db[collection].update_one(
        {"_id": actor_id},
        {
            "$set": {**data, "updated_at": ts},
            "$setOnInsert": {"email": email, "created_at": ts},
        },
        upsert=True,
    )
    return to_id(await db[collection].find_one({"_id": actor_id}))


async def upsert_job_seeker(actor_id: str, email: Optional[str], data: Dict[str, Any]) -> Dict[str, Any]:
    return await _upsert(JOB_SEEKERS_COLLECTION, actor_id, email, data)


async def upsert_company(actor_id: str, email: Optional[str], data: Dict[str, Any]) -> Dict[str, Any]:
    return await _upsert(COMPANIES_COLLECTION, actor_id, email, data)


async def list_job_seekers(exclude_ids: Iterable[str], limit: int) -> List[Dict[str, Any]]:
    db = get_db()
    query = {"_id": {"$nin": list(exclude_ids)}}
    cur = db[JOB_SEEKERS_COLLECTION].find(query).sort([("created_at", 1), ("_id", 1)]).limit(limit)
    out = []
    async for d in cur:
        out.append(to_id(d))
    return out


async def _by_ids(collection: str, ids: Iterable[str], fields: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    ids = list(set(ids))
    if not ids:
        return {}
    db = get_db()
    cur = db[collection].find({"_id": {"$in": ids}}, _projection(fields))
    out = {}
    async for d in cur:
        row = to_id(d)
        out[row["id"]] = row
    return out


async def companies_by_ids(ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    return await _by_ids(COMPANIES_COLLECTION, ids, COMPANY_SUMMARY_FIELDS)


async def job_seekers_by_ids(ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    return await _by_ids(JOB_SEEKERS_COLLECTION, ids, JOB_SEEKER_SUMMARY_FIELDS)


async def display_names(ids: Iterable[str]) -> Dict[str, str]:
    """Name to show for each actor id: job seeker name first, then company name."""
    ids = list(set(ids))
    names = {}
    for row in (await companies_by_ids(ids)).values():
        names[row["id"]] = row.get("company_name") or "Unknown User"
    for row in (await job_seekers_by_ids(ids)).values():
        names[row["id"]] = row.get("name") or "Unknown User"
    return names
