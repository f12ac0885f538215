# findme/repositories/matches.py
# The matches collection is maintained outside this service; we only read it.
from typing import Any, Dict, List, Optional

from findme.db.mongo import MATCHES_COLLECTION, get_db
from findme.db.utils import to_id


def _party_query(actor_id: str, actor_type: Optional[str] = None) -> Dict[str, Any]:
    if actor_type == "job_seeker":
        return {"job_seeker_id": actor_id, "is_active": True}
    if actor_type == "company":
        return {"company_id": actor_id, "is_active": True}
    return {"$or": [{"job_seeker_id": actor_id}, {"company_id": actor_id}], "is_active": True}


async def count_active_matches(actor_id: str) -> int:
    db = get_db()
    return await db[MATCHES_COLLECTION].count_documents(_party_query(actor_id))


async def list_active_matches(actor_id: str, actor_type: str) -> List[Dict[str, Any]]:
    db = get_db()
    cur = db[MATCHES_COLLECTION].find(_party_query(actor_id, actor_type)).sort("matched_at", -1)
    out = []
    async for d in cur:
        out.append(to_id(d))
    return out
