# findme/repositories/swipes.py
from typing import Any, Dict, Optional, Set

from findme.db.mongo import SWIPES_COLLECTION, get_db
from findme.db.utils import new_id, now, to_id


async def insert_swipe(swiper_id: str, swiped_id: str, swipe_type: str, vacancy_id: Optional[str] = None, *, include_vacancy: bool = True) -> str:
    """
    Insert one swipe row. Raises pymongo DuplicateKeyError when the same
    decision already exists; callers treat that as an idempotent outcome.
    With include_vacancy=False the vacancy_id field is left out entirely.
    """
    db = get_db()
    payload = {
        "_id": new_id(),
        "swiper_id": swiper_id,
        "swiped_id": swiped_id,
        "swipe_type": swipe_type,
        "created_at": now(),
    }
    if include_vacancy:
        payload["vacancy_id"] = vacancy_id
    await db[SWIPES_COLLECTION].insert_one(payload)
    return payload["_id"]


async def find_like(swiper_id: str, swiped_id: str) -> Optional[Dict[str, Any]]:
    db = get_db()
    doc = await db[SWIPES_COLLECTION].find_one({"swiper_id": swiper_id, "swiped_id": swiped_id, "swipe_type": "like"})
    return to_id(doc)


async def liked_target_ids(swiper_id: str) -> Set[str]:
    db = get_db()
    cur = db[SWIPES_COLLECTION].find({"swiper_id": swiper_id, "swipe_type": "like"}, {"swiped_id": 1})
    return {d["swiped_id"] async for d in cur}


async def liked_vacancy_ids(swiper_id: str) -> Set[str]:
    db = get_db()
    cur = db[SWIPES_COLLECTION].find(
        {"swiper_id": swiper_id, "swipe_type": "like", "vacancy_id": {"$ne": None}},
        {"vacancy_id": 1},
    )
    return {d["vacancy_id"] async for d in cur}
