# findme/repositories/messages.py
from typing import Any, Dict, List

from findme.db.mongo import MESSAGES_COLLECTION, get_db
from findme.db.utils import new_id, now, to_id


async def insert_message(sender_id: str, receiver_id: str, text: str) -> Dict[str, Any]:
    db = get_db()
    doc = {
        "_id": new_id(),
        "sender_id": sender_id,
        "receiver_id": receiver_id,
        "message": text,
        "created_at": now(),
        "is_read": False,
    }
    await db[MESSAGES_COLLECTION].insert_one(doc)
    return to_id(doc)


async def list_between(user_id: str, partner_id: str) -> List[Dict[str, Any]]:
    """Both directions of the conversation, oldest first."""
    db = get_db()
    query = {"$or": [
        {"sender_id": user_id, "receiver_id": partner_id},
        {"sender_id": partner_id, "receiver_id": user_id},
    ]}
    cur = db[MESSAGES_COLLECTION].find(query).sort([("created_at", 1), ("_id", 1)])
    out = []
    async for d in cur:
        out.append(to_id(d))
    return out


async def list_involving(user_id: str) -> List[Dict[str, Any]]:
    db = get_db()
    query = {"$or": [{"sender_id": user_id}, {"receiver_id": user_id}]}
    cur = db[MESSAGES_COLLECTION].find(query).sort([("created_at", 1), ("_id", 1)])
    out = []
    async for d in cur:
        out.append(to_id(d))
    return out


async def mark_as_read(sender_id: str, receiver_id: str) -> int:
    db = get_db()
    res = await db[MESSAGES_COLLECTION].update_many(
        {"sender_id": sender_id, "receiver_id": receiver_id, "is_read": False},
        {"$set": {"is_read": True}},
    )
    return res.modified_count
