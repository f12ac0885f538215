# findme/repositories/users.py
from datetime import timedelta
from typing import Any, Dict, Optional

from findme.db.mongo import AUTH_CODES_COLLECTION, REFRESH_TOKENS_COLLECTION, USERS_COLLECTION, get_db
from findme.db.utils import new_id, now, to_id


async def create_user(email: str, password_hash: str, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Raises pymongo DuplicateKeyError when the email is taken."""
    db = get_db()
    doc = {
        "_id": new_id(),
        "email": email.lower(),
        "password_hash": password_hash,
        "user_metadata": metadata or {},
        "created_at": now(),
    }
    await db[USERS_COLLECTION].insert_one(doc)
    return to_id(doc)


async def get_user(user_id: str) -> Optional[Dict[str, Any]]:
    db = get_db()
    return to_id(await db[USERS_COLLECTION].find_one({"_id": user_id}))


async def get_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    db = get_db()
    return to_id(await db[USERS_COLLECTION].find_one({"email": email.lower()}))


# one-time authorization codes for /auth/callback

async def store_auth_code(code: str, user_id: str, ttl: timedelta) -> None:
    db = get_db()
    await db[AUTH_CODES_COLLECTION].insert_one({
        "_id": new_id(),
        "code": code,
        "user_id": user_id,
        "expires_at": now() + ttl,
    })


async def consume_auth_code(code: str) -> Optional[str]:
    """Delete the code and return its user id; None if unknown or expired."""
    db = get_db()
    doc = await db[AUTH_CODES_COLLECTION].find_one_and_delete({"code": code})
    if not doc or doc["expires_at"] < now():
        return None
    return doc["user_id"]


# refresh tokens

async def store_refresh_token(token_id: str, user_id: str, ttl: timedelta) -> None:
    db = get_db()
    await db[REFRESH_TOKENS_COLLECTION].insert_one({
        "_id": token_id,
        "user_id": user_id,
        "expires_at": now() + ttl,
        "revoked": False,
    })


async def get_refresh_token(token_id: str) -> Optional[Dict[str, Any]]:
    db = get_db()
    return to_id(await db[REFRESH_TOKENS_COLLECTION].find_one({"_id": token_id}))


async def revoke_refresh_token(token_id: str) -> bool:
    db = get_db()
    res = await db[REFRESH_TOKENS_COLLECTION].update_one({"_id": token_id, "revoked": False}, {"$set": {"revoked": True}})
    return res.modified_count > 0
