# findme/db/mongo.py
import logging
from functools import lru_cache
from typing import Optional

import motor.motor_asyncio as _motor_asyncio
from pymongo import ASCENDING, DESCENDING
from pydantic_settings import BaseSettings

from findme.core.config import settings

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
JOB_SEEKERS_COLLECTION = "job_seekers"
COMPANIES_COLLECTION = "companies"
VACANCIES_COLLECTION = "job_vacancies"
SWIPES_COLLECTION = "swipes"
MATCHES_COLLECTION = "matches"
MESSAGES_COLLECTION = "messages"
AUTH_CODES_COLLECTION = "auth_codes"
REFRESH_TOKENS_COLLECTION = "refresh_tokens"


class MongoSettings(BaseSettings):
    MONGODB_URI: str = settings.MONGODB_URI or "mongodb://localhost:27017/findme"
    MONGODB_DB: str = settings.MONGODB_DB or "findme"


@lru_cache()
def get_mongo_settings() -> MongoSettings:
    return MongoSettings()


_mongo_client: Optional[_motor_asyncio.AsyncIOMotorClient] = None


def get_mongo_client():
    """
    Returns a cached Motor client.
    """
    global _mongo_client
    if _mongo_client is None:
        _mongo_client = _motor_asyncio.AsyncIOMotorClient(get_mongo_settings().MONGODB_URI)
    return _mongo_client


def get_db():
    client = get_mongo_client()
    return client[get_mongo_settings().MONGODB_DB]


async def ensure_indexes() -> None:
    """
    Create the indexes the application relies on. The swipe index is what
    turns a repeated swipe into a DuplicateKeyError.
    """
    db = get_db()
    await db[USERS_COLLECTION].create_index([("email", ASCENDING)], unique=True, name="uniq_email")
    await db[SWIPES_COLLECTION].create_index(
        [
            ("swiper_id", ASCENDING),
            ("swiped_id", ASCENDING),
            ("vacancy_id", ASCENDING),
            ("swipe_type", ASCENDING),
        ],
        unique=True,
        name="uniq_swipe",
    )
    await db[VACANCIES_COLLECTION].create_index([("company_id", ASCENDING), ("created_at", DESCENDING)])
    await db[MESSAGES_COLLECTION].create_index([("receiver_id", ASCENDING), ("sender_id", ASCENDING)])
    await db[AUTH_CODES_COLLECTION].create_index([("code", ASCENDING)], unique=True, name="uniq_code")


async def init_db():
    logger.info("Connecting to MongoDB database %s", get_mongo_settings().MONGODB_DB)
    await ensure_indexes()


def close_db():
    global _mongo_client
    if _mongo_client is not None:
        _mongo_client.close()
        _mongo_client = None
