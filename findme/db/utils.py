# findme/db/utils.py
import uuid
from datetime import datetime
from typing import Any, Dict, Optional


def now():
    return datetime.utcnow()


def new_id() -> str:
    return str(uuid.uuid4())


def to_id(doc) -> Optional[Dict[str, Any]]:
    # expose Mongo's _id as id when returning
    if not doc:
        return None
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc["_id"])
        del doc["_id"]
    return doc
