"""
Database Helper Functions

MongoDB helpers shared by the repositories and the API. The module-level
``db`` is set when DATABASE_URL and DATABASE_NAME are configured.
"""

import logging
from datetime import datetime, timezone
from typing import Union, Optional

from bson import ObjectId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database

from config import DATABASE_URL, DATABASE_NAME

logger = logging.getLogger(__name__)

_client = None
db = None

if DATABASE_URL and DATABASE_NAME:
    _client = MongoClient(DATABASE_URL)
    db = _client[DATABASE_NAME]


def get_database() -> Database:
    """FastAPI dependency returning the configured database."""
    if db is None:
        raise RuntimeError("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")
    return db


def to_object_id(value: str) -> Optional[ObjectId]:
    """Parse a string id; None when it is not a valid ObjectId."""
    if isinstance(value, ObjectId):
        return value
    if value and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def serialize(doc: Optional[dict]) -> Optional[dict]:
    """Turn a raw document into a plain dict with a string ``id``."""
    if doc is None:
        return None
    out = dict(doc)
    out["id"] = str(out.pop("_id"))
    return out


def create_document(collection_name: str, data: Union[BaseModel, dict], database: Optional[Database] = None) -> str:
    """Insert a document with timestamps and return its id."""
    target = database if database is not None else get_database()
    if isinstance(data, BaseModel):
        data_dict = data.model_dump(mode="json")
    else:
        data_dict = data.copy()
    now = datetime.now(timezone.utc)
    data_dict["created_at"] = now
    data_dict["updated_at"] = now
    result = target[collection_name].insert_one(data_dict)
    logger.debug("Created %s document %s", collection_name, result.inserted_id)
    return str(result.inserted_id)
