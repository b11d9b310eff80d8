"""
MongoDB access helpers.

`init_db` connects using the configured URL; routes receive the handle through
the `get_db` dependency. Collection name is the lowercase schema class name.
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from config import Settings

logger = logging.getLogger(__name__)

client: Optional[MongoClient] = None
db: Optional[Database] = None


def init_db(settings: Settings) -> Optional[Database]:
    global client, db
    if not settings.database_url:
        logger.warning("DATABASE_URL is not set; database features are disabled")
        db = None
        return None
    client = MongoClient(settings.database_url)
    db = client[settings.database_name]
    ensure_indexes(db)
    logger.info("Connected to MongoDB database %s", settings.database_name)
    return db


def close_db() -> None:
    global client, db
    if client is not None:
        client.close()
        logger.info("MongoDB connection closed")
    client = None
    db = None


def get_db() -> Database:
    if db is None:
        raise HTTPException(500, "Database not configured")
    return db


def ensure_indexes(database: Database) -> None:
    database["user"].create_index([("email", ASCENDING)], unique=True)
    database["order"].create_index([("orderId", ASCENDING)], unique=True)
    database["review"].create_index([("productId", ASCENDING), ("userId", ASCENDING)], unique=True)


def now() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value) -> Optional[ObjectId]:
    """Parse a hex id, returning None when it is not a valid ObjectId."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def find_by_id(database: Database, collection_name: str, id_value, projection=None) -> Optional[dict]:
    _id = to_object_id(id_value)
    if _id is None:
        return None
    return database[collection_name].find_one({"_id": _id}, projection)


def create_document(database: Database, collection_name: str, data: Union[BaseModel, dict]) -> str:
    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    stamp = now()
    doc["createdAt"] = stamp
    doc["updatedAt"] = stamp
    result = database[collection_name].insert_one(doc)
    return str(result.inserted_id)


def get_documents(database: Database, collection_name: str, filter_dict: Optional[dict] = None):
    return list(database[collection_name].find(filter_dict or {}))


def serialize_doc(doc):
    if not doc:
        return doc
    doc = dict(doc)
    _id = doc.get("_id")
    if isinstance(_id, ObjectId):
        doc["id"] = str(_id)
        del doc["_id"]
    # convert datetimes
    for k, v in list(doc.items()):
        if isinstance(v, datetime):
            doc[k] = v.isoformat()
    return doc
