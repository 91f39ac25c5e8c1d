"""
MongoDB access for the storefront.

Collections:
- user
- product
- order
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

import config
from errors import BadRequest, Internal
from logging_config import get_logger

logger = get_logger(__name__)

client: Optional[MongoClient] = None
db: Optional[Database] = None

if config.DATABASE_URL and config.DATABASE_NAME:
    client = MongoClient(config.DATABASE_URL)
    db = client[config.DATABASE_NAME]


def get_db() -> Database:
    if db is None:
        raise Internal("Database not configured")
    return db


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_document(database: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    if isinstance(data, BaseModel):
        doc = data.model_dump(by_alias=True, mode="python")
    else:
        doc = dict(data)
    now = utcnow()
    doc.setdefault("createdAt", now)
    doc["updatedAt"] = now
    result = database[collection_name].insert_one(doc)
    return str(result.inserted_id)


def get_documents(
    database: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[Sequence[Tuple[str, int]]] = None,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    cursor = database[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(list(sort))
    if skip:
        cursor = cursor.skip(skip)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def parse_object_id(value: str, what: str = "resource") -> ObjectId:
    if not ObjectId.is_valid(value):
        raise BadRequest(f"Invalid {what} ID format", reason="invalid_id")
    return ObjectId(value)


def _plain(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def serialize_doc(doc: Optional[Dict[str, Any]]):
    if not doc:
        return doc
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    return {k: _plain(v) for k, v in doc.items()}


def ensure_indexes(database: Database) -> None:
    database["user"].create_index([("email", ASCENDING)], unique=True)
    database["product"].create_index([("code", ASCENDING)], unique=True, sparse=True)
    database["product"].create_index([("category", ASCENDING), ("price", ASCENDING)])
    database["product"].create_index([("rating", DESCENDING)])
    database["product"].create_index([("createdAt", DESCENDING)])
    database["order"].create_index([("userId", ASCENDING)])
    database["order"].create_index([("status", ASCENDING)])
    database["order"].create_index([("createdAt", DESCENDING)])
    logger.info("indexes_ensured", database=database.name)
