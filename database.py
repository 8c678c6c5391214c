from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database

from errors import InvalidIdError
from settings import Settings


def connect(settings: Settings) -> Database:
    client: MongoClient = MongoClient(settings.database_url, tz_aware=True)
    return client[settings.database_name]


def now() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value: Any, label: str = "id") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise InvalidIdError(f"Invalid {label}: {value}")


def create_document(db: Database, collection_name: str, data: Any) -> str:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    doc = dict(data)
    stamp = now()
    doc["created_at"] = stamp
    doc["updated_at"] = stamp
    result = db[collection_name].insert_one(doc)
    return str(result.inserted_id)


def doc_to_dict(doc: dict) -> dict:
    out = {}
    for k, v in doc.items():
        if isinstance(v, ObjectId):
            out[k] = str(v)
        elif isinstance(v, datetime):
            out[k] = v.isoformat()
        else:
            out[k] = v
    if "_id" in out:
        out["id"] = out.pop("_id")
    return out
