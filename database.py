"""
MongoDB access for the marketplace.

Collections:
- users, products, categories, carts, wishlists, reviews, conversations, messages

Handlers receive the database through the `get_db` dependency so tests can
swap in an in-memory database.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.client_session import ClientSession
from pymongo.database import Database

from config import Config
from errors import ApiError

logger = logging.getLogger(__name__)

_client: Optional[MongoClient] = None


def get_client() -> MongoClient:
    global _client
    if _client is None:
        _client = MongoClient(Config.DATABASE_URL, serverSelectionTimeoutMS=5000, tz_aware=True)
        logger.info("MongoDB client created for database %s", Config.DATABASE_NAME)
    return _client


def get_db() -> Database:
    return get_client()[Config.DATABASE_NAME]


def close_client():
    global _client
    if _client is not None:
        _client.close()
        _client = None


def now() -> datetime:
    return datetime.now(timezone.utc)


def object_id(value: Any) -> ObjectId:
    """Parse a client supplied id, answering 400 for garbage."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise ApiError(400, "malformatted id")


def create_document(
    db: Database,
    collection: str,
    data: Union[BaseModel, Dict[str, Any]],
    session: Optional[ClientSession] = None,
) -> str:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    doc = dict(data)
    stamp = now()
    doc.setdefault("createdAt", stamp)
    doc["updatedAt"] = stamp
    result = db[collection].insert_one(doc, session=session)
    return str(result.inserted_id)


def get_documents(db: Database, collection: str, filter_dict: Optional[dict] = None, limit: int = 0) -> List[dict]:
    cursor = db[collection].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def populate(
    db: Database,
    docs: Union[dict, List[dict], None],
    path: str,
    collection: str,
    fields: Optional[List[str]] = None,
) -> Any:
    """Swap the id (or list of ids) at `path` for the referenced documents.

    `path` may be dotted to reach into an already populated sub-document,
    e.g. "latestMessage.sender". Dangling references become None (scalars)
    or are dropped (lists).
    """
    if docs is None:
        return None
    if isinstance(docs, list):
        for doc in docs:
            populate(db, doc, path, collection, fields)
        return docs

    head, _, rest = path.partition(".")
    if rest:
        populate(db, docs.get(head), rest, collection, fields)
        return docs

    value = docs.get(head)
    if value is None:
        return docs
    projection = {f: 1 for f in fields} if fields else None
    if isinstance(value, list):
        ids = [v for v in value if isinstance(v, ObjectId)]
        found = {d["_id"]: d for d in db[collection].find({"_id": {"$in": ids}}, projection)}
        docs[head] = [found[v] for v in ids if v in found]
    elif isinstance(value, ObjectId):
        docs[head] = db[collection].find_one({"_id": value}, projection)
    return docs


@contextmanager
def transaction(db: Database) -> Iterator[Optional[ClientSession]]:
    """Run the enclosed writes as one transaction.

    Yields None when transactions are disabled; callers pass the value through
    as ``session=`` either way.
    """
    if not Config.MONGO_TRANSACTIONS:
        yield None
        return
    with db.client.start_session() as session:
        with session.start_transaction():
            yield session


def to_public(value: Any) -> Any:
    """Make a document JSON safe: ObjectIds and datetimes become strings."""
    if isinstance(value, dict):
        return {k: to_public(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_public(v) for v in value]
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value
