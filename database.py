import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from fastapi import HTTPException, Request
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_NAME = "aro_bazzar"

# (collection, field) pairs that must stay unique across documents
UNIQUE_FIELDS = [
    ("user", "email"),
    ("category", "name"),
]


def connect() -> Optional[Database]:
    """Open the shared client from the environment.

    Returns None when DATABASE_URL is unset. A failed initial ping is logged
    and the handle is still returned; pymongo reconnects once the server is
    reachable, and indexes are created on first use by get_db.
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        logger.error("DATABASE_URL is not set; store-backed routes will be unavailable")
        return None
    name = os.getenv("DATABASE_NAME", DEFAULT_DATABASE_NAME)
    timeout = int(os.getenv("DATABASE_TIMEOUT_MS", "5000"))
    client = MongoClient(url, serverSelectionTimeoutMS=timeout)
    try:
        client.admin.command("ping")
        logger.info("Connected to MongoDB database %s", name)
    except PyMongoError as e:
        logger.error("Database connection error: %s", e)
    return client[name]


def ensure_indexes(db: Database) -> bool:
    """Create the unique indexes. Returns False if any could not be created."""
    for collection, field in UNIQUE_FIELDS:
        try:
            db[collection].create_index([(field, ASCENDING)], unique=True)
        except PyMongoError as e:
            logger.warning("Could not create unique index on %s.%s: %s", collection, field, e)
            return False
    return True


def get_db(request: Request) -> Database:
    state = request.app.state
    if state.db is None:
        raise HTTPException(status_code=500, detail="Database not available")
    # Retried on every request until the store accepts the indexes
    if not state.indexed:
        state.indexed = ensure_indexes(state.db)
    return state.db


def serialize_doc(doc: Optional[Dict[str, Any]]):
    if not doc:
        return doc
    doc["id"] = str(doc.pop("_id"))
    for k, v in list(doc.items()):
        if isinstance(v, datetime):
            doc[k] = v.isoformat()
    return doc


def create_document(db: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    result = db[collection_name].insert_one(dict(data))
    return str(result.inserted_id)


def get_documents(
    db: Database,
    collection_name: str,
    projection: Optional[Dict[str, int]] = None,
) -> List[Dict[str, Any]]:
    return list(db[collection_name].find({}, projection))


def describe_store(db: Optional[Database]) -> Dict[str, Any]:
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": [],
    }
    if db is None:
        return response
    response["database"] = "✅ Available"
    response["database_name"] = db.name
    try:
        response["collections"] = db.list_collection_names()[:10]
        response["connection_status"] = "Connected"
        response["database"] = "✅ Connected & Working"
    except PyMongoError as e:
        response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
    return response
