from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database

from database import create_document, get_documents, serialize_doc
from schemas import StoreModel
from security import hash_password


class RecordWriteError(Exception):
    """A record passed validation but could not be prepared for storage."""


class DocumentMapper:
    """Translates between validated entity models and stored documents.

    Subclasses name the collection and, where some stored fields must never
    leave the service, the projection applied to every read.
    """

    collection_name: str = ""
    projection: Optional[Dict[str, int]] = None

    def __init__(self, db: Database):
        self.db = db
        self.collection = db[self.collection_name]

    def create(self, record: StoreModel) -> Dict[str, Any]:
        inserted_id = create_document(self.db, self.collection_name, self.prepare(record.to_document()))
        return self.get(inserted_id)

    def prepare(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        return doc

    def list_all(self) -> List[Dict[str, Any]]:
        docs = get_documents(self.db, self.collection_name, projection=self.projection)
        return [serialize_doc(d) for d in docs]

    def get(self, record_id: str) -> Optional[Dict[str, Any]]:
        if not ObjectId.is_valid(record_id):
            return None
        return serialize_doc(self.collection.find_one({"_id": ObjectId(record_id)}, self.projection))

    def update(self, record_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        # ObjectId() raises InvalidId for malformed ids
        doc = self.collection.find_one_and_update(
            {"_id": ObjectId(record_id)},
            {"$set": changes},
            projection=self.projection,
            return_document=ReturnDocument.AFTER,
        )
        return serialize_doc(doc)

    def delete(self, record_id: str) -> int:
        if not ObjectId.is_valid(record_id):
            return 0
        return self.collection.delete_one({"_id": ObjectId(record_id)}).deleted_count


class ProductMapper(DocumentMapper):
    collection_name = "product"


class CategoryMapper(DocumentMapper):
    collection_name = "category"


class OrderMapper(DocumentMapper):
    collection_name = "order"


class UserMapper(DocumentMapper):
    collection_name = "user"
    projection = {"password": 0}
    updatable_fields = ("name", "email", "role")

    def prepare(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        try:
            doc["password"] = hash_password(doc["password"])
        except ValueError as e:
            raise RecordWriteError(f"User validation failed: password: {e}") from e
        return doc

    def update(self, record_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        allowed = {k: v for k, v in changes.items() if k in self.updatable_fields}
        return super().update(record_id, allowed)

    def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Raw user document, password hash included. For login only."""
        return self.collection.find_one({"email": email})
