import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError

import errors
from database import create_document, doc_to_dict, now, to_object_id
from listing import ListingQuery, Page, paginate
from schemas import ProductIn, ProductOut, ProductUpdate

logger = logging.getLogger(__name__)

COLLECTION = "products"


def validation_messages(exc: PydanticValidationError) -> List[str]:
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "body"
        messages.append(f"{location}: {err['msg']}")
    return messages


def serialize_product(doc: Dict[str, Any]) -> Dict[str, Any]:
    return ProductOut(**doc_to_dict(doc)).model_dump()


class CatalogStore:
    """Product documents in the ``products`` collection.

    Reads return serialized dicts (string ``id``, ISO timestamps); writes
    validate through the pydantic product schemas first.
    """

    def __init__(self, db: Database):
        self.db = db
        self.collection = db[COLLECTION]

    def ensure_indexes(self) -> None:
        self.collection.create_index([("code", ASCENDING)], unique=True)
        self.collection.create_index([("category", ASCENDING)])

    def _validate(self, model: type, data: Any) -> BaseModel:
        if isinstance(data, model):
            return data
        if not isinstance(data, dict):
            raise errors.ValidationError("Invalid product data", ["body: expected an object"])
        try:
            return model(**data)
        except PydanticValidationError as exc:
            raise errors.ValidationError("Invalid product data", validation_messages(exc))

    def create(self, data: Any) -> Dict[str, Any]:
        product = self._validate(ProductIn, data)
        try:
            new_id = create_document(self.db, COLLECTION, product)
        except MongoDuplicateKeyError:
            raise errors.DuplicateKeyError(f"A product with code {product.code} already exists")
        logger.info("Created product %s (%s)", new_id, product.code)
        return self.find_by_id(new_id)

    def find_by_id(self, product_id: Any) -> Optional[Dict[str, Any]]:
        doc = self.collection.find_one({"_id": to_object_id(product_id, "product id")})
        return serialize_product(doc) if doc else None

    def exists(self, product_id: Any) -> bool:
        oid = to_object_id(product_id, "product id")
        return self.collection.find_one({"_id": oid}, {"_id": 1}) is not None

    def find_many(self, product_ids: List[Any]) -> Dict[str, Dict[str, Any]]:
        oids = [to_object_id(pid, "product id") for pid in product_ids]
        if not oids:
            return {}
        docs = self.collection.find({"_id": {"$in": oids}})
        return {str(doc["_id"]): serialize_product(doc) for doc in docs}

    def update(self, product_id: Any, data: Any) -> Optional[Dict[str, Any]]:
        oid = to_object_id(product_id, "product id")
        changes = self._validate(ProductUpdate, data).model_dump(exclude_unset=True)
        nulls = [key for key, value in changes.items() if value is None]
        if nulls:
            raise errors.ValidationError("Invalid update data", [f"{key}: may not be null" for key in nulls])
        changes["updated_at"] = now()
        try:
            doc = self.collection.find_one_and_update(
                {"_id": oid},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except MongoDuplicateKeyError:
            raise errors.DuplicateKeyError("The product code already exists")
        return serialize_product(doc) if doc else None

    def delete(self, product_id: Any) -> Optional[Dict[str, Any]]:
        doc = self.collection.find_one_and_delete({"_id": to_object_id(product_id, "product id")})
        if doc:
            logger.info("Deleted product %s", doc["_id"])
        return serialize_product(doc) if doc else None

    def query(self, listing: ListingQuery) -> Page:
        total = self.collection.count_documents(listing.filter)
        result = paginate(total, listing.page, listing.limit)
        cursor = self.collection.find(listing.filter)
        if listing.sort_spec:
            cursor = cursor.sort(listing.sort_spec + [("_id", ASCENDING)])
        cursor = cursor.skip((listing.page - 1) * listing.limit).limit(listing.limit)
        result.items = [serialize_product(doc) for doc in cursor]
        return result

    def list_all(self) -> List[Dict[str, Any]]:
        """Every product, most recently created first."""
        cursor = self.collection.find().sort([("created_at", DESCENDING), ("_id", DESCENDING)])
        return [serialize_product(doc) for doc in cursor]

    def categories(self) -> List[str]:
        return sorted(self.collection.distinct("category"))

    def count(self) -> int:
        return self.collection.count_documents({})

    def insert_many(self, products: List[Dict[str, Any]]) -> int:
        docs = []
        for data in products:
            doc = self._validate(ProductIn, data).model_dump()
            doc["created_at"] = doc["updated_at"] = now()
            docs.append(doc)
        if not docs:
            return 0
        return len(self.collection.insert_many(docs).inserted_ids)
