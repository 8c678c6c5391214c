"""Carts and the rules that keep their line items consistent.

A cart document looks like::

    {"_id": ObjectId, "products": [{"product": ObjectId, "quantity": int}],
     "created_at": datetime, "updated_at": datetime}

``product`` is a reference into the products collection. ``CartService``
owns every mutation of ``products`` and resolves references on read.
"""

import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database

import errors
from catalog import CatalogStore
from database import create_document, now, to_object_id

logger = logging.getLogger(__name__)

COLLECTION = "carts"


def require_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise errors.InvalidQuantityError("Quantity must be an integer greater than 0")
    return quantity


class CartStore:
    def __init__(self, db: Database):
        self.db = db
        self.collection = db[COLLECTION]

    def create(self) -> Dict[str, Any]:
        new_id = create_document(self.db, COLLECTION, {"products": []})
        logger.info("Created cart %s", new_id)
        return self.get(new_id)

    def find_by_id(self, cart_id: Any) -> Optional[Dict[str, Any]]:
        return self.collection.find_one({"_id": to_object_id(cart_id, "cart id")})

    def get(self, cart_id: Any) -> Dict[str, Any]:
        cart = self.find_by_id(cart_id)
        if cart is None:
            raise errors.CartNotFoundError(f"Cart with ID {cart_id} not found")
        return cart

    def save_items(self, cart: Dict[str, Any], items: List[Dict[str, Any]]) -> Dict[str, Any]:
        doc = self.collection.find_one_and_update(
            {"_id": cart["_id"]},
            {"$set": {"products": items, "updated_at": now()}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise errors.CartNotFoundError(f"Cart with ID {cart['_id']} not found")
        return doc

    def delete(self, cart_id: Any) -> Optional[Dict[str, Any]]:
        return self.collection.find_one_and_delete({"_id": to_object_id(cart_id, "cart id")})

    def count(self) -> int:
        return self.collection.count_documents({})


class CartService:
    """Line-item operations on a single cart, resolved against the catalog."""

    def __init__(self, store: CartStore, catalog: CatalogStore):
        self.store = store
        self.catalog = catalog

    def _line_index(self, cart: Dict[str, Any], product_oid: ObjectId) -> Optional[int]:
        for index, line in enumerate(cart.get("products", [])):
            if line["product"] == product_oid:
                return index
        return None

    def _require_product(self, product_id: Any) -> ObjectId:
        oid = to_object_id(product_id, "product id")
        if not self.catalog.exists(oid):
            raise errors.ProductNotFoundError(f"Product with ID {product_id} not found")
        return oid

    def add_product(self, cart: Dict[str, Any], product_id: Any, quantity: Any = 1) -> Dict[str, Any]:
        quantity = require_quantity(quantity)
        oid = self._require_product(product_id)
        items = [dict(line) for line in cart.get("products", [])]
        index = self._line_index(cart, oid)
        if index is None:
            items.append({"product": oid, "quantity": quantity})
        else:
            items[index]["quantity"] += quantity
        return self.store.save_items(cart, items)

    def remove_product(self, cart: Dict[str, Any], product_id: Any) -> Dict[str, Any]:
        oid = to_object_id(product_id, "product id")
        items = [dict(line) for line in cart.get("products", []) if line["product"] != oid]
        if len(items) == len(cart.get("products", [])):
            return cart
        return self.store.save_items(cart, items)

    def update_cart(self, cart: Dict[str, Any], items: Any) -> Dict[str, Any]:
        """Replace every line item. All items are checked before anything is written."""
        if not isinstance(items, list):
            raise errors.ValidationError("products must be a list")
        merged: Dict[ObjectId, Dict[str, Any]] = {}
        for position, item in enumerate(items):
            if not isinstance(item, dict) or "product" not in item:
                raise errors.ValidationError(f"Item {position} must have a product and a quantity")
            quantity = require_quantity(item.get("quantity"))
            oid = to_object_id(item["product"], "product id")
            if oid in merged:
                merged[oid]["quantity"] += quantity
            else:
                merged[oid] = {"product": oid, "quantity": quantity}
        found = self.catalog.find_many(list(merged))
        missing = [str(oid) for oid in merged if str(oid) not in found]
        if missing:
            raise errors.ProductNotFoundError(
                f"Product with ID {missing[0]} not found",
                [f"product {pid} not found" for pid in missing],
            )
        return self.store.save_items(cart, list(merged.values()))

    def update_product_quantity(self, cart: Dict[str, Any], product_id: Any, quantity: Any) -> Dict[str, Any]:
        quantity = require_quantity(quantity)
        oid = to_object_id(product_id, "product id")
        index = self._line_index(cart, oid)
        if index is None:
            raise errors.ProductNotFoundInCartError(f"Product with ID {product_id} is not in the cart")
        items = [dict(line) for line in cart["products"]]
        items[index]["quantity"] = quantity
        return self.store.save_items(cart, items)

    def clear_cart(self, cart: Dict[str, Any]) -> Dict[str, Any]:
        return self.store.save_items(cart, [])

    def get_with_details(self, cart_id: Any) -> Dict[str, Any]:
        return self.details(self.store.get(cart_id))

    def details(self, cart: Dict[str, Any]) -> Dict[str, Any]:
        """Join line items to their products, skipping products that no longer exist."""
        lines = cart.get("products", [])
        products = self.catalog.find_many([line["product"] for line in lines])
        joined = []
        total = 0.0
        for line in lines:
            product = products.get(str(line["product"]))
            if product is None:
                continue
            subtotal = round(product["price"] * line["quantity"], 2)
            total += subtotal
            joined.append({"product": product, "quantity": line["quantity"], "subtotal": subtotal})
        return {
            "id": str(cart["_id"]),
            "products": joined,
            "total": round(total, 2),
            "created_at": cart["created_at"].isoformat() if cart.get("created_at") else None,
            "updated_at": cart["updated_at"].isoformat() if cart.get("updated_at") else None,
        }
