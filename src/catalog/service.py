"""
Catalog operations over the single persisted document.

Every mutating call reads the whole document from the store, changes one
collection and writes the whole document back. Nothing here serializes
concurrent callers: two overlapping read-modify-write cycles can lose an
update (last writer wins).
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from src.catalog.models import Category, Product, Subcategory, iso_timestamp, new_key
from src.database.base import Document, DocumentStore

logger = logging.getLogger(__name__)

# POST type -> document collection
COLLECTION_FOR_TYPE = {
    "category": "categories",
    "subcategory": "subcategories",
    "product": "products",
}


class CatalogError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnknownEndpointError(CatalogError):
    status_code = 404

    def __init__(self, message: str = "Endpoint not found") -> None:
        super().__init__(message)


class EntityNotFoundError(CatalogError):
    status_code = 404


class StoreWriteError(CatalogError):
    status_code = 500


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_price(value: Any) -> float:
    if isinstance(value, str):
        value = value.strip()
    price = float(value)
    if not math.isfinite(price):
        raise ValueError(f"Price must be a finite number, got {value!r}")
    return price


class CatalogService:
    def __init__(self, store: DocumentStore, clock: Optional[Callable[[], datetime]] = None) -> None:
        self.store = store
        self.clock = clock or _utcnow

    def list_all(self) -> Document:
        return self.store.read()

    # --- Builders --------------------------------------------------------------

    def _build_category(self, fields: Dict[str, Any], now: datetime) -> Category:
        return Category(key=new_key(now), name=fields["name"].strip())

    def _build_subcategory(self, fields: Dict[str, Any], now: datetime) -> Subcategory:
        return Subcategory(
            key=new_key(now),
            name=fields["name"].strip(),
            parentCategory=fields["parentCategory"],
        )

    def _build_product(self, fields: Dict[str, Any], now: datetime) -> Product:
        return Product(
            key=new_key(now),
            name=fields["name"].strip(),
            category=fields["category"],
            subcategory=fields.get("subcategory") or "",
            description=fields["description"].strip(),
            price=_parse_price(fields["price"]),
            images=fields.get("images") or [],
            createdAt=iso_timestamp(now),
        )

    # --- Operations ------------------------------------------------------------

    def create(self, entity_type: Optional[str], fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Build a new entity of ``entity_type`` from ``fields`` and append it.

        Missing required fields raise ``KeyError``/``AttributeError`` and are
        left to the caller's generic error handling.
        """
        builders = {
            "category": self._build_category,
            "subcategory": self._build_subcategory,
            "product": self._build_product,
        }
        build = builders.get(entity_type or "")
        if build is None:
            raise UnknownEndpointError()

        document = self.store.read()
        entity = build(fields, self.clock()).model_dump()
        document[COLLECTION_FOR_TYPE[entity_type]].append(entity)

        if not self.store.write(document):
            raise StoreWriteError(f"Failed to save {entity_type}")
        logger.info("Created %s %s", entity_type, entity["key"])
        return entity

    def delete(self, entity_type: Optional[str], key: Optional[str]) -> None:
        """
        Remove an entity by key, or everything for ``entity_type == "all"``.

        Deleting a category also removes its subcategories. Products that
        reference the deleted category or subcategory are left untouched.
        """
        if entity_type not in ("category", "subcategory", "product", "all"):
            raise UnknownEndpointError()

        document = self.store.read()
        if entity_type == "category":
            document["categories"] = [c for c in document["categories"] if c.get("key") != key]
            document["subcategories"] = [s for s in document["subcategories"] if s.get("parentCategory") != key]
        elif entity_type == "subcategory":
            document["subcategories"] = [s for s in document["subcategories"] if s.get("key") != key]
        elif entity_type == "product":
            document["products"] = [p for p in document["products"] if p.get("key") != key]
        else:
            document["categories"] = []
            document["subcategories"] = []
            document["products"] = []

        if not self.store.write(document):
            raise StoreWriteError("Failed to delete")
        logger.info("Deleted %s %s", entity_type, key if entity_type != "all" else "(all)")

    def rename_subcategory(self, key: Optional[str], name: Optional[str]) -> Dict[str, Any]:
        document = self.store.read()
        for subcategory in document["subcategories"]:
            if subcategory.get("key") == key:
                subcategory["name"] = name.strip()
                if not self.store.write(document):
                    raise StoreWriteError("Failed to update subcategory")
                logger.info("Renamed subcategory %s", key)
                return subcategory
        raise EntityNotFoundError("Subcategory not found")

    def update(self, entity_type: Optional[str], fields: Dict[str, Any]) -> Dict[str, Any]:
        # Only subcategory renames are supported.
        if entity_type != "subcategory":
            raise UnknownEndpointError()
        return self.rename_subcategory(fields.get("key"), fields.get("name"))
