"""
Synchronization between the catalog client cache and the Catalog API.

State machine:

- ``synced``: the queue is empty and the cached document came from the server.
- ``pending``: at least one mutation was applied locally but not accepted by
  the server yet. While anything is queued, new mutations are queued behind it
  so the server sees them in order.
- ``conflict``: replay finished but the server rejected some queued
  operations. They are kept in ``cache.conflicts`` until discarded.

Transitions happen in ``load``, the mutation methods, ``reconcile`` and
``discard_conflicts``. Nothing runs in the background.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from src.catalog.service import COLLECTION_FOR_TYPE, CatalogService
from src.client.api_client import CatalogApiClient, CatalogApiError
from src.client.cache import Conflict, LocalCache, PendingOperation, SyncState
from src.database.base import Document
from src.database.memory import MemoryStore

logger = logging.getLogger(__name__)

# Entity fields that hold another entity's key.
_REFERENCE_FIELDS = ("parentCategory", "category", "subcategory")


class CatalogSync:
    def __init__(
        self,
        client: CatalogApiClient,
        cache: LocalCache,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.clock = clock

    @property
    def state(self) -> SyncState:
        return self.cache.state

    @property
    def document(self) -> Document:
        return self.cache.document

    # --- Local application -----------------------------------------------------

    def _local_service(self) -> tuple:
        store = MemoryStore(self.cache.document)
        return CatalogService(store, clock=self.clock), store

    def _append_local(self, entity_type: str, entity: Dict[str, Any]) -> None:
        self.cache.document[COLLECTION_FOR_TYPE[entity_type]].append(entity)

    def _delete_local(self, entity_type: str, key: Optional[str]) -> None:
        service, store = self._local_service()
        service.delete(entity_type, key)
        self.cache.document = store.read()

    def _rename_local(self, key: str, name: str) -> None:
        for subcategory in self.cache.document["subcategories"]:
            if subcategory.get("key") == key:
                subcategory["name"] = name

    def _queue(self, operation: PendingOperation) -> None:
        self.cache.pending.append(operation)
        self.cache.state = SyncState.PENDING
        logger.info("Queued %s %s for later sync", operation.op, operation.entity_type)

    def _finish(self) -> None:
        self.cache.save()

    # --- Loading ---------------------------------------------------------------

    async def load(self) -> Document:
        """
        Refresh from the server, falling back to the cached document.

        A fetched document only replaces the cache when nothing is queued,
        otherwise local changes would disappear until the next reconcile.
        """
        try:
            document = await self.client.fetch_all()
        except CatalogApiError as e:
            logger.info("Server not available, using local cache: %s", e)
            return self.cache.document

        if not self.cache.pending:
            self.cache.replace_document(document)
            if not self.cache.conflicts:
                self.cache.state = SyncState.SYNCED
        self._finish()
        return self.cache.document

    # --- Mutations -------------------------------------------------------------

    async def _create(self, entity_type: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        if not self.cache.pending:
            try:
                entity = await self.client.create(entity_type, fields)
                self._append_local(entity_type, entity)
                self._finish()
                return entity
            except CatalogApiError as e:
                if not e.retryable:
                    raise
                logger.info("Server save failed for %s, keeping it locally: %s", entity_type, e)

        service, store = self._local_service()
        entity = service.create(entity_type, fields)
        self.cache.document = store.read()
        self._queue(PendingOperation(op="create", entity_type=entity_type, key=entity["key"], fields=dict(fields)))
        self._finish()
        return entity

    async def _delete(self, entity_type: str, key: Optional[str]) -> None:
        sent = False
        if not self.cache.pending:
            try:
                await self.client.delete(entity_type, key)
                sent = True
            except CatalogApiError as e:
                if not e.retryable:
                    raise
                logger.info("Server delete failed for %s, keeping it locally: %s", entity_type, e)

        self._delete_local(entity_type, key)
        if not sent:
            self._queue(PendingOperation(op="delete", entity_type=entity_type, key=key))
        self._finish()

    async def add_category(self, name: str) -> Dict[str, Any]:
        name = (name or "").strip()
        if not name:
            raise ValueError("Please enter a category name")
        return await self._create("category", {"name": name})

    async def add_subcategory(self, parent_category: str, name: str) -> Dict[str, Any]:
        name = (name or "").strip()
        if not parent_category or not name:
            raise ValueError("Please select a parent category and enter a subcategory name")
        return await self._create("subcategory", {"name": name, "parentCategory": parent_category})

    async def add_product(
        self,
        name: str,
        category: str,
        description: str,
        price: Any,
        subcategory: str = "",
        images: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        if not (name or "").strip() or not category:
            raise ValueError("Please enter a product name and select a category")
        price = float(price)
        if not math.isfinite(price):
            raise ValueError("Please enter a valid price")
        fields = {
            "name": name,
            "category": category,
            "subcategory": subcategory or "",
            "description": description or "",
            "price": price,
            "images": list(images or []),
        }
        return await self._create("product", fields)

    async def delete_category(self, key: str) -> None:
        await self._delete("category", key)

    async def delete_subcategory(self, key: str) -> None:
        await self._delete("subcategory", key)

    async def delete_product(self, key: str) -> None:
        await self._delete("product", key)

    async def clear_all(self) -> None:
        await self._delete("all", None)

    async def rename_subcategory(self, key: str, name: str) -> Optional[Dict[str, Any]]:
        name = (name or "").strip()
        if not name:
            raise ValueError("Please enter a subcategory name")

        if not self.cache.pending:
            try:
                entity = await self.client.rename_subcategory(key, name)
                self._rename_local(key, entity.get("name", name))
                self._finish()
                return entity
            except CatalogApiError as e:
                if not e.retryable:
                    raise
                logger.info("Server update failed for subcategory %s, keeping it locally: %s", key, e)

        self._rename_local(key, name)
        self._queue(PendingOperation(op="rename", entity_type="subcategory", key=key, fields={"name": name}))
        self._finish()
        return next((s for s in self.cache.document["subcategories"] if s.get("key") == key), None)

    # --- Reconciliation --------------------------------------------------------

    def _remap_key(self, entity_type: str, local_key: str, server_entity: Dict[str, Any], remaining: List[PendingOperation]) -> None:
        server_key = server_entity["key"]
        collection = self.cache.document[COLLECTION_FOR_TYPE[entity_type]]
        for index, entity in enumerate(collection):
            if entity.get("key") == local_key:
                collection[index] = server_entity
                break

        for name in ("subcategories", "products"):
            for entity in self.cache.document[name]:
                for field in _REFERENCE_FIELDS:
                    if entity.get(field) == local_key:
                        entity[field] = server_key

        for operation in remaining:
            if operation.key == local_key:
                operation.key = server_key
            for field in _REFERENCE_FIELDS:
                if operation.fields.get(field) == local_key:
                    operation.fields[field] = server_key

    async def _replay(self, operation: PendingOperation, remaining: List[PendingOperation]) -> None:
        if operation.op == "create":
            entity = await self.client.create(operation.entity_type, operation.fields)
            self._remap_key(operation.entity_type, operation.key, entity, remaining)
        elif operation.op == "delete":
            await self.client.delete(operation.entity_type, operation.key)
        else:
            await self.client.rename_subcategory(operation.key, operation.fields["name"])

    async def reconcile(self) -> SyncState:
        """
        Replay queued operations in order and settle the sync state.

        Stops at the first network failure or server error, leaving the rest
        queued. Operations the server rejects (4xx) become conflicts.
        """
        remaining = list(self.cache.pending)
        while remaining:
            operation = remaining[0]
            try:
                await self._replay(operation, remaining[1:])
            except CatalogApiError as e:
                if e.retryable:
                    logger.info("Reconcile stopped, server unavailable: %s", e)
                    break
                logger.warning("Server rejected queued %s %s: %s", operation.op, operation.entity_type, e)
                self.cache.conflicts.append(Conflict(operation=operation, status_code=e.status_code, message=e.message))
            remaining.pop(0)
            self.cache.pending = remaining
            self._finish()

        if remaining:
            self.cache.state = SyncState.PENDING
        elif self.cache.conflicts:
            self.cache.state = SyncState.CONFLICT
        else:
            try:
                self.cache.replace_document(await self.client.fetch_all())
                self.cache.state = SyncState.SYNCED
            except CatalogApiError as e:
                logger.info("Replayed queue but could not refresh from server: %s", e)
        self._finish()
        return self.cache.state

    async def discard_conflicts(self) -> SyncState:
        """Drop rejected operations and take the server's document as truth."""
        self.cache.conflicts = []
        if self.cache.pending:
            self.cache.state = SyncState.PENDING
            self._finish()
            return self.cache.state
        try:
            self.cache.replace_document(await self.client.fetch_all())
            self.cache.state = SyncState.SYNCED
        except CatalogApiError as e:
            logger.info("Could not refresh from server after discarding conflicts: %s", e)
            self.cache.state = SyncState.PENDING
        self._finish()
        return self.cache.state
