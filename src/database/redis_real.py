"""
Redis-backed document store for hosted deployments.

Selected when REDIS_URL is set (or STORE_BACKEND=redis). The whole catalog
document lives as one JSON string under a single key. Implements the same
interface as src.database.memory and src.database.json_file.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import redis

from src.database.base import Document, DocumentStore, empty_document, normalize_document

logger = logging.getLogger(__name__)


class RedisDocumentStore(DocumentStore):
    """
    Key-value store holding the catalog document under ``key``.
    """

    def __init__(self, url: Optional[str] = None, key: str = "data", client: Any = None) -> None:
        if client is None:
            if not url:
                raise ValueError("A Redis URL is required when no client is given.")
            client = redis.from_url(url, decode_responses=True)
        self._client = client
        self.key = key

    def read(self) -> Document:
        try:
            raw = self._client.get(self.key)
        except redis.RedisError as e:
            logger.error("Error reading data from KV: %s", e)
            return empty_document()
        if not raw:
            return empty_document()
        try:
            return normalize_document(json.loads(raw))
        except (TypeError, ValueError) as e:
            logger.error("Stored catalog document is not valid JSON: %s", e)
            return empty_document()

    def write(self, document: Document) -> bool:
        try:
            payload = json.dumps(document, ensure_ascii=False)
            self._client.set(self.key, payload)
            return True
        except (redis.RedisError, TypeError, ValueError) as e:
            logger.error("Error writing data to KV: %s", e)
            return False

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False
