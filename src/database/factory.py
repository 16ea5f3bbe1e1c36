"""
Select the document store backend configured for this deployment.
"""

from __future__ import annotations

import logging

from src.database.base import DocumentStore
from src.utils.config_loader import StoreConfig

logger = logging.getLogger(__name__)


def create_store(cfg: StoreConfig) -> DocumentStore:
    if cfg.backend == "redis":
        if not cfg.redis_url:
            raise ValueError("STORE_BACKEND=redis requires REDIS_URL to be set.")
        from src.database.redis_real import RedisDocumentStore

        logger.info("Using Redis document store (key=%s)", cfg.kv_key)
        return RedisDocumentStore(url=cfg.redis_url, key=cfg.kv_key)

    if cfg.backend == "memory":
        from src.database.memory import MemoryStore

        logger.info("Using in-memory document store")
        return MemoryStore()

    from src.database.json_file import JsonFileStore

    logger.info("Using JSON file document store at %s", cfg.data_file)
    return JsonFileStore(cfg.data_file)
