"""
Configuration loader for the catalog API and client.

Loads config/catalog_config.yml, applies environment overrides and validates
the result with Pydantic.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "catalog_config.yml"


class StoreConfig(BaseModel):
    """Where the catalog document lives"""

    backend: Literal["file", "redis", "memory"] = "file"
    data_file: str = "data.json"
    redis_url: Optional[str] = None
    kv_key: str = "data"


class ApiConfig(BaseModel):
    """HTTP API settings"""

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    api_keys: List[str] = Field(default_factory=list)
    log_level: str = "INFO"


class ClientConfig(BaseModel):
    """Catalog client settings"""

    base_url: str = "http://localhost:8000"
    cache_file: str = ".catalog_cache.json"
    timeout_seconds: float = Field(default=10.0, gt=0)
    max_age_seconds: float = Field(default=300.0, ge=0)


class CatalogConfig(BaseModel):
    store: StoreConfig = Field(default_factory=StoreConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)


def _split_keys(raw: str) -> List[str]:
    return [k.strip() for k in raw.split(",") if k.strip()]


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    store = dict(data.get("store") or {})
    api = dict(data.get("api") or {})
    client = dict(data.get("client") or {})

    redis_url = os.getenv("REDIS_URL") or os.getenv("KV_URL")
    if redis_url:
        store["redis_url"] = redis_url
        store["backend"] = "redis"
    if os.getenv("STORE_BACKEND"):
        store["backend"] = os.environ["STORE_BACKEND"].strip().lower()
    if os.getenv("DATA_FILE"):
        store["data_file"] = os.environ["DATA_FILE"]
    if os.getenv("KV_KEY"):
        store["kv_key"] = os.environ["KV_KEY"]

    if os.getenv("API_KEYS") is not None:
        api["api_keys"] = _split_keys(os.environ["API_KEYS"])
    if os.getenv("LOG_LEVEL"):
        api["log_level"] = os.environ["LOG_LEVEL"].upper()

    if os.getenv("CATALOG_API_URL"):
        client["base_url"] = os.environ["CATALOG_API_URL"]
    if os.getenv("CATALOG_CACHE_FILE"):
        client["cache_file"] = os.environ["CATALOG_CACHE_FILE"]

    return {**data, "store": store, "api": api, "client": client}


def load_catalog_config(config_path: Optional[Path] = None) -> CatalogConfig:
    """
    Load and validate catalog configuration from YAML file

    Args:
        config_path: Path to config file. Defaults to config/catalog_config.yml

    Returns:
        Validated CatalogConfig object with environment overrides applied

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config doesn't match schema
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config_data = yaml.safe_load(f) or {}

    try:
        config = CatalogConfig(**_apply_env_overrides(config_data))
        logger.info("Successfully loaded catalog config from %s", config_path)
        return config
    except ValidationError as e:
        logger.error("Catalog config validation failed: %s", e)
        raise
