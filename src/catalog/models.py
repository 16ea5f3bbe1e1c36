"""
Catalog entity models.

Field names follow the persisted JSON layout (camelCase where the stored
document uses it) so ``model_dump()`` can be appended to the document as is.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field


def new_key(now: datetime) -> str:
    """Millisecond timestamp key. Two creations in the same millisecond collide."""
    return str(int(now.timestamp()) * 1000 + now.microsecond // 1000)


def iso_timestamp(now: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""
    now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


class Category(BaseModel):
    key: str
    name: str


class Subcategory(BaseModel):
    key: str
    name: str
    parentCategory: str


class Product(BaseModel):
    key: str
    name: str
    category: str
    subcategory: str = ""
    description: str
    price: float
    images: List[str] = Field(default_factory=list)
    createdAt: str
