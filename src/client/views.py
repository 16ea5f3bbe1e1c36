"""
Read-side helpers over a catalog document, used when presenting the catalog.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from src.database.base import Document


def _find(items: List[Dict[str, Any]], key: Optional[str]) -> Optional[Dict[str, Any]]:
    if not key:
        return None
    return next((item for item in items if item.get("key") == key), None)


def subcategories_of(document: Document, category_key: str) -> List[Dict[str, Any]]:
    return [s for s in document["subcategories"] if s.get("parentCategory") == category_key]


def filter_products(
    document: Document,
    category: Optional[str] = None,
    subcategory: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Products matching the given keys; an empty filter matches everything."""
    products = document["products"]
    if category:
        products = [p for p in products if p.get("category") == category]
    if subcategory:
        products = [p for p in products if p.get("subcategory") == subcategory]
    return products


def product_label(document: Document, product: Dict[str, Any]) -> str:
    # Products keep dangling keys after their category is deleted.
    category = _find(document["categories"], product.get("category"))
    subcategory = _find(document["subcategories"], product.get("subcategory"))
    label = category["name"] if category else "Uncategorized"
    if subcategory:
        label = f"{label} - {subcategory['name']}"
    return label
