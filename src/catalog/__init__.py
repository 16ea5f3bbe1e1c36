"""
Catalog domain: entity models and the create/update/delete operations that
run against the single persisted document.
"""
from .models import Category, Product, Subcategory
from .service import (
    CatalogError,
    CatalogService,
    EntityNotFoundError,
    StoreWriteError,
    UnknownEndpointError,
)

__all__ = [
    "Category",
    "Subcategory",
    "Product",
    "CatalogService",
    "CatalogError",
    "EntityNotFoundError",
    "StoreWriteError",
    "UnknownEndpointError",
]
