"""
Catalog client: HTTP access to the Catalog API with a device-local cache and
explicit synchronization state.
"""
from .api_client import CatalogApiClient, CatalogApiError
from .cache import LocalCache, SyncState
from .sync import CatalogSync
from .views import filter_products, product_label, subcategories_of

__all__ = [
    "CatalogApiClient",
    "CatalogApiError",
    "LocalCache",
    "SyncState",
    "CatalogSync",
    "filter_products",
    "product_label",
    "subcategories_of",
]
