from datetime import datetime, timezone

import pytest

from src.catalog.models import iso_timestamp, new_key
from src.catalog.service import CatalogService, EntityNotFoundError, StoreWriteError, UnknownEndpointError
from src.database.memory import MemoryStore


class FailingWriteStore(MemoryStore):
    def write(self, document):
        return False


def test_keys_and_timestamps_come_from_the_clock():
    now = datetime(2024, 5, 17, 8, 30, 15, 123456, tzinfo=timezone.utc)
    assert new_key(now) == "1715934615123"
    assert new_key(now)[-3:] == iso_timestamp(now)[-4:-1]
    assert iso_timestamp(now) == "2024-05-17T08:30:15.123Z"


def test_create_appends_to_matching_collection(service, store):
    cat = service.create("category", {"name": "Kitchen"})
    sub = service.create("subcategory", {"name": "Mugs", "parentCategory": cat["key"]})
    prod = service.create("product", {"name": "Mug", "category": cat["key"], "description": "d", "price": "4"})

    doc = store.read()
    assert doc["categories"] == [cat]
    assert doc["subcategories"] == [sub]
    assert doc["products"] == [prod]
    assert prod["price"] == 4.0


def test_subcategory_parent_is_not_checked(service, store):
    sub = service.create("subcategory", {"name": "Orphan", "parentCategory": "missing"})
    assert store.read()["subcategories"] == [sub]


def test_same_millisecond_creations_share_a_key(store):
    fixed = datetime(2024, 1, 1, tzinfo=timezone.utc)
    svc = CatalogService(store, clock=lambda: fixed)
    a = svc.create("category", {"name": "A"})
    b = svc.create("category", {"name": "B"})
    assert a["key"] == b["key"]
    assert len(store.read()["categories"]) == 2


def test_missing_name_raises_before_writing(service, store):
    with pytest.raises(KeyError):
        service.create("category", {})
    assert store.read()["categories"] == []


def test_unknown_types_raise_unknown_endpoint(service):
    with pytest.raises(UnknownEndpointError):
        service.create("widget", {"name": "x"})
    with pytest.raises(UnknownEndpointError):
        service.create(None, {"name": "x"})
    with pytest.raises(UnknownEndpointError):
        service.delete("widget", "1")
    with pytest.raises(UnknownEndpointError):
        service.update("product", {"key": "1", "name": "x"})


def test_delete_category_removes_only_its_subcategories(service, store):
    a = service.create("category", {"name": "A"})
    b = service.create("category", {"name": "B"})
    service.create("subcategory", {"name": "A1", "parentCategory": a["key"]})
    b1 = service.create("subcategory", {"name": "B1", "parentCategory": b["key"]})

    service.delete("category", a["key"])

    doc = store.read()
    assert doc["categories"] == [b]
    assert doc["subcategories"] == [b1]


def test_delete_unknown_key_is_a_no_op(service, store):
    cat = service.create("category", {"name": "A"})
    service.delete("product", "missing")
    assert store.read()["categories"] == [cat]


def test_rename_unknown_key_checks_existence_before_name(service):
    with pytest.raises(EntityNotFoundError) as exc:
        service.update("subcategory", {"key": "missing"})
    assert exc.value.status_code == 404
    assert exc.value.message == "Subcategory not found"


def test_write_failures_raise_store_write_error(clock):
    svc = CatalogService(FailingWriteStore(), clock=clock)
    with pytest.raises(StoreWriteError, match="Failed to save product"):
        svc.create("product", {"name": "Mug", "category": "c", "description": "d", "price": 1})
    with pytest.raises(StoreWriteError, match="Failed to delete"):
        svc.delete("all", None)


def test_rename_write_failure(clock):
    store = FailingWriteStore({"categories": [], "subcategories": [{"key": "1", "name": "Old", "parentCategory": "c"}], "products": []})
    svc = CatalogService(store, clock=clock)
    with pytest.raises(StoreWriteError, match="Failed to update subcategory"):
        svc.rename_subcategory("1", "New")
