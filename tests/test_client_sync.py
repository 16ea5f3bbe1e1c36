from datetime import datetime, timezone

import httpx
import pytest

from src.client.api_client import CatalogApiClient, CatalogApiError
from src.client.cache import LocalCache, SyncState
from src.client.sync import CatalogSync


class SwitchableTransport(httpx.AsyncBaseTransport):
    """Routes requests to the ASGI app, or fails them like a dropped network."""

    def __init__(self, app):
        self.inner = httpx.ASGITransport(app=app)
        self.online = True
        self.requests = []

    async def handle_async_request(self, request):
        self.requests.append((request.method, request.url.params.get("type")))
        if not self.online:
            raise httpx.ConnectError("network unreachable", request=request)
        return await self.inner.handle_async_request(request)


@pytest.fixture
def transport(api_app):
    return SwitchableTransport(api_app)


@pytest.fixture
def sync(transport, make_clock):
    client = CatalogApiClient("http://catalog.test", transport=transport)
    # Local keys come from a different clock than the server's so remapping is visible.
    local_clock = make_clock(datetime(2030, 1, 1, tzinfo=timezone.utc))
    return CatalogSync(client, LocalCache(), clock=local_clock)


@pytest.mark.asyncio
async def test_online_mutations_go_straight_to_the_server(sync, store):
    cat = await sync.add_category("  Kitchen ")
    sub = await sync.add_subcategory(cat["key"], "Mugs")
    prod = await sync.add_product("Mug", cat["key"], "Ceramic", "12.5", subcategory=sub["key"])

    assert sync.state == SyncState.SYNCED
    assert sync.cache.pending == []
    assert store.read() == sync.document
    assert cat["name"] == "Kitchen"
    assert prod["price"] == 12.5


@pytest.mark.asyncio
async def test_load_adopts_server_document(sync, service):
    service.create("category", {"name": "Server side"})
    doc = await sync.load()
    assert [c["name"] for c in doc["categories"]] == ["Server side"]
    assert sync.state == SyncState.SYNCED
    assert sync.cache.fetched_at is not None


@pytest.mark.asyncio
async def test_load_falls_back_to_cache_when_offline(sync, transport, tmp_path):
    path = tmp_path / "cache.json"
    cached = {"categories": [{"key": "1", "name": "Cached"}], "subcategories": [], "products": []}
    first = LocalCache(path)
    first.replace_document(cached)
    first.save()

    transport.online = False
    offline = CatalogSync(sync.client, LocalCache(path))
    assert await offline.load() == cached


@pytest.mark.asyncio
async def test_offline_create_is_queued_then_reconciled(sync, transport, store):
    transport.online = False
    local = await sync.add_category("Kitchen")

    assert sync.state == SyncState.PENDING
    assert len(sync.cache.pending) == 1
    assert sync.document["categories"] == [local]
    assert store.read()["categories"] == []

    transport.online = True
    assert await sync.reconcile() == SyncState.SYNCED
    assert sync.cache.pending == []
    server_doc = store.read()
    assert [c["name"] for c in server_doc["categories"]] == ["Kitchen"]
    assert sync.document == server_doc


@pytest.mark.asyncio
async def test_reconcile_remaps_local_keys_in_later_operations(sync, transport, store):
    transport.online = False
    cat = await sync.add_category("Kitchen")
    sub = await sync.add_subcategory(cat["key"], "Mugs")
    await sync.add_product("Mug", cat["key"], "Ceramic", 3, subcategory=sub["key"])
    await sync.rename_subcategory(sub["key"], "Cups")

    transport.online = True
    assert await sync.reconcile() == SyncState.SYNCED

    server_doc = store.read()
    server_cat = server_doc["categories"][0]
    server_sub = server_doc["subcategories"][0]
    assert server_cat["key"] != cat["key"]
    assert server_sub["parentCategory"] == server_cat["key"]
    assert server_sub["name"] == "Cups"
    assert server_doc["products"][0]["category"] == server_cat["key"]
    assert server_doc["products"][0]["subcategory"] == server_sub["key"]
    assert sync.document == server_doc


@pytest.mark.asyncio
async def test_mutations_queue_behind_pending_work_even_when_online(sync, transport, store):
    transport.online = False
    await sync.add_category("First")
    transport.online = True
    await sync.add_category("Second")

    assert len(sync.cache.pending) == 2
    assert store.read()["categories"] == []
    assert [c["name"] for c in sync.document["categories"]] == ["First", "Second"]

    await sync.reconcile()
    assert [c["name"] for c in store.read()["categories"]] == ["First", "Second"]


@pytest.mark.asyncio
async def test_reconcile_stops_while_offline(sync, transport):
    transport.online = False
    await sync.add_category("Kitchen")
    await sync.clear_all()

    assert await sync.reconcile() == SyncState.PENDING
    assert [op.op for op in sync.cache.pending] == ["create", "delete"]


@pytest.mark.asyncio
async def test_offline_category_delete_cascades_locally_and_keeps_products(sync, transport):
    cat = await sync.add_category("Kitchen")
    sub = await sync.add_subcategory(cat["key"], "Mugs")
    prod = await sync.add_product("Mug", cat["key"], "d", 1, subcategory=sub["key"])

    transport.online = False
    await sync.delete_category(cat["key"])

    assert sync.document["categories"] == []
    assert sync.document["subcategories"] == []
    assert sync.document["products"] == [prod]
    assert sync.state == SyncState.PENDING


@pytest.mark.asyncio
async def test_rejected_replay_becomes_conflict(sync, transport, service, store):
    cat = await sync.add_category("Kitchen")
    sub = await sync.add_subcategory(cat["key"], "Mugs")

    transport.online = False
    await sync.rename_subcategory(sub["key"], "Cups")
    # Another admin removes the subcategory meanwhile.
    service.delete("subcategory", sub["key"])

    transport.online = True
    assert await sync.reconcile() == SyncState.CONFLICT
    assert len(sync.cache.conflicts) == 1
    assert sync.cache.conflicts[0].status_code == 404
    assert sync.cache.conflicts[0].operation.op == "rename"

    assert await sync.discard_conflicts() == SyncState.SYNCED
    assert sync.cache.conflicts == []
    assert sync.document == store.read()


@pytest.mark.asyncio
async def test_client_errors_are_raised_not_queued(sync, monkeypatch):
    from src.api import main as api_main

    monkeypatch.setattr(api_main.config.api, "api_keys", ["s3cret"])

    with pytest.raises(CatalogApiError) as exc:
        await sync.add_category("Kitchen")
    assert exc.value.status_code == 401
    assert not exc.value.retryable
    assert sync.cache.pending == []
    assert sync.document["categories"] == []


@pytest.mark.asyncio
async def test_server_errors_are_queued():
    def handler(request):
        return httpx.Response(500, json={"error": "Failed to save category"})

    client = CatalogApiClient("http://catalog.test", transport=httpx.MockTransport(handler))
    sync = CatalogSync(client, LocalCache())

    entity = await sync.add_category("Kitchen")
    assert sync.state == SyncState.PENDING
    assert sync.cache.pending[0].key == entity["key"]


@pytest.mark.asyncio
async def test_client_side_validation(sync, transport):
    with pytest.raises(ValueError):
        await sync.add_category("   ")
    with pytest.raises(ValueError):
        await sync.add_subcategory("", "Mugs")
    with pytest.raises(ValueError):
        await sync.add_subcategory("c1", " ")
    with pytest.raises(ValueError):
        await sync.rename_subcategory("s1", "")
    with pytest.raises(ValueError):
        await sync.add_product("Mug", "c1", "d", "nan")
    assert transport.requests == []


@pytest.mark.asyncio
async def test_pending_queue_survives_restart(sync, transport, tmp_path, store):
    path = tmp_path / "cache.json"
    transport.online = False
    first = CatalogSync(sync.client, LocalCache(path))
    await first.add_category("Kitchen")

    transport.online = True
    second = CatalogSync(sync.client, LocalCache(path))
    assert second.state == SyncState.PENDING
    assert len(second.cache.pending) == 1
    assert await second.reconcile() == SyncState.SYNCED
    assert [c["name"] for c in store.read()["categories"]] == ["Kitchen"]


def test_cache_staleness():
    now = [1000.0]
    cache = LocalCache(clock=lambda: now[0])
    assert cache.is_stale(60) is True

    cache.replace_document({"categories": [], "subcategories": [], "products": []})
    assert cache.is_stale(60) is False
    now[0] += 61
    assert cache.is_stale(60) is True


def test_corrupt_cache_file_starts_fresh(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text("{not json", encoding="utf-8")
    cache = LocalCache(path)
    assert cache.document == {"categories": [], "subcategories": [], "products": []}
    assert cache.state == SyncState.SYNCED
