#!/usr/bin/env python3
"""
Command-line catalog admin.

Talks to the Catalog API through the client library. When the API is
unreachable, changes land in the local cache file and are queued; run
`sync` later to push them.

Examples:
    python scripts/catalog_admin.py list
    python scripts/catalog_admin.py add-category "Kitchen"
    python scripts/catalog_admin.py add-product "Mug" --category 1700000000000 --price 12.5
    python scripts/catalog_admin.py delete category 1700000000000
    python scripts/catalog_admin.py sync
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv()

from src.client import CatalogApiClient, CatalogApiError, CatalogSync, LocalCache, SyncState, filter_products, product_label
from src.utils.config_loader import load_catalog_config


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage catalog categories, subcategories and products")
    parser.add_argument("--base-url", default=None, help="API base URL (default from config / CATALOG_API_URL)")
    parser.add_argument("--cache-file", default=None, help="Local cache file (default from config)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="Show the catalog")
    p_list.add_argument("--category", default=None, help="Only products in this category key")
    p_list.add_argument("--subcategory", default=None, help="Only products in this subcategory key")

    p_cat = sub.add_parser("add-category", help="Create a category")
    p_cat.add_argument("name")

    p_sub = sub.add_parser("add-subcategory", help="Create a subcategory")
    p_sub.add_argument("parent", help="Parent category key")
    p_sub.add_argument("name")

    p_prod = sub.add_parser("add-product", help="Create a product")
    p_prod.add_argument("name")
    p_prod.add_argument("--category", required=True, help="Category key")
    p_prod.add_argument("--subcategory", default="", help="Subcategory key")
    p_prod.add_argument("--description", default="")
    p_prod.add_argument("--price", required=True)
    p_prod.add_argument("--image", action="append", default=[], help="Image URL (repeatable)")

    p_del = sub.add_parser("delete", help="Delete an entity by key")
    p_del.add_argument("type", choices=["category", "subcategory", "product"])
    p_del.add_argument("key")

    p_ren = sub.add_parser("rename-subcategory", help="Rename a subcategory")
    p_ren.add_argument("key")
    p_ren.add_argument("name")

    sub.add_parser("clear", help="Delete everything")
    sub.add_parser("sync", help="Push queued changes to the server")
    sub.add_parser("status", help="Show sync state and queued operations")
    return parser


def print_catalog(sync: CatalogSync, category: str = None, subcategory: str = None) -> None:
    doc = sync.document
    print(f"State: {sync.state.value}")
    print("\n### Categories\n")
    for cat in doc["categories"]:
        print(f"- {cat['name']} [{cat['key']}]")
        for sub in (s for s in doc["subcategories"] if s.get("parentCategory") == cat["key"]):
            print(f"    - {sub['name']} [{sub['key']}]")
    print("\n### Products\n")
    products = filter_products(doc, category=category, subcategory=subcategory)
    if not products:
        print("No products available yet.")
    for prod in products:
        print(f"- {prod['name']} ({product_label(doc, prod)}) {prod.get('price')} [{prod['key']}]")


async def run(args: argparse.Namespace) -> int:
    cfg = load_catalog_config()
    client = CatalogApiClient(
        base_url=args.base_url or cfg.client.base_url,
        api_key=os.getenv("CATALOG_API_KEY"),
        timeout_seconds=cfg.client.timeout_seconds,
    )
    cache = LocalCache(args.cache_file or cfg.client.cache_file)
    sync = CatalogSync(client, cache)

    if args.command == "list":
        if cache.is_stale(cfg.client.max_age_seconds):
            await sync.load()
        print_catalog(sync, args.category, args.subcategory)
    elif args.command == "add-category":
        print(json.dumps(await sync.add_category(args.name), indent=2))
    elif args.command == "add-subcategory":
        print(json.dumps(await sync.add_subcategory(args.parent, args.name), indent=2))
    elif args.command == "add-product":
        product = await sync.add_product(
            name=args.name,
            category=args.category,
            description=args.description,
            price=args.price,
            subcategory=args.subcategory,
            images=args.image,
        )
        print(json.dumps(product, indent=2))
    elif args.command == "delete":
        await getattr(sync, f"delete_{args.type}")(args.key)
        print(f"Deleted {args.type} {args.key}")
    elif args.command == "rename-subcategory":
        print(json.dumps(await sync.rename_subcategory(args.key, args.name), indent=2))
    elif args.command == "clear":
        await sync.clear_all()
        print("All data cleared")
    elif args.command == "sync":
        state = await sync.reconcile()
        print(f"State: {state.value}")
        for conflict in cache.conflicts:
            op = conflict.operation
            print(f"  conflict: {op.op} {op.entity_type} {op.key} -> {conflict.status_code} {conflict.message}")
    elif args.command == "status":
        print(f"State: {sync.state.value}")
        print(f"Queued operations: {len(cache.pending)}")
        for op in cache.pending:
            print(f"  {op.op} {op.entity_type} {op.key or ''}")
        print(f"Conflicts: {len(cache.conflicts)}")

    if sync.state != SyncState.SYNCED and args.command not in ("sync", "status"):
        print(f"(server not updated yet, state={sync.state.value}; run `sync` later)")
    return 0


def main() -> int:
    args = build_parser().parse_args()
    setup_logging(args.verbose)
    try:
        return asyncio.run(run(args))
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    except CatalogApiError as e:
        print(f"❌ Server rejected the request ({e.status_code}): {e.message}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
