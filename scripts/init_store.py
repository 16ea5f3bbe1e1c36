#!/usr/bin/env python3
"""
Initialize the configured catalog store.

Without flags, writes an empty document only when the store holds nothing yet.
With --reset, replaces whatever is stored with an empty document.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

# Make sure src is on sys.path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.database.base import empty_document
from src.database.factory import create_store
from src.utils.config_loader import load_catalog_config


def main() -> int:
    parser = argparse.ArgumentParser(description="Initialize the catalog document store")
    parser.add_argument("--reset", action="store_true", help="Overwrite existing data with an empty catalog")
    parser.add_argument("--config", type=Path, default=None, help="Path to catalog_config.yml")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    try:
        cfg = load_catalog_config(args.config)
        store = create_store(cfg.store)
    except Exception as e:
        print(f"❌ Could not set up store: {e}", file=sys.stderr)
        return 1

    if not store.ping():
        print(f"❌ Store backend '{cfg.store.backend}' is not reachable", file=sys.stderr)
        return 2

    document = store.read()
    counts = {name: len(items) for name, items in document.items() if isinstance(items, list)}
    if args.reset or not any(counts.values()):
        if not store.write(empty_document()):
            print("❌ Failed to write empty catalog", file=sys.stderr)
            return 3
        print(f"✅ Catalog initialized ({cfg.store.backend} backend)")
    else:
        print(f"✅ Catalog already has data: {counts}. Use --reset to clear it.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
