#!/usr/bin/env python3
"""
Serve the Catalog API with uvicorn.

Store backend and CORS/API key settings come from config/catalog_config.yml
and the environment (STORE_BACKEND, DATA_FILE, REDIS_URL, API_KEYS, ...).
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv()

import uvicorn


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the Catalog Admin API")
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    args = parser.parse_args()

    uvicorn.run("src.api.main:app", host=args.host, port=args.port, reload=args.reload, log_level="info")
    return 0


if __name__ == "__main__":
    sys.exit(main())
