"""
Local JSON file document store.

Used for single-host deployments and local development. The file is created
with an empty document on first access. Writes go through a temporary sibling
file that is swapped into place with ``os.replace`` so readers never observe a
half-written document.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from src.database.base import Document, DocumentStore, empty_document, normalize_document

logger = logging.getLogger(__name__)


class JsonFileStore(DocumentStore):
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _initialize(self) -> None:
        if not self.path.exists():
            logger.info("Initializing catalog data file at %s", self.path)
            self._dump(empty_document())

    def _dump(self, document: Document) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

    def read(self) -> Document:
        try:
            self._initialize()
            with open(self.path, "r", encoding="utf-8") as f:
                return normalize_document(json.load(f))
        except (OSError, ValueError) as e:
            logger.error("Error reading data from %s: %s", self.path, e)
            return empty_document()

    def write(self, document: Document) -> bool:
        try:
            self._dump(document)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error("Error writing data to %s: %s", self.path, e)
            return False

    def ping(self) -> bool:
        return os.access(self.path.parent, os.W_OK)
