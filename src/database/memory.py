"""
Lightweight in-memory document store for local development and tests.

Implements the same interface as the file and Redis backends so the API can
run without touching disk or a Redis instance. Data is lost when the process
exits.
"""

from __future__ import annotations

import copy
from typing import Optional

from src.database.base import Document, DocumentStore, empty_document, normalize_document


class MemoryStore(DocumentStore):
    def __init__(self, document: Optional[Document] = None) -> None:
        # Deep copies on both sides so callers never share state with the store.
        self._document: Optional[Document] = copy.deepcopy(document) if document is not None else None

    def read(self) -> Document:
        if self._document is None:
            return empty_document()
        return normalize_document(copy.deepcopy(self._document))

    def write(self, document: Document) -> bool:
        self._document = copy.deepcopy(document)
        return True
