"""
Document store contract shared by every persistence backend.

A store owns exactly one JSON document holding the three catalog collections.
Callers always read the whole document, mutate it and write the whole document
back; there are no partial updates.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict

COLLECTIONS = ("categories", "subcategories", "products")

Document = Dict[str, Any]


def empty_document() -> Document:
    return {name: [] for name in COLLECTIONS}


def normalize_document(data: Any) -> Document:
    """
    Coerce a decoded payload into a usable document.

    Anything that is not a JSON object becomes an empty document. Missing or
    non-list collections are replaced by empty lists; unknown keys are kept.
    """
    if not isinstance(data, dict):
        return empty_document()
    for name in COLLECTIONS:
        if not isinstance(data.get(name), list):
            data[name] = []
    return data


class DocumentStore(ABC):
    """Read/write access to the single catalog document."""

    @abstractmethod
    def read(self) -> Document:
        """Return the persisted document, or an empty one. Never raises."""

    @abstractmethod
    def write(self, document: Document) -> bool:
        """Persist the whole document. Returns False on failure, never raises."""

    def ping(self) -> bool:
        return True
