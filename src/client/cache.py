"""
Device-local cache for the catalog client.

Holds the last known catalog document together with everything needed to
bring it back in line with the server: the queue of operations the server has
not accepted yet, operations the server rejected during replay, the current
sync state and when the document was last fetched.
"""

from __future__ import annotations

import json
import logging
import time
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from src.database.base import Document, empty_document, normalize_document

logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    SYNCED = "synced"
    PENDING = "pending"
    CONFLICT = "conflict"


class PendingOperation(BaseModel):
    op: Literal["create", "delete", "rename"]
    entity_type: str
    # create: the local key; delete/rename: the target key
    key: Optional[str] = None
    fields: Dict[str, Any] = Field(default_factory=dict)
    queued_at: float = Field(default_factory=time.time)


class Conflict(BaseModel):
    operation: PendingOperation
    status_code: Optional[int] = None
    message: str = ""


class CacheState(BaseModel):
    document: Dict[str, Any] = Field(default_factory=empty_document)
    pending: List[PendingOperation] = Field(default_factory=list)
    conflicts: List[Conflict] = Field(default_factory=list)
    state: SyncState = SyncState.SYNCED
    fetched_at: Optional[float] = None


class LocalCache:
    """
    Cache object passed to the sync layer.

    With ``path`` set, the state survives restarts in a JSON file; without it
    the cache only lives in memory.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None, clock: Callable[[], float] = time.time) -> None:
        self.path = Path(path) if path else None
        self.clock = clock
        self._state = self._load()

    def _load(self) -> CacheState:
        if self.path is None or not self.path.exists():
            return CacheState()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            state = CacheState(**data)
            state.document = normalize_document(state.document)
            return state
        except (OSError, ValueError, TypeError, ValidationError) as e:
            logger.error("Error loading local cache from %s: %s", self.path, e)
            return CacheState()

    def save(self) -> bool:
        if self.path is None:
            return True
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(self._state.model_dump_json(indent=2), encoding="utf-8")
            return True
        except OSError as e:
            logger.error("Error saving local cache to %s: %s", self.path, e)
            return False

    # --- Accessors -------------------------------------------------------------

    @property
    def document(self) -> Document:
        return self._state.document

    @document.setter
    def document(self, value: Document) -> None:
        self._state.document = normalize_document(value)

    @property
    def pending(self) -> List[PendingOperation]:
        return self._state.pending

    @pending.setter
    def pending(self, value: List[PendingOperation]) -> None:
        self._state.pending = list(value)

    @property
    def conflicts(self) -> List[Conflict]:
        return self._state.conflicts

    @conflicts.setter
    def conflicts(self, value: List[Conflict]) -> None:
        self._state.conflicts = list(value)

    @property
    def state(self) -> SyncState:
        return self._state.state

    @state.setter
    def state(self, value: SyncState) -> None:
        self._state.state = value

    @property
    def fetched_at(self) -> Optional[float]:
        return self._state.fetched_at

    def replace_document(self, document: Document) -> None:
        """Adopt a document fetched from the server."""
        self.document = document
        self._state.fetched_at = self.clock()

    def is_stale(self, max_age: float) -> bool:
        if self._state.fetched_at is None:
            return True
        return self.clock() - self._state.fetched_at > max_age
