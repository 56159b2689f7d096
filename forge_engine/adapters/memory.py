"""
EffectForge Adapters - Memory Store

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

In-memory store for the server, tests and standalone use.
Stores all data in memory - no persistence.
"""

import copy
import threading
from datetime import datetime
from typing import List, Optional, Dict, Any
from uuid import uuid4

from .base import RecordStore, RECORD_KINDS


def _now() -> str:
    return datetime.utcnow().isoformat() + "Z"


class MemoryStore(RecordStore):
    """
    Thread-safe in-memory store.

    One dictionary per record kind, guarded by a single lock. Records
    go in and come out as deep copies, so callers can never mutate
    stored state without going through update().

    Usage:
        store = MemoryStore()
        effect = store.create("effect", {"name": "Glow Effect"})
        store.update("effect", effect["id"], {"constitutionScore": 92})
        store.list("effect", category="particle")
    """

    def __init__(self):
        """Initialise empty storage."""
        self._records: Dict[str, Dict[str, Dict[str, Any]]] = {kind: {} for kind in RECORD_KINDS}
        self._lock = threading.RLock()

    def _table(self, kind: str) -> Dict[str, Dict[str, Any]]:
        if kind not in self._records:
            raise KeyError(f"Unknown record kind: {kind}")
        return self._records[kind]

    # =========================================================================
    # CRUD
    # =========================================================================

    def get(self, kind: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._table(kind).get(record_id)
            return copy.deepcopy(record) if record is not None else None

    def list(self, kind: str, **filters) -> List[Dict[str, Any]]:
        active = {k: v for k, v in filters.items() if v is not None}
        with self._lock:
            records = [
                copy.deepcopy(r) for r in self._table(kind).values()
                if all(r.get(k) == v for k, v in active.items())
            ]
        # Newest first; insertion order breaks ties
        records.reverse()
        records.sort(key=lambda r: r.get("createdAt", ""), reverse=True)
        return records

    def create(self, kind: str, record: Dict[str, Any]) -> Dict[str, Any]:
        stored = copy.deepcopy(record)
        stored["id"] = stored.get("id") or str(uuid4())
        now = _now()
        stored.setdefault("createdAt", now)
        stored["updatedAt"] = now
        with self._lock:
            self._table(kind)[stored["id"]] = stored
            return copy.deepcopy(stored)

    def update(self, kind: str, record_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            table = self._table(kind)
            if record_id not in table:
                return None
            merged = dict(table[record_id])
            merged.update(copy.deepcopy(changes))
            merged["id"] = record_id
            merged["updatedAt"] = _now()
            table[record_id] = merged
            return copy.deepcopy(merged)

    def delete(self, kind: str, record_id: str) -> bool:
        with self._lock:
            return self._table(kind).pop(record_id, None) is not None

    # =========================================================================
    # UTILITY
    # =========================================================================

    def count(self, kind: str, **filters) -> int:
        if not any(v is not None for v in filters.values()):
            with self._lock:
                return len(self._table(kind))
        return len(self.list(kind, **filters))

    def clear(self) -> None:
        """Clear all stored data."""
        with self._lock:
            for table in self._records.values():
                table.clear()

    def get_stats(self) -> Dict[str, int]:
        """Record count per kind."""
        with self._lock:
            return {kind: len(table) for kind, table in self._records.items()}


__all__ = ["MemoryStore"]
