"""
EffectForge Adapters - Base Store Interface

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

Abstract base class defining the persistence interface.
The engine only ever creates, reads, updates and deletes plain
dictionary records keyed by an opaque string id; a store decides
where they live.

Record kinds:
- effect:  generated effects with code, estimates and compliance flags
- file:    uploaded files and their extracted text
- session: one generation request and its outcome
- metrics: performance samples for status displays
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any


# Record kinds understood by every store
KIND_EFFECT = "effect"
KIND_FILE = "file"
KIND_SESSION = "session"
KIND_METRICS = "metrics"

RECORD_KINDS = (KIND_EFFECT, KIND_FILE, KIND_SESSION, KIND_METRICS)


class RecordStore(ABC):
    """
    Abstract base class for record stores.

    Implementations must make each single-record operation atomic:
    two concurrent writers may interleave between calls but never
    corrupt a record. Nothing wider than one record is guaranteed.
    """

    # =========================================================================
    # CRUD
    # =========================================================================

    @abstractmethod
    def get(self, kind: str, record_id: str) -> Optional[Dict[str, Any]]:
        """
        Retrieve a record by ID.

        Args:
            kind: Record kind
            record_id: Record identifier

        Returns:
            Copy of the record if found, None otherwise
        """
        pass

    @abstractmethod
    def list(self, kind: str, **filters) -> List[Dict[str, Any]]:
        """
        Retrieve records, newest first.

        Args:
            kind: Record kind
            **filters: Field equality filters (None values are ignored)

        Returns:
            Copies of the matching records
        """
        pass

    @abstractmethod
    def create(self, kind: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Store a new record.

        Assigns `id` when the record has none, and sets `createdAt` /
        `updatedAt`.

        Returns:
            Copy of the stored record
        """
        pass

    @abstractmethod
    def update(self, kind: str, record_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Merge `changes` into an existing record and bump `updatedAt`.

        Returns:
            Copy of the updated record, or None if it does not exist
        """
        pass

    @abstractmethod
    def delete(self, kind: str, record_id: str) -> bool:
        """
        Remove a record.

        Returns:
            True if a record was removed
        """
        pass

    # =========================================================================
    # CONVENIENCE
    # =========================================================================

    def count(self, kind: str, **filters) -> int:
        """
        Count records matching filters.

        Default implementation lists - override for efficiency.
        """
        return len(self.list(kind, **filters))

    def recent(self, kind: str, limit: int = 10) -> List[Dict[str, Any]]:
        """Newest `limit` records of a kind."""
        return self.list(kind)[:limit]

    def search_effects(self, search: Optional[str] = None, category: Optional[str] = None,
                       effect_type: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Effects matching the library filters, newest first.

        Args:
            search: Case-insensitive substring of name, description or a tag
            category: Exact category ('all' or empty matches everything)
            effect_type: Exact output type ('all' or empty matches everything)
        """
        records = self.list(
            KIND_EFFECT,
            category=category if category and category != "all" else None,
            type=effect_type if effect_type and effect_type != "all" else None,
        )
        if not search:
            return records

        needle = search.lower()

        def matches(record: Dict[str, Any]) -> bool:
            haystack = [record.get("name") or "", record.get("description") or ""]
            haystack.extend(record.get("tags") or [])
            return any(needle in text.lower() for text in haystack)

        return [r for r in records if matches(r)]

    def clear(self) -> None:
        """
        Remove all records.

        Default implementation does nothing - override if supported.
        """
        pass


__all__ = [
    "RecordStore",
    "KIND_EFFECT",
    "KIND_FILE",
    "KIND_SESSION",
    "KIND_METRICS",
    "RECORD_KINDS",
]
