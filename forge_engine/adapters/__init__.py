"""
EffectForge Adapters - Store Module

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

Stores hold effect, file, session and metrics records for the engine.
"""

from .base import (
    RecordStore,
    KIND_EFFECT,
    KIND_FILE,
    KIND_SESSION,
    KIND_METRICS,
    RECORD_KINDS,
)
from .memory import MemoryStore


__all__ = [
    "RecordStore",
    "MemoryStore",
    "KIND_EFFECT",
    "KIND_FILE",
    "KIND_SESSION",
    "KIND_METRICS",
    "RECORD_KINDS",
]
