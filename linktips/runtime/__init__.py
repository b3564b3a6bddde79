"""
linktips.runtime - the in-process platform the contract runs on.

Modules:
- codec        canonical CBOR records + fixed-width u128 helpers
- storage      byte KV backends and the journaled, call-scoped storage view
- collections  PersistentMap / PersistentSet / PersistentVector over storage
- context      CallContext (predecessor, signer, attached deposit)
- events       per-call structured event log
- treasury     balance ledger and deferred transfer queue
- host         executes one contract call atomically
"""

from __future__ import annotations

from .codec import dumps, loads
from .collections import PersistentMap, PersistentSet, PersistentVector
from .context import CallContext
from .events import Event, EventLog
from .storage import JournaledStorage, MemoryBackend, StorageBackend
from .treasury import PendingTransfer, TransferQueue, TransferReceipt, Treasury

__all__ = [
    "dumps",
    "loads",
    "StorageBackend",
    "MemoryBackend",
    "JournaledStorage",
    "PersistentMap",
    "PersistentSet",
    "PersistentVector",
    "CallContext",
    "Event",
    "EventLog",
    "Treasury",
    "TransferQueue",
    "PendingTransfer",
    "TransferReceipt",
]
