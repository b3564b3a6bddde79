"""
linktips.runtime.storage - deterministic key/value storage for contract state.

Design goals
------------
- Simple default: in-process memory backend for local runs & tests.
- Pluggable: a tiny backend interface so a host can swap in a real state DB.
- Atomic calls: `JournaledStorage` buffers every write of the current call in
  an overlay; `commit()` applies the overlay to the backend in one step and
  `rollback()` discards it, so a failing call leaves no partial writes.
- Safe: strict byte-length caps; typed helpers for the value shapes the
  contract stores (UTF-8 strings, u128 amounts, CBOR records).

Backend API
-----------
- get(key) -> Optional[bytes]
- set(key, value) -> None
- delete(key) -> None
- exists(key) -> bool
- iter_prefix(prefix) -> Iterator[(key, value)]   # ascending key order

Contract-facing API (JournaledStorage)
--------------------------------------
- get / set / delete / exists / iter_prefix
- get_str / set_str, get_u128 / set_u128, get_record / set_record
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Iterator, Optional, Protocol, Tuple, runtime_checkable

from linktips.config import Limits, load_config
from linktips.errors import StorageError
from linktips.runtime import codec

# ---------------------------- Backend API ---------------------------- #


@runtime_checkable
class StorageBackend(Protocol):
    """Minimal backend interface for contract storage."""

    def get(self, key: bytes) -> Optional[bytes]: ...
    def set(self, key: bytes, value: bytes) -> None: ...
    def delete(self, key: bytes) -> None: ...
    def exists(self, key: bytes) -> bool: ...
    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]: ...


class MemoryBackend:
    """Thread-safe in-memory backend for local runs and tests."""

    def __init__(self, data: Optional[Dict[bytes, bytes]] = None) -> None:
        self._store: Dict[bytes, bytes] = dict(data or {})
        self._lock = threading.RLock()

    def get(self, key: bytes) -> Optional[bytes]:
        with self._lock:
            return self._store.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        with self._lock:
            self._store[key] = value

    def delete(self, key: bytes) -> None:
        with self._lock:
            self._store.pop(key, None)

    def exists(self, key: bytes) -> bool:
        with self._lock:
            return key in self._store

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        with self._lock:
            snapshot = sorted((k, v) for k, v in self._store.items() if k.startswith(prefix))
        return iter(snapshot)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    # --- load/save ---

    def dump(self) -> Dict[bytes, bytes]:
        with self._lock:
            return dict(sorted(self._store.items()))

    @classmethod
    def load(cls, data: Dict[bytes, bytes]) -> "MemoryBackend":
        for k, v in data.items():
            if not isinstance(k, bytes) or not isinstance(v, bytes):
                raise StorageError("storage snapshot must map bytes to bytes")
        return cls(data)


# Deleted-in-overlay marker.
_TOMBSTONE = object()


class JournaledStorage:
    """
    Contract-facing storage view over a backend.

    Outside a transaction, writes go straight to the backend. Inside one
    (`begin()` … `commit()`/`rollback()`), writes are buffered and reads see
    the buffered values first.
    """

    def __init__(
        self,
        backend: Optional[StorageBackend] = None,
        *,
        limits: Optional[Limits] = None,
        read_only: bool = False,
    ) -> None:
        self.backend: StorageBackend = backend if backend is not None else MemoryBackend()
        self.limits = limits or load_config().limits
        self.read_only = read_only
        self._overlay: Optional[Dict[bytes, Any]] = None

    # --------------------------- transactions --------------------------- #

    @property
    def in_transaction(self) -> bool:
        return self._overlay is not None

    def begin(self) -> None:
        if self._overlay is not None:
            raise StorageError("storage transaction already open")
        self._overlay = {}

    def commit(self) -> int:
        """Apply buffered writes to the backend; returns the number of keys touched."""
        if self._overlay is None:
            raise StorageError("no storage transaction to commit")
        overlay, self._overlay = self._overlay, None
        for key, value in sorted(overlay.items(), key=lambda kv: kv[0]):
            if value is _TOMBSTONE:
                self.backend.delete(key)
            else:
                self.backend.set(key, value)
        return len(overlay)

    def rollback(self) -> int:
        """Discard buffered writes; returns the number of keys dropped."""
        if self._overlay is None:
            raise StorageError("no storage transaction to roll back")
        dropped = len(self._overlay)
        self._overlay = None
        return dropped

    def read_only_view(self) -> "JournaledStorage":
        """A view over the same backend that rejects every write."""
        return JournaledStorage(self.backend, limits=self.limits, read_only=True)

    # --------------------------- validation --------------------------- #

    def _check_key(self, key: bytes) -> bytes:
        if not isinstance(key, (bytes, bytearray)):
            raise StorageError("storage key must be bytes")
        if len(key) == 0:
            raise StorageError("storage key must be non-empty")
        if len(key) > self.limits.max_key_bytes:
            raise StorageError(
                f"storage key too long (>{self.limits.max_key_bytes} bytes)",
                details={"len": len(key)},
            )
        return bytes(key)

    def _check_value(self, value: bytes) -> bytes:
        if not isinstance(value, (bytes, bytearray)):
            raise StorageError("storage value must be bytes")
        if len(value) > self.limits.max_value_bytes:
            raise StorageError(
                f"storage value too large (>{self.limits.max_value_bytes} bytes)",
                details={"len": len(value)},
            )
        return bytes(value)

    def _check_writable(self) -> None:
        if self.read_only:
            raise StorageError("storage is read-only in a view call")

    # --------------------------- raw API --------------------------- #

    def get(self, key: bytes) -> Optional[bytes]:
        """Return the value for `key`, or None if not set."""
        k = self._check_key(key)
        if self._overlay is not None and k in self._overlay:
            v = self._overlay[k]
            return None if v is _TOMBSTONE else v
        return self.backend.get(k)

    def set(self, key: bytes, value: bytes) -> None:
        """Set `key` to `value` (overwrites existing)."""
        self._check_writable()
        k = self._check_key(key)
        v = self._check_value(value)
        if self._overlay is not None:
            self._overlay[k] = v
        else:
            self.backend.set(k, v)

    def delete(self, key: bytes) -> None:
        """Delete `key` if present (no-op otherwise)."""
        self._check_writable()
        k = self._check_key(key)
        if self._overlay is not None:
            self._overlay[k] = _TOMBSTONE
        else:
            self.backend.delete(k)

    def exists(self, key: bytes) -> bool:
        return self.get(key) is not None

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        """Ascending (key, value) pairs under `prefix`, overlay applied."""
        merged: Dict[bytes, Optional[bytes]] = dict(self.backend.iter_prefix(bytes(prefix)))
        if self._overlay is not None:
            for k, v in self._overlay.items():
                if k.startswith(prefix):
                    merged[k] = None if v is _TOMBSTONE else v
        return iter(sorted((k, v) for k, v in merged.items() if v is not None))

    # --------------------------- typed helpers --------------------------- #

    def get_str(self, key: bytes) -> Optional[str]:
        raw = self.get(key)
        return None if raw is None else codec.decode_str(raw)

    def set_str(self, key: bytes, value: str) -> None:
        self.set(key, codec.encode_str(value))

    def get_u128(self, key: bytes, default: int = 0) -> int:
        raw = self.get(key)
        return default if raw is None else codec.decode_u128(raw)

    def set_u128(self, key: bytes, value: int) -> None:
        self.set(key, codec.encode_u128(value))

    def get_record(self, key: bytes) -> Any:
        raw = self.get(key)
        return None if raw is None else codec.loads(raw)

    def set_record(self, key: bytes, value: Any) -> None:
        self.set(key, codec.dumps(value))


__all__ = [
    "StorageBackend",
    "MemoryBackend",
    "JournaledStorage",
]
