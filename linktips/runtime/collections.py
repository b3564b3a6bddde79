# -*- coding: utf-8 -*-
"""
linktips.runtime.collections
============================

Typed persistent collections layered on a :class:`~linktips.runtime.storage.JournaledStorage`.
Every collection owns one key prefix; all of its entries live under
``prefix || suffix`` so collections never collide and iteration is a single
ascending prefix scan.

Key layout
----------
- ``PersistentMap``    ``prefix || utf8(key)``          → encoded value
- ``PersistentSet``    ``prefix || u64be(member)``      → ``b"\\x01"``
- ``PersistentVector`` ``prefix || b"len"``             → u64be length
                       ``prefix || b"idx:" || u64be(i)`` → encoded value

Integers are written big-endian so byte order equals numeric order.

Value codecs
------------
A codec is an ``(encode, decode)`` pair. ``STR``, ``U128`` and ``RECORD``
cover everything the contract persists.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator, List, Optional, Tuple

from linktips.errors import StorageError
from linktips.runtime import codec
from linktips.runtime.storage import JournaledStorage

ValueCodec = Tuple[Callable[[Any], bytes], Callable[[bytes], Any]]

STR: ValueCodec = (codec.encode_str, codec.decode_str)
U128: ValueCodec = (codec.encode_u128, codec.decode_u128)
RECORD: ValueCodec = (codec.dumps, codec.loads)

_U64_MAX = (1 << 64) - 1
_PRESENT = b"\x01"


def _u64(n: int) -> bytes:
    if isinstance(n, bool) or not isinstance(n, int) or not (0 <= n <= _U64_MAX):
        raise StorageError(f"collection index out of range: {n!r}")
    return n.to_bytes(8, "big")


def _check_prefix(prefix: bytes) -> bytes:
    if not isinstance(prefix, (bytes, bytearray)) or len(prefix) == 0:
        raise StorageError("collection prefix must be non-empty bytes")
    return bytes(prefix)


# ------------------------------------------------------------------------------
# Map
# ------------------------------------------------------------------------------


class PersistentMap:
    """String-keyed map. ``get`` returns ``default`` for absent keys."""

    def __init__(self, storage: JournaledStorage, prefix: bytes, value_codec: ValueCodec = STR) -> None:
        self._s = storage
        self._prefix = _check_prefix(prefix)
        self._enc, self._dec = value_codec

    def _key(self, key: str) -> bytes:
        if not isinstance(key, str):
            raise StorageError(f"map key must be str, got {type(key).__name__}")
        return self._prefix + key.encode("utf-8")

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._s.get(self._key(key))
        return default if raw is None else self._dec(raw)

    def set(self, key: str, value: Any) -> None:
        self._s.set(self._key(key), self._enc(value))

    def delete(self, key: str) -> None:
        self._s.delete(self._key(key))

    def contains(self, key: str) -> bool:
        return self._s.exists(self._key(key))

    __contains__ = contains

    def items(self) -> Iterator[Tuple[str, Any]]:
        n = len(self._prefix)
        for k, v in self._s.iter_prefix(self._prefix):
            yield codec.decode_str(k[n:]), self._dec(v)

    def keys(self) -> List[str]:
        return [k for k, _ in self.items()]

    def clear(self) -> int:
        """Delete every entry; returns how many were removed."""
        doomed = [k for k, _ in self._s.iter_prefix(self._prefix)]
        for k in doomed:
            self._s.delete(k)
        return len(doomed)

    def __len__(self) -> int:
        return sum(1 for _ in self._s.iter_prefix(self._prefix))


# ------------------------------------------------------------------------------
# Set
# ------------------------------------------------------------------------------


class PersistentSet:
    """Set of non-negative integers; ``values()`` is ascending."""

    def __init__(self, storage: JournaledStorage, prefix: bytes) -> None:
        self._s = storage
        self._prefix = _check_prefix(prefix)

    def add(self, member: int) -> None:
        self._s.set(self._prefix + _u64(member), _PRESENT)

    def delete(self, member: int) -> None:
        self._s.delete(self._prefix + _u64(member))

    def has(self, member: int) -> bool:
        return self._s.exists(self._prefix + _u64(member))

    __contains__ = has

    def values(self) -> List[int]:
        n = len(self._prefix)
        return [int.from_bytes(k[n:], "big") for k, _ in self._s.iter_prefix(self._prefix)]

    def clear(self) -> int:
        doomed = [k for k, _ in self._s.iter_prefix(self._prefix)]
        for k in doomed:
            self._s.delete(k)
        return len(doomed)

    def __len__(self) -> int:
        return sum(1 for _ in self._s.iter_prefix(self._prefix))

    def __iter__(self) -> Iterator[int]:
        return iter(self.values())


# ------------------------------------------------------------------------------
# Vector
# ------------------------------------------------------------------------------


class PersistentVector:
    """
    Append-only vector. ``push`` returns the new element's index; entries are
    never removed, so an index is a stable id.
    """

    def __init__(self, storage: JournaledStorage, prefix: bytes, value_codec: ValueCodec = RECORD) -> None:
        self._s = storage
        self._prefix = _check_prefix(prefix)
        self._len_key = self._prefix + b"len"
        self._enc, self._dec = value_codec

    def _item_key(self, index: int) -> bytes:
        return self._prefix + b"idx:" + _u64(index)

    def __len__(self) -> int:
        raw = self._s.get(self._len_key)
        return 0 if raw is None else int.from_bytes(raw, "big")

    def contains_index(self, index: int) -> bool:
        return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < len(self)

    def push(self, value: Any) -> int:
        index = len(self)
        self._s.set(self._item_key(index), self._enc(value))
        self._s.set(self._len_key, _u64(index + 1))
        return index

    def get(self, index: int) -> Optional[Any]:
        if not self.contains_index(index):
            return None
        raw = self._s.get(self._item_key(index))
        if raw is None:
            raise StorageError("vector entry missing below its length", details={"index": index})
        return self._dec(raw)

    def __iter__(self) -> Iterator[Any]:
        for i in range(len(self)):
            yield self.get(i)


__all__ = [
    "ValueCodec",
    "STR",
    "U128",
    "RECORD",
    "PersistentMap",
    "PersistentSet",
    "PersistentVector",
]
