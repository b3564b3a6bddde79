"""
linktips.runtime.codec
======================

Canonical CBOR encode/decode helpers for values kept in contract storage,
plus fixed-width integer helpers.

- Records (e.g. verification requests) are stored as canonical CBOR maps with
  text keys, so the same record always produces the same bytes.
- Amounts are stored as 16-byte big-endian unsigned integers (u128).
- Account ids and other strings are stored as UTF-8.

Public API
----------
dumps(obj) -> bytes
loads(data) -> Any
encode_u128(n) -> bytes
decode_u128(b) -> int
encode_str(s) -> bytes
decode_str(b) -> str
"""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Union

import cbor2

from linktips.config import U128_MAX
from linktips.errors import CodecError

U128_WIDTH = 16

_KeyType = Union[str, int, bytes]


def _to_plain(obj: Any) -> Any:
    """Convert dataclasses/Enums/bytearray/tuples to plain CBOR-able types."""
    if obj is None or isinstance(obj, (bool, int, str, bytes)):
        return obj
    if isinstance(obj, (bytearray, memoryview)):
        return bytes(obj)
    if isinstance(obj, Enum):
        return _to_plain(obj.value)
    if is_dataclass(obj) and not isinstance(obj, type):
        return {k: _to_plain(v) for k, v in asdict(obj).items()}
    if isinstance(obj, Mapping):
        out: Dict[_KeyType, Any] = {}
        for k, v in obj.items():
            if not isinstance(k, (str, int, bytes)):
                raise CodecError(
                    f"non-canonical mapping key type {type(k).__name__}; only str|int|bytes are allowed"
                )
            out[k] = _to_plain(v)
        return out
    if isinstance(obj, (list, tuple)):
        return [_to_plain(x) for x in obj]
    raise CodecError(f"cannot encode value of type {type(obj).__name__}")


def dumps(obj: Any) -> bytes:
    """Encode to canonical CBOR bytes (deterministic map ordering, shortest ints)."""
    try:
        return cbor2.dumps(_to_plain(obj), canonical=True)
    except cbor2.CBOREncodeError as e:
        raise CodecError(f"cbor encode failed: {e}") from e


def loads(data: Union[bytes, bytearray, memoryview]) -> Any:
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise CodecError(f"expected bytes, got {type(data).__name__}")
    try:
        return cbor2.loads(bytes(data))
    except cbor2.CBORDecodeError as e:
        raise CodecError(f"cbor decode failed: {e}") from e


# ---- fixed-width ints ------------------------------------------------------


def check_u128(n: Any, name: str = "amount") -> int:
    if isinstance(n, bool) or not isinstance(n, int):
        raise CodecError(f"{name} must be int, got {type(n).__name__}")
    if n < 0 or n > U128_MAX:
        raise CodecError(f"{name} out of u128 range: {n}")
    return n


def encode_u128(n: int) -> bytes:
    return check_u128(n).to_bytes(U128_WIDTH, "big")


def decode_u128(b: bytes) -> int:
    if not isinstance(b, (bytes, bytearray)) or len(b) != U128_WIDTH:
        raise CodecError("corrupt u128")
    return int.from_bytes(b, "big")


# ---- strings ---------------------------------------------------------------


def encode_str(s: str) -> bytes:
    if not isinstance(s, str):
        raise CodecError(f"expected str, got {type(s).__name__}")
    return s.encode("utf-8")


def decode_str(b: bytes) -> str:
    try:
        return bytes(b).decode("utf-8")
    except UnicodeDecodeError as e:
        raise CodecError("corrupt utf-8 string") from e


__all__ = [
    "U128_MAX",
    "U128_WIDTH",
    "dumps",
    "loads",
    "check_u128",
    "encode_u128",
    "decode_u128",
    "encode_str",
    "decode_str",
]
