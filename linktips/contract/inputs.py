"""
Argument checks shared by the contract methods.

All of them raise :class:`~linktips.errors.InvalidArgument` and never touch
storage, so a method can run them before its first write.
"""

from __future__ import annotations

from typing import Any

from linktips.config import U128_MAX, Limits
from linktips.errors import InvalidArgument


def _require_str(field: str, value: Any, max_len: int) -> str:
    if not isinstance(value, str):
        raise InvalidArgument(f"{field} must be a string", field=field)
    if not value:
        raise InvalidArgument(f"{field} must be non-empty", field=field)
    # Measured in UTF-8 bytes: these strings become storage keys.
    size = len(value.encode("utf-8"))
    if size > max_len:
        raise InvalidArgument(f"{field} too long (>{max_len} bytes)", field=field, details={"len": size})
    if any(ch.isspace() for ch in value):
        raise InvalidArgument(f"{field} must not contain whitespace", field=field)
    return value


def fits(value: Any, max_len: int) -> bool:
    """True if `value` could have been stored under a cap of `max_len` bytes."""
    return isinstance(value, str) and bool(value) and len(value.encode("utf-8")) <= max_len


def account_id(value: Any, limits: Limits, field: str = "account") -> str:
    """An account on the value-transfer network."""
    return _require_str(field, value, limits.max_account_len)


def external_account(value: Any, limits: Limits, field: str = "external_account") -> str:
    """A platform-qualified handle: ``platform/handle``, both parts non-empty."""
    v = _require_str(field, value, limits.max_external_account_len)
    platform, sep, handle = v.partition("/")
    if not sep or not platform or not handle:
        raise InvalidArgument(f"{field} must look like 'platform/handle'", field=field, details={"value": v})
    return v


def proof_url(value: Any, limits: Limits) -> str:
    return _require_str("url", value, limits.max_proof_url_len)


def item_id(value: Any, limits: Limits) -> str:
    return _require_str("item_id", value, limits.max_item_id_len)


def amount(value: Any, field: str = "amount") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{field} must be an integer", field=field)
    if not (0 <= value <= U128_MAX):
        raise InvalidArgument(f"{field} must fit in u128", field=field, details={"value": str(value)})
    return value


def request_id(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidArgument("request_id must be a non-negative integer", field="request_id")
    return value


def flag(value: Any, field: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidArgument(f"{field} must be a boolean", field=field)
    return value


__all__ = ["fits", "account_id", "external_account", "proof_url", "item_id", "amount", "request_id", "flag"]
