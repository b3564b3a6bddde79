"""
linktips.runtime.context - the per-call environment handed to the contract.

A call has two identities:

- ``predecessor``: the account that immediately invoked the contract. All
  authorization checks use this one.
- ``signer``: the account that signed the originating transaction. It differs
  from the predecessor when the call was relayed through another contract.

plus the native-token ``attached_deposit`` moved to the contract with the call.
The context is pure data, validated on construction, and immutable.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from linktips.config import U128_MAX, load_config
from linktips.errors import ContextError


# ----------------------------- helpers ----------------------------- #


def _require_account(name: str, v: Any, max_len: Optional[int] = None) -> str:
    if not isinstance(v, str):
        raise ContextError(f"{name} must be str, got {type(v).__name__}")
    if not v or v != v.strip():
        raise ContextError(f"{name} must be a non-empty account id without surrounding whitespace")
    limit = max_len if max_len is not None else load_config().limits.max_account_len
    size = len(v.encode("utf-8"))
    if size > limit:
        raise ContextError(f"{name} too long (>{limit} bytes)", details={"len": size})
    return v


def _require_non_negative_int(name: str, v: Any, upper: Optional[int] = None) -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise ContextError(f"{name} must be int, got {type(v).__name__}")
    if v < 0:
        raise ContextError(f"{name} must be non-negative, got {v}")
    if upper is not None and v > upper:
        raise ContextError(f"{name} out of range, got {v}")
    return v


# ----------------------------- model ------------------------------ #


@dataclass(frozen=True)
class CallContext:
    """
    Fields
    ------
    predecessor:      immediate caller account id.
    signer:           transaction signer account id.
    attached_deposit: native tokens attached to the call (u128).
    contract_account: the contract's own account id.
    block_height:     informational; the contract logic never reads it.
    """
    predecessor: str
    signer: str
    attached_deposit: int
    contract_account: str
    block_height: int = 0

    def __post_init__(self) -> None:
        _require_account("predecessor", self.predecessor)
        _require_account("signer", self.signer)
        _require_account("contract_account", self.contract_account)
        _require_non_negative_int("attached_deposit", self.attached_deposit, U128_MAX)
        _require_non_negative_int("block_height", self.block_height)

    @property
    def is_direct(self) -> bool:
        """True when the caller signed the transaction itself."""
        return self.predecessor == self.signer

    # ---- constructors ---- #

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CallContext":
        predecessor = d.get("predecessor")
        return cls(
            predecessor=predecessor,
            signer=d.get("signer", predecessor),
            attached_deposit=d.get("attached_deposit", 0),
            contract_account=d.get("contract_account"),
            block_height=d.get("block_height", 0),
        )

    # ---- views ---- #

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["CallContext"]
