"""
linktips.runtime.treasury - native-token balance ledger and deferred transfers.

Two pieces:

- :class:`Treasury` is the simulated ledger of account balances the host moves
  deposits and transfers on. Integer-only, u128-capped, thread-safe, with
  ``dump()``/``load()`` for snapshots.
- :class:`TransferQueue` collects the outgoing transfers a contract call asks
  for. Scheduling never moves value: the host dispatches the queue only after
  the call's state has been committed, and a dispatch failure is recorded in a
  :class:`TransferReceipt` rather than undoing the call (fire-and-forget).

Notes
-----
* Simulation-only. A real deployment replaces this with the platform's own
  accounting; the contract only ever talks to ``TransferQueue.schedule``.
* Deterministic: no wall-clock, no randomness, pure arithmetic with explicit caps.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from linktips.config import U128_MAX
from linktips.errors import AmountOverflow, InsufficientFunds, InvalidArgument


# ------------------------------ Amount checks ------------------------------ #


def _check_account(account: str) -> str:
    if not isinstance(account, str) or not account:
        raise InvalidArgument("account must be a non-empty string", field="account")
    return account


def _check_amount(amount: int) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidArgument("amount must be int", field="amount")
    if amount < 0:
        raise InvalidArgument("amount must be non-negative", field="amount")
    if amount > U128_MAX:
        raise AmountOverflow("amount exceeds u128", details={"amount": str(amount)})
    return amount


def _add_checked(a: int, b: int) -> int:
    c = a + b
    if c > U128_MAX:
        raise AmountOverflow("balance overflow", details={"balance": str(a), "amount": str(b)})
    return c


# ------------------------------ Ledger ------------------------------ #


class Treasury:
    """In-memory account → balance ledger."""

    def __init__(self, balances: Optional[Dict[str, int]] = None) -> None:
        self._lock = threading.RLock()
        self._balances: Dict[str, int] = {}
        for account, amount in (balances or {}).items():
            self._balances[_check_account(account)] = _check_amount(amount)

    def balance(self, account: str) -> int:
        with self._lock:
            return self._balances.get(account, 0)

    def credit(self, account: str, amount: int) -> int:
        """Increase `account` by `amount`; returns the new balance."""
        _check_account(account)
        _check_amount(amount)
        with self._lock:
            new = _add_checked(self._balances.get(account, 0), amount)
            self._balances[account] = new
            return new

    def debit(self, account: str, amount: int) -> int:
        """Decrease `account` by `amount` if sufficient; returns the new balance."""
        _check_account(account)
        _check_amount(amount)
        with self._lock:
            cur = self._balances.get(account, 0)
            if amount > cur:
                raise InsufficientFunds(account=account, have=cur, need=amount)
            self._balances[account] = cur - amount
            return cur - amount

    def transfer(self, frm: str, to: str, amount: int) -> None:
        """Atomically move `amount` from `frm` to `to`. Zero is a no-op."""
        _check_account(frm)
        _check_account(to)
        _check_amount(amount)
        if amount == 0:
            return
        with self._lock:
            cur_from = self._balances.get(frm, 0)
            if amount > cur_from:
                raise InsufficientFunds(account=frm, have=cur_from, need=amount)
            cur_to = self._balances.get(to, 0) if to != frm else cur_from - amount
            new_to = _add_checked(cur_to, amount)
            self._balances[frm] = cur_from - amount
            self._balances[to] = new_to

    def total_supply(self) -> int:
        with self._lock:
            return sum(self._balances.values())

    # --- load/save ---

    def dump(self) -> Dict[str, int]:
        with self._lock:
            return {k: v for k, v in sorted(self._balances.items()) if v}

    @classmethod
    def load(cls, data: Dict[str, int]) -> "Treasury":
        return cls(dict(data))


# ------------------------------ Deferred transfers ------------------------------ #


@dataclass(frozen=True)
class PendingTransfer:
    receiver: str
    amount: int


@dataclass(frozen=True)
class TransferReceipt:
    """Result of dispatching one PendingTransfer after commit."""
    receiver: str
    amount: int
    ok: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"receiver": self.receiver, "amount": self.amount, "ok": self.ok, "error": self.error}


class TransferQueue:
    """Transfers scheduled by the current call, in scheduling order."""

    def __init__(self) -> None:
        self._items: List[PendingTransfer] = []

    def schedule(self, receiver: str, amount: int) -> PendingTransfer:
        item = PendingTransfer(_check_account(receiver), _check_amount(amount))
        self._items.append(item)
        return item

    def pending(self) -> List[PendingTransfer]:
        return list(self._items)

    def drain(self) -> List[PendingTransfer]:
        out, self._items = self._items, []
        return out

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


__all__ = [
    "Treasury",
    "PendingTransfer",
    "TransferReceipt",
    "TransferQueue",
]
