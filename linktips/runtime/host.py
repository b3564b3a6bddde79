"""
linktips.runtime.host - executes contract calls the way the platform would.

One call, start to finish
-------------------------
1. Build the :class:`CallContext` (signer defaults to the predecessor).
2. Move the attached deposit from the predecessor to the contract account.
3. Open a storage journal and run the contract method.
4. On error: roll back storage, drop events and scheduled transfers, return
   the deposit to the predecessor, re-raise.
5. On success: commit storage, then dispatch scheduled transfers one by one.
   A transfer that fails (receiver rejected, contract balance short) is
   logged and reported in the outcome; it does not undo the committed call.

A single lock serialises calls, so no two invocations interleave.

View calls run against a read-only view of storage with no deposit, no
events and no transfers.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from linktips.config import Limits, load_config
from linktips.contract.contract import CALL_METHODS, VIEW_METHODS, TipsContract
from linktips.errors import LinkTipsError, MethodNotFound, StorageError
from linktips.runtime import codec
from linktips.runtime.context import CallContext
from linktips.runtime.events import Event, EventLog
from linktips.runtime.storage import JournaledStorage, MemoryBackend, StorageBackend
from linktips.runtime.treasury import TransferQueue, TransferReceipt, Treasury

log = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

ReceiverFilter = Callable[[str], bool]


@dataclass
class Env:
    """Everything a contract method may touch during one call."""
    storage: JournaledStorage
    ctx: CallContext
    events: EventLog = field(default_factory=EventLog)
    transfers: TransferQueue = field(default_factory=TransferQueue)
    limits: Limits = field(default_factory=lambda: load_config().limits)


@dataclass
class CallOutcome:
    method: str
    result: Any
    events: List[Event]
    transfers: List[TransferReceipt]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "result": self.result,
            "events": [e.to_dict() for e in self.events],
            "transfers": [t.to_dict() for t in self.transfers],
        }


class Host:
    """
    In-process host for one deployed TipsContract.

    Parameters
    ----------
    contract_account:
        The contract's own account id (defaults to config ``host.contract_account``).
    backend:
        Storage backend; a fresh :class:`MemoryBackend` if omitted.
    treasury:
        Balance ledger; a fresh :class:`Treasury` if omitted.
    receiver_filter:
        Optional predicate; a transfer to an account it rejects fails at dispatch.
    """

    def __init__(
        self,
        contract_account: Optional[str] = None,
        *,
        backend: Optional[StorageBackend] = None,
        treasury: Optional[Treasury] = None,
        receiver_filter: Optional[ReceiverFilter] = None,
        limits: Optional[Limits] = None,
        block_height: int = 0,
    ) -> None:
        self.limits = limits or load_config().limits
        self.contract_account = contract_account or load_config().host.contract_account
        self.backend: StorageBackend = backend if backend is not None else MemoryBackend()
        self.storage = JournaledStorage(self.backend, limits=self.limits)
        self.treasury = treasury if treasury is not None else Treasury()
        self.receiver_filter = receiver_filter
        self.block_height = block_height
        self._lock = threading.RLock()

    # ------------------------------------------------------------------ calls

    def call(
        self,
        method: str,
        *,
        predecessor: str,
        signer: Optional[str] = None,
        deposit: int = 0,
        **args: Any,
    ) -> CallOutcome:
        """Run one state-changing contract method atomically."""
        if method not in CALL_METHODS:
            raise MethodNotFound(method=method, kind="call")

        with self._lock:
            ctx = CallContext(
                predecessor=predecessor,
                signer=signer if signer is not None else predecessor,
                attached_deposit=deposit,
                contract_account=self.contract_account,
                block_height=self.block_height,
            )
            # Attaching a deposit the caller cannot pay aborts before execution.
            self.treasury.transfer(ctx.predecessor, self.contract_account, deposit)

            env = Env(storage=self.storage, ctx=ctx, limits=self.limits)
            self.storage.begin()
            try:
                result = getattr(TipsContract(env), method)(**args)
            except Exception as e:
                dropped = self.storage.rollback()
                env.events.clear()
                env.transfers.clear()
                self.treasury.transfer(self.contract_account, ctx.predecessor, deposit)
                if isinstance(e, LinkTipsError):
                    log.info("%s by %s failed: %s", method, ctx.predecessor, e.code)
                else:
                    log.exception("%s by %s crashed", method, ctx.predecessor)
                log.debug("rolled back %d storage writes, refunded %d", dropped, deposit)
                raise

            written = self.storage.commit()
            self.block_height += 1
            log.debug("%s by %s committed %d storage writes", method, ctx.predecessor, written)

            receipts = [self._dispatch(t.receiver, t.amount) for t in env.transfers.drain()]
            return CallOutcome(method=method, result=result, events=env.events.drain(), transfers=receipts)

    def view(self, method: str, **args: Any) -> Any:
        """Run a read-only contract method."""
        if method not in VIEW_METHODS:
            raise MethodNotFound(method=method, kind="view")
        with self._lock:
            ctx = CallContext(
                predecessor=self.contract_account,
                signer=self.contract_account,
                attached_deposit=0,
                contract_account=self.contract_account,
                block_height=self.block_height,
            )
            env = Env(storage=self.storage.read_only_view(), ctx=ctx, limits=self.limits)
            return getattr(TipsContract(env), method)(**args)

    def _dispatch(self, receiver: str, amount: int) -> TransferReceipt:
        if self.receiver_filter is not None and not self.receiver_filter(receiver):
            log.warning("transfer of %d to %s failed: receiver rejected", amount, receiver)
            return TransferReceipt(receiver, amount, ok=False, error="receiver rejected")
        try:
            self.treasury.transfer(self.contract_account, receiver, amount)
        except LinkTipsError as e:
            log.warning("transfer of %d to %s failed: %s", amount, receiver, e)
            return TransferReceipt(receiver, amount, ok=False, error=e.code)
        return TransferReceipt(receiver, amount, ok=True)

    # ------------------------------------------------------------------ ledger helpers

    def fund(self, account: str, amount: int) -> int:
        """Credit `account` on the simulated ledger (devnet faucet)."""
        with self._lock:
            new = self.treasury.credit(account, amount)
        log.info("funded %s with %d (balance %d)", account, amount, new)
        return new

    def balance(self, account: str) -> int:
        return self.treasury.balance(account)

    # ------------------------------------------------------------------ snapshots

    def dump(self) -> Dict[str, Any]:
        dump_backend = getattr(self.backend, "dump", None)
        if dump_backend is None:
            raise StorageError("storage backend does not support snapshots")
        with self._lock:
            return {
                "version": SNAPSHOT_VERSION,
                "contract_account": self.contract_account,
                "block_height": self.block_height,
                "storage": dump_backend(),
                "balances": self.treasury.dump(),
            }

    @classmethod
    def load(
        cls,
        data: Dict[str, Any],
        *,
        receiver_filter: Optional[ReceiverFilter] = None,
        limits: Optional[Limits] = None,
    ) -> "Host":
        if not isinstance(data, dict):
            raise StorageError("host snapshot must be a mapping")
        if data.get("version") != SNAPSHOT_VERSION:
            raise StorageError("unsupported host snapshot", details={"version": data.get("version")})
        return cls(
            data["contract_account"],
            backend=MemoryBackend.load(data.get("storage") or {}),
            treasury=Treasury.load(data.get("balances") or {}),
            receiver_filter=receiver_filter,
            limits=limits,
            block_height=int(data.get("block_height", 0)),
        )

    def save(self, path: str | os.PathLike[str]) -> None:
        """Write a CBOR snapshot to `path` (atomic replace)."""
        p = Path(path)
        tmp = p.with_name(p.name + ".tmp")
        tmp.write_bytes(codec.dumps(self.dump()))
        os.replace(tmp, p)

    @classmethod
    def open(
        cls,
        path: str | os.PathLike[str],
        *,
        contract_account: Optional[str] = None,
        receiver_filter: Optional[ReceiverFilter] = None,
        limits: Optional[Limits] = None,
    ) -> "Host":
        """Load a snapshot from `path`, or start a fresh host if it does not exist."""
        p = Path(path)
        if not p.exists():
            return cls(contract_account, receiver_filter=receiver_filter, limits=limits)
        return cls.load(codec.loads(p.read_bytes()), receiver_filter=receiver_filter, limits=limits)


__all__ = ["Env", "CallOutcome", "Host", "SNAPSHOT_VERSION"]
