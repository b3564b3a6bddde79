# -*- coding: utf-8 -*-
"""
linktips.contract.verification
==============================

Stake-gated link/unlink requests and their oracle review.

Storage
-------
- ``requests``  append-only log of :class:`VerificationRequest`; a request's id
                is its index (0, 1, 2, …) and is never reused.
- ``pending``   set of ids waiting for the oracle.
- ``approved``  set of ids the oracle approved.

Status is derived, never stored::

    id >= len(requests)        -> NOT_FOUND
    id in pending              -> PENDING
    id in approved             -> APPROVED
    otherwise                  -> REJECTED

``APPROVED`` and ``REJECTED`` are terminal: only ids in ``pending`` can move,
and each move (pending → approved, or pending → gone) happens inside one call.

Stake
-----
The whole attached deposit is forwarded to the oracle as payment for the
review. It is scheduled on submission, sent after the call commits, and is
not refunded on rejection.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from linktips.contract import inputs
from linktips.contract.access import AccessControl
from linktips.contract.identity import IdentityRegistry
from linktips.contract.layout import P_APPROVED, P_PENDING, P_REQUESTS
from linktips.errors import (
    AlreadyLinked,
    CodecError,
    CrossCallNotAllowed,
    InsufficientStake,
    NotInitialized,
    NotLinked,
    RequestAlreadyProcessed,
    RequestNotFound,
    StorageError,
)
from linktips.runtime.collections import RECORD, PersistentSet, PersistentVector

if TYPE_CHECKING:  # pragma: no cover
    from linktips.runtime.host import Env

log = logging.getLogger(__name__)


class RequestStatus(IntEnum):
    NOT_FOUND = 0
    PENDING = 1
    APPROVED = 2
    REJECTED = 3


@dataclass(frozen=True)
class VerificationRequest:
    internal_account: str
    external_account: str
    is_unlink: bool
    proof_url: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "VerificationRequest":
        try:
            return cls(
                internal_account=d["internal_account"],
                external_account=d["external_account"],
                is_unlink=bool(d["is_unlink"]),
                proof_url=d["proof_url"],
            )
        except (KeyError, TypeError) as e:
            raise CodecError(f"corrupt verification request record: {e}") from e


class VerificationWorkflow:
    def __init__(self, env: "Env", access: AccessControl, identity: IdentityRegistry) -> None:
        self._env = env
        self._access = access
        self._identity = identity
        self._requests = PersistentVector(env.storage, P_REQUESTS, RECORD)
        self._pending = PersistentSet(env.storage, P_PENDING)
        self._approved = PersistentSet(env.storage, P_APPROVED)

    # ------------------------------------------------------------------ queries

    def list_pending(self) -> List[int]:
        return self._pending.values()

    def get_request(self, request_id: int) -> Optional[VerificationRequest]:
        raw = self._requests.get(request_id)
        return None if raw is None else VerificationRequest.from_dict(raw)

    def get_status(self, request_id: int) -> RequestStatus:
        if not self._requests.contains_index(request_id):
            return RequestStatus.NOT_FOUND
        if self._pending.has(request_id):
            return RequestStatus.PENDING
        if self._approved.has(request_id):
            return RequestStatus.APPROVED
        return RequestStatus.REJECTED

    def __len__(self) -> int:
        return len(self._requests)

    # ------------------------------------------------------------------ submission

    def submit(self, external_account: str, is_unlink: bool, proof_url: str) -> int:
        ctx = self._env.ctx
        if not ctx.is_direct:
            raise CrossCallNotAllowed(predecessor=ctx.predecessor, signer=ctx.signer)
        required = self._access.min_stake()
        if ctx.attached_deposit < required:
            raise InsufficientStake(required=required, attached=ctx.attached_deposit)

        limits = self._env.limits
        internal_account = inputs.account_id(ctx.predecessor, limits, "predecessor")
        external_account = inputs.external_account(external_account, limits)
        proof_url = inputs.proof_url(proof_url, limits)
        is_unlink = inputs.flag(is_unlink, "is_unlink")
        oracle = self._access.oracle()
        if oracle is None:
            raise NotInitialized("no oracle configured")

        request = VerificationRequest(
            internal_account=internal_account,
            external_account=external_account,
            is_unlink=is_unlink,
            proof_url=proof_url,
        )
        request_id = self._requests.push(request.to_dict())
        self._pending.add(request_id)
        self._env.transfers.schedule(oracle, ctx.attached_deposit)
        self._env.events.emit(
            "VerificationRequested",
            {
                "request_id": request_id,
                "internal_account": request.internal_account,
                "external_account": request.external_account,
                "is_unlink": request.is_unlink,
                "proof_url": request.proof_url,
                "stake": ctx.attached_deposit,
            },
        )
        log.info(
            "%s requests to %s %s account. Proof ID: %d URL: %s",
            request.internal_account,
            "unlink" if is_unlink else "link",
            request.external_account,
            request_id,
            request.proof_url,
        )
        return request_id

    # ------------------------------------------------------------------ review

    def _pending_request(self, request_id: int) -> VerificationRequest:
        self._access.require_oracle(self._env.ctx)
        request_id = inputs.request_id(request_id)
        if not self._requests.contains_index(request_id):
            raise RequestNotFound(request_id=request_id)
        if not self._pending.has(request_id):
            raise RequestAlreadyProcessed(request_id=request_id)
        request = self.get_request(request_id)
        if request is None:
            raise StorageError("request record missing below the log length", details={"request_id": request_id})
        return request

    def approve(self, request_id: int) -> VerificationRequest:
        request = self._pending_request(request_id)
        internal, external = request.internal_account, request.external_account

        if request.is_unlink:
            if not self._identity.is_linked(internal, external):
                raise NotLinked(internal_account=internal, external_account=external)
            self._identity.unlink(internal, external)
            outcome = "AccountsUnlinked"
        else:
            if not self._identity.is_free(internal, external):
                raise AlreadyLinked(internal_account=internal, external_account=external)
            self._identity.link(internal, external)
            outcome = "AccountsLinked"

        self._pending.delete(request_id)
        self._approved.add(request_id)

        self._env.events.emit("RequestApproved", {"request_id": request_id, "is_unlink": request.is_unlink})
        self._env.events.emit(outcome, {"internal_account": internal, "external_account": external})
        log.info("Request %d approved by %s", request_id, self._env.ctx.predecessor)
        return request

    def reject(self, request_id: int) -> VerificationRequest:
        request = self._pending_request(request_id)
        self._pending.delete(request_id)
        self._env.events.emit("RequestRejected", {"request_id": request_id, "is_unlink": request.is_unlink})
        log.info("Request %d rejected by %s", request_id, self._env.ctx.predecessor)
        return request


__all__ = ["RequestStatus", "VerificationRequest", "VerificationWorkflow"]
