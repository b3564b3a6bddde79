from __future__ import annotations
# linktips/errors.py
"""
Error types for the identity-link & tipping contract and its local runtime.
They are lightweight, serializable, and safe to surface over the CLI/logs.

Every contract error is a *precondition* failure: it is raised before the
operation writes anything, and the host discards whatever the call did.

Exports:
- LinkTipsError (base)
- contract errors: Unauthorized, InsufficientStake, CrossCallNotAllowed,
  RequestNotFound, RequestAlreadyProcessed, AlreadyLinked, NotLinked,
  NoLinkedAccount, NothingToClaim, AlreadyInitialized, NotInitialized,
  InvalidArgument, AmountOverflow
- host/runtime errors: InsufficientFunds, MethodNotFound, StorageError,
  CodecError, ContextError, EventError
"""


from typing import Any, Dict, Mapping, Optional
import json


class LinkTipsError(Exception):
    """Base class for linktips domain errors."""

    code: str = "LINKTIPS_ERROR"

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            try:
                packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"))
            except (TypeError, ValueError):
                packed = str(self.details)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


# --------------------------- access control ---------------------------


class Unauthorized(LinkTipsError):
    """The immediate caller does not hold the role the method requires."""
    code = "UNAUTHORIZED"

    def __init__(
        self,
        *,
        role: str,
        caller: str,
        message: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"role": role, "caller": caller})
        super().__init__(message or f"only {role} account can write", details=d)


# --------------------------- verification ---------------------------


class InsufficientStake(LinkTipsError):
    """A verification request was attached less than the minimum stake."""
    code = "INSUFFICIENT_STAKE"

    def __init__(
        self,
        *,
        required: int,
        attached: int,
        message: str = "insufficient stake amount",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"required": int(required), "attached": int(attached)})
        super().__init__(message, details=d)


class CrossCallNotAllowed(LinkTipsError):
    """The predecessor is not the transaction signer (proxied submission)."""
    code = "CROSS_CALL_NOT_ALLOWED"

    def __init__(
        self,
        *,
        predecessor: str,
        signer: str,
        message: str = "cross-contract calls are not allowed",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"predecessor": predecessor, "signer": signer})
        super().__init__(message, details=d)


class RequestNotFound(LinkTipsError):
    code = "REQUEST_NOT_FOUND"

    def __init__(self, *, request_id: int, message: str = "non-existent request id") -> None:
        super().__init__(message, details={"request_id": int(request_id)})


class RequestAlreadyProcessed(LinkTipsError):
    code = "REQUEST_ALREADY_PROCESSED"

    def __init__(
        self, *, request_id: int, message: str = "the request has already been processed"
    ) -> None:
        super().__init__(message, details={"request_id": int(request_id)})


# --------------------------- identity registry ---------------------------


class AlreadyLinked(LinkTipsError):
    """One side of a requested link is already linked to something."""
    code = "ALREADY_LINKED"

    def __init__(
        self,
        *,
        internal_account: str,
        external_account: str,
        message: str = "account already has a linked account",
    ) -> None:
        super().__init__(
            message,
            details={"internal_account": internal_account, "external_account": external_account},
        )


class NotLinked(LinkTipsError):
    """The exact (internal, external) pair is not linked."""
    code = "NOT_LINKED"

    def __init__(
        self,
        *,
        internal_account: str,
        external_account: str,
        message: str = "accounts are not linked to each other",
    ) -> None:
        super().__init__(
            message,
            details={"internal_account": internal_account, "external_account": external_account},
        )


# --------------------------- tipping ---------------------------


class NoLinkedAccount(LinkTipsError):
    code = "NO_LINKED_ACCOUNT"

    def __init__(self, *, account: str, message: str = "you don't have any linked account") -> None:
        super().__init__(message, details={"account": account})


class NothingToClaim(LinkTipsError):
    code = "NOTHING_TO_CLAIM"

    def __init__(self, *, external_account: str, message: str = "no tips to withdraw") -> None:
        super().__init__(message, details={"external_account": external_account})


class AmountOverflow(LinkTipsError):
    """An accumulator would leave the unsigned 128-bit range."""
    code = "AMOUNT_OVERFLOW"


# --------------------------- administration & input ---------------------------


class AlreadyInitialized(LinkTipsError):
    code = "ALREADY_INITIALIZED"


class NotInitialized(LinkTipsError):
    code = "NOT_INITIALIZED"


class InvalidArgument(LinkTipsError):
    code = "INVALID_ARGUMENT"

    def __init__(
        self,
        message: str = "invalid argument",
        *,
        field: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if field is not None:
            d.setdefault("field", field)
        super().__init__(message, details=d)


# --------------------------- host / runtime ---------------------------


class InsufficientFunds(LinkTipsError):
    """An account cannot cover a deposit or transfer on the simulated ledger."""
    code = "INSUFFICIENT_FUNDS"

    def __init__(self, *, account: str, have: int, need: int) -> None:
        super().__init__(
            "insufficient balance",
            details={"account": account, "have": int(have), "need": int(need)},
        )


class MethodNotFound(LinkTipsError):
    code = "METHOD_NOT_FOUND"

    def __init__(self, *, method: str, kind: str = "call") -> None:
        super().__init__(f"no {kind} method named {method!r}", details={"method": method})


class StorageError(LinkTipsError):
    code = "STORAGE_ERROR"


class CodecError(LinkTipsError):
    code = "CODEC_ERROR"


class ContextError(LinkTipsError):
    code = "CONTEXT_ERROR"


class EventError(LinkTipsError):
    code = "EVENT_ERROR"


__all__ = [
    "LinkTipsError",
    "Unauthorized",
    "InsufficientStake",
    "CrossCallNotAllowed",
    "RequestNotFound",
    "RequestAlreadyProcessed",
    "AlreadyLinked",
    "NotLinked",
    "NoLinkedAccount",
    "NothingToClaim",
    "AmountOverflow",
    "AlreadyInitialized",
    "NotInitialized",
    "InvalidArgument",
    "InsufficientFunds",
    "MethodNotFound",
    "StorageError",
    "CodecError",
    "ContextError",
    "EventError",
]
