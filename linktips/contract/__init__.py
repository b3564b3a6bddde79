"""
linktips.contract - the identity-link & tipping contract.

Components (leaves first):
- access        owner/oracle/min-stake lookup and role guards
- identity      bijective internal ⇄ external registry
- verification  stake-gated link/unlink requests reviewed by the oracle
- tipping       per-item / per-account totals, escrow and claim
- admin         initialize and owner-only parameter changes
- contract      TipsContract: the public method table
"""

from __future__ import annotations

from .access import AccessControl
from .admin import Administration
from .contract import CALL_METHODS, VIEW_METHODS, TipsContract
from .identity import IdentityRegistry
from .tipping import TippingLedger
from .verification import RequestStatus, VerificationRequest, VerificationWorkflow

__all__ = [
    "AccessControl",
    "Administration",
    "IdentityRegistry",
    "VerificationWorkflow",
    "VerificationRequest",
    "RequestStatus",
    "TippingLedger",
    "TipsContract",
    "VIEW_METHODS",
    "CALL_METHODS",
]
