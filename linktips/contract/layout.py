# -*- coding: utf-8 -*-
"""
Storage layout of the tips contract.

Every key the contract writes starts with one of the constants below. Scalars
live at fixed keys; collections own a prefix (see linktips.runtime.collections).
Changing any of these orphans existing state.
"""
from __future__ import annotations

from typing import Final

# -------- Access (scalars) --------
OWNER_KEY: Final[bytes] = b"access:owner"
ORACLE_KEY: Final[bytes] = b"access:oracle"
MIN_STAKE_KEY: Final[bytes] = b"access:min_stake"

# -------- Identity registry (maps) --------
P_EXTERNAL_BY_INTERNAL: Final[bytes] = b"identity:ext_by_int:"  # internal -> external
P_INTERNAL_BY_EXTERNAL: Final[bytes] = b"identity:int_by_ext:"  # external -> internal

# -------- Verification workflow --------
P_REQUESTS: Final[bytes] = b"verify:requests:"  # append-only log of request records
P_PENDING: Final[bytes] = b"verify:pending:"    # set of request ids
P_APPROVED: Final[bytes] = b"verify:approved:"  # set of request ids

# -------- Tipping ledger (u128 maps) --------
P_TIPS_BY_ITEM: Final[bytes] = b"tips:by_item:"
P_TIPS_BY_ACCOUNT: Final[bytes] = b"tips:by_account:"
P_TIPS_AVAILABLE: Final[bytes] = b"tips:available:"

__all__ = [
    "OWNER_KEY",
    "ORACLE_KEY",
    "MIN_STAKE_KEY",
    "P_EXTERNAL_BY_INTERNAL",
    "P_INTERNAL_BY_EXTERNAL",
    "P_REQUESTS",
    "P_PENDING",
    "P_APPROVED",
    "P_TIPS_BY_ITEM",
    "P_TIPS_BY_ACCOUNT",
    "P_TIPS_AVAILABLE",
]
