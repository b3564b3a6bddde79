# -*- coding: utf-8 -*-
"""
linktips.contract.access
========================

Role lookup and guards for the two privileged accounts.

- **owner**  administers parameters (oracle, owner, minimum stake, unlink-all).
- **oracle** approves or rejects verification requests.

Guards compare against the *immediate caller* (``ctx.predecessor``), never the
transaction signer. They are read-only.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from linktips.contract.layout import MIN_STAKE_KEY, ORACLE_KEY, OWNER_KEY
from linktips.errors import Unauthorized
from linktips.runtime.context import CallContext

if TYPE_CHECKING:  # pragma: no cover
    from linktips.runtime.host import Env


class AccessControl:
    def __init__(self, env: "Env") -> None:
        self._s = env.storage

    # ---- getters ----

    def owner(self) -> Optional[str]:
        return self._s.get_str(OWNER_KEY)

    def oracle(self) -> Optional[str]:
        return self._s.get_str(ORACLE_KEY)

    def min_stake(self) -> int:
        return self._s.get_u128(MIN_STAKE_KEY, 0)

    def is_initialized(self) -> bool:
        return self.owner() is not None

    # ---- guards ----

    def require_owner(self, ctx: CallContext) -> None:
        owner = self.owner()
        if owner is None or ctx.predecessor != owner:
            raise Unauthorized(role="owner", caller=ctx.predecessor)

    def require_oracle(self, ctx: CallContext) -> None:
        oracle = self.oracle()
        if oracle is None or ctx.predecessor != oracle:
            raise Unauthorized(role="oracle", caller=ctx.predecessor)

    # ---- setters (administration only) ----

    def set_owner(self, account: str) -> None:
        self._s.set_str(OWNER_KEY, account)

    def set_oracle(self, account: str) -> None:
        self._s.set_str(ORACLE_KEY, account)

    def set_min_stake(self, amount: int) -> None:
        self._s.set_u128(MIN_STAKE_KEY, amount)


__all__ = ["AccessControl"]
