"""
Owner-side administration: one-time initialization and parameter changes.

None of this is involved in linking or tipping; it only sets the scalars the
other components read (owner, oracle, minimum stake) and offers the blanket
unlink-all reset.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from linktips.contract import inputs
from linktips.contract.access import AccessControl
from linktips.contract.identity import IdentityRegistry
from linktips.errors import AlreadyInitialized

if TYPE_CHECKING:  # pragma: no cover
    from linktips.runtime.host import Env

log = logging.getLogger(__name__)


class Administration:
    def __init__(self, env: "Env", access: AccessControl, identity: IdentityRegistry) -> None:
        self._env = env
        self._access = access
        self._identity = identity

    def initialize(self, owner: str, oracle: str, min_stake: int) -> None:
        if self._access.is_initialized():
            raise AlreadyInitialized("contract is already initialized", details={"owner": self._access.owner()})
        limits = self._env.limits
        owner = inputs.account_id(owner, limits, "owner")
        oracle = inputs.account_id(oracle, limits, "oracle")
        min_stake = inputs.amount(min_stake, "min_stake")

        self._access.set_owner(owner)
        self._access.set_oracle(oracle)
        self._access.set_min_stake(min_stake)
        self._env.events.emit("Initialized", {"owner": owner, "oracle": oracle, "min_stake": min_stake})
        log.info("initialized: owner=%s oracle=%s min_stake=%d", owner, oracle, min_stake)

    def change_owner(self, new_owner: str) -> None:
        self._access.require_owner(self._env.ctx)
        new_owner = inputs.account_id(new_owner, self._env.limits, "new_owner")
        previous = self._access.owner() or ""
        self._access.set_owner(new_owner)
        self._env.events.emit("OwnerChanged", {"previous": previous, "new": new_owner})
        log.info("Changed owner: %s", new_owner)

    def change_oracle(self, new_oracle: str) -> None:
        self._access.require_owner(self._env.ctx)
        new_oracle = inputs.account_id(new_oracle, self._env.limits, "new_oracle")
        previous = self._access.oracle() or ""
        self._access.set_oracle(new_oracle)
        self._env.events.emit("OracleChanged", {"previous": previous, "new": new_oracle})
        log.info("Changed oracle: %s", new_oracle)

    def change_min_stake(self, min_stake: int) -> None:
        self._access.require_owner(self._env.ctx)
        min_stake = inputs.amount(min_stake, "min_stake")
        previous = self._access.min_stake()
        self._access.set_min_stake(min_stake)
        self._env.events.emit("MinStakeChanged", {"previous": previous, "new": min_stake})
        log.info("Changed min stake: %d", min_stake)

    def unlink_all(self) -> int:
        self._access.require_owner(self._env.ctx)
        removed = self._identity.clear_all()
        self._env.events.emit("AllUnlinked", {"removed": removed})
        log.info("Unlinked all accounts (%d links)", removed)
        return removed


__all__ = ["Administration"]
