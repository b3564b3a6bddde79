# -*- coding: utf-8 -*-
"""
linktips.contract.tipping
=========================

Tips addressed to external identities.

Three u128 accumulators:

- ``by_item``     lifetime total per item id (a post, a video, …)
- ``by_account``  lifetime total per external account
- ``available``   escrowed, claimable balance per external account

Routing on ``send_tip``: if the recipient is linked the whole deposit is
forwarded to the linked internal account and escrow is untouched; otherwise
the deposit is added to ``available``. Both lifetime totals are updated in
either case, so ``available <= by_account`` always holds.

``claim`` pays out the caller's escrow in full and zeroes it in the same call.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict

from linktips.config import U128_MAX
from linktips.contract import inputs
from linktips.contract.identity import IdentityRegistry
from linktips.contract.layout import P_TIPS_AVAILABLE, P_TIPS_BY_ACCOUNT, P_TIPS_BY_ITEM
from linktips.errors import AmountOverflow, NoLinkedAccount, NothingToClaim
from linktips.runtime.collections import U128, PersistentMap

if TYPE_CHECKING:  # pragma: no cover
    from linktips.runtime.host import Env

log = logging.getLogger(__name__)


def _checked_add(name: str, current: int, amount: int) -> int:
    total = current + amount
    if total > U128_MAX:
        raise AmountOverflow(f"{name} would exceed u128", details={"current": str(current), "amount": str(amount)})
    return total


class TippingLedger:
    def __init__(self, env: "Env", identity: IdentityRegistry) -> None:
        self._env = env
        self._identity = identity
        self._by_item = PersistentMap(env.storage, P_TIPS_BY_ITEM, U128)
        self._by_account = PersistentMap(env.storage, P_TIPS_BY_ACCOUNT, U128)
        self._available = PersistentMap(env.storage, P_TIPS_AVAILABLE, U128)

    # ---- queries ----

    def item_total(self, item_id: str) -> int:
        if not inputs.fits(item_id, self._env.limits.max_item_id_len):
            return 0
        return self._by_item.get(item_id, 0)

    def account_total(self, external_account: str) -> int:
        if not inputs.fits(external_account, self._env.limits.max_external_account_len):
            return 0
        return self._by_account.get(external_account, 0)

    def available(self, external_account: str) -> int:
        if not inputs.fits(external_account, self._env.limits.max_external_account_len):
            return 0
        return self._available.get(external_account, 0)

    # ---- mutations ----

    def send_tip(self, recipient_external: str, item_id: str) -> Dict[str, object]:
        ctx = self._env.ctx
        limits = self._env.limits
        recipient_external = inputs.external_account(recipient_external, limits, "recipient_external_account")
        item_id = inputs.item_id(item_id, limits)
        amount = ctx.attached_deposit

        linked = self._identity.lookup_internal(recipient_external)

        # Compute every new value before the first write.
        new_item = _checked_add("item total", self._by_item.get(item_id, 0), amount)
        new_total = _checked_add("account total", self._by_account.get(recipient_external, 0), amount)
        new_available = None
        if linked is None:
            new_available = _checked_add("available balance", self._available.get(recipient_external, 0), amount)

        if linked is not None:
            self._env.transfers.schedule(linked, amount)
        else:
            self._available.set(recipient_external, new_available)
        self._by_item.set(item_id, new_item)
        self._by_account.set(recipient_external, new_total)

        args = {
            "sender": ctx.predecessor,
            "external_account": recipient_external,
            "item_id": item_id,
            "amount": amount,
        }
        if linked is not None:
            self._env.events.emit("TipSent", dict(args, internal_account=linked))
            log.info("%s tips %d to %s <=> %s", ctx.predecessor, amount, recipient_external, linked)
        else:
            self._env.events.emit("TipEscrowed", args)
            log.info("%s tips %d to %s (escrowed)", ctx.predecessor, amount, recipient_external)

        return {"routed_to": linked, "escrowed": linked is None, "amount": amount}

    def claim(self) -> int:
        ctx = self._env.ctx
        external = self._identity.lookup_external(ctx.predecessor)
        if external is None:
            raise NoLinkedAccount(account=ctx.predecessor)
        balance = self._available.get(external, 0)
        if balance == 0:
            raise NothingToClaim(external_account=external)

        self._env.transfers.schedule(ctx.predecessor, balance)
        self._available.set(external, 0)

        self._env.events.emit(
            "TipsClaimed",
            {"internal_account": ctx.predecessor, "external_account": external, "amount": balance},
        )
        log.info("%s claimed %d from %s", ctx.predecessor, balance, external)
        return balance


__all__ = ["TippingLedger"]
