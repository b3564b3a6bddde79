# -*- coding: utf-8 -*-
"""
linktips.contract.contract
==========================

The public method table of the tips contract.

``TipsContract`` binds the components to one call's :class:`Env` and exposes
the methods clients call through the host. Views never write; calls run
inside the host's journal, so any error discards everything they did.

Views
-----
get_external_account(internal_account)         -> str | None
get_internal_account(external_account)         -> str | None
get_owner_account()                            -> str | None
get_oracle_account()                           -> str | None
get_min_stake_amount()                         -> int
get_pending_requests()                         -> list[int]
get_verification_request(request_id)           -> dict | None
get_request_status(request_id)                 -> int (0 not found, 1 pending, 2 approved, 3 rejected)
get_total_tips_by_item_id(item_id)             -> int
get_total_tips_by_external_account(external)   -> int
get_available_tips_by_external_account(external) -> int

Calls
-----
initialize(owner, oracle, min_stake)
change_owner_account(new_owner)
change_oracle_account(new_oracle)
change_min_stake(min_stake)
unlink_all()                                   -> int
request_verification(external_account, is_unlink, url) -> int   (payable)
approve_request(request_id)
reject_request(request_id)
send_tips(recipient_external_account, item_id) (payable)
claim_tokens()                                 -> int
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, FrozenSet, List, Optional

from linktips.contract.access import AccessControl
from linktips.contract.admin import Administration
from linktips.contract.identity import IdentityRegistry
from linktips.contract.tipping import TippingLedger
from linktips.contract.verification import VerificationWorkflow

if TYPE_CHECKING:  # pragma: no cover
    from linktips.runtime.host import Env


VIEW_METHODS: FrozenSet[str] = frozenset(
    {
        "get_external_account",
        "get_internal_account",
        "get_owner_account",
        "get_oracle_account",
        "get_min_stake_amount",
        "get_pending_requests",
        "get_verification_request",
        "get_request_status",
        "get_total_tips_by_item_id",
        "get_total_tips_by_external_account",
        "get_available_tips_by_external_account",
    }
)

CALL_METHODS: FrozenSet[str] = frozenset(
    {
        "initialize",
        "change_owner_account",
        "change_oracle_account",
        "change_min_stake",
        "unlink_all",
        "request_verification",
        "approve_request",
        "reject_request",
        "send_tips",
        "claim_tokens",
    }
)


class TipsContract:
    def __init__(self, env: "Env") -> None:
        self.env = env
        self.access = AccessControl(env)
        self.identity = IdentityRegistry(env)
        self.verification = VerificationWorkflow(env, self.access, self.identity)
        self.tipping = TippingLedger(env, self.identity)
        self.admin = Administration(env, self.access, self.identity)

    # ------------------------------------------------------------------ views

    def get_external_account(self, internal_account: str) -> Optional[str]:
        return self.identity.lookup_external(internal_account)

    def get_internal_account(self, external_account: str) -> Optional[str]:
        return self.identity.lookup_internal(external_account)

    def get_owner_account(self) -> Optional[str]:
        return self.access.owner()

    def get_oracle_account(self) -> Optional[str]:
        return self.access.oracle()

    def get_min_stake_amount(self) -> int:
        return self.access.min_stake()

    def get_pending_requests(self) -> List[int]:
        return self.verification.list_pending()

    def get_verification_request(self, request_id: int) -> Optional[Dict[str, Any]]:
        request = self.verification.get_request(request_id)
        return None if request is None else request.to_dict()

    def get_request_status(self, request_id: int) -> int:
        return int(self.verification.get_status(request_id))

    def get_total_tips_by_item_id(self, item_id: str) -> int:
        return self.tipping.item_total(item_id)

    def get_total_tips_by_external_account(self, external_account: str) -> int:
        return self.tipping.account_total(external_account)

    def get_available_tips_by_external_account(self, external_account: str) -> int:
        return self.tipping.available(external_account)

    # ------------------------------------------------------------------ administration

    def initialize(self, owner: str, oracle: str, min_stake: int = 0) -> None:
        self.admin.initialize(owner, oracle, min_stake)

    def change_owner_account(self, new_owner: str) -> None:
        self.admin.change_owner(new_owner)

    def change_oracle_account(self, new_oracle: str) -> None:
        self.admin.change_oracle(new_oracle)

    def change_min_stake(self, min_stake: int) -> None:
        self.admin.change_min_stake(min_stake)

    def unlink_all(self) -> int:
        return self.admin.unlink_all()

    # ------------------------------------------------------------------ verification

    def request_verification(self, external_account: str, is_unlink: bool, url: str) -> int:
        return self.verification.submit(external_account, is_unlink, url)

    def approve_request(self, request_id: int) -> None:
        self.verification.approve(request_id)

    def reject_request(self, request_id: int) -> None:
        self.verification.reject(request_id)

    # ------------------------------------------------------------------ tipping

    def send_tips(self, recipient_external_account: str, item_id: str) -> Dict[str, Any]:
        return self.tipping.send_tip(recipient_external_account, item_id)

    def claim_tokens(self) -> int:
        return self.tipping.claim()


__all__ = ["TipsContract", "VIEW_METHODS", "CALL_METHODS"]
