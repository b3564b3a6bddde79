from __future__ import annotations

import random

import pytest

from linktips.config import U128_MAX
from linktips.contract.identity import IdentityRegistry
from linktips.contract.layout import P_TIPS_BY_ITEM
from linktips.contract.tipping import TippingLedger
from linktips.errors import (
    AmountOverflow,
    InsufficientFunds,
    InvalidArgument,
    NoLinkedAccount,
    NothingToClaim,
)
from linktips.runtime.host import Host
from linktips.tests.conftest import CONTRACT, MIN_STAKE, ORACLE, OWNER, START_BALANCE


def _tip(host, sender, external, item, amount):
    return host.call(
        "send_tips",
        predecessor=sender,
        deposit=amount,
        recipient_external_account=external,
        item_id=item,
    )


def _totals(host, external, item):
    return (
        host.view("get_available_tips_by_external_account", external_account=external),
        host.view("get_total_tips_by_external_account", external_account=external),
        host.view("get_total_tips_by_item_id", item_id=item),
    )


def test_escrow_then_live_tip_then_claim(host, link):
    out = _tip(host, "carol.near", "tw/bob", "post-7", 100)
    assert out.result == {"routed_to": None, "escrowed": True, "amount": 100}
    assert out.transfers == []
    assert [e.name for e in out.events] == ["TipEscrowed"]
    assert _totals(host, "tw/bob", "post-7") == (100, 100, 100)
    assert host.balance(CONTRACT) == 100

    link("bob.near", "tw/bob")

    out = _tip(host, "carol.near", "tw/bob", "post-7", 50)
    assert out.result["routed_to"] == "bob.near"
    assert [(t.receiver, t.amount, t.ok) for t in out.transfers] == [("bob.near", 50, True)]
    assert [e.name for e in out.events] == ["TipSent"]
    assert _totals(host, "tw/bob", "post-7") == (100, 150, 150)
    assert host.balance("bob.near") == START_BALANCE - MIN_STAKE + 50

    claimed = host.call("claim_tokens", predecessor="bob.near")
    assert claimed.result == 100
    assert [(t.receiver, t.amount, t.ok) for t in claimed.transfers] == [("bob.near", 100, True)]
    assert _totals(host, "tw/bob", "post-7") == (0, 150, 150)
    assert host.balance("bob.near") == START_BALANCE - MIN_STAKE + 150
    assert host.balance(CONTRACT) == 0
    assert host.balance("carol.near") == START_BALANCE - 150


def test_second_claim_has_nothing_to_claim(host, link):
    _tip(host, "carol.near", "twitter/alice", "video-1", 30)
    link("alice.near", "twitter/alice")
    host.call("claim_tokens", predecessor="alice.near")
    with pytest.raises(NothingToClaim):
        host.call("claim_tokens", predecessor="alice.near")


def test_claim_requires_a_link(host):
    _tip(host, "carol.near", "twitter/alice", "video-1", 30)
    with pytest.raises(NoLinkedAccount) as ei:
        host.call("claim_tokens", predecessor="alice.near")
    assert ei.value.details == {"account": "alice.near"}
    assert host.view("get_available_tips_by_external_account", external_account="twitter/alice") == 30


def test_claim_with_link_but_empty_escrow(host, link):
    link("alice.near", "twitter/alice")
    with pytest.raises(NothingToClaim):
        host.call("claim_tokens", predecessor="alice.near")


def test_zero_tip_is_legal(host):
    out = _tip(host, "carol.near", "twitter/alice", "post-1", 0)
    assert out.result["amount"] == 0
    assert _totals(host, "twitter/alice", "post-1") == (0, 0, 0)
    assert host.balance("carol.near") == START_BALANCE


def test_queries_default_to_zero(host):
    assert _totals(host, "twitter/nobody", "nothing") == (0, 0, 0)
    assert host.view("get_total_tips_by_item_id", item_id="") == 0


@pytest.mark.parametrize(
    "method, kwargs",
    [
        ("get_total_tips_by_item_id", {"item_id": "x" * 600}),
        ("get_total_tips_by_item_id", {"item_id": 7}),
        ("get_total_tips_by_external_account", {"external_account": "tw/" + "y" * 600}),
        ("get_available_tips_by_external_account", {"external_account": "tw/" + "y" * 600}),
        ("get_available_tips_by_external_account", {"external_account": None}),
    ],
)
def test_queries_on_keys_that_cannot_exist_return_zero(host, method, kwargs):
    assert host.view(method, **kwargs) == 0


def test_tip_larger_than_balance_is_refused(host):
    with pytest.raises(InsufficientFunds):
        _tip(host, "carol.near", "twitter/alice", "post-1", START_BALANCE + 1)
    assert _totals(host, "twitter/alice", "post-1") == (0, 0, 0)
    assert host.balance("carol.near") == START_BALANCE


@pytest.mark.parametrize("external, item", [("alice", "post-1"), ("twitter/alice", ""), ("twitter/alice", "a b")])
def test_malformed_tip_arguments(host, external, item):
    with pytest.raises(InvalidArgument):
        _tip(host, "carol.near", external, item, 5)
    assert host.balance("carol.near") == START_BALANCE
    assert host.balance(CONTRACT) == 0


def test_overflow_is_detected_before_any_write(make_env):
    env = make_env("carol.near", deposit=1)
    env.storage.set_u128(P_TIPS_BY_ITEM + b"post-1", U128_MAX)
    ledger = TippingLedger(env, IdentityRegistry(env))

    with pytest.raises(AmountOverflow):
        ledger.send_tip("twitter/alice", "post-1")
    assert ledger.item_total("post-1") == U128_MAX
    assert ledger.account_total("twitter/alice") == 0
    assert ledger.available("twitter/alice") == 0
    assert len(env.events) == 0


def test_failed_live_transfer_keeps_books():
    host = Host(CONTRACT, receiver_filter=lambda account: account != "bob.near")
    host.call("initialize", predecessor=OWNER, owner=OWNER, oracle=ORACLE, min_stake=0)
    host.fund("carol.near", 100)
    host.call("request_verification", predecessor="bob.near", external_account="tw/bob", is_unlink=False, url="p")
    host.call("approve_request", predecessor=ORACLE, request_id=0)

    out = _tip(host, "carol.near", "tw/bob", "post-7", 60)
    assert [(t.receiver, t.ok) for t in out.transfers] == [("bob.near", False)]
    assert _totals(host, "tw/bob", "post-7") == (0, 60, 60)
    assert host.balance(CONTRACT) == 60
    assert host.balance("bob.near") == 0


def test_available_never_exceeds_total(host, link):
    rng = random.Random(7)
    externals = ["twitter/alice", "twitter/bob", "github/carol"]
    owners = {"twitter/alice": "alice.near", "twitter/bob": "bob.near"}
    host.fund("dave.near", 10**6)

    for step in range(60):
        ext = rng.choice(externals)
        _tip(host, "dave.near", ext, f"item-{step % 4}", rng.randint(0, 500))
        if step == 20:
            link("alice.near", "twitter/alice")
        if step == 40:
            link("bob.near", "twitter/bob")
        if step > 20 and rng.random() < 0.2:
            internal = owners[rng.choice(list(owners))]
            try:
                host.call("claim_tokens", predecessor=internal)
            except (NoLinkedAccount, NothingToClaim):
                pass

        for e in externals:
            available = host.view("get_available_tips_by_external_account", external_account=e)
            total = host.view("get_total_tips_by_external_account", external_account=e)
            assert available <= total
