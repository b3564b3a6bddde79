from __future__ import annotations

import pytest

from linktips.contract.access import AccessControl
from linktips.errors import AlreadyInitialized, InvalidArgument, NotInitialized, Unauthorized
from linktips.runtime.host import Host
from linktips.tests.conftest import CONTRACT, MIN_STAKE, ORACLE, OWNER


def test_getters_after_initialize(host):
    assert host.view("get_owner_account") == OWNER
    assert host.view("get_oracle_account") == ORACLE
    assert host.view("get_min_stake_amount") == MIN_STAKE


def test_initialize_only_once(host):
    with pytest.raises(AlreadyInitialized):
        host.call("initialize", predecessor="mallory.near", owner="mallory.near", oracle="mallory.near", min_stake=0)
    assert host.view("get_owner_account") == OWNER


def test_initialize_emits_event_and_validates():
    host = Host(CONTRACT)
    with pytest.raises(InvalidArgument):
        host.call("initialize", predecessor=OWNER, owner="", oracle=ORACLE, min_stake=0)
    with pytest.raises(InvalidArgument):
        host.call("initialize", predecessor=OWNER, owner=OWNER, oracle=ORACLE, min_stake=-1)
    assert host.view("get_owner_account") is None

    out = host.call("initialize", predecessor=OWNER, owner=OWNER, oracle=ORACLE, min_stake=3)
    assert [e.to_dict() for e in out.events] == [
        {"name": "Initialized", "args": {"owner": OWNER, "oracle": ORACLE, "min_stake": 3}}
    ]


def test_uninitialized_contract():
    host = Host(CONTRACT)
    host.fund("alice.near", 10)
    assert host.view("get_min_stake_amount") == 0
    assert host.view("get_oracle_account") is None
    with pytest.raises(NotInitialized):
        host.call("request_verification", predecessor="alice.near", deposit=5, external_account="twitter/alice", is_unlink=False, url="p")
    assert host.balance("alice.near") == 10
    with pytest.raises(Unauthorized):
        host.call("approve_request", predecessor="alice.near", request_id=0)


@pytest.mark.parametrize(
    "method, args",
    [
        ("change_owner_account", {"new_owner": "mallory.near"}),
        ("change_oracle_account", {"new_oracle": "mallory.near"}),
        ("change_min_stake", {"min_stake": 0}),
        ("unlink_all", {}),
    ],
)
def test_admin_methods_are_owner_only(host, method, args):
    for caller in ("mallory.near", ORACLE):
        with pytest.raises(Unauthorized) as ei:
            host.call(method, predecessor=caller, **args)
        assert ei.value.details["role"] == "owner"
    assert host.view("get_owner_account") == OWNER
    assert host.view("get_oracle_account") == ORACLE
    assert host.view("get_min_stake_amount") == MIN_STAKE


def test_change_owner_hands_over_control(host):
    out = host.call("change_owner_account", predecessor=OWNER, new_owner="new-owner.near")
    assert out.events[0].args == {"previous": OWNER, "new": "new-owner.near"}
    assert host.view("get_owner_account") == "new-owner.near"
    with pytest.raises(Unauthorized):
        host.call("change_min_stake", predecessor=OWNER, min_stake=1)
    host.call("change_min_stake", predecessor="new-owner.near", min_stake=1)
    assert host.view("get_min_stake_amount") == 1


def test_change_oracle_moves_review_rights(host):
    host.call(
        "request_verification",
        predecessor="alice.near",
        deposit=MIN_STAKE,
        external_account="twitter/alice",
        is_unlink=False,
        url="p",
    )
    host.call("change_oracle_account", predecessor=OWNER, new_oracle="oracle2.near")
    with pytest.raises(Unauthorized):
        host.call("approve_request", predecessor=ORACLE, request_id=0)
    host.call("approve_request", predecessor="oracle2.near", request_id=0)
    assert host.view("get_external_account", internal_account="alice.near") == "twitter/alice"


def test_min_stake_change_applies_to_next_request(host):
    host.call("change_min_stake", predecessor=OWNER, min_stake=0)
    out = host.call(
        "request_verification",
        predecessor="alice.near",
        external_account="twitter/alice",
        is_unlink=False,
        url="p",
    )
    assert out.result == 0


def test_unlink_all_leaves_requests_and_tips(host, link):
    link("alice.near", "twitter/alice")
    link("bob.near", "twitter/bob")
    host.call("send_tips", predecessor="carol.near", deposit=9, recipient_external_account="twitter/zed", item_id="i")

    out = host.call("unlink_all", predecessor=OWNER)
    assert out.result == 2
    assert out.events[0].name == "AllUnlinked"
    assert host.view("get_external_account", internal_account="alice.near") is None
    assert host.view("get_internal_account", external_account="twitter/bob") is None
    assert host.view("get_request_status", request_id=0) == 2
    assert host.view("get_request_status", request_id=1) == 2
    assert host.view("get_available_tips_by_external_account", external_account="twitter/zed") == 9


def test_guards_compare_against_predecessor(host, make_env):
    env = make_env("proxy.near", signer=OWNER, storage=host.storage)
    access = AccessControl(env)
    with pytest.raises(Unauthorized):
        access.require_owner(env.ctx)
    access.require_owner(make_env(OWNER, signer="someone.near", storage=host.storage).ctx)
    access.require_oracle(make_env(ORACLE, storage=host.storage).ctx)
