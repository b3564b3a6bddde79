from __future__ import annotations

import os
from typing import Callable, Optional

import pytest

from linktips.config import reload_config
from linktips.runtime.context import CallContext
from linktips.runtime.host import Env, Host
from linktips.runtime.storage import JournaledStorage, MemoryBackend

CONTRACT = "tips.near"
OWNER = "owner.near"
ORACLE = "oracle.near"
MIN_STAKE = 10
START_BALANCE = 1_000


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Run every test against default config, ignoring the caller's environment."""
    for key in list(os.environ):
        if key.startswith("LINKTIPS_"):
            monkeypatch.delenv(key)
    reload_config()
    yield
    monkeypatch.undo()
    reload_config()


@pytest.fixture
def host() -> Host:
    """An initialized host with three funded users."""
    h = Host(CONTRACT)
    h.call("initialize", predecessor=OWNER, owner=OWNER, oracle=ORACLE, min_stake=MIN_STAKE)
    for account in ("alice.near", "bob.near", "carol.near"):
        h.fund(account, START_BALANCE)
    return h


@pytest.fixture
def link(host: Host) -> Callable[[str, str], int]:
    """Link two accounts through the real request/approve workflow."""

    def _link(internal: str, external: str) -> int:
        out = host.call(
            "request_verification",
            predecessor=internal,
            deposit=MIN_STAKE,
            external_account=external,
            is_unlink=False,
            url=f"https://proofs.example/{external}",
        )
        host.call("approve_request", predecessor=ORACLE, request_id=out.result)
        return out.result

    return _link


@pytest.fixture
def make_env() -> Callable[..., Env]:
    """Build a bare call environment for exercising one component directly."""

    def _make(
        predecessor: str = "alice.near",
        *,
        signer: Optional[str] = None,
        deposit: int = 0,
        storage: Optional[JournaledStorage] = None,
    ) -> Env:
        ctx = CallContext(
            predecessor=predecessor,
            signer=signer or predecessor,
            attached_deposit=deposit,
            contract_account=CONTRACT,
        )
        return Env(storage=storage if storage is not None else JournaledStorage(MemoryBackend()), ctx=ctx)

    return _make
