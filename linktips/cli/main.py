"""
linktips - command line for a locally hosted tips contract.

Every command loads the host snapshot from ``--state``, performs exactly one
host operation, saves the snapshot back (only if something changed) and
prints JSON on stdout. Contract errors print ``{"code", "message",
"details"}`` and exit with status 1.

Global options:
  --state PATH        Snapshot file (default: config host.state_path)
  --log-level LEVEL   DEBUG, INFO, WARNING, ERROR (default: config host.log_level)

Examples:
  linktips init --owner owner.near --oracle oracle.near --min-stake 10
  linktips fund alice.near 1000
  linktips request --caller alice.near --external twitter/alice \\
      --proof-url https://twitter.com/alice/status/1 --deposit 10
  linktips approve 0 --caller oracle.near
  linktips tip twitter/alice post-7 --caller bob.near --deposit 25
  linktips claim --caller alice.near
  linktips view get_request_status '{"request_id": 0}'
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional

import typer

from linktips.config import load_config
from linktips.errors import LinkTipsError
from linktips.runtime.host import Host

app = typer.Typer(
    name="linktips",
    help="Oracle-gated identity linking and tip escrow (local host).",
    no_args_is_help=True,
    add_completion=False,
)

log = logging.getLogger("linktips.cli")


class GlobalContext:
    def __init__(self) -> None:
        self.state_path: Optional[str] = None


_ctx = GlobalContext()


@app.callback()
def main_callback(
    state: Optional[str] = typer.Option(
        None,
        "--state",
        help="Path of the host snapshot file",
        envvar="LINKTIPS_STATE_PATH",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    ),
) -> None:
    """
    Drive a tips contract hosted in a local snapshot file.
    """
    cfg = load_config()
    _ctx.state_path = state or cfg.host.state_path
    level = (log_level or cfg.host.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# -------------------- helpers --------------------


def _echo(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, sort_keys=True))


def _open_host() -> Host:
    cfg = load_config()
    return Host.open(_ctx.state_path or cfg.host.state_path, contract_account=cfg.host.contract_account)


def _run(op: Callable[[Host], Any], *, save: bool = True) -> None:
    host = _open_host()
    try:
        out = op(host)
    except LinkTipsError as e:
        _echo({"error": e.to_dict()})
        raise typer.Exit(code=1)
    if save:
        host.save(_ctx.state_path)
    _echo(out.to_dict() if hasattr(out, "to_dict") else out)


def _call(method: str, caller: str, *, deposit: int = 0, signer: Optional[str] = None, **args: Any) -> None:
    _run(lambda h: h.call(method, predecessor=caller, signer=signer, deposit=deposit, **args))


# -------------------- administration --------------------


@app.command("init")
def init_cmd(
    owner: Optional[str] = typer.Option(None, "--owner", help="Owner account (default: config bootstrap.owner)"),
    oracle: Optional[str] = typer.Option(None, "--oracle", help="Oracle account (default: config bootstrap.oracle)"),
    min_stake: Optional[int] = typer.Option(None, "--min-stake", min=0, help="Minimum verification stake"),
    caller: Optional[str] = typer.Option(None, "--caller", help="Calling account (default: the owner)"),
) -> None:
    """Initialize the contract once."""
    boot = load_config().bootstrap
    owner = owner or boot.owner
    _call(
        "initialize",
        caller or owner,
        owner=owner,
        oracle=oracle or boot.oracle,
        min_stake=boot.min_stake if min_stake is None else min_stake,
    )


@app.command("set-owner")
def set_owner_cmd(
    new_owner: str = typer.Argument(..., help="New owner account"),
    caller: str = typer.Option(..., "--caller", help="Current owner"),
) -> None:
    """Hand ownership to another account (owner only)."""
    _call("change_owner_account", caller, new_owner=new_owner)


@app.command("set-oracle")
def set_oracle_cmd(
    new_oracle: str = typer.Argument(..., help="New oracle account"),
    caller: str = typer.Option(..., "--caller", help="Owner account"),
) -> None:
    """Replace the oracle (owner only)."""
    _call("change_oracle_account", caller, new_oracle=new_oracle)


@app.command("set-min-stake")
def set_min_stake_cmd(
    amount: int = typer.Argument(..., min=0, help="New minimum stake"),
    caller: str = typer.Option(..., "--caller", help="Owner account"),
) -> None:
    """Change the minimum verification stake (owner only)."""
    _call("change_min_stake", caller, min_stake=amount)


@app.command("unlink-all")
def unlink_all_cmd(caller: str = typer.Option(..., "--caller", help="Owner account")) -> None:
    """Remove every identity link (owner only)."""
    _call("unlink_all", caller)


# -------------------- simulated ledger --------------------


@app.command("fund")
def fund_cmd(
    account: str = typer.Argument(..., help="Account to credit"),
    amount: int = typer.Argument(..., min=0, help="Amount to credit"),
) -> None:
    """Credit an account on the simulated ledger (devnet faucet)."""
    _run(lambda h: {"account": account, "balance": h.fund(account, amount)})


@app.command("balance")
def balance_cmd(account: str = typer.Argument(..., help="Account to inspect")) -> None:
    """Show an account's balance on the simulated ledger."""
    _run(lambda h: {"account": account, "balance": h.balance(account)}, save=False)


# -------------------- verification --------------------


@app.command("request")
def request_cmd(
    caller: str = typer.Option(..., "--caller", help="Account asking to be linked/unlinked"),
    external: str = typer.Option(..., "--external", help="External account, e.g. twitter/alice"),
    proof_url: str = typer.Option(..., "--proof-url", help="Where the oracle can check the proof"),
    unlink: bool = typer.Option(False, "--unlink", help="Request an unlink instead of a link"),
    deposit: int = typer.Option(0, "--deposit", min=0, help="Stake attached to the request"),
    signer: Optional[str] = typer.Option(None, "--signer", help="Transaction signer (default: the caller)"),
) -> None:
    """Submit a link/unlink verification request."""
    _call(
        "request_verification",
        caller,
        deposit=deposit,
        signer=signer,
        external_account=external,
        is_unlink=unlink,
        url=proof_url,
    )


@app.command("approve")
def approve_cmd(
    request_id: int = typer.Argument(..., min=0, help="Request id"),
    caller: Optional[str] = typer.Option(None, "--caller", help="Oracle account (default: config bootstrap.oracle)"),
) -> None:
    """Approve a pending request (oracle only)."""
    _call("approve_request", caller or load_config().bootstrap.oracle, request_id=request_id)


@app.command("reject")
def reject_cmd(
    request_id: int = typer.Argument(..., min=0, help="Request id"),
    caller: Optional[str] = typer.Option(None, "--caller", help="Oracle account (default: config bootstrap.oracle)"),
) -> None:
    """Reject a pending request (oracle only)."""
    _call("reject_request", caller or load_config().bootstrap.oracle, request_id=request_id)


# -------------------- tipping --------------------


@app.command("tip")
def tip_cmd(
    external: str = typer.Argument(..., help="Recipient external account"),
    item_id: str = typer.Argument(..., help="Item being tipped"),
    caller: str = typer.Option(..., "--caller", help="Tipping account"),
    deposit: int = typer.Option(..., "--deposit", min=0, help="Tip amount"),
) -> None:
    """Tip an external account for an item."""
    _call("send_tips", caller, deposit=deposit, recipient_external_account=external, item_id=item_id)


@app.command("claim")
def claim_cmd(caller: str = typer.Option(..., "--caller", help="Linked account claiming its escrow")) -> None:
    """Withdraw escrowed tips to the linked account."""
    _call("claim_tokens", caller)


# -------------------- views --------------------


@app.command("view")
def view_cmd(
    method: str = typer.Argument(..., help="View method name, e.g. get_request_status"),
    args_json: str = typer.Argument("{}", help="JSON object of keyword arguments"),
) -> None:
    """Call a read-only contract method."""
    try:
        args: Dict[str, Any] = json.loads(args_json)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"invalid JSON: {e}", param_hint="ARGS_JSON")
    if not isinstance(args, dict):
        raise typer.BadParameter("arguments must be a JSON object", param_hint="ARGS_JSON")
    _run(lambda h: {"method": method, "result": h.view(method, **args)}, save=False)


def main() -> None:
    """Entry point for the linktips CLI."""
    app()


if __name__ == "__main__":
    main()
