from __future__ import annotations
"""
linktips - oracle-gated identity linking and tip escrow.

Links an external-platform identity (``twitter/alice``) to an account on a
value-transfer network (``alice.near``) once an oracle approves a staked
verification request, and keeps an escrow ledger so anyone can tip an external
identity before or after it is linked.

Public surface (lazily loaded):
- config, errors
- runtime   (storage, collections, context, events, treasury, host)
- contract  (access, identity, verification, tipping, admin, TipsContract)
- cli
"""


import importlib
from typing import List

from .version import __version__

__all__: List[str] = [
    "__version__",
    "config",
    "errors",
    "runtime",
    "contract",
    "cli",
]

_lazy_modules = set(__all__) - {"__version__"}


def __getattr__(name: str):
    if name in _lazy_modules:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(set(globals().keys()) | _lazy_modules)


def get_version() -> str:
    """Return the linktips package version string."""
    return __version__
