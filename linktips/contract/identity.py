# -*- coding: utf-8 -*-
"""
linktips.contract.identity
==========================

Bijective **internal ⇄ external** account registry.

Two maps are kept as exact inverses of each other:

- ``external_by_internal``: ``alice.near``  → ``twitter/alice``
- ``internal_by_external``: ``twitter/alice`` → ``alice.near``

A link is present in both or in neither. Only the verification workflow (on
oracle approval) and the owner's unlink-all reset mutate the registry; both
callers run inside a single host call, so the two writes of a link or an
unlink land together or not at all.

Errors
------
- ``AlreadyLinked``: ``link`` when either account already appears in the registry
- ``NotLinked``:     ``unlink`` when the exact pair is not present on both sides
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from linktips.contract import inputs
from linktips.contract.layout import P_EXTERNAL_BY_INTERNAL, P_INTERNAL_BY_EXTERNAL
from linktips.errors import AlreadyLinked, NotLinked
from linktips.runtime.collections import STR, PersistentMap

if TYPE_CHECKING:  # pragma: no cover
    from linktips.runtime.host import Env

log = logging.getLogger(__name__)


class IdentityRegistry:
    def __init__(self, env: "Env") -> None:
        self._limits = env.limits
        self._ext_by_int = PersistentMap(env.storage, P_EXTERNAL_BY_INTERNAL, STR)
        self._int_by_ext = PersistentMap(env.storage, P_INTERNAL_BY_EXTERNAL, STR)

    # -------- Queries --------

    def lookup_external(self, internal: str) -> Optional[str]:
        if not inputs.fits(internal, self._limits.max_account_len):
            return None
        return self._ext_by_int.get(internal)

    def lookup_internal(self, external: str) -> Optional[str]:
        if not inputs.fits(external, self._limits.max_external_account_len):
            return None
        return self._int_by_ext.get(external)

    def is_linked(self, internal: str, external: str) -> bool:
        """True only if the pair is present in both directions."""
        return self.lookup_external(internal) == external and self.lookup_internal(external) == internal

    def is_free(self, internal: str, external: str) -> bool:
        """True if neither account appears on either side of the registry."""
        return not (
            self.lookup_external(internal) is not None
            or self.lookup_internal(internal) is not None
            or self.lookup_external(external) is not None
            or self.lookup_internal(external) is not None
        )

    def __len__(self) -> int:
        return len(self._ext_by_int)

    # -------- Mutations --------

    def link(self, internal: str, external: str) -> None:
        if not self.is_free(internal, external):
            raise AlreadyLinked(internal_account=internal, external_account=external)
        self._ext_by_int.set(internal, external)
        self._int_by_ext.set(external, internal)
        log.info("Accounts %s and %s are linked", internal, external)

    def unlink(self, internal: str, external: str) -> None:
        if not self.is_linked(internal, external):
            raise NotLinked(internal_account=internal, external_account=external)
        self._ext_by_int.delete(internal)
        self._int_by_ext.delete(external)
        log.info("Accounts %s and %s are unlinked", internal, external)

    def clear_all(self) -> int:
        """Empty both maps; returns the number of links removed."""
        removed = self._ext_by_int.clear()
        self._int_by_ext.clear()
        return removed


__all__ = ["IdentityRegistry"]
