from __future__ import annotations
"""
linktips.config - configuration for the identity-link & tipping contract host.

Covers:
- Input limits enforced by the contract (account ids, proof URLs, item ids)
- Storage caps enforced by the runtime (key/value byte lengths)
- Host settings (contract account id, CLI snapshot path, log level)
- Bootstrap defaults used by `linktips init` (owner, oracle, minimum stake)

Environment overrides (all optional; sensible defaults provided):

  # Limits
  LINKTIPS_MAX_ACCOUNT_LEN=64
  LINKTIPS_MAX_EXTERNAL_ACCOUNT_LEN=256
  LINKTIPS_MAX_PROOF_URL_LEN=2048
  LINKTIPS_MAX_ITEM_ID_LEN=256
  LINKTIPS_MAX_KEY_BYTES=512
  LINKTIPS_MAX_VALUE_BYTES=65536

  # Host
  LINKTIPS_CONTRACT_ACCOUNT=tips.linktips
  LINKTIPS_STATE_PATH=./linktips-state.cbor
  LINKTIPS_LOG_LEVEL=INFO

  # Bootstrap
  LINKTIPS_OWNER=owner.linktips
  LINKTIPS_ORACLE=oracle.linktips
  LINKTIPS_MIN_STAKE=0

You can also load from a JSON or YAML file via
`LINKTIPS_CONFIG_FILE=/path/to/config.(json|yaml|yml)`.
File values override defaults; environment overrides the file.
"""


from dataclasses import asdict, dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional
import json
import os

import yaml

U128_MAX = (1 << 128) - 1
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# -------------------------- Data classes --------------------------


@dataclass
class Limits:
    """Length caps for contract inputs and raw storage entries."""
    max_account_len: int = 64              # network account ids are at most 64 bytes
    max_external_account_len: int = 256
    max_proof_url_len: int = 2_048
    max_item_id_len: int = 256
    max_key_bytes: int = 512
    max_value_bytes: int = 64 * 1024

    def validate(self) -> None:
        for name, v in asdict(self).items():
            if v <= 0:
                raise ValueError(f"{name} must be positive (got {v}).")
        if self.max_key_bytes < self.max_external_account_len + 32:
            raise ValueError("max_key_bytes must leave room for a namespaced external account key.")


@dataclass
class HostConfig:
    """Settings of the local host that executes contract calls."""
    contract_account: str = "tips.linktips"
    state_path: str = "linktips-state.cbor"
    log_level: str = "INFO"

    def validate(self) -> None:
        if not self.contract_account:
            raise ValueError("contract_account must be non-empty.")
        if not self.state_path:
            raise ValueError("state_path must be non-empty.")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS} (got {self.log_level!r}).")


@dataclass
class BootstrapConfig:
    """Defaults for one-time contract initialization."""
    owner: str = "owner.linktips"
    oracle: str = "oracle.linktips"
    min_stake: int = 0

    def validate(self) -> None:
        if not self.owner or not self.oracle:
            raise ValueError("owner and oracle must be non-empty.")
        if not (0 <= self.min_stake <= U128_MAX):
            raise ValueError(f"min_stake must fit in u128 (got {self.min_stake}).")


@dataclass
class LinkTipsConfig:
    """Top-level configuration container."""
    limits: Limits = field(default_factory=Limits)
    host: HostConfig = field(default_factory=HostConfig)
    bootstrap: BootstrapConfig = field(default_factory=BootstrapConfig)

    def validate(self) -> None:
        self.limits.validate()
        self.host.validate()
        self.bootstrap.validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# -------------------------- Loaders --------------------------


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(str(v).replace("_", ""))
    except ValueError as e:
        raise ValueError(f"Invalid int for {name}: {v!r}") from e


def _getenv_str(name: str, default: str) -> str:
    v = os.getenv(name)
    return default if v is None or v == "" else v


def from_env(base: Optional[LinkTipsConfig] = None, prefix: str = "LINKTIPS_") -> LinkTipsConfig:
    """
    Build a LinkTipsConfig from environment variables, optionally layering on top of `base`.
    """
    cfg = base or LinkTipsConfig()

    new_cfg = LinkTipsConfig(
        limits=Limits(
            max_account_len=_getenv_int(f"{prefix}MAX_ACCOUNT_LEN", cfg.limits.max_account_len),
            max_external_account_len=_getenv_int(
                f"{prefix}MAX_EXTERNAL_ACCOUNT_LEN", cfg.limits.max_external_account_len
            ),
            max_proof_url_len=_getenv_int(f"{prefix}MAX_PROOF_URL_LEN", cfg.limits.max_proof_url_len),
            max_item_id_len=_getenv_int(f"{prefix}MAX_ITEM_ID_LEN", cfg.limits.max_item_id_len),
            max_key_bytes=_getenv_int(f"{prefix}MAX_KEY_BYTES", cfg.limits.max_key_bytes),
            max_value_bytes=_getenv_int(f"{prefix}MAX_VALUE_BYTES", cfg.limits.max_value_bytes),
        ),
        host=HostConfig(
            contract_account=_getenv_str(f"{prefix}CONTRACT_ACCOUNT", cfg.host.contract_account),
            state_path=_getenv_str(f"{prefix}STATE_PATH", cfg.host.state_path),
            log_level=_getenv_str(f"{prefix}LOG_LEVEL", cfg.host.log_level).upper(),
        ),
        bootstrap=BootstrapConfig(
            owner=_getenv_str(f"{prefix}OWNER", cfg.bootstrap.owner),
            oracle=_getenv_str(f"{prefix}ORACLE", cfg.bootstrap.oracle),
            min_stake=_getenv_int(f"{prefix}MIN_STAKE", cfg.bootstrap.min_stake),
        ),
    )
    new_cfg.validate()
    return new_cfg


def from_file(path: str | os.PathLike[str]) -> LinkTipsConfig:
    """
    Load configuration from a JSON or YAML file. Unknown keys are ignored.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")
    if not isinstance(data, dict):
        raise ValueError(f"config file {p} must contain a mapping at the top level")

    def section(cls, key: str):
        raw = data.get(key) or {}
        known = {k: v for k, v in raw.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    cfg = LinkTipsConfig(
        limits=section(Limits, "limits"),
        host=section(HostConfig, "host"),
        bootstrap=section(BootstrapConfig, "bootstrap"),
    )
    cfg.validate()
    return cfg


def load() -> LinkTipsConfig:
    """
    Load configuration using the following precedence:
      1) File at $LINKTIPS_CONFIG_FILE (JSON/YAML)
      2) Environment variables (LINKTIPS_*), applied on top of defaults or file values
    """
    file_path = os.getenv("LINKTIPS_CONFIG_FILE")
    base = from_file(file_path) if file_path else LinkTipsConfig()
    return from_env(base=base)


@lru_cache(maxsize=1)
def load_config() -> LinkTipsConfig:
    """Cached accessor used by the runtime; see `reload_config()`."""
    return load()


def reload_config() -> LinkTipsConfig:
    load_config.cache_clear()
    return load_config()


# -------------------------- Utilities --------------------------


def pretty(cfg: Optional[LinkTipsConfig] = None) -> str:
    """Return a human-readable JSON string of the current config."""
    obj = (cfg or load_config()).to_dict()
    return json.dumps(obj, indent=2, sort_keys=True)


__all__ = [
    "U128_MAX",
    "Limits",
    "HostConfig",
    "BootstrapConfig",
    "LinkTipsConfig",
    "from_env",
    "from_file",
    "load",
    "load_config",
    "reload_config",
    "pretty",
]
