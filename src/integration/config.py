"""
Deployment configuration.

Values are resolved in order: built-in defaults, then an optional YAML file, then
environment variables:

    AMM_REGISTRY_ADDRESS   registry identity (20-byte hex)
    AMM_ROUTER_ADDRESS     router identity (20-byte hex)
    AMM_GENESIS_TIMESTAMP  initial block clock (non-negative int)
    AMM_LOG_LEVEL          logging level name (DEBUG, INFO, ...)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from ..core.registry import DEFAULT_REGISTRY_ADDRESS
from ..core.router import DEFAULT_ROUTER_ADDRESS
from ..state.balances import canonical_address


_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class AmmConfig:
    registry_address: str = DEFAULT_REGISTRY_ADDRESS
    router_address: str = DEFAULT_ROUTER_ADDRESS
    share_name: str = "Pool Share"
    share_symbol: str = "PS-V1"
    share_decimals: int = 18
    genesis_timestamp: int = 0
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        object.__setattr__(self, "registry_address", canonical_address(self.registry_address, name="registry_address"))
        object.__setattr__(self, "router_address", canonical_address(self.router_address, name="router_address"))
        if self.registry_address == self.router_address:
            raise ValueError("registry_address and router_address must differ")
        for name in ("share_name", "share_symbol"):
            if not isinstance(getattr(self, name), str):
                raise TypeError(f"{name} must be a string")
        d = self.share_decimals
        if not isinstance(d, int) or isinstance(d, bool) or not (0 <= d <= 255):
            raise ValueError(f"share_decimals must be in [0, 255]: {d!r}")
        t = self.genesis_timestamp
        if not isinstance(t, int) or isinstance(t, bool) or t < 0:
            raise ValueError(f"genesis_timestamp must be a non-negative int: {t!r}")
        if not isinstance(self.log_level, str) or self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"unknown log_level: {self.log_level!r}")
        object.__setattr__(self, "log_level", self.log_level.upper())

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)


def config_from_mapping(obj: Mapping[str, Any], *, base: Optional[AmmConfig] = None) -> AmmConfig:
    if not isinstance(obj, Mapping):
        raise TypeError("config must be a mapping")
    known = {f.name for f in fields(AmmConfig)}
    unknown = sorted(set(obj) - known)
    if unknown:
        raise ValueError(f"unknown config keys: {unknown}")
    values = dict(obj)
    for name in ("registry_address", "router_address"):
        # YAML reads an unquoted 0x... literal as an integer.
        value = values.get(name)
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
            values[name] = f"0x{value:040x}"
    return replace(base or AmmConfig(), **values)


def _int_env(name: str, *, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip(), 10)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer: {raw!r}") from exc


def config_from_env(base: Optional[AmmConfig] = None) -> AmmConfig:
    cfg = base or AmmConfig()
    overrides: dict[str, Any] = {}
    registry = os.environ.get("AMM_REGISTRY_ADDRESS", "").strip()
    if registry:
        overrides["registry_address"] = registry
    router = os.environ.get("AMM_ROUTER_ADDRESS", "").strip()
    if router:
        overrides["router_address"] = router
    if os.environ.get("AMM_GENESIS_TIMESTAMP", "").strip():
        overrides["genesis_timestamp"] = _int_env("AMM_GENESIS_TIMESTAMP", default=cfg.genesis_timestamp)
    level = os.environ.get("AMM_LOG_LEVEL", "").strip()
    if level:
        overrides["log_level"] = level
    return replace(cfg, **overrides) if overrides else cfg


def load_config(path: Optional[Union[str, Path]] = None, *, use_env: bool = True) -> AmmConfig:
    cfg = AmmConfig()
    if path is not None:
        obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        if obj is None:
            obj = {}
        if not isinstance(obj, Mapping):
            raise TypeError("config YAML must be a mapping")
        cfg = config_from_mapping(obj, base=cfg)
    if use_env:
        cfg = config_from_env(cfg)
    return cfg
