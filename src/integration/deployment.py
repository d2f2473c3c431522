"""
Wire a context, registry and router together from an `AmmConfig`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..core.context import ExecutionContext
from ..core.registry import Registry
from ..core.router import Router
from ..state.balances import Address, AssetToken, ShareToken, TokenLedger
from .config import AmmConfig


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Deployment:
    ctx: ExecutionContext
    registry: Registry
    router: Router

    def add_asset(self, address: Address, token: Optional[AssetToken] = None, *, symbol: str = "") -> AssetToken:
        """Register an asset collaborator; a fresh `TokenLedger` when none is given."""
        if token is None:
            token = TokenLedger(name=symbol, symbol=symbol)
        return self.ctx.add_asset(address, token)


def deploy(config: Optional[AmmConfig] = None) -> Deployment:
    cfg = config or AmmConfig()

    def share_ledger(pool_address: Address) -> ShareToken:
        return TokenLedger(name=cfg.share_name, symbol=cfg.share_symbol, decimals=cfg.share_decimals)

    ctx = ExecutionContext(timestamp=cfg.genesis_timestamp)
    registry = Registry(ctx, address=cfg.registry_address, share_ledger_factory=share_ledger)
    router = Router(registry, address=cfg.router_address)
    logger.info("deployed registry %s router %s at t=%d", registry.address, router.address, ctx.timestamp)
    return Deployment(ctx=ctx, registry=registry, router=router)
