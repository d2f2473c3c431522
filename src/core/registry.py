"""
Pool registry (factory).

Creates exactly one `Pool` per unordered asset pair and records it under both
orderings. Pool addresses come from `compute_pool_address`, a pure function of the
registry address and the canonical pair, so quoting code can find a pool's address
without asking the registry.

The registry is an ordinary object passed explicitly to whoever needs it; separate
instances are fully isolated universes.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple

from ..state.balances import NULL_ADDRESS, Address, ShareToken, TokenLedger
from ..state.journal import Journaled
from ..state.pools import compute_pool_address, sort_assets
from .context import ExecutionContext, require_address
from .errors import IdenticalAssetsError, PoolExistsError, ZeroAddressError
from .events import PoolCreated
from .pool import Pool


logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_ADDRESS: Address = "0x" + "5c" * 20

# Factories must return journaled ledgers; share balances roll back with the pool.
ShareLedgerFactory = Callable[[Address], ShareToken]


def default_share_ledger(pool_address: Address) -> ShareToken:
    return TokenLedger(name="Pool Share", symbol="PS-V1", decimals=18)


class Registry(Journaled):
    def __init__(
        self,
        ctx: ExecutionContext,
        *,
        address: Address = DEFAULT_REGISTRY_ADDRESS,
        share_ledger_factory: Optional[ShareLedgerFactory] = None,
    ) -> None:
        self.ctx = ctx
        self.address = require_address(address, name="registry address")
        self._share_ledger_factory = share_ledger_factory or default_share_ledger
        self._pools_by_pair: Dict[Tuple[Address, Address], Pool] = {}
        self._pools_by_address: Dict[Address, Pool] = {}
        self._all_pools: List[Address] = []
        ctx.track(self)

    def _forget(self, asset_a: Address, asset_b: Address, address: Address) -> None:
        self._pools_by_pair.pop((asset_a, asset_b), None)
        self._pools_by_pair.pop((asset_b, asset_a), None)
        self._pools_by_address.pop(address, None)
        self._all_pools.remove(address)

    # -- lookup ---------------------------------------------------------------

    def pool_address_for(self, asset_x: Address, asset_y: Address) -> Address:
        """Derived pool address for the pair, whether or not the pool exists."""
        x, y = _canonical_pair(asset_x, asset_y)
        return compute_pool_address(self.address, x, y)

    def get_pool(self, asset_x: Address, asset_y: Address) -> Optional[Pool]:
        x = require_address(asset_x, name="asset_x")
        y = require_address(asset_y, name="asset_y")
        return self._pools_by_pair.get((x, y))

    def pool_at(self, address: Address) -> Optional[Pool]:
        return self._pools_by_address.get(require_address(address, name="pool address"))

    @property
    def all_pools(self) -> Tuple[Address, ...]:
        return tuple(self._all_pools)

    @property
    def pool_count(self) -> int:
        return len(self._all_pools)

    def __len__(self) -> int:
        return len(self._all_pools)

    def __contains__(self, pair: object) -> bool:
        if not isinstance(pair, tuple) or len(pair) != 2:
            return False
        return self.get_pool(pair[0], pair[1]) is not None

    # -- creation ---------------------------------------------------------------

    def create_pool(self, asset_x: Address, asset_y: Address) -> Pool:
        """
        Create the pool for an unordered pair.

        Rejects identical assets, the null asset, and pairs that already have a pool
        (in either argument order).
        """
        asset_a, asset_b = _canonical_pair(asset_x, asset_y)
        if asset_a == NULL_ADDRESS:
            raise ZeroAddressError("the null asset cannot be pooled")
        if (asset_a, asset_b) in self._pools_by_pair:
            raise PoolExistsError(f"pool already exists for ({asset_a}, {asset_b})")

        with self.ctx.atomic():
            address = compute_pool_address(self.address, asset_a, asset_b)
            shares = self._share_ledger_factory(address)
            self.ctx.track(shares)  # type: ignore[arg-type]
            pool = Pool(
                self.ctx,
                address=address,
                registry=self.address,
                asset_a=asset_a,
                asset_b=asset_b,
                shares=shares,
            )
            self.ctx.track(pool)

            self._record_undo(lambda: self._forget(asset_a, asset_b, address))
            self._pools_by_pair[(asset_a, asset_b)] = pool
            self._pools_by_pair[(asset_b, asset_a)] = pool
            self._pools_by_address[address] = pool
            self._all_pools.append(address)

            self.ctx.emit(PoolCreated(asset_a=asset_a, asset_b=asset_b, pool=address, pool_count=len(self._all_pools)))
            logger.info("pool %s created for %s/%s (#%d)", address, asset_a, asset_b, len(self._all_pools))
            return pool


def _canonical_pair(asset_x: Address, asset_y: Address) -> Tuple[Address, Address]:
    x = require_address(asset_x, name="asset_x")
    y = require_address(asset_y, name="asset_y")
    if x == y:
        raise IdenticalAssetsError(f"identical assets: {x}")
    return sort_assets(x, y)
