"""
Pool identity and reserve snapshots.

A pool's address is a pure function of (registry address, canonical asset pair),
so any quoting code can locate a pool without consulting registry storage.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Tuple

from .balances import ADDRESS_NBYTES, Address, Amount, canonical_address
from .canonical import canonical_hex_to_bytes, domain_sep_bytes


POOL_ADDRESS_VERSION = 1

# Stands in for the hash of the pool creation template: every pool is built from the
# same template, so its identity depends only on the registry and the pair.
POOL_TEMPLATE_HASH = hashlib.sha256(b"pairswap.pool.template.v1").digest()


def sort_assets(asset_x: Address, asset_y: Address) -> Tuple[Address, Address]:
    """
    Canonical (lower, higher) ordering of two asset identities.

    Raises ValueError for identical assets; the null identity check is left to the
    caller so that errors keep their original precedence.
    """
    x = canonical_address(asset_x, name="asset_x")
    y = canonical_address(asset_y, name="asset_y")
    if x == y:
        raise ValueError(f"identical assets: {x}")
    return (x, y) if x < y else (y, x)


def compute_pool_address(registry_address: Address, asset_x: Address, asset_y: Address) -> Address:
    """
    Deterministically derive the pool address for an unordered pair:

        H(domain_sep("pool_address") || registry || asset_a || asset_b || POOL_TEMPLATE_HASH)[-20:]
    """
    registry = canonical_address(registry_address, name="registry_address")
    asset_a, asset_b = sort_assets(asset_x, asset_y)
    payload = (
        domain_sep_bytes("pool_address", version=POOL_ADDRESS_VERSION)
        + canonical_hex_to_bytes(registry)
        + canonical_hex_to_bytes(asset_a)
        + canonical_hex_to_bytes(asset_b)
        + POOL_TEMPLATE_HASH
    )
    return "0x" + hashlib.sha256(payload).digest()[-ADDRESS_NBYTES:].hex()


@dataclass(frozen=True)
class PoolReserves:
    """
    Tracked reserves of a pool, in the pool's canonical asset order.

    Attributes:
        reserve_a: Reserve of the lower asset
        reserve_b: Reserve of the higher asset
        last_update_time: Pool clock (u32) at the last reserve update
    """
    reserve_a: Amount
    reserve_b: Amount
    last_update_time: int

    def __iter__(self):
        return iter((self.reserve_a, self.reserve_b, self.last_update_time))

    def get_constant_product(self) -> int:
        """k = reserve_a * reserve_b."""
        return self.reserve_a * self.reserve_b
