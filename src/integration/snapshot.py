"""
Registry state snapshot encoding.

Goals:
- Deterministic JSON serialization for hashing / snapshot distribution.
- Explicit versioning.

Snapshots are read-only views; there is no decoder back into live pools.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict

from ..core.registry import Registry
from ..state.canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex


REGISTRY_SNAPSHOT_VERSION = 1


@dataclass(frozen=True)
class RegistrySnapshot:
    """
    Deterministic, versioned snapshot of a registry and its pools.

    The commitment is *not* included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_bytes(self) -> bytes:
        payload = domain_sep_bytes("registry_snapshot", version=self.version) + self.canonical_bytes()
        return hashlib.sha256(payload).digest()

    def commitment_hex(self) -> str:
        payload = domain_sep_bytes("registry_snapshot", version=self.version) + self.canonical_bytes()
        return sha256_hex(payload)


def snapshot_registry(registry: Registry, *, version: int = REGISTRY_SNAPSHOT_VERSION) -> RegistrySnapshot:
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")

    pools_entries = []
    for index, address in enumerate(registry.all_pools):
        pool = registry.pool_at(address)
        assert pool is not None
        reserve_a, reserve_b, last_update = pool.get_reserves()
        holders = []
        if hasattr(pool.shares, "get_all_balances"):
            holders = [
                {"holder": holder, "amount": int(amount)}
                for holder, amount in pool.shares.get_all_balances().items()
            ]
        holders.sort(key=lambda e: e["holder"])
        pools_entries.append(
            {
                "index": index,
                "pool": address,
                "asset_a": pool.asset_a,
                "asset_b": pool.asset_b,
                "reserve_a": int(reserve_a),
                "reserve_b": int(reserve_b),
                "last_update_time": int(last_update),
                # u256 accumulators as decimal strings for non-bignum JSON readers.
                "price_a_cumulative": str(pool.price_a_cumulative),
                "price_b_cumulative": str(pool.price_b_cumulative),
                "share_supply": int(pool.shares.total_supply()),
                "share_holders": holders,
            }
        )

    data: Dict[str, Any] = {
        "version": int(version),
        "registry": registry.address,
        "timestamp": int(registry.ctx.timestamp),
        "pools": pools_entries,
    }
    return RegistrySnapshot(version=version, data=data)
