"""
Pricing and quoting across one or more pools.

Single-hop math delegates to the `cpmm_swap_v1` kernel after typed validation.
Multi-hop variants walk a path of assets; each hop's pool is located through the
deterministic address derivation and its live reserves are read at call time.

Algorithm Design:
- Type: Fixed-Point Integer Arithmetic / Deterministic Rounding
- Time Complexity: O(len(path))
- Rounding: exact-in outputs floor, exact-out inputs floor + 1 (pool never underpaid)
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from ..kernels.python import cpmm_swap_v1
from ..state.balances import Address, Amount
from ..state.pools import compute_pool_address, sort_assets
from .context import require_address
from .errors import (
    IdenticalAssetsError,
    InputValidationError,
    InsufficientAmountError,
    InsufficientInputAmountError,
    InsufficientLiquidityError,
    InsufficientOutputAmountError,
    InvalidPathError,
    PoolNotFoundError,
)
from .pool import Pool
from .registry import Registry


def _require_int(name: str, value: object) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InputValidationError(f"{name} must be an int")
    return value


def sort_pair(asset_x: Address, asset_y: Address) -> Tuple[Address, Address]:
    x = require_address(asset_x, name="asset_x")
    y = require_address(asset_y, name="asset_y")
    if x == y:
        raise IdenticalAssetsError(f"identical assets: {x}")
    return sort_assets(x, y)


def pool_for(registry_address: Address, asset_x: Address, asset_y: Address) -> Address:
    """Pool address for a pair, computed without any lookup."""
    sort_pair(asset_x, asset_y)
    return compute_pool_address(require_address(registry_address, name="registry_address"), asset_x, asset_y)


def resolve_pool(registry: Registry, asset_x: Address, asset_y: Address) -> Pool:
    address = pool_for(registry.address, asset_x, asset_y)
    pool = registry.pool_at(address)
    if pool is None:
        raise PoolNotFoundError(f"no pool at {address} for ({asset_x}, {asset_y})")
    return pool


def get_reserves(registry: Registry, asset_x: Address, asset_y: Address) -> Tuple[Amount, Amount]:
    """Reserves of the pair's pool, reported in the caller's (x, y) order."""
    pool = resolve_pool(registry, asset_x, asset_y)
    reserve_a, reserve_b, _ = pool.get_reserves()
    if require_address(asset_x, name="asset_x") == pool.asset_a:
        return reserve_a, reserve_b
    return reserve_b, reserve_a


def quote(*, amount_a: Amount, reserve_a: Amount, reserve_b: Amount) -> Amount:
    """Equivalent amount of the other asset at the current reserve ratio."""
    if _require_int("amount_a", amount_a) <= 0:
        raise InsufficientAmountError(f"amount_a must be positive: {amount_a}")
    if _require_int("reserve_a", reserve_a) <= 0 or _require_int("reserve_b", reserve_b) <= 0:
        raise InsufficientLiquidityError(f"empty reserves: ({reserve_a}, {reserve_b})")
    return cpmm_swap_v1.quote(amount_a=amount_a, reserve_a=reserve_a, reserve_b=reserve_b)


def get_amount_out(*, amount_in: Amount, reserve_in: Amount, reserve_out: Amount) -> Amount:
    if _require_int("amount_in", amount_in) <= 0:
        raise InsufficientInputAmountError(f"amount_in must be positive: {amount_in}")
    if _require_int("reserve_in", reserve_in) <= 0 or _require_int("reserve_out", reserve_out) <= 0:
        raise InsufficientLiquidityError(f"empty reserves: ({reserve_in}, {reserve_out})")
    return cpmm_swap_v1.get_amount_out(amount_in=amount_in, reserve_in=reserve_in, reserve_out=reserve_out)


def get_amount_in(*, amount_out: Amount, reserve_in: Amount, reserve_out: Amount) -> Amount:
    if _require_int("amount_out", amount_out) <= 0:
        raise InsufficientOutputAmountError(f"amount_out must be positive: {amount_out}")
    if _require_int("reserve_in", reserve_in) <= 0 or _require_int("reserve_out", reserve_out) <= 0:
        raise InsufficientLiquidityError(f"empty reserves: ({reserve_in}, {reserve_out})")
    if amount_out >= reserve_out:
        raise InsufficientLiquidityError(f"amount_out ({amount_out}) >= reserve_out ({reserve_out})")
    return cpmm_swap_v1.get_amount_in(amount_out=amount_out, reserve_in=reserve_in, reserve_out=reserve_out)


def require_path(path: Sequence[Address]) -> List[Address]:
    if isinstance(path, (str, bytes)) or len(path) < 2:
        raise InvalidPathError(f"path needs at least two assets: {path!r}")
    return [require_address(asset, name=f"path[{i}]") for i, asset in enumerate(path)]


def get_amounts_out(registry: Registry, amount_in: Amount, path: Sequence[Address]) -> List[Amount]:
    """Forward propagation: amounts[0] = amount_in, amounts[i+1] = hop i's output."""
    hops = require_path(path)
    amounts = [amount_in]
    for asset_in, asset_out in zip(hops, hops[1:]):
        reserve_in, reserve_out = get_reserves(registry, asset_in, asset_out)
        amounts.append(get_amount_out(amount_in=amounts[-1], reserve_in=reserve_in, reserve_out=reserve_out))
    return amounts


def get_amounts_in(registry: Registry, amount_out: Amount, path: Sequence[Address]) -> List[Amount]:
    """Backward propagation: amounts[-1] = amount_out, amounts[i] = input hop i requires."""
    hops = require_path(path)
    amounts = [amount_out]
    for asset_in, asset_out in reversed(list(zip(hops, hops[1:]))):
        reserve_in, reserve_out = get_reserves(registry, asset_in, asset_out)
        amounts.append(get_amount_in(amount_out=amounts[-1], reserve_in=reserve_in, reserve_out=reserve_out))
    amounts.reverse()
    return amounts
