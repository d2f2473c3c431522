from __future__ import annotations

import pytest

from src.state.pools import PoolReserves, compute_pool_address, sort_assets


REGISTRY = "0x" + "5c" * 20
TOKEN_A = "0x" + "11" * 20
TOKEN_B = "0x" + "22" * 20


def test_sort_assets_orders_by_canonical_identity() -> None:
    assert sort_assets(TOKEN_B, TOKEN_A) == (TOKEN_A, TOKEN_B)
    assert sort_assets(TOKEN_A.upper().replace("0X", "0x"), TOKEN_B) == (TOKEN_A, TOKEN_B)
    with pytest.raises(ValueError, match="identical"):
        sort_assets(TOKEN_A, TOKEN_A)


def test_pool_address_is_deterministic_and_order_independent() -> None:
    address = compute_pool_address(REGISTRY, TOKEN_A, TOKEN_B)
    assert address == compute_pool_address(REGISTRY, TOKEN_B, TOKEN_A)
    assert address.startswith("0x") and len(address) == 42
    assert address == address.lower()


def test_pool_address_depends_on_registry_and_pair() -> None:
    address = compute_pool_address(REGISTRY, TOKEN_A, TOKEN_B)
    other_registry = "0x" + "5d" * 20
    other_token = "0x" + "33" * 20
    assert compute_pool_address(other_registry, TOKEN_A, TOKEN_B) != address
    assert compute_pool_address(REGISTRY, TOKEN_A, other_token) != address


def test_pool_reserves_unpacks_and_reports_k() -> None:
    reserves = PoolReserves(reserve_a=3, reserve_b=5, last_update_time=7)
    reserve_a, reserve_b, ts = reserves
    assert (reserve_a, reserve_b, ts) == (3, 5, 7)
    assert reserves.get_constant_product() == 15
