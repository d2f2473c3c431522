# [TESTER] v1

from __future__ import annotations

import pytest

from src.kernels.python.cpmm_swap_v1 import (
    check_invariant,
    fee_adjusted_balance,
    get_amount_in,
    get_amount_out,
    quote,
)


def test_quote_preserves_reserve_ratio() -> None:
    assert quote(amount_a=100, reserve_a=1_000, reserve_b=2_000) == 200
    assert quote(amount_a=1, reserve_a=3, reserve_b=2) == 0


def test_get_amount_out_applies_fee_and_floors() -> None:
    # 1000 * 997 * 10000 / (10000 * 1000 + 1000 * 997) = 906.6...
    assert get_amount_out(amount_in=1_000, reserve_in=10_000, reserve_out=10_000) == 906


def test_get_amount_in_rounds_up() -> None:
    # 10000 * 906 * 1000 / ((10000 - 906) * 997) = 999.26... -> 999 + 1
    assert get_amount_in(amount_out=906, reserve_in=10_000, reserve_out=10_000) == 1_000


def test_get_amount_in_rejects_draining_the_reserve() -> None:
    with pytest.raises(ValueError, match="below reserve_out"):
        get_amount_in(amount_out=10_000, reserve_in=10_000, reserve_out=10_000)


@pytest.mark.parametrize("kwargs", [
    {"amount_in": 0, "reserve_in": 1, "reserve_out": 1},
    {"amount_in": 1, "reserve_in": 0, "reserve_out": 1},
    {"amount_in": 1, "reserve_in": 1, "reserve_out": 0},
])
def test_get_amount_out_requires_positive_inputs(kwargs) -> None:
    with pytest.raises(ValueError):
        get_amount_out(**kwargs)


def test_check_invariant_accepts_exact_quote_and_rejects_one_more() -> None:
    ok = check_invariant(
        balance_a=11_000, balance_b=10_000 - 906, amount_a_in=1_000, amount_b_in=0, reserve_a=10_000, reserve_b=10_000
    )
    assert ok.holds
    assert ok.balance_a_adjusted == 11_000 * 1000 - 1_000 * 3

    bad = check_invariant(
        balance_a=11_000, balance_b=10_000 - 907, amount_a_in=1_000, amount_b_in=0, reserve_a=10_000, reserve_b=10_000
    )
    assert not bad.holds
    assert bad.k_adjusted < bad.k_required == 10_000 * 10_000 * 1000**2


def test_fee_adjusted_balance_underflow_is_an_overflow_error() -> None:
    with pytest.raises(OverflowError):
        fee_adjusted_balance(balance=0, amount_in=1)

