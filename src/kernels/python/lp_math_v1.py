"""
Liquidity share math kernel (v1 semantics).

Pure functions with explicit rounding rules:
- first deposit: floor(sqrt(amount_a * amount_b)) - MINIMUM_LIQUIDITY,
- later deposits: min of the two proportional computations (floor),
- withdrawals: pro-rata share of current balances (floor),
- deposit sizing: ratio-preserving amounts for a desired pair of deposits.

Share amounts that come out non-positive are reported as 0; the pool decides
whether that is an error.
"""

from __future__ import annotations

from dataclasses import dataclass

from .uq112x112 import checked_mul, isqrt, min_int


MINIMUM_LIQUIDITY = 1000


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _require_non_negative(name: str, value: int) -> None:
    _require_int(name, value)
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


@dataclass(frozen=True)
class BurnAmounts:
    amount_a: int
    amount_b: int


@dataclass(frozen=True)
class OptimalDeposit:
    amount_a: int
    amount_b: int
    # True when amount_b was derived from amount_a (amount_a used as desired).
    a_is_limiting: bool


def initial_shares(*, amount_a: int, amount_b: int) -> int:
    """Shares for the depositor on the first deposit, excluding the locked minimum."""
    _require_non_negative("amount_a", amount_a)
    _require_non_negative("amount_b", amount_b)
    root = isqrt(checked_mul(amount_a, amount_b))
    if root <= MINIMUM_LIQUIDITY:
        return 0
    return root - MINIMUM_LIQUIDITY


def proportional_shares(
    *,
    amount_a: int,
    amount_b: int,
    reserve_a: int,
    reserve_b: int,
    total_supply: int,
) -> int:
    """
    Shares for a deposit into a live pool.

    The smaller of the two ratios wins, so any excess of the non-limiting asset is
    donated to existing holders.
    """
    for name, v in (
        ("amount_a", amount_a),
        ("amount_b", amount_b),
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("total_supply", total_supply),
    ):
        _require_non_negative(name, v)
    if total_supply == 0:
        raise ValueError("total_supply must be positive for a proportional mint")
    if reserve_a == 0 or reserve_b == 0:
        raise ValueError("cannot mint proportionally against an empty reserve")

    shares_a = checked_mul(amount_a, total_supply) // reserve_a
    shares_b = checked_mul(amount_b, total_supply) // reserve_b
    return min_int(shares_a, shares_b)


def mint_shares(
    *,
    amount_a: int,
    amount_b: int,
    reserve_a: int,
    reserve_b: int,
    total_supply: int,
) -> int:
    """Initial or proportional shares, chosen by whether any shares exist yet."""
    _require_non_negative("total_supply", total_supply)
    if total_supply == 0:
        return initial_shares(amount_a=amount_a, amount_b=amount_b)
    return proportional_shares(
        amount_a=amount_a,
        amount_b=amount_b,
        reserve_a=reserve_a,
        reserve_b=reserve_b,
        total_supply=total_supply,
    )


def burn_amounts(*, shares: int, balance_a: int, balance_b: int, total_supply: int) -> BurnAmounts:
    """Pro-rata redemption against current balances (floor rounding)."""
    for name, v in (
        ("shares", shares),
        ("balance_a", balance_a),
        ("balance_b", balance_b),
        ("total_supply", total_supply),
    ):
        _require_non_negative(name, v)
    if total_supply == 0:
        return BurnAmounts(amount_a=0, amount_b=0)
    if shares > total_supply:
        raise ValueError(f"cannot burn more than total_supply: {shares} > {total_supply}")

    return BurnAmounts(
        amount_a=checked_mul(shares, balance_a) // total_supply,
        amount_b=checked_mul(shares, balance_b) // total_supply,
    )


def optimal_deposit(
    *,
    reserve_a: int,
    reserve_b: int,
    amount_a_desired: int,
    amount_b_desired: int,
) -> OptimalDeposit:
    """
    Ratio-preserving deposit amounts.

    Empty pools take the desired amounts as-is (the first deposit sets the price).
    Otherwise amount_b is quoted from amount_a; if that does not fit under
    amount_b_desired, amount_a is quoted from amount_b instead.
    """
    for name, v in (
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("amount_a_desired", amount_a_desired),
        ("amount_b_desired", amount_b_desired),
    ):
        _require_non_negative(name, v)

    if reserve_a == 0 and reserve_b == 0:
        return OptimalDeposit(amount_a=amount_a_desired, amount_b=amount_b_desired, a_is_limiting=True)
    if reserve_a == 0 or reserve_b == 0:
        raise ValueError("one-sided reserves cannot be quoted")

    amount_b_optimal = checked_mul(amount_a_desired, reserve_b) // reserve_a
    if amount_b_optimal <= amount_b_desired:
        return OptimalDeposit(amount_a=amount_a_desired, amount_b=amount_b_optimal, a_is_limiting=True)

    amount_a_optimal = checked_mul(amount_b_desired, reserve_a) // reserve_b
    if amount_a_optimal > amount_a_desired:
        raise ValueError(f"optimal amount_a exceeds amount_a_desired: {amount_a_optimal} > {amount_a_desired}")
    return OptimalDeposit(amount_a=amount_a_optimal, amount_b=amount_b_desired, a_is_limiting=False)
