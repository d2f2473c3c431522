"""
CPMM swap kernel (v1 semantics, fixed 0.3% fee).

- Fee is taken from the input side: only 997/1000 of `amount_in` prices the trade.
- Exact-in output is floored; exact-out input is floored and then bumped by one so
  the pool is never underpaid by truncation.
- The fee-adjusted invariant check is the acceptance rule for `Pool.swap`:
      (balance_a * 1000 - amount_a_in * 3) * (balance_b * 1000 - amount_b_in * 3)
          >= reserve_a * reserve_b * 1000**2

All arithmetic is integer-only and checked against u256.
"""

from __future__ import annotations

from dataclasses import dataclass

from .uq112x112 import checked_add, checked_mul, checked_sub


FEE_DENOM = 1000
FEE_NUMER = 3
FEE_KEEP = FEE_DENOM - FEE_NUMER  # 997


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _require_positive(name: str, value: int) -> None:
    _require_int(name, value)
    if value <= 0:
        raise ValueError(f"{name} must be positive: {value}")


@dataclass(frozen=True)
class InvariantCheck:
    balance_a_adjusted: int
    balance_b_adjusted: int
    k_adjusted: int
    k_required: int

    @property
    def holds(self) -> bool:
        return self.k_adjusted >= self.k_required


def quote(*, amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """Equivalent amount of the other asset at the current reserve ratio (floor)."""
    _require_positive("amount_a", amount_a)
    _require_positive("reserve_a", reserve_a)
    _require_positive("reserve_b", reserve_b)
    return checked_mul(amount_a, reserve_b) // reserve_a


def get_amount_out(*, amount_in: int, reserve_in: int, reserve_out: int) -> int:
    """
    Maximum output for an exact input:
        amount_out = reserve_out * amount_in * 997 / (reserve_in * 1000 + amount_in * 997)
    """
    _require_positive("amount_in", amount_in)
    _require_positive("reserve_in", reserve_in)
    _require_positive("reserve_out", reserve_out)

    amount_in_with_fee = checked_mul(amount_in, FEE_KEEP)
    numerator = checked_mul(amount_in_with_fee, reserve_out)
    denominator = checked_add(checked_mul(reserve_in, FEE_DENOM), amount_in_with_fee)
    return numerator // denominator


def get_amount_in(*, amount_out: int, reserve_in: int, reserve_out: int) -> int:
    """
    Minimum input for an exact output:
        amount_in = reserve_in * amount_out * 1000 / ((reserve_out - amount_out) * 997) + 1
    """
    _require_positive("amount_out", amount_out)
    _require_positive("reserve_in", reserve_in)
    _require_positive("reserve_out", reserve_out)
    if amount_out >= reserve_out:
        raise ValueError(f"amount_out ({amount_out}) must be below reserve_out ({reserve_out})")

    numerator = checked_mul(checked_mul(reserve_in, amount_out), FEE_DENOM)
    denominator = checked_mul(checked_sub(reserve_out, amount_out), FEE_KEEP)
    return checked_add(numerator // denominator, 1)


def fee_adjusted_balance(*, balance: int, amount_in: int) -> int:
    _require_int("balance", balance)
    _require_int("amount_in", amount_in)
    if balance < 0 or amount_in < 0:
        raise ValueError("balance and amount_in must be non-negative")
    return checked_sub(checked_mul(balance, FEE_DENOM), checked_mul(amount_in, FEE_NUMER))


def check_invariant(
    *,
    balance_a: int,
    balance_b: int,
    amount_a_in: int,
    amount_b_in: int,
    reserve_a: int,
    reserve_b: int,
) -> InvariantCheck:
    """Evaluate the fee-adjusted constant-product rule for post-transfer balances."""
    adjusted_a = fee_adjusted_balance(balance=balance_a, amount_in=amount_a_in)
    adjusted_b = fee_adjusted_balance(balance=balance_b, amount_in=amount_b_in)
    return InvariantCheck(
        balance_a_adjusted=adjusted_a,
        balance_b_adjusted=adjusted_b,
        k_adjusted=checked_mul(adjusted_a, adjusted_b),
        k_required=checked_mul(checked_mul(reserve_a, reserve_b), FEE_DENOM * FEE_DENOM),
    )
