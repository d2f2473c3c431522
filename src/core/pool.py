"""
Constant-product pool engine.

One `Pool` exists per unordered asset pair. It tracks two reserves, the pool clock
and two cumulative price accumulators; liquidity shares live in an external share
ledger. Reserves and accumulators change only through `mint`, `burn`, `swap`,
`skim` and `sync`.

Custody follows a two-step protocol: callers first move funds into the pool's
custody (assets for `mint`/`swap`, shares for `burn`), then call the pool, which
infers what it received by comparing live balances against tracked reserves.

Invariants after every successful mutator:
- reserve_a == balance_a and reserve_b == balance_b (except after `skim`, which
  only removes the excess and leaves reserves untouched),
- across a swap, the fee-adjusted product of balances >= product of old reserves.

All mutators run inside `ExecutionContext.atomic()`, so any failure (including one
raised after the optimistic transfer in `swap`) leaves no effect behind.

There is no reentrancy lock: no mutator hands control to a caller-supplied
callback. Adding flash swaps would require guarding all four mutators.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Tuple

from ..kernels.python import cpmm_swap_v1, lp_math_v1
from ..kernels.python.lp_math_v1 import MINIMUM_LIQUIDITY
from ..kernels.python.uq112x112 import (
    MAX_U112,
    price_cumulative_delta,
    to_u32,
    wrapping_add_u256,
    wrapping_sub_u32,
)
from ..state.balances import NULL_ADDRESS, Address, Amount, ShareToken
from ..state.journal import Journaled
from ..state.pools import PoolReserves
from .context import ExecutionContext, require_address
from .errors import (
    AmmError,
    ArithmeticOverflowError,
    InputValidationError,
    InsufficientInputAmountError,
    InsufficientLiquidityBurnedError,
    InsufficientLiquidityError,
    InsufficientLiquidityMintedError,
    InsufficientOutputAmountError,
    InvalidRecipientError,
    KInvariantError,
    ReserveMismatchError,
)
from .events import Deposit, Swap, Sync, Withdrawal


logger = logging.getLogger(__name__)


@contextmanager
def _checked(what: str) -> Iterator[None]:
    try:
        yield
    except AmmError:
        raise
    except OverflowError as exc:
        raise ArithmeticOverflowError(f"{what}: {exc}") from exc


def _require_amount(name: str, value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InputValidationError(f"{name} must be an int")
    if value < 0:
        raise InputValidationError(f"{name} must be non-negative: {value}")
    return value


class Pool(Journaled):
    """
    Reserve-holding, invariant-enforcing unit for one asset pair.

    Attributes:
        address: Pool identity (derived by the registry)
        registry: Address of the registry that created the pool
        asset_a: Lower asset identity (canonical order is enforced by the registry)
        asset_b: Higher asset identity
        shares: Share-ledger collaborator for this pool
        price_a_cumulative: Sum over time of price of asset_a in asset_b (UQ112x112, wraps at 2**256)
        price_b_cumulative: Sum over time of price of asset_b in asset_a (UQ112x112, wraps at 2**256)
    """

    def __init__(
        self,
        ctx: ExecutionContext,
        *,
        address: Address,
        registry: Address,
        asset_a: Address,
        asset_b: Address,
        shares: ShareToken,
    ) -> None:
        self.ctx = ctx
        self.address = require_address(address, name="address")
        self.registry = require_address(registry, name="registry")
        self.asset_a = require_address(asset_a, name="asset_a")
        self.asset_b = require_address(asset_b, name="asset_b")
        self.shares = shares
        self._reserve_a: Amount = 0
        self._reserve_b: Amount = 0
        self._last_update_time = 0
        self.price_a_cumulative = 0
        self.price_b_cumulative = 0

    # -- views ----------------------------------------------------------------

    def get_reserves(self) -> PoolReserves:
        return PoolReserves(
            reserve_a=self._reserve_a,
            reserve_b=self._reserve_b,
            last_update_time=self._last_update_time,
        )

    def _balances(self) -> Tuple[Amount, Amount]:
        return (
            self.ctx.asset(self.asset_a).balance_of(self.address),
            self.ctx.asset(self.asset_b).balance_of(self.address),
        )

    def _send(self, asset: Address, to: Address, amount: Amount) -> None:
        self.ctx.transfer(self.ctx.asset(asset), sender=self.address, to=to, amount=amount)

    # -- journaling -------------------------------------------------------------

    def _state(self) -> Tuple[int, int, int, int, int]:
        return (
            self._reserve_a,
            self._reserve_b,
            self._last_update_time,
            self.price_a_cumulative,
            self.price_b_cumulative,
        )

    def _set_state(self, state: Tuple[int, int, int, int, int]) -> None:
        (
            self._reserve_a,
            self._reserve_b,
            self._last_update_time,
            self.price_a_cumulative,
            self.price_b_cumulative,
        ) = state

    # -- internal update --------------------------------------------------------

    def _update(self, balance_a: Amount, balance_b: Amount, reserve_a: Amount, reserve_b: Amount) -> None:
        """Store new reserves and accumulate prices over the time since the last update."""
        if balance_a > MAX_U112 or balance_b > MAX_U112:
            raise ArithmeticOverflowError(f"balances exceed u112: ({balance_a}, {balance_b})")

        previous = self._state()
        self._record_undo(lambda: self._set_state(previous))

        now = to_u32(self.ctx.timestamp)
        elapsed = wrapping_sub_u32(now, self._last_update_time)
        if elapsed > 0 and reserve_a != 0 and reserve_b != 0:
            self.price_a_cumulative = wrapping_add_u256(
                self.price_a_cumulative, price_cumulative_delta(reserve_b, reserve_a, elapsed)
            )
            self.price_b_cumulative = wrapping_add_u256(
                self.price_b_cumulative, price_cumulative_delta(reserve_a, reserve_b, elapsed)
            )

        self._reserve_a = balance_a
        self._reserve_b = balance_b
        self._last_update_time = now
        self.ctx.emit(Sync(pool=self.address, reserve_a=balance_a, reserve_b=balance_b))
        logger.debug("pool %s sync reserves=(%d, %d) t=%d", self.address, balance_a, balance_b, now)

    def _received(self, balance: Amount, reserve: Amount, asset: Address) -> Amount:
        if balance < reserve:
            raise ReserveMismatchError(f"balance of {asset} ({balance}) below reserve ({reserve})")
        return balance - reserve

    def _require_paid(
        self, balance_a: Amount, balance_b: Amount, amount_a_out: Amount, amount_b_out: Amount
    ) -> Tuple[Amount, Amount]:
        """Inputs implied by post-output balances; raises unless the fee-adjusted k holds."""
        reserve_a, reserve_b = self._reserve_a, self._reserve_b
        floor_a = reserve_a - amount_a_out
        floor_b = reserve_b - amount_b_out
        amount_a_in = balance_a - floor_a if balance_a > floor_a else 0
        amount_b_in = balance_b - floor_b if balance_b > floor_b else 0
        if amount_a_in == 0 and amount_b_in == 0:
            raise InsufficientInputAmountError("no input received")

        check = cpmm_swap_v1.check_invariant(
            balance_a=balance_a,
            balance_b=balance_b,
            amount_a_in=amount_a_in,
            amount_b_in=amount_b_in,
            reserve_a=reserve_a,
            reserve_b=reserve_b,
        )
        if not check.holds:
            raise KInvariantError(check.k_adjusted, check.k_required)
        return amount_a_in, amount_b_in

    # -- mutators ---------------------------------------------------------------

    def mint(self, to: Address) -> Amount:
        """
        Credit shares for assets already transferred into the pool.

        First deposit: isqrt(a * b) - MINIMUM_LIQUIDITY to `to`, MINIMUM_LIQUIDITY
        locked at the null address. Later deposits: min of both proportional ratios.
        """
        recipient = require_address(to, name="to")
        with self.ctx.atomic(), _checked("mint"):
            reserve_a, reserve_b = self._reserve_a, self._reserve_b
            balance_a, balance_b = self._balances()
            amount_a = self._received(balance_a, reserve_a, self.asset_a)
            amount_b = self._received(balance_b, reserve_b, self.asset_b)

            total_supply = self.shares.total_supply()
            liquidity = lp_math_v1.mint_shares(
                amount_a=amount_a,
                amount_b=amount_b,
                reserve_a=reserve_a,
                reserve_b=reserve_b,
                total_supply=total_supply,
            )
            if liquidity <= 0:
                raise InsufficientLiquidityMintedError(
                    f"deposit ({amount_a}, {amount_b}) mints no shares"
                )

            if total_supply == 0:
                self.shares.mint(NULL_ADDRESS, MINIMUM_LIQUIDITY)
            self.shares.mint(recipient, liquidity)

            self._update(balance_a, balance_b, reserve_a, reserve_b)
            self.ctx.emit(Deposit(pool=self.address, to=recipient, amount_a=amount_a, amount_b=amount_b))
            logger.debug("pool %s deposit (%d, %d) -> %d shares to %s", self.address, amount_a, amount_b, liquidity, recipient)
            return liquidity

    def burn(self, to: Address) -> Tuple[Amount, Amount]:
        """
        Redeem every share held by the pool itself for a pro-rata slice of current balances.
        """
        recipient = require_address(to, name="to")
        with self.ctx.atomic(), _checked("burn"):
            reserve_a, reserve_b = self._reserve_a, self._reserve_b
            balance_a, balance_b = self._balances()
            liquidity = self.shares.balance_of(self.address)
            total_supply = self.shares.total_supply()

            out = lp_math_v1.burn_amounts(
                shares=liquidity,
                balance_a=balance_a,
                balance_b=balance_b,
                total_supply=total_supply,
            )
            if out.amount_a <= 0 or out.amount_b <= 0:
                raise InsufficientLiquidityBurnedError(
                    f"{liquidity} shares redeem ({out.amount_a}, {out.amount_b})"
                )

            self.shares.burn(self.address, liquidity)
            self._send(self.asset_a, recipient, out.amount_a)
            self._send(self.asset_b, recipient, out.amount_b)

            balance_a, balance_b = self._balances()
            self._update(balance_a, balance_b, reserve_a, reserve_b)
            self.ctx.emit(Withdrawal(pool=self.address, to=recipient, amount_a=out.amount_a, amount_b=out.amount_b))
            logger.debug("pool %s withdrawal %d shares -> (%d, %d) to %s", self.address, liquidity, out.amount_a, out.amount_b, recipient)
            return out.amount_a, out.amount_b

    def swap(self, amount_a_out: Amount, amount_b_out: Amount, to: Address) -> None:
        """
        Send the requested outputs, then require that the caller paid enough.

        The payment is inferred from post-transfer balances and accepted only if
        the fee-adjusted invariant holds. It is checked twice: against projected
        balances before any output leaves, then against live balances after the
        transfers. A failure at the second check rolls the transfers back.
        """
        amount_a_out = _require_amount("amount_a_out", amount_a_out)
        amount_b_out = _require_amount("amount_b_out", amount_b_out)
        if amount_a_out == 0 and amount_b_out == 0:
            raise InsufficientOutputAmountError("both requested outputs are zero")

        reserve_a, reserve_b = self._reserve_a, self._reserve_b
        if amount_a_out >= reserve_a or amount_b_out >= reserve_b:
            raise InsufficientLiquidityError(
                f"outputs ({amount_a_out}, {amount_b_out}) vs reserves ({reserve_a}, {reserve_b})"
            )

        recipient = require_address(to, name="to")
        if recipient in (self.asset_a, self.asset_b):
            raise InvalidRecipientError(f"recipient {recipient} is a traded asset")

        with self.ctx.atomic(), _checked("swap"):
            if recipient != self.address:
                # Balances as they will stand once the outputs leave; nothing is sent on failure.
                balance_a, balance_b = self._balances()
                self._require_paid(
                    max(balance_a - amount_a_out, 0), max(balance_b - amount_b_out, 0), amount_a_out, amount_b_out
                )

            if amount_a_out > 0:
                self._send(self.asset_a, recipient, amount_a_out)
            if amount_b_out > 0:
                self._send(self.asset_b, recipient, amount_b_out)
            balance_a, balance_b = self._balances()
            amount_a_in, amount_b_in = self._require_paid(balance_a, balance_b, amount_a_out, amount_b_out)

            self._update(balance_a, balance_b, reserve_a, reserve_b)
            self.ctx.emit(
                Swap(
                    pool=self.address,
                    amount_a_in=amount_a_in,
                    amount_b_in=amount_b_in,
                    amount_a_out=amount_a_out,
                    amount_b_out=amount_b_out,
                    to=recipient,
                )
            )
            logger.debug(
                "pool %s swap in=(%d, %d) out=(%d, %d) to %s",
                self.address, amount_a_in, amount_b_in, amount_a_out, amount_b_out, recipient,
            )

    def skim(self, to: Address) -> Tuple[Amount, Amount]:
        """Pay out any balance above the tracked reserves; reserves stay as they are."""
        recipient = require_address(to, name="to")
        with self.ctx.atomic(), _checked("skim"):
            balance_a, balance_b = self._balances()
            excess_a = max(balance_a - self._reserve_a, 0)
            excess_b = max(balance_b - self._reserve_b, 0)
            if excess_a > 0:
                self._send(self.asset_a, recipient, excess_a)
            if excess_b > 0:
                self._send(self.asset_b, recipient, excess_b)
            return excess_a, excess_b

    def sync(self) -> None:
        """Force reserves to match live balances."""
        with self.ctx.atomic(), _checked("sync"):
            balance_a, balance_b = self._balances()
            self._update(balance_a, balance_b, self._reserve_a, self._reserve_b)

    def __repr__(self) -> str:
        return (
            f"Pool(address={self.address[:10]}..., "
            f"assets=({self.asset_a[:10]}..., {self.asset_b[:10]}...), "
            f"reserves=({self._reserve_a}, {self._reserve_b}))"
        )
