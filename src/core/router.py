"""
Router: multi-step flows on top of the registry and pools.

The router is stateless. It turns the pool's two-step custody protocol
("transfer into the pool, then call it") into single calls with slippage and
deadline protection:

- add / remove liquidity with per-asset minimums,
- exact-in and exact-out swaps across a multi-asset path,
- exact-in swaps for assets that take a fee on transfer.

Quotes and execution are not isolated from other callers; the caller-supplied
bounds are the only protection against reserves moving in between. Each public
operation runs inside one atomic block.

Funds are pulled with `transfer_from(router, sender, pool, amount)`, so senders
approve the router's address on each asset (and on the pool's share ledger to
remove liquidity).
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from ..kernels.python import lp_math_v1
from ..state.balances import Address, Amount
from ..state.pools import sort_assets
from . import path_math
from .context import require_address
from .errors import (
    ArithmeticOverflowError,
    DeadlineExpiredError,
    ExcessiveInputAmountError,
    InputValidationError,
    InsufficientAAmountError,
    InsufficientAmountError,
    InsufficientBAmountError,
    InsufficientLiquidityError,
    OutputBelowMinimumError,
    PoolNotFoundError,
)
from .pool import Pool
from .registry import Registry


logger = logging.getLogger(__name__)

DEFAULT_ROUTER_ADDRESS: Address = "0x" + "7e" * 20


def _require_amount(name: str, value: object) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InputValidationError(f"{name} must be an int")
    if value < 0:
        raise InputValidationError(f"{name} must be non-negative: {value}")
    return value


class Router:
    def __init__(self, registry: Registry, *, address: Address = DEFAULT_ROUTER_ADDRESS) -> None:
        self.registry = registry
        self.ctx = registry.ctx
        self.address = require_address(address, name="router address")

    # -- helpers ----------------------------------------------------------------

    def _ensure(self, deadline: int) -> None:
        _require_amount("deadline", deadline)
        if self.ctx.timestamp > deadline:
            raise DeadlineExpiredError(deadline, self.ctx.timestamp)

    def _pull(self, asset: Address, *, sender: Address, to: Address, amount: Amount) -> None:
        self.ctx.transfer_from(self.ctx.asset(asset), spender=self.address, owner=sender, to=to, amount=amount)

    def _pool(self, asset_x: Address, asset_y: Address) -> Pool:
        return path_math.resolve_pool(self.registry, asset_x, asset_y)

    # -- liquidity ----------------------------------------------------------------

    def _add_liquidity(
        self,
        asset_a: Address,
        asset_b: Address,
        amount_a_desired: Amount,
        amount_b_desired: Amount,
        amount_a_min: Amount,
        amount_b_min: Amount,
    ) -> Tuple[Amount, Amount]:
        if self.registry.get_pool(asset_a, asset_b) is None:
            self.registry.create_pool(asset_a, asset_b)
        reserve_a, reserve_b = path_math.get_reserves(self.registry, asset_a, asset_b)
        try:
            deposit = lp_math_v1.optimal_deposit(
                reserve_a=reserve_a,
                reserve_b=reserve_b,
                amount_a_desired=amount_a_desired,
                amount_b_desired=amount_b_desired,
            )
        except OverflowError as exc:
            raise ArithmeticOverflowError(f"add_liquidity: {exc}") from exc
        except ValueError as exc:
            raise InsufficientLiquidityError(str(exc)) from exc
        if reserve_a == 0 and reserve_b == 0:
            return deposit.amount_a, deposit.amount_b
        if deposit.a_is_limiting and deposit.amount_b < amount_b_min:
            raise InsufficientBAmountError(f"{deposit.amount_b} < {amount_b_min}")
        if not deposit.a_is_limiting and deposit.amount_a < amount_a_min:
            raise InsufficientAAmountError(f"{deposit.amount_a} < {amount_a_min}")
        return deposit.amount_a, deposit.amount_b

    def add_liquidity(
        self,
        asset_a: Address,
        asset_b: Address,
        amount_a_desired: Amount,
        amount_b_desired: Amount,
        amount_a_min: Amount,
        amount_b_min: Amount,
        *,
        sender: Address,
        to: Address,
        deadline: int,
    ) -> Tuple[Amount, Amount, Amount]:
        """
        Deposit both assets at the pool's current ratio, creating the pool if needed.

        Returns (amount_a, amount_b, shares_minted) in the caller's asset order.
        """
        self._ensure(deadline)
        for name, v in (
            ("amount_a_desired", amount_a_desired),
            ("amount_b_desired", amount_b_desired),
            ("amount_a_min", amount_a_min),
            ("amount_b_min", amount_b_min),
        ):
            _require_amount(name, v)
        if amount_a_desired == 0 or amount_b_desired == 0:
            raise InsufficientAmountError("desired deposit amounts must be positive")
        sender = require_address(sender, name="sender")

        with self.ctx.atomic():
            amount_a, amount_b = self._add_liquidity(
                asset_a, asset_b, amount_a_desired, amount_b_desired, amount_a_min, amount_b_min
            )
            pool = self._pool(asset_a, asset_b)
            self._pull(asset_a, sender=sender, to=pool.address, amount=amount_a)
            self._pull(asset_b, sender=sender, to=pool.address, amount=amount_b)
            liquidity = pool.mint(to)
        logger.debug("router add_liquidity %s/%s (%d, %d) -> %d", asset_a, asset_b, amount_a, amount_b, liquidity)
        return amount_a, amount_b, liquidity

    def remove_liquidity(
        self,
        asset_a: Address,
        asset_b: Address,
        liquidity: Amount,
        amount_a_min: Amount,
        amount_b_min: Amount,
        *,
        sender: Address,
        to: Address,
        deadline: int,
    ) -> Tuple[Amount, Amount]:
        """Redeem `liquidity` shares; returns (amount_a, amount_b) in the caller's asset order."""
        self._ensure(deadline)
        _require_amount("liquidity", liquidity)
        _require_amount("amount_a_min", amount_a_min)
        _require_amount("amount_b_min", amount_b_min)
        sender = require_address(sender, name="sender")

        with self.ctx.atomic():
            pool = self.registry.get_pool(asset_a, asset_b)
            if pool is None:
                raise PoolNotFoundError(f"no pool for ({asset_a}, {asset_b})")
            self.ctx.transfer_from(pool.shares, spender=self.address, owner=sender, to=pool.address, amount=liquidity)
            amount_first, amount_second = pool.burn(to)

            if require_address(asset_a, name="asset_a") == pool.asset_a:
                amount_a, amount_b = amount_first, amount_second
            else:
                amount_a, amount_b = amount_second, amount_first
            if amount_a < amount_a_min:
                raise InsufficientAAmountError(f"{amount_a} < {amount_a_min}")
            if amount_b < amount_b_min:
                raise InsufficientBAmountError(f"{amount_b} < {amount_b_min}")
        logger.debug("router remove_liquidity %s/%s %d -> (%d, %d)", asset_a, asset_b, liquidity, amount_a, amount_b)
        return amount_a, amount_b

    # -- swaps ----------------------------------------------------------------------

    def _swap(self, amounts: Sequence[Amount], path: Sequence[Address], to: Address) -> None:
        """Execute precomputed hop outputs; each hop's input is already in its pool."""
        last = len(path) - 2
        for i, (asset_in, asset_out) in enumerate(zip(path, path[1:])):
            first, _ = sort_assets(asset_in, asset_out)
            amount_out = amounts[i + 1]
            if asset_in == first:
                amount_a_out, amount_b_out = 0, amount_out
            else:
                amount_a_out, amount_b_out = amount_out, 0
            recipient = path_math.pool_for(self.registry.address, asset_out, path[i + 2]) if i < last else to
            self._pool(asset_in, asset_out).swap(amount_a_out, amount_b_out, recipient)

    def swap_exact_tokens_for_tokens(
        self,
        amount_in: Amount,
        amount_out_min: Amount,
        path: Sequence[Address],
        *,
        sender: Address,
        to: Address,
        deadline: int,
    ) -> List[Amount]:
        """Sell exactly `amount_in` of path[0]; require at least `amount_out_min` of path[-1]."""
        self._ensure(deadline)
        _require_amount("amount_in", amount_in)
        _require_amount("amount_out_min", amount_out_min)
        sender = require_address(sender, name="sender")
        to = require_address(to, name="to")

        amounts = path_math.get_amounts_out(self.registry, amount_in, path)
        hops = [require_address(a, name="path") for a in path]
        if amounts[-1] < amount_out_min:
            raise OutputBelowMinimumError(f"{amounts[-1]} < {amount_out_min}")
        with self.ctx.atomic():
            self._pull(hops[0], sender=sender, to=path_math.pool_for(self.registry.address, hops[0], hops[1]), amount=amounts[0])
            self._swap(amounts, hops, to)
        logger.debug("router swap exact-in %s amounts=%s", "->".join(hops), amounts)
        return amounts

    def swap_tokens_for_exact_tokens(
        self,
        amount_out: Amount,
        amount_in_max: Amount,
        path: Sequence[Address],
        *,
        sender: Address,
        to: Address,
        deadline: int,
    ) -> List[Amount]:
        """Buy exactly `amount_out` of path[-1]; pay at most `amount_in_max` of path[0]."""
        self._ensure(deadline)
        _require_amount("amount_out", amount_out)
        _require_amount("amount_in_max", amount_in_max)
        sender = require_address(sender, name="sender")
        to = require_address(to, name="to")

        amounts = path_math.get_amounts_in(self.registry, amount_out, path)
        hops = [require_address(a, name="path") for a in path]
        if amounts[0] > amount_in_max:
            raise ExcessiveInputAmountError(f"{amounts[0]} > {amount_in_max}")
        with self.ctx.atomic():
            self._pull(hops[0], sender=sender, to=path_math.pool_for(self.registry.address, hops[0], hops[1]), amount=amounts[0])
            self._swap(amounts, hops, to)
        logger.debug("router swap exact-out %s amounts=%s", "->".join(hops), amounts)
        return amounts

    def swap_exact_tokens_for_tokens_supporting_fee_on_transfer_tokens(
        self,
        amount_in: Amount,
        amount_out_min: Amount,
        path: Sequence[Address],
        *,
        sender: Address,
        to: Address,
        deadline: int,
    ) -> Amount:
        """
        Exact-in swap for assets that skim a fee on transfer.

        Each hop's input is measured as the pool's balance above its reserve, and the
        minimum is checked against what `to` actually received. Returns that amount.
        """
        self._ensure(deadline)
        _require_amount("amount_in", amount_in)
        _require_amount("amount_out_min", amount_out_min)
        sender = require_address(sender, name="sender")
        to = require_address(to, name="to")
        hops = [require_address(a, name="path") for a in path_math.require_path(path)]

        with self.ctx.atomic():
            self._pull(hops[0], sender=sender, to=path_math.pool_for(self.registry.address, hops[0], hops[1]), amount=amount_in)
            out_asset = self.ctx.asset(hops[-1])
            balance_before = out_asset.balance_of(to)

            last = len(hops) - 2
            for i, (asset_in, asset_out) in enumerate(zip(hops, hops[1:])):
                pool = self._pool(asset_in, asset_out)
                reserve_a, reserve_b, _ = pool.get_reserves()
                if asset_in == pool.asset_a:
                    reserve_in, reserve_out = reserve_a, reserve_b
                else:
                    reserve_in, reserve_out = reserve_b, reserve_a
                amount_input = self.ctx.asset(asset_in).balance_of(pool.address) - reserve_in
                amount_output = path_math.get_amount_out(
                    amount_in=amount_input, reserve_in=reserve_in, reserve_out=reserve_out
                )
                if asset_in == pool.asset_a:
                    amount_a_out, amount_b_out = 0, amount_output
                else:
                    amount_a_out, amount_b_out = amount_output, 0
                recipient = path_math.pool_for(self.registry.address, asset_out, hops[i + 2]) if i < last else to
                pool.swap(amount_a_out, amount_b_out, recipient)

            received = out_asset.balance_of(to) - balance_before
            if received < amount_out_min:
                raise OutputBelowMinimumError(f"{received} < {amount_out_min}")
        logger.debug("router swap exact-in (fee-on-transfer) %s received=%d", "->".join(hops), received)
        return received

    # -- quoting passthroughs ---------------------------------------------------------

    def quote(self, amount_a: Amount, reserve_a: Amount, reserve_b: Amount) -> Amount:
        return path_math.quote(amount_a=amount_a, reserve_a=reserve_a, reserve_b=reserve_b)

    def get_amount_out(self, amount_in: Amount, reserve_in: Amount, reserve_out: Amount) -> Amount:
        return path_math.get_amount_out(amount_in=amount_in, reserve_in=reserve_in, reserve_out=reserve_out)

    def get_amount_in(self, amount_out: Amount, reserve_in: Amount, reserve_out: Amount) -> Amount:
        return path_math.get_amount_in(amount_out=amount_out, reserve_in=reserve_in, reserve_out=reserve_out)

    def get_amounts_out(self, amount_in: Amount, path: Sequence[Address]) -> List[Amount]:
        return path_math.get_amounts_out(self.registry, amount_in, path)

    def get_amounts_in(self, amount_out: Amount, path: Sequence[Address]) -> List[Amount]:
        return path_math.get_amounts_in(self.registry, amount_out, path)
