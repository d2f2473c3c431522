# [TESTER] v1

from __future__ import annotations

import pytest

from src.core.errors import (
    DeadlineExpiredError,
    ExcessiveInputAmountError,
    InputValidationError,
    InsufficientAAmountError,
    InsufficientAmountError,
    InsufficientBAmountError,
    InsufficientLiquidityMintedError,
    InvalidPathError,
    KInvariantError,
    OutputBelowMinimumError,
    PoolNotFoundError,
    TransferFailedError,
)
from src.state.balances import MAX_ALLOWANCE, TokenLedger


ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
TOKEN_A = "0x" + "11" * 20
TOKEN_B = "0x" + "22" * 20
TOKEN_C = "0x" + "33" * 20
TOKEN_D = "0x" + "44" * 20
FEE_TOKEN = "0x" + "66" * 20
PLAIN = "0x" + "0a" * 20


class FeeOnTransfer(TokenLedger):
    """Burns 1% of every transfer from the recipient's credit."""

    def _move(self, sender, to, amount):
        super()._move(sender, to, amount)
        fee = amount // 100
        if fee:
            self.burn(to, fee)


@pytest.fixture
def deadline(env) -> int:
    return env.ctx.timestamp + 60


@pytest.fixture
def funded(env):
    env.fund(ALICE, TOKEN_A, TOKEN_B, TOKEN_C)
    return env


def _add(env, x, y, amount_x, amount_y, deadline, **kwargs):
    return env.router.add_liquidity(x, y, amount_x, amount_y, 0, 0, sender=ALICE, to=ALICE, deadline=deadline, **kwargs)


def test_add_liquidity_creates_pool_and_mints(funded, deadline) -> None:
    amount_a, amount_b, liquidity = _add(funded, TOKEN_A, TOKEN_B, 10_000, 20_000, deadline)

    pool = funded.registry.get_pool(TOKEN_A, TOKEN_B)
    assert (amount_a, amount_b) == (10_000, 20_000)
    assert liquidity == 14_142 - 1_000
    assert pool.shares.balance_of(ALICE) == liquidity
    assert funded.token(TOKEN_A).balance_of(pool.address) == 10_000


def test_add_liquidity_uses_optimal_ratio(funded, deadline) -> None:
    _add(funded, TOKEN_A, TOKEN_B, 10_000, 20_000, deadline)

    amount_a, amount_b, liquidity = _add(funded, TOKEN_A, TOKEN_B, 1_000, 5_000, deadline)
    assert (amount_a, amount_b, liquidity) == (1_000, 2_000, 1_414)

    amount_b, amount_a, _ = _add(funded, TOKEN_B, TOKEN_A, 2_000, 5_000, deadline)
    assert (amount_b, amount_a) == (2_000, 1_000)


def test_add_liquidity_enforces_minimums(funded, deadline) -> None:
    _add(funded, TOKEN_A, TOKEN_B, 10_000, 20_000, deadline)
    router = funded.router
    with pytest.raises(InsufficientBAmountError):
        router.add_liquidity(TOKEN_A, TOKEN_B, 1_000, 5_000, 0, 2_500, sender=ALICE, to=ALICE, deadline=deadline)
    with pytest.raises(InsufficientAAmountError):
        router.add_liquidity(TOKEN_A, TOKEN_B, 5_000, 1_000, 600, 0, sender=ALICE, to=ALICE, deadline=deadline)


def test_zero_deposit_fails_before_any_transfer(funded, deadline) -> None:
    before = funded.token(TOKEN_A).balance_of(ALICE)
    with pytest.raises(InsufficientAmountError):
        _add(funded, TOKEN_A, TOKEN_B, 0, 20_000, deadline)
    assert funded.token(TOKEN_A).balance_of(ALICE) == before
    assert funded.registry.pool_count == 0


def test_expired_deadline_is_rejected(funded) -> None:
    now = funded.ctx.timestamp
    with pytest.raises(DeadlineExpiredError) as exc_info:
        _add(funded, TOKEN_A, TOKEN_B, 10_000, 20_000, now - 1)
    assert (exc_info.value.deadline, exc_info.value.now) == (now - 1, now)
    _add(funded, TOKEN_A, TOKEN_B, 10_000, 20_000, now)


def test_add_liquidity_without_allowance_rolls_back_pool_creation(env, deadline) -> None:
    env.token(TOKEN_A).mint(ALICE, 10_000)
    env.token(TOKEN_B).mint(ALICE, 20_000)
    env.token(TOKEN_A).approve(ALICE, env.router.address, MAX_ALLOWANCE)

    with pytest.raises(TransferFailedError):
        _add(env, TOKEN_A, TOKEN_B, 10_000, 20_000, deadline)
    assert env.registry.pool_count == 0
    assert env.token(TOKEN_A).balance_of(ALICE) == 10_000


def test_failed_mint_returns_plain_asset_pulled_by_router(env, plain_asset, deadline) -> None:
    plain = plain_asset(PLAIN)
    plain.mint(ALICE, 1_000)
    plain.approve(ALICE, env.router.address, 1_000)
    env.fund(ALICE, TOKEN_B)

    # sqrt(1_000 * 1_000) leaves nothing above the locked minimum.
    with pytest.raises(InsufficientLiquidityMintedError):
        _add(env, PLAIN, TOKEN_B, 1_000, 1_000, deadline)
    assert plain.balance_of(ALICE) == 1_000
    assert plain.balance_of(env.registry.pool_address_for(PLAIN, TOKEN_B)) == 0
    assert env.registry.pool_count == 0


@pytest.mark.parametrize(
    "call",
    [
        lambda r, d: r.swap_exact_tokens_for_tokens("1000", 1, [TOKEN_A, TOKEN_B], sender=ALICE, to=BOB, deadline=d),
        lambda r, d: r.swap_tokens_for_exact_tokens(1.5, 10, [TOKEN_A, TOKEN_B], sender=ALICE, to=BOB, deadline=d),
        lambda r, d: r.swap_exact_tokens_for_tokens(1_000, 1, [TOKEN_A, TOKEN_B], sender=ALICE, to=BOB, deadline="soon"),
        lambda r, d: r.add_liquidity(TOKEN_A, TOKEN_B, 1, 1, 0, 0, sender=ALICE, to=ALICE, deadline=None),
    ],
)
def test_malformed_amounts_and_deadlines_are_input_errors(funded, deadline, call) -> None:
    with pytest.raises(InputValidationError):
        call(funded.router, deadline)


def test_remove_liquidity_returns_caller_order(funded, deadline) -> None:
    _, _, liquidity = _add(funded, TOKEN_A, TOKEN_B, 10_000, 20_000, deadline)
    pool = funded.registry.get_pool(TOKEN_A, TOKEN_B)
    pool.shares.approve(ALICE, funded.router.address, liquidity)

    amount_b, amount_a = funded.router.remove_liquidity(
        TOKEN_B, TOKEN_A, liquidity, 0, 0, sender=ALICE, to=BOB, deadline=deadline
    )
    assert amount_a == liquidity * 10_000 // 14_142
    assert amount_b == liquidity * 20_000 // 14_142
    assert funded.token(TOKEN_B).balance_of(BOB) == amount_b
    assert pool.shares.balance_of(ALICE) == 0


def test_remove_liquidity_minimum_failure_rolls_back(funded, deadline) -> None:
    _, _, liquidity = _add(funded, TOKEN_A, TOKEN_B, 10_000, 20_000, deadline)
    pool = funded.registry.get_pool(TOKEN_A, TOKEN_B)
    pool.shares.approve(ALICE, funded.router.address, liquidity)

    with pytest.raises(InsufficientAAmountError):
        funded.router.remove_liquidity(
            TOKEN_A, TOKEN_B, liquidity, 10_000, 0, sender=ALICE, to=ALICE, deadline=deadline
        )
    assert pool.shares.balance_of(ALICE) == liquidity
    assert pool.shares.allowance(ALICE, funded.router.address) == liquidity
    assert tuple(pool.get_reserves())[:2] == (10_000, 20_000)


def test_remove_liquidity_unknown_pool(funded, deadline) -> None:
    with pytest.raises(PoolNotFoundError):
        funded.router.remove_liquidity(TOKEN_A, TOKEN_D, 1, 0, 0, sender=ALICE, to=ALICE, deadline=deadline)


@pytest.fixture
def two_hops(funded, deadline):
    _add(funded, TOKEN_A, TOKEN_B, 10_000, 20_000, deadline)
    _add(funded, TOKEN_B, TOKEN_C, 30_000, 10_000, deadline)
    return funded


def test_swap_exact_tokens_for_tokens_multi_hop(two_hops, deadline) -> None:
    path = [TOKEN_A, TOKEN_B, TOKEN_C]
    quoted = two_hops.router.get_amounts_out(1_000, path)
    before = two_hops.token(TOKEN_A).balance_of(ALICE)

    amounts = two_hops.router.swap_exact_tokens_for_tokens(1_000, 1, path, sender=ALICE, to=BOB, deadline=deadline)

    assert amounts == quoted
    assert two_hops.token(TOKEN_C).balance_of(BOB) == amounts[-1]
    assert two_hops.token(TOKEN_A).balance_of(ALICE) == before - 1_000
    assert two_hops.token(TOKEN_B).balance_of(BOB) == 0
    ab = two_hops.registry.get_pool(TOKEN_A, TOKEN_B)
    bc = two_hops.registry.get_pool(TOKEN_B, TOKEN_C)
    assert tuple(ab.get_reserves())[:2] == (11_000, 20_000 - amounts[1])
    assert tuple(bc.get_reserves())[:2] == (30_000 + amounts[1], 10_000 - amounts[2])


def test_swap_exact_in_below_minimum_changes_nothing(two_hops, deadline) -> None:
    path = [TOKEN_A, TOKEN_B, TOKEN_C]
    quoted = two_hops.router.get_amounts_out(1_000, path)
    with pytest.raises(OutputBelowMinimumError):
        two_hops.router.swap_exact_tokens_for_tokens(
            1_000, quoted[-1] + 1, path, sender=ALICE, to=BOB, deadline=deadline
        )
    assert two_hops.router.get_amounts_out(1_000, path) == quoted


def test_swap_tokens_for_exact_tokens_multi_hop(two_hops, deadline) -> None:
    path = [TOKEN_A, TOKEN_B, TOKEN_C]
    quoted = two_hops.router.get_amounts_in(500, path)
    before = two_hops.token(TOKEN_A).balance_of(ALICE)

    amounts = two_hops.router.swap_tokens_for_exact_tokens(
        500, quoted[0], path, sender=ALICE, to=BOB, deadline=deadline
    )

    assert amounts == quoted
    assert two_hops.token(TOKEN_C).balance_of(BOB) == 500
    assert two_hops.token(TOKEN_A).balance_of(ALICE) == before - amounts[0]


def test_swap_exact_out_above_maximum_is_rejected(two_hops, deadline) -> None:
    path = [TOKEN_A, TOKEN_B, TOKEN_C]
    quoted = two_hops.router.get_amounts_in(500, path)
    with pytest.raises(ExcessiveInputAmountError):
        two_hops.router.swap_tokens_for_exact_tokens(
            500, quoted[0] - 1, path, sender=ALICE, to=BOB, deadline=deadline
        )
    assert two_hops.token(TOKEN_C).balance_of(BOB) == 0


def test_swap_rejects_short_path(two_hops, deadline) -> None:
    with pytest.raises(InvalidPathError):
        two_hops.router.swap_exact_tokens_for_tokens(1_000, 0, [TOKEN_A], sender=ALICE, to=BOB, deadline=deadline)


def test_reverse_direction_single_hop(two_hops, deadline) -> None:
    amounts = two_hops.router.swap_exact_tokens_for_tokens(
        2_000, 1, [TOKEN_B, TOKEN_A], sender=ALICE, to=BOB, deadline=deadline
    )
    assert amounts[1] == two_hops.router.get_amount_out(2_000, 20_000, 10_000)
    assert two_hops.token(TOKEN_A).balance_of(BOB) == amounts[1]


@pytest.fixture
def fee_pool(funded):
    token = FeeOnTransfer(symbol="FOT")
    funded.ctx.add_asset(FEE_TOKEN, token)
    token.mint(ALICE, 10**9)
    token.approve(ALICE, funded.router.address, MAX_ALLOWANCE)

    pool = funded.registry.create_pool(TOKEN_B, FEE_TOKEN)
    funded.token(TOKEN_B).transfer(ALICE, pool.address, 10_000)
    token.mint(pool.address, 10_000)
    pool.mint(ALICE)
    return funded, token


def test_fee_on_transfer_input_breaks_plain_exact_in(fee_pool, deadline) -> None:
    env, token = fee_pool
    before = token.balance_of(ALICE)
    with pytest.raises(KInvariantError):
        env.router.swap_exact_tokens_for_tokens(1_000, 1, [FEE_TOKEN, TOKEN_B], sender=ALICE, to=BOB, deadline=deadline)
    assert token.balance_of(ALICE) == before


def test_fee_on_transfer_input_supported(fee_pool, deadline) -> None:
    env, _ = fee_pool
    received = env.router.swap_exact_tokens_for_tokens_supporting_fee_on_transfer_tokens(
        1_000, 1, [FEE_TOKEN, TOKEN_B], sender=ALICE, to=BOB, deadline=deadline
    )
    # Only 990 reaches the pool.
    assert received == env.router.get_amount_out(990, 10_000, 10_000) == 898
    assert env.token(TOKEN_B).balance_of(BOB) == received


def test_fee_on_transfer_output_minimum_checks_received_amount(fee_pool, deadline) -> None:
    env, token = fee_pool
    quoted = env.router.get_amount_out(1_000, 10_000, 10_000)
    with pytest.raises(OutputBelowMinimumError):
        env.router.swap_exact_tokens_for_tokens_supporting_fee_on_transfer_tokens(
            1_000, quoted, [TOKEN_B, FEE_TOKEN], sender=ALICE, to=BOB, deadline=deadline
        )

    received = env.router.swap_exact_tokens_for_tokens_supporting_fee_on_transfer_tokens(
        1_000, quoted - quoted // 100, [TOKEN_B, FEE_TOKEN], sender=ALICE, to=BOB, deadline=deadline
    )
    assert received == quoted - quoted // 100
    assert token.balance_of(BOB) == received


def test_quote_passthroughs(env) -> None:
    assert env.router.quote(100, 1_000, 2_000) == 200
    assert env.router.get_amount_out(1_000, 10_000, 10_000) == 906
    assert env.router.get_amount_in(906, 10_000, 10_000) == 1_000
