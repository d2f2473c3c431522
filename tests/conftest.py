from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Tuple

import pytest

from src.core.context import ExecutionContext
from src.core.registry import Registry
from src.core.router import Router
from src.state.balances import MAX_ALLOWANCE, TokenLedger


GENESIS = 1_000
FUNDING = 10**30


class PlainAsset:
    """Asset collaborator with only the transfer call shape: no journaling hooks."""

    def __init__(self) -> None:
        self.balances: Dict[str, int] = {}
        self.allowances: Dict[Tuple[str, str], int] = {}

    def balance_of(self, holder):
        return self.balances.get(holder, 0)

    def mint(self, to, amount):
        self.balances[to] = self.balance_of(to) + amount

    def approve(self, owner, spender, amount):
        self.allowances[(owner, spender)] = amount

    def transfer(self, sender, to, amount):
        if self.balance_of(sender) < amount:
            raise ValueError("insufficient balance")
        self.balances[sender] = self.balance_of(sender) - amount
        self.balances[to] = self.balance_of(to) + amount

    def transfer_from(self, spender, owner, to, amount):
        allowed = self.allowances.get((owner, spender), 0)
        if allowed < amount:
            raise ValueError("insufficient allowance")
        self.allowances[(owner, spender)] = allowed - amount
        self.transfer(owner, to, amount)


@dataclass
class Env:
    ctx: ExecutionContext
    registry: Registry
    router: Router
    tokens: Dict[str, TokenLedger]

    def token(self, address: str) -> TokenLedger:
        return self.tokens[address]

    def fund(self, holder: str, *assets: str, amount: int = FUNDING) -> None:
        """Mint `amount` of each asset to `holder` and approve the router without limit."""
        for asset in assets:
            self.tokens[asset].mint(holder, amount)
            self.tokens[asset].approve(holder, self.router.address, MAX_ALLOWANCE)


@pytest.fixture
def env() -> Env:
    ctx = ExecutionContext(timestamp=GENESIS)
    registry = Registry(ctx)
    router = Router(registry)
    tokens: Dict[str, TokenLedger] = {}
    for byte, symbol in (("11", "TKA"), ("22", "TKB"), ("33", "TKC"), ("44", "TKD")):
        address = "0x" + byte * 20
        tokens[address] = TokenLedger(name=symbol, symbol=symbol)
        ctx.add_asset(address, tokens[address])
    return Env(ctx=ctx, registry=registry, router=router, tokens=tokens)


@pytest.fixture
def plain_asset(env) -> Callable[[str], PlainAsset]:
    """Register a `PlainAsset` under the given identity."""

    def register(address: str) -> PlainAsset:
        token = PlainAsset()
        env.ctx.add_asset(address, token)
        return token

    return register
