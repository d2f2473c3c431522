"""
Fungible token ledgers with deterministic, sparse storage.

`TokenLedger` is the in-memory collaborator used both for traded assets and for
each pool's liquidity shares:
    balances:   holder -> amount
    allowances: (owner, spender) -> amount

The pool engine only relies on the collaborator protocols declared below, so any
object with the same call shape can stand in for a ledger. Every write is
journaled (see `src/state/journal.py`), so a failed savepoint undoes exactly the
entries it touched.
"""

from __future__ import annotations

from typing import Dict, Optional, Protocol, Tuple, TypeVar

from .canonical import canonical_hex_fixed_allow_0x
from .journal import Journaled


# Type aliases
Address = str  # 20-byte hex string (0x...)
Amount = int  # Non-negative integer (arbitrary precision, range-checked by the pool)

ADDRESS_NBYTES = 20

# Null identity: never a valid asset, and the holder of permanently locked shares.
NULL_ADDRESS: Address = "0x" + "00" * ADDRESS_NBYTES

MAX_ALLOWANCE = (1 << 256) - 1


def canonical_address(value: str, *, name: str = "address") -> Address:
    """Lowercase, 0x-prefixed 20-byte identity. Raises ValueError/TypeError."""
    return canonical_hex_fixed_allow_0x(value, nbytes=ADDRESS_NBYTES, name=name)


class AssetToken(Protocol):
    """Call shape of a traded asset."""

    def balance_of(self, holder: Address) -> Amount: ...

    def transfer(self, sender: Address, to: Address, amount: Amount) -> Optional[bool]: ...

    def transfer_from(
        self, spender: Address, owner: Address, to: Address, amount: Amount
    ) -> Optional[bool]: ...


class ShareToken(AssetToken, Protocol):
    """Call shape of a pool's liquidity-share ledger."""

    def total_supply(self) -> Amount: ...

    def mint(self, to: Address, amount: Amount) -> None: ...

    def burn(self, holder: Address, amount: Amount) -> None: ...


K = TypeVar("K")


def _put_entry(table: Dict[K, Amount], key: K, value: Optional[Amount]) -> None:
    if value is None:
        table.pop(key, None)
    else:
        table[key] = value


class TokenLedger(Journaled):
    """
    Deterministic fungible ledger.

    Note: balances live in a plain dict. Callers that hash or serialize must sort
    keys explicitly (see `src/integration/snapshot.py`).
    """

    def __init__(self, *, name: str = "", symbol: str = "", decimals: int = 18) -> None:
        if not isinstance(decimals, int) or isinstance(decimals, bool) or not (0 <= decimals <= 255):
            raise ValueError(f"decimals must be in [0, 255]: {decimals!r}")
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self._balances: Dict[Address, Amount] = {}
        self._allowances: Dict[Tuple[Address, Address], Amount] = {}
        self._total_supply: Amount = 0

    def total_supply(self) -> Amount:
        return self._total_supply

    def balance_of(self, holder: Address) -> Amount:
        """Balance of `holder`. Returns 0 if not found."""
        return self._balances.get(canonical_address(holder, name="holder"), 0)

    def allowance(self, owner: Address, spender: Address) -> Amount:
        key = (canonical_address(owner, name="owner"), canonical_address(spender, name="spender"))
        return self._allowances.get(key, 0)

    def _set_balance(self, holder: Address, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        old = self._balances.get(holder)
        self._record_undo(lambda: _put_entry(self._balances, holder, old))
        # Zero balances are removed to keep the table sparse
        _put_entry(self._balances, holder, amount or None)

    def _set_allowance(self, key: Tuple[Address, Address], amount: Amount) -> None:
        old = self._allowances.get(key)
        self._record_undo(lambda: _put_entry(self._allowances, key, old))
        _put_entry(self._allowances, key, amount or None)

    def _set_total_supply(self, amount: Amount) -> None:
        old = self._total_supply
        self._record_undo(lambda: setattr(self, "_total_supply", old))
        self._total_supply = amount

    def _move(self, sender: Address, to: Address, amount: Amount) -> None:
        _require_amount(amount)
        current = self._balances.get(sender, 0)
        if current < amount:
            raise ValueError(f"Insufficient balance: {current} < {amount}")
        self._set_balance(sender, current - amount)
        self._set_balance(to, self._balances.get(to, 0) + amount)

    def approve(self, owner: Address, spender: Address, amount: Amount) -> bool:
        _require_amount(amount)
        if amount > MAX_ALLOWANCE:
            raise ValueError(f"allowance exceeds u256: {amount}")
        key = (canonical_address(owner, name="owner"), canonical_address(spender, name="spender"))
        self._set_allowance(key, amount)
        return True

    def transfer(self, sender: Address, to: Address, amount: Amount) -> bool:
        self._move(canonical_address(sender, name="sender"), canonical_address(to, name="to"), amount)
        return True

    def transfer_from(self, spender: Address, owner: Address, to: Address, amount: Amount) -> bool:
        """
        Move `amount` from `owner` to `to` on behalf of `spender`.

        An allowance of MAX_ALLOWANCE is treated as unlimited and never decremented.
        """
        _require_amount(amount)
        key = (canonical_address(owner, name="owner"), canonical_address(spender, name="spender"))
        allowed = self._allowances.get(key, 0)
        if allowed != MAX_ALLOWANCE:
            if allowed < amount:
                raise ValueError(f"Insufficient allowance: {allowed} < {amount}")
            self._set_allowance(key, allowed - amount)
        self._move(key[0], canonical_address(to, name="to"), amount)
        return True

    def mint(self, to: Address, amount: Amount) -> None:
        _require_amount(amount)
        holder = canonical_address(to, name="to")
        self._set_total_supply(self._total_supply + amount)
        self._set_balance(holder, self._balances.get(holder, 0) + amount)

    def burn(self, holder: Address, amount: Amount) -> None:
        _require_amount(amount)
        key = canonical_address(holder, name="holder")
        current = self._balances.get(key, 0)
        if current < amount:
            raise ValueError(f"Insufficient balance to burn: {current} < {amount}")
        self._set_balance(key, current - amount)
        self._set_total_supply(self._total_supply - amount)

    def get_all_balances(self) -> Dict[Address, Amount]:
        return dict(self._balances)

    def __repr__(self) -> str:
        label = self.symbol or "TokenLedger"
        return f"TokenLedger({label}, {len(self._balances)} holders, supply={self._total_supply})"


def _require_amount(amount: Amount) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError("amount must be an int")
    if amount < 0:
        raise ValueError(f"amount must be non-negative: {amount}")
