"""
Observable events emitted by the registry and pools.

Events are records, never inputs: nothing in the engines reads them back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Type, TypeVar, Union

from ..state.balances import Address, Amount


@dataclass(frozen=True)
class PoolCreated:
    asset_a: Address
    asset_b: Address
    pool: Address
    pool_count: int


@dataclass(frozen=True)
class Sync:
    pool: Address
    reserve_a: Amount
    reserve_b: Amount


@dataclass(frozen=True)
class Deposit:
    pool: Address
    to: Address
    amount_a: Amount
    amount_b: Amount


@dataclass(frozen=True)
class Withdrawal:
    pool: Address
    to: Address
    amount_a: Amount
    amount_b: Amount


@dataclass(frozen=True)
class Swap:
    pool: Address
    amount_a_in: Amount
    amount_b_in: Amount
    amount_a_out: Amount
    amount_b_out: Amount
    to: Address


Event = Union[PoolCreated, Sync, Deposit, Withdrawal, Swap]
E = TypeVar("E")


class EventLog:
    """Append-only event log; truncation is reserved for transaction rollback."""

    def __init__(self) -> None:
        self._events: List[Event] = []

    def append(self, event: Event) -> None:
        self._events.append(event)

    def of_type(self, kind: Type[E]) -> List[E]:
        return [e for e in self._events if isinstance(e, kind)]

    def truncate(self, length: int) -> None:
        del self._events[length:]

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._events))

    def __getitem__(self, index: int) -> Event:
        return self._events[index]
