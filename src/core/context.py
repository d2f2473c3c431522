"""
Execution context: the environment the engines run in.

The pool design assumes all-or-nothing call semantics, a block clock, and a way to
reach asset collaborators by identity. `ExecutionContext` supplies all three for a
single isolated universe:

- `timestamp`: block clock (pools store it modulo 2**32),
- `asset(address)`: resolves an asset identity to its collaborator,
- `events`: append-only event log,
- `atomic()`: savepoint backed by an undo journal. Tracked objects record an undo
  action before each write; on any exception inside the block those actions run
  newest-first, the event log is truncated and the exception propagates. A block
  that commits hands its journal to the enclosing savepoint. Savepoints nest.

Assets that cannot be journaled are still rolled back: every transfer made
through `transfer`/`transfer_from` records a compensating transfer of the amount
the recipient actually received. Side effects internal to such an asset (fees it
charged, allowance it consumed) are outside the pool's reach and are not undone.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol

from ..state.balances import Address, Amount, AssetToken, canonical_address
from ..state.journal import Undo, UndoSink
from .errors import InvalidAddressError, UnknownAssetError
from .events import Event, EventLog
from .transfers import safe_transfer, safe_transfer_from


logger = logging.getLogger(__name__)


class Trackable(Protocol):
    def bind_journal(self, sink: UndoSink) -> None: ...


def require_address(value: Any, *, name: str) -> Address:
    """Canonicalize an identity, raising the typed input-validation error."""
    try:
        return canonical_address(value, name=name)
    except (TypeError, ValueError) as exc:
        raise InvalidAddressError(f"{name}: {exc}") from exc


class ExecutionContext:
    def __init__(self, *, timestamp: int = 0) -> None:
        self._timestamp = _require_timestamp(timestamp)
        self._assets: Dict[Address, AssetToken] = {}
        self._tracked: Dict[int, Trackable] = {}
        self._frames: List[List[Undo]] = []
        self.events = EventLog()

    # -- clock ----------------------------------------------------------------

    @property
    def timestamp(self) -> int:
        return self._timestamp

    def set_timestamp(self, timestamp: int) -> None:
        self._timestamp = _require_timestamp(timestamp)

    def advance(self, seconds: int) -> int:
        if not isinstance(seconds, int) or isinstance(seconds, bool) or seconds < 0:
            raise ValueError(f"seconds must be a non-negative int: {seconds!r}")
        self._timestamp += seconds
        return self._timestamp

    # -- assets ---------------------------------------------------------------

    def add_asset(self, address: Address, token: AssetToken) -> AssetToken:
        """
        Register the collaborator for an asset identity.

        Tokens exposing `bind_journal` are tracked; any other token is rolled back
        through compensating transfers.
        """
        key = require_address(address, name="asset")
        if key in self._assets:
            raise ValueError(f"asset already registered: {key}")
        self._assets[key] = token
        if hasattr(token, "bind_journal"):
            self.track(token)  # type: ignore[arg-type]
        return token

    def asset(self, address: Address) -> AssetToken:
        key = require_address(address, name="asset")
        token = self._assets.get(key)
        if token is None:
            raise UnknownAssetError(f"no collaborator registered for asset {key}")
        return token

    def has_asset(self, address: Address) -> bool:
        return require_address(address, name="asset") in self._assets

    def is_tracked(self, obj: object) -> bool:
        return self._tracked.get(id(obj)) is obj

    def transfer(self, token: AssetToken, *, sender: Address, to: Address, amount: Amount) -> None:
        before = self._untracked_balance(token, to)
        safe_transfer(token, sender=sender, to=to, amount=amount)
        if before is not None:
            self._compensate(token, payer=to, payee=sender, received=token.balance_of(to) - before)

    def transfer_from(
        self, token: AssetToken, *, spender: Address, owner: Address, to: Address, amount: Amount
    ) -> None:
        before = self._untracked_balance(token, to)
        safe_transfer_from(token, spender=spender, owner=owner, to=to, amount=amount)
        if before is not None:
            self._compensate(token, payer=to, payee=owner, received=token.balance_of(to) - before)

    def _untracked_balance(self, token: AssetToken, holder: Address) -> Optional[Amount]:
        if not self._frames or self.is_tracked(token):
            return None
        return token.balance_of(holder)

    def _compensate(self, token: AssetToken, *, payer: Address, payee: Address, received: Amount) -> None:
        if received > 0 and payer != payee:
            self.record_undo(lambda: safe_transfer(token, sender=payer, to=payee, amount=received))

    # -- journal / events -------------------------------------------------------

    def track(self, obj: Trackable) -> None:
        """Bind a journaled object so its writes are undone by failed savepoints."""
        bind = getattr(obj, "bind_journal", None)
        if bind is None:
            raise TypeError(f"{type(obj).__name__} cannot be journaled")
        if self.is_tracked(obj):
            return
        bind(self.record_undo)
        self._tracked[id(obj)] = obj

    def record_undo(self, undo: Undo) -> None:
        if self._frames:
            self._frames[-1].append(undo)

    @property
    def depth(self) -> int:
        return len(self._frames)

    @property
    def pending_undo_count(self) -> int:
        """Undo actions held by the innermost open savepoint."""
        return len(self._frames[-1]) if self._frames else 0

    def emit(self, event: Event) -> None:
        self.events.append(event)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        journal: List[Undo] = []
        events_len = len(self.events)
        self._frames.append(journal)
        try:
            yield
        except BaseException as exc:
            self._frames.pop()
            for undo in reversed(journal):
                undo()
            self.events.truncate(events_len)
            logger.debug("rolled back %d writes at depth %d: %r", len(journal), len(self._frames) + 1, exc)
            raise
        self._frames.pop()
        if self._frames:
            self._frames[-1].extend(journal)


def _require_timestamp(value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"timestamp must be a non-negative int: {value!r}")
    return value
