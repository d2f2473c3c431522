"""
Write journaling for in-memory state.

A `Journaled` object reports an undo action before each write it makes. Once bound
to an execution context (`bind_journal`), those undo actions are collected by the
innermost open savepoint and replayed newest-first if the savepoint fails. Unbound
objects write without recording anything.

Undo actions restore raw fields directly and must never record further undo actions.
"""

from __future__ import annotations

from typing import Callable, Optional


Undo = Callable[[], None]
UndoSink = Callable[[Undo], None]


class Journaled:
    _undo_sink: Optional[UndoSink] = None

    def bind_journal(self, sink: UndoSink) -> None:
        self._undo_sink = sink

    def _record_undo(self, undo: Undo) -> None:
        if self._undo_sink is not None:
            self._undo_sink(undo)
