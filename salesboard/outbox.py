"""
Pending persistence writes and their results.

An add or delete of a daily entry is three separate writes (monthly period,
weekly period, ledger row) and storage offers no transaction across them.
Writes are therefore queued by target before they are attempted: a write
that fails stays queued and can be replayed later, and the caller gets a
``WriteResult`` naming which writes landed and which did not.

Queued writes are keyed so that replay is idempotent: a period write always
sends the period's current in-memory snapshot, and later writes to the same
target replace earlier ones.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple, Union

from .models import DailyEntry, Granularity

UPSERT_PERIOD = "upsert_period"
INSERT_ENTRY = "insert_daily_entry"
DELETE_ENTRY = "delete_daily_entry"
RESET_PERIODS = "reset_periods"


@dataclass(frozen=True)
class PendingWrite:
    """One write against the persistence adapter.

    ``target`` is ``(period_id, granularity)`` for period upserts, the entry
    id for ledger writes and the granularity for resets.
    """
    op: str
    target: Union[Tuple[str, Granularity], str, Granularity]

    @property
    def key(self) -> Tuple:
        if self.op in (INSERT_ENTRY, DELETE_ENTRY):
            return ("entry", self.target)
        if self.op == UPSERT_PERIOD:
            return ("period", self.target)
        return ("reset", self.target)

    def describe(self) -> str:
        if self.op == UPSERT_PERIOD:
            period_id, granularity = self.target
            return f"{self.op} {granularity.value} {period_id}"
        if self.op == RESET_PERIODS:
            return f"{self.op} {self.target.value}"
        return f"{self.op} {self.target}"


@dataclass
class WriteResult:
    """Persistence outcome of one logical operation."""
    completed: List[PendingWrite] = field(default_factory=list)
    failed: List[Tuple[PendingWrite, str]] = field(default_factory=list)
    entry: Optional[DailyEntry] = None

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def partial(self) -> bool:
        """Some writes landed and some did not."""
        return bool(self.completed) and bool(self.failed)

    def record(self, write: PendingWrite, error: Optional[Exception] = None) -> None:
        if error is None:
            self.completed.append(write)
        else:
            self.failed.append((write, str(error)))


class Outbox:
    """Ordered queue of writes not yet confirmed by storage."""

    def __init__(self) -> None:
        self._pending: "OrderedDict[Tuple, PendingWrite]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._pending)

    def __iter__(self) -> Iterator[PendingWrite]:
        return iter(list(self._pending.values()))

    def enqueue(self, write: PendingWrite) -> bool:
        """Queue a write. Returns False when it cancels a queued write instead."""
        key = write.key
        queued = self._pending.pop(key, None)

        # Deleting an entry whose insert never reached storage: nothing to send
        if write.op == DELETE_ENTRY and queued is not None and queued.op == INSERT_ENTRY:
            return False

        if write.op == RESET_PERIODS:
            superseded = [
                k for k, w in self._pending.items()
                if w.op == UPSERT_PERIOD and w.target[1] is write.target
            ]
            for k in superseded:
                del self._pending[k]

        self._pending[key] = write
        return True

    def done(self, write: PendingWrite) -> None:
        if self._pending.get(write.key) == write:
            del self._pending[write.key]

    def clear(self) -> int:
        count = len(self._pending)
        self._pending.clear()
        return count
