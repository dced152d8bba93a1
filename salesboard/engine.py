"""
Sales rollup engine.

Holds the in-memory period store and daily ledger, applies every mutation to
them first, then sends the resulting writes to the injected persistence
adapter. Two write paths feed the periods:

1. Daily entries (``add_daily_entry`` / ``delete_daily_entry``): ledgered,
   applied to both the Monthly and the Weekly period of the entry's date,
   reversible by deleting the entry.
2. Bulk weekly import (``import_weekly``): applied to Weekly periods only,
   not ledgered, removable only by ``reset_periods``.

Storage failures never roll back in-memory state. They are returned in a
``WriteResult``, the failed writes stay queued (``pending_writes``) and
``flush()`` replays them.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional, Union

from .aggregation import PeriodStore, apply_delta
from .calendar import DateLike, month_id, month_label, parse_date, week_id, week_label
from .errors import PersistenceError
from .importer import ImportResult, import_weekly
from .ledger import DailyLedger
from .metrics import PeriodMetrics, derive_metrics
from .models import Channel, DailyEntry, Delta, Granularity, Number, Period
from .outbox import (
    DELETE_ENTRY,
    INSERT_ENTRY,
    RESET_PERIODS,
    UPSERT_PERIOD,
    Outbox,
    PendingWrite,
    WriteResult,
)
from .storage import PersistenceAdapter

logger = logging.getLogger(__name__)


class SalesEngine:
    """Monthly and weekly channel totals derived from daily entries."""

    def __init__(
        self,
        adapter: PersistenceAdapter,
        periods: Optional[Iterable[Period]] = None,
        entries: Optional[Iterable[DailyEntry]] = None,
    ) -> None:
        self._adapter = adapter
        self._store = PeriodStore(periods)
        self._ledger = DailyLedger(entries)
        self._outbox = Outbox()

    @classmethod
    def from_adapter(cls, adapter: PersistenceAdapter) -> "SalesEngine":
        """Create an engine hydrated from storage."""
        engine = cls(adapter)
        engine.load()
        return engine

    # ========== Read API ==========

    def periods(self, granularity: Union[Granularity, str]) -> List[Period]:
        """Periods of one granularity, oldest first (copies)."""
        granularity = Granularity.parse(granularity)
        return [p.copy() for p in self._store.sorted(granularity)]

    def derived_metrics(self, granularity: Union[Granularity, str]) -> List[PeriodMetrics]:
        """ROAS and period-over-period change for every period, oldest first."""
        return derive_metrics(self.periods(granularity))

    def daily_entries(self) -> List[DailyEntry]:
        return self._ledger.entries()

    @property
    def pending_writes(self) -> List[PendingWrite]:
        """Writes applied in memory but not yet confirmed by storage."""
        return list(self._outbox)

    @property
    def in_sync(self) -> bool:
        return len(self._outbox) == 0

    # ========== Write API ==========

    def load(self) -> None:
        """Replace in-memory state with what storage holds.

        Raises PersistenceError when storage cannot be read.
        """
        periods = self._adapter.load_periods()
        entries = self._adapter.load_daily_entries()

        dropped = self._outbox.clear()
        if dropped:
            logger.warning("Discarded %d unsaved writes while reloading", dropped)

        self._store = PeriodStore(periods)
        self._ledger = DailyLedger(entries)
        logger.info(
            "Loaded %d periods and %d daily entries from %s storage",
            len(self._store), len(self._ledger), self._adapter.name,
        )

    def add_daily_entry(
        self,
        day: DateLike,
        channel: Union[Channel, str],
        revenue: Number,
        spend: Number,
        units: Number,
    ) -> WriteResult:
        """Record a daily contribution and add it to its month and ISO week.

        Raises ValidationError for a bad date, channel or number, before any
        state changes.
        """
        day = parse_date(day)
        channel = Channel.parse(channel)
        delta = Delta.of(revenue, spend, units)

        writes = self._apply_contribution(day, channel, delta, sign=1)
        entry = self._ledger.record(day, channel, delta)
        writes.append(PendingWrite(INSERT_ENTRY, entry.id))

        result = self._persist(writes)
        result.entry = entry
        logger.info("Added daily entry %s", entry.id)
        return result

    def delete_daily_entry(self, entry_id: str) -> WriteResult:
        """Remove a daily entry and reverse exactly its contribution.

        Raises EntryNotFoundError for an unknown id.
        """
        entry = self._ledger.remove(entry_id)

        writes = self._apply_contribution(entry.date, entry.channel, entry.delta, sign=-1)
        writes.append(PendingWrite(DELETE_ENTRY, entry.id))

        result = self._persist(writes)
        result.entry = entry
        logger.info("Deleted daily entry %s", entry.id)
        return result

    def import_weekly(self, text: str) -> ImportResult:
        """Add bulk weekly totals from CSV text. See ``importer``."""
        imported = import_weekly(self._store, text)
        writes = [PendingWrite(UPSERT_PERIOD, key) for key in imported.periods]
        imported.write = self._persist(writes)
        return imported

    def reset_periods(self, granularity: Union[Granularity, str]) -> WriteResult:
        """Remove every period of one granularity.

        Daily entries are kept; their contribution to the removed periods is
        gone until they are deleted and added again.
        """
        granularity = Granularity.parse(granularity)
        removed = self._store.reset(granularity)
        logger.info("Reset %d %s periods", removed, granularity.value)
        return self._persist([PendingWrite(RESET_PERIODS, granularity)])

    def flush(self) -> WriteResult:
        """Retry every queued write, oldest first."""
        return self._send(self.pending_writes)

    # ========== Internals ==========

    def _apply_contribution(
        self, day: date, channel: Channel, delta: Delta, sign: int
    ) -> List[PendingWrite]:
        monthly_id = month_id(day)
        weekly_id = week_id(day)
        monthly = apply_delta(
            self._store, Granularity.MONTHLY, monthly_id, month_label(monthly_id),
            channel, delta, sign,
        )
        weekly = apply_delta(
            self._store, Granularity.WEEKLY, weekly_id, week_label(weekly_id),
            channel, delta, sign,
        )
        return [PendingWrite(UPSERT_PERIOD, monthly.key), PendingWrite(UPSERT_PERIOD, weekly.key)]

    def _persist(self, writes: List[PendingWrite]) -> WriteResult:
        queued = [w for w in writes if self._outbox.enqueue(w)]
        return self._send(queued)

    def _send(self, writes: List[PendingWrite]) -> WriteResult:
        result = WriteResult()
        for write in writes:
            try:
                self._execute(write)
            except PersistenceError as e:
                logger.warning("Write %s failed, kept for retry: %s", write.describe(), e)
                result.record(write, e)
                continue
            self._outbox.done(write)
            result.record(write)
        return result

    def _execute(self, write: PendingWrite) -> None:
        if write.op == UPSERT_PERIOD:
            period_id, granularity = write.target
            period = self._store.get(period_id, granularity)
            if period is not None:
                self._adapter.upsert_period(period.copy())
        elif write.op == INSERT_ENTRY:
            entry = self._ledger.get(write.target)
            if entry is not None:
                self._adapter.insert_daily_entry(entry)
        elif write.op == DELETE_ENTRY:
            self._adapter.delete_daily_entry(write.target)
        elif write.op == RESET_PERIODS:
            self._adapter.reset_periods(write.target)
        else:
            raise ValueError(f"Unknown write: {write.op}")
