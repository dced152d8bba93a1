"""Daily ledger: the atomic contributions monthly and weekly totals derive from."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Dict, Iterable, Iterator, List, Optional

from .errors import EntryNotFoundError
from .models import Channel, DailyEntry, Delta


def new_entry_id(day: date, channel: Channel) -> str:
    """Generate a unique entry id, e.g. ``2025-08-04-Trendyol-1f3a9c2e``."""
    return f"{day.isoformat()}-{channel.value}-{uuid.uuid4().hex[:8]}"


class DailyLedger:
    """Live daily entries keyed by id, kept in insertion order."""

    def __init__(self, entries: Optional[Iterable[DailyEntry]] = None) -> None:
        self._entries: Dict[str, DailyEntry] = {}
        for entry in entries or []:
            self._entries[entry.id] = entry

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[DailyEntry]:
        return iter(self._entries.values())

    def __contains__(self, entry_id: str) -> bool:
        return entry_id in self._entries

    def get(self, entry_id: str) -> Optional[DailyEntry]:
        return self._entries.get(entry_id)

    def record(
        self,
        day: date,
        channel: Channel,
        delta: Delta,
        entry_id: Optional[str] = None,
    ) -> DailyEntry:
        """Create and append a new entry."""
        entry = DailyEntry(
            id=entry_id or new_entry_id(day, channel),
            date=day,
            channel=channel,
            revenue=delta.revenue,
            spend=delta.spend,
            units=delta.units,
        )
        if entry.id in self._entries:
            raise ValueError(f"Duplicate daily entry id: {entry.id}")
        self._entries[entry.id] = entry
        return entry

    def remove(self, entry_id: str) -> DailyEntry:
        """Remove an entry and return it."""
        try:
            return self._entries.pop(entry_id)
        except KeyError:
            raise EntryNotFoundError(entry_id) from None

    def entries(self) -> List[DailyEntry]:
        """Entries sorted by date, ties kept in insertion order."""
        return sorted(self._entries.values(), key=lambda e: e.date)
