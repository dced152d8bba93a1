from typing import Dict, List, Optional, Set

import pytest

from salesboard.engine import SalesEngine
from salesboard.errors import PersistenceError
from salesboard.local_store import LocalStore
from salesboard.models import DailyEntry, Granularity, Period
from salesboard.storage import PersistenceAdapter


class MemoryStore(PersistenceAdapter):
    """In-memory adapter that records calls and can be told to fail."""

    name = "memory"

    def __init__(self) -> None:
        self.periods: Dict[tuple, Period] = {}
        self.entries: Dict[str, DailyEntry] = {}
        self.calls: List[str] = []
        self.fail_ops: Set[str] = set()

    def _call(self, op: str) -> None:
        self.calls.append(op)
        if op in self.fail_ops or "*" in self.fail_ops:
            raise PersistenceError(f"{op} unavailable")

    def load_periods(self) -> List[Period]:
        self._call("load_periods")
        return [p.copy() for p in self.periods.values()]

    def load_daily_entries(self) -> List[DailyEntry]:
        self._call("load_daily_entries")
        return list(self.entries.values())

    def upsert_period(self, period: Period) -> None:
        self._call("upsert_period")
        self.periods[period.key] = period.copy()

    def insert_daily_entry(self, entry: DailyEntry) -> None:
        self._call("insert_daily_entry")
        self.entries[entry.id] = entry

    def delete_daily_entry(self, entry_id: str) -> None:
        self._call("delete_daily_entry")
        self.entries.pop(entry_id, None)

    def reset_periods(self, granularity: Granularity) -> None:
        self._call("reset_periods")
        self.periods = {k: p for k, p in self.periods.items() if k[1] is not granularity}

    def stored(self, period_id: str, granularity: Granularity) -> Optional[Period]:
        return self.periods.get((period_id, granularity))


@pytest.fixture()
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def engine(memory_store: MemoryStore) -> SalesEngine:
    return SalesEngine(memory_store)


@pytest.fixture()
def local_store(tmp_path) -> LocalStore:
    return LocalStore(tmp_path / "data" / "salesboard.json")
