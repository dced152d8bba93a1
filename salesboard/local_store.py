"""Local JSON storage - fallback when no remote store is configured."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from .errors import PersistenceError
from .models import DailyEntry, Granularity, Period
from .storage import PersistenceAdapter

logger = logging.getLogger(__name__)


def _period_key(granularity: str, period_id: str) -> str:
    return f"{granularity}|{period_id}"


def _empty_storage() -> Dict[str, Any]:
    return {"periods": {}, "daily_entries": {}}


class LocalStore(PersistenceAdapter):
    """Periods and daily entries in a single JSON document on disk.

    Layout::

        {"periods": {"Weekly|2025-W31": {...}},
         "daily_entries": {"<entry id>": {...}}}
    """

    name = "local"

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _ensure_data_dir(self) -> None:
        """Ensure data directory exists."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _load(self) -> Dict[str, Any]:
        """Load storage from disk."""
        if not self.path.exists():
            return _empty_storage()
        try:
            with self.path.open("r") as f:
                storage = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Failed to load %s: %s", self.path, e)
            raise PersistenceError(f"Failed to load {self.path}: {e}") from e
        storage.setdefault("periods", {})
        storage.setdefault("daily_entries", {})
        return storage

    def _save(self, storage: Dict[str, Any]) -> None:
        """Save storage to disk."""
        try:
            self._ensure_data_dir()
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with tmp_path.open("w") as f:
                json.dump(storage, f, indent=2)
            tmp_path.replace(self.path)
        except OSError as e:
            logger.error("Failed to save %s: %s", self.path, e)
            raise PersistenceError(f"Failed to save {self.path}: {e}") from e

    def load_periods(self) -> List[Period]:
        storage = self._load()
        try:
            return [Period.from_dict(p) for p in storage["periods"].values()]
        except (KeyError, ValueError) as e:
            raise PersistenceError(f"Corrupt period in {self.path}: {e}") from e

    def load_daily_entries(self) -> List[DailyEntry]:
        storage = self._load()
        try:
            return [DailyEntry.from_dict(e) for e in storage["daily_entries"].values()]
        except (KeyError, ValueError) as e:
            raise PersistenceError(f"Corrupt daily entry in {self.path}: {e}") from e

    def upsert_period(self, period: Period) -> None:
        storage = self._load()
        storage["periods"][_period_key(period.granularity.value, period.id)] = period.to_dict()
        self._save(storage)

    def insert_daily_entry(self, entry: DailyEntry) -> None:
        storage = self._load()
        storage["daily_entries"][entry.id] = entry.to_dict()
        self._save(storage)

    def delete_daily_entry(self, entry_id: str) -> None:
        storage = self._load()
        if storage["daily_entries"].pop(entry_id, None) is None:
            logger.info("Daily entry %s not in %s", entry_id, self.path)
            return
        self._save(storage)

    def reset_periods(self, granularity: Granularity) -> None:
        storage = self._load()
        storage["periods"] = {
            key: p for key, p in storage["periods"].items()
            if p.get("granularity") != granularity.value
        }
        self._save(storage)
