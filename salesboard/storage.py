"""Persistence boundary for the rollup engine.

The engine only talks to a ``PersistenceAdapter``. Three implementations
exist: ``PostgresStore`` (db.py), ``RestStore`` for a PostgREST/Supabase
endpoint (rest_store.py) and the local JSON fallback ``LocalStore``
(local_store.py). Exactly one is chosen at startup by ``select_adapter`` and
handed to the engine.

Adapters raise ``PersistenceError`` for any read or write failure.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List

from .config import Settings
from .models import DailyEntry, Granularity, Period

logger = logging.getLogger(__name__)

BACKENDS = ("auto", "rest", "postgres", "local")


class PersistenceAdapter(ABC):
    """Storage for periods and daily entries."""

    name = "adapter"

    @abstractmethod
    def load_periods(self) -> List[Period]:
        """Load every stored period."""

    @abstractmethod
    def load_daily_entries(self) -> List[DailyEntry]:
        """Load every stored daily entry."""

    @abstractmethod
    def upsert_period(self, period: Period) -> None:
        """Insert or replace the period keyed by ``(id, granularity)``."""

    @abstractmethod
    def insert_daily_entry(self, entry: DailyEntry) -> None:
        """Store a new daily entry."""

    @abstractmethod
    def delete_daily_entry(self, entry_id: str) -> None:
        """Remove a daily entry. Missing ids are not an error."""

    @abstractmethod
    def reset_periods(self, granularity: Granularity) -> None:
        """Remove every period of a granularity."""


def select_adapter(settings: Settings) -> PersistenceAdapter:
    """Build the adapter for this process from settings.

    Called once by the application bootstrap.
    """
    from .db import PostgresStore
    from .local_store import LocalStore
    from .rest_store import RestStore

    backend = settings.backend
    if backend not in BACKENDS:
        raise ValueError(f"Unknown storage backend: {backend!r} (expected one of {BACKENDS})")

    if backend == "auto":
        if settings.rest.configured:
            backend = "rest"
        elif settings.postgres.configured:
            backend = "postgres"
        else:
            backend = "local"

    if backend == "rest":
        if not settings.rest.configured:
            raise ValueError(
                f"REST backend needs {settings.rest.url_env_var} and "
                f"{settings.rest.key_env_var} environment variables"
            )
        adapter: PersistenceAdapter = RestStore(
            settings.rest.url, settings.rest.key, timeout=settings.rest.timeout
        )
    elif backend == "postgres":
        if not settings.postgres.configured:
            raise ValueError(f"{settings.postgres.database_url_env_var} environment variable not set")
        adapter = PostgresStore(
            settings.postgres.database_url,
            connect_timeout=settings.postgres.connect_timeout,
        )
    else:
        adapter = LocalStore(settings.local.file_path)

    logger.info("Using %s storage", adapter.name)
    return adapter
