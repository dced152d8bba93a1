"""PostgreSQL storage for periods and daily entries."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .errors import PersistenceError
from .models import DailyEntry, Granularity, Period
from .storage import PersistenceAdapter

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS periods (
        id VARCHAR(16) NOT NULL,
        granularity VARCHAR(16) NOT NULL,
        label VARCHAR(64) NOT NULL,
        data JSONB NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (id, granularity)
    );
    CREATE TABLE IF NOT EXISTS daily_entries (
        id VARCHAR(64) PRIMARY KEY,
        date DATE NOT NULL,
        channel VARCHAR(32) NOT NULL,
        revenue NUMERIC NOT NULL,
        spend NUMERIC NOT NULL,
        units NUMERIC NOT NULL
    );
"""


def _normalize_url(url: str) -> str:
    # Handle Render's postgres:// vs postgresql:// URL format
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


class PostgresStore(PersistenceAdapter):
    """Periods and daily entries in PostgreSQL tables."""

    name = "postgres"

    def __init__(
        self,
        database_url: str,
        connect_timeout: int = 10,
        connect: Optional[Callable[[], Any]] = None,
    ) -> None:
        self._database_url = _normalize_url(database_url)
        self._connect_timeout = connect_timeout
        self._connect = connect

    def get_connection(self):
        """Get a database connection."""
        if self._connect is not None:
            return self._connect()

        import psycopg2

        return psycopg2.connect(self._database_url, connect_timeout=self._connect_timeout)

    def _run(self, sql: str, params: Sequence[Any] = (), fetch: bool = False) -> List[Tuple]:
        try:
            conn = self.get_connection()
        except Exception as e:
            logger.error("Failed to connect to database: %s", e)
            raise PersistenceError(f"Database connection failed: {e}") from e

        try:
            cur = conn.cursor()
            try:
                cur.execute(sql, params)
                rows = cur.fetchall() if fetch else []
            finally:
                cur.close()
            conn.commit()
            return rows
        except Exception as e:
            logger.error("Database statement failed: %s", e)
            raise PersistenceError(f"Database statement failed: {e}") from e
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create tables if they don't exist."""
        self._run(SCHEMA_SQL)
        logger.info("Database tables initialized successfully")

    def load_periods(self) -> List[Period]:
        rows = self._run(
            "SELECT id, label, granularity, data FROM periods ORDER BY id",
            fetch=True,
        )
        periods = []
        for row in rows:
            data = row[3]
            if isinstance(data, str):
                data = json.loads(data)
            periods.append(Period.from_dict({
                "id": row[0],
                "label": row[1],
                "granularity": row[2],
                "data": data,
            }))
        return periods

    def load_daily_entries(self) -> List[DailyEntry]:
        rows = self._run(
            "SELECT id, date, channel, revenue, spend, units FROM daily_entries ORDER BY date",
            fetch=True,
        )
        return [
            DailyEntry.from_dict({
                "id": row[0],
                "date": row[1],
                "channel": row[2],
                "revenue": row[3],
                "spend": row[4],
                "units": row[5],
            })
            for row in rows
        ]

    def upsert_period(self, period: Period) -> None:
        record = period.to_dict()
        self._run(
            """
            INSERT INTO periods (id, granularity, label, data, updated_at)
            VALUES (%s, %s, %s, %s::jsonb, CURRENT_TIMESTAMP)
            ON CONFLICT (id, granularity) DO UPDATE SET
                label = EXCLUDED.label,
                data = EXCLUDED.data,
                updated_at = EXCLUDED.updated_at
            """,
            (record["id"], record["granularity"], record["label"], json.dumps(record["data"])),
        )

    def insert_daily_entry(self, entry: DailyEntry) -> None:
        self._run(
            """
            INSERT INTO daily_entries (id, date, channel, revenue, spend, units)
            VALUES (%s, %s, %s, %s, %s, %s)
            ON CONFLICT (id) DO NOTHING
            """,
            (entry.id, entry.date, entry.channel.value, entry.revenue, entry.spend, entry.units),
        )

    def delete_daily_entry(self, entry_id: str) -> None:
        self._run("DELETE FROM daily_entries WHERE id = %s", (entry_id,))

    def reset_periods(self, granularity: Granularity) -> None:
        self._run("DELETE FROM periods WHERE granularity = %s", (granularity.value,))
