"""PostgREST (Supabase) storage for periods and daily entries."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from .errors import PersistenceError
from .models import DailyEntry, Granularity, Period
from .storage import PersistenceAdapter

logger = logging.getLogger(__name__)

# Retry decorator for transient failures
_retry_on_network_error = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((httpx.RequestError, httpx.TimeoutException)),
    reraise=True,
)


class RestStore(PersistenceAdapter):
    """Client for the ``periods`` and ``daily_entries`` tables over PostgREST."""

    name = "rest"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        base_url = base_url.rstrip("/")
        if not base_url.endswith("/rest/v1"):
            base_url = f"{base_url}/rest/v1"
        self._base_url = base_url
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    def _get_headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        """Get request headers with authentication."""
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    @_retry_on_network_error
    def _make_request(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, str]] = None,
        body: Any = None,
        prefer: Optional[str] = None,
    ) -> httpx.Response:
        """Make HTTP request with retry logic for transient failures."""
        with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
            return client.request(
                method,
                f"{self._base_url}/{table}",
                params=params,
                headers=self._get_headers(prefer),
                content=json.dumps(body) if body is not None else None,
            )

    def _request(self, method: str, table: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._make_request(method, table, **kwargs)
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, table, e)
            raise PersistenceError(f"{method} {table} failed: {e}") from e

        if response.status_code >= 400:
            logger.error(
                "%s %s returned %s: %s", method, table, response.status_code, response.text[:300]
            )
            raise PersistenceError(
                f"{method} {table} returned {response.status_code}: {response.text[:300]}"
            )
        return response

    def _select(self, table: str, order: str) -> List[Dict[str, Any]]:
        response = self._request("GET", table, params={"select": "*", "order": order})
        try:
            # Keep numeric columns exact
            rows = json.loads(response.text or "[]", parse_float=Decimal)
        except ValueError as e:
            raise PersistenceError(f"Invalid JSON from {table}: {e}") from e
        if not isinstance(rows, list):
            raise PersistenceError(f"Unexpected response from {table}: {rows!r}")
        return rows

    def load_periods(self) -> List[Period]:
        rows = self._select("periods", order="id")
        try:
            return [Period.from_dict(row) for row in rows]
        except (KeyError, ValueError) as e:
            raise PersistenceError(f"Corrupt period row: {e}") from e

    def load_daily_entries(self) -> List[DailyEntry]:
        rows = self._select("daily_entries", order="date")
        try:
            return [DailyEntry.from_dict(row) for row in rows]
        except (KeyError, ValueError) as e:
            raise PersistenceError(f"Corrupt daily entry row: {e}") from e

    def upsert_period(self, period: Period) -> None:
        self._request(
            "POST",
            "periods",
            params={"on_conflict": "id,granularity"},
            body=period.to_dict(),
            prefer="resolution=merge-duplicates,return=minimal",
        )

    def insert_daily_entry(self, entry: DailyEntry) -> None:
        self._request(
            "POST",
            "daily_entries",
            params={"on_conflict": "id"},
            body=entry.to_dict(),
            prefer="resolution=ignore-duplicates,return=minimal",
        )

    def delete_daily_entry(self, entry_id: str) -> None:
        self._request("DELETE", "daily_entries", params={"id": f"eq.{entry_id}"})

    def reset_periods(self, granularity: Granularity) -> None:
        self._request("DELETE", "periods", params={"granularity": f"eq.{granularity.value}"})
