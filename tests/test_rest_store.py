import json
import time

import httpx
import pytest

from salesboard.engine import SalesEngine
from salesboard.errors import PersistenceError
from salesboard.models import Channel, Granularity
from salesboard.rest_store import RestStore


class FakePostgrest:
    """Just enough of PostgREST for the two tables."""

    def __init__(self):
        self.tables = {"periods": {}, "daily_entries": {}}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["Authorization"] == "Bearer anon-key"

        table = request.url.path.rsplit("/", 1)[-1]
        rows = self.tables[table]
        params = request.url.params

        if request.method == "GET":
            return httpx.Response(200, text=json.dumps(list(rows.values())))
        if request.method == "POST":
            body = json.loads(request.content)
            key = (body["id"], body["granularity"]) if table == "periods" else body["id"]
            rows[key] = body
            return httpx.Response(201)
        if request.method == "DELETE":
            column, value = next(iter(params.items()))
            value = value[len("eq."):]
            for key in [k for k, row in rows.items() if row[column] == value]:
                del rows[key]
            return httpx.Response(204)
        return httpx.Response(405)


@pytest.fixture()
def postgrest():
    return FakePostgrest()


@pytest.fixture()
def rest_store(postgrest):
    return RestStore("https://example.supabase.co", "anon-key", transport=httpx.MockTransport(postgrest))


def test_round_trip_through_engine(rest_store, postgrest):
    engine = SalesEngine(rest_store)
    entry = engine.add_daily_entry("2025-08-04", "Hepsiburada", "99.99", "10.01", 2).entry
    engine.import_weekly("2025-W30,Trendyol,5,1,1")

    reloaded = SalesEngine.from_adapter(rest_store)

    assert reloaded.daily_entries() == [entry]
    assert reloaded.periods(Granularity.MONTHLY) == engine.periods(Granularity.MONTHLY)
    assert reloaded.periods(Granularity.WEEKLY) == engine.periods(Granularity.WEEKLY)

    upsert = next(r for r in postgrest.requests if r.method == "POST" and r.url.path.endswith("/periods"))
    assert str(upsert.url).startswith("https://example.supabase.co/rest/v1/periods")
    assert upsert.url.params["on_conflict"] == "id,granularity"
    assert "resolution=merge-duplicates" in upsert.headers["Prefer"]


def test_delete_and_reset_use_filters(rest_store, postgrest):
    engine = SalesEngine(rest_store)
    entry = engine.add_daily_entry("2025-08-04", "Trendyol", 10, 1, 1).entry
    engine.delete_daily_entry(entry.id)
    engine.reset_periods(Granularity.WEEKLY)

    deletes = [r for r in postgrest.requests if r.method == "DELETE"]
    assert deletes[0].url.params["id"] == f"eq.{entry.id}"
    assert deletes[1].url.params["granularity"] == "eq.Weekly"
    assert postgrest.tables["daily_entries"] == {}
    assert list(postgrest.tables["periods"]) == [("2025-08", "Monthly")]


def test_numeric_values_stay_exact():
    body = json.dumps([{
        "id": "2025-W31", "label": "2025 W31", "granularity": "Weekly",
        "data": {"Trendyol": {"revenue": 0.1, "spend": 1097.35, "units": 3}},
    }])
    store = RestStore(
        "https://example.supabase.co/rest/v1/", "anon-key",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text=body)),
    )

    period = store.load_periods()[0]
    assert str(period.data[Channel.TRENDYOL].revenue) == "0.1"
    assert str(period.data[Channel.TRENDYOL].spend) == "1097.35"
    assert period.data[Channel.HEPSIBURADA].revenue == 0


def test_http_error_becomes_persistence_error():
    store = RestStore(
        "https://example.supabase.co", "anon-key",
        transport=httpx.MockTransport(lambda request: httpx.Response(500, text="boom")),
    )
    engine = SalesEngine(store)

    result = engine.add_daily_entry("2025-08-04", "Trendyol", 10, 1, 1)

    assert not result.ok
    assert len(result.failed) == 3
    assert "500" in result.failed[0][1]
    with pytest.raises(PersistenceError):
        store.load_periods()


def test_network_errors_are_retried(monkeypatch):
    monkeypatch.setattr(time, "sleep", lambda seconds: None)
    attempts = []

    def handler(request):
        attempts.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    store = RestStore("https://example.supabase.co", "anon-key", transport=httpx.MockTransport(handler))

    with pytest.raises(PersistenceError):
        store.load_daily_entries()
    assert len(attempts) == 3
