import json
from decimal import Decimal

import pytest

from salesboard.engine import SalesEngine
from salesboard.errors import PersistenceError
from salesboard.local_store import LocalStore
from salesboard.models import Channel, Granularity


def test_missing_file_loads_empty(local_store):
    assert local_store.load_periods() == []
    assert local_store.load_daily_entries() == []


def test_engine_round_trip(local_store):
    engine = SalesEngine(local_store)
    entry = engine.add_daily_entry("2025-08-04", "Trendyol", "1234.56", "78.9", 3).entry
    engine.import_weekly("2025-W30,Hepsiburada,6865,297,24")

    reloaded = SalesEngine.from_adapter(LocalStore(local_store.path))

    assert reloaded.daily_entries() == [entry]
    assert reloaded.periods(Granularity.WEEKLY) == engine.periods(Granularity.WEEKLY)
    assert reloaded.periods(Granularity.MONTHLY) == engine.periods(Granularity.MONTHLY)
    monthly = reloaded.periods(Granularity.MONTHLY)[0]
    assert monthly.data[Channel.TRENDYOL].revenue == Decimal("1234.56")


def test_document_layout(local_store):
    engine = SalesEngine(local_store)
    entry = engine.add_daily_entry("2025-08-04", "Trendyol", 10, 1, 1).entry

    document = json.loads(local_store.path.read_text())
    assert set(document["periods"]) == {"Monthly|2025-08", "Weekly|2025-W32"}
    assert document["periods"]["Weekly|2025-W32"]["data"]["Trendyol"] == {
        "revenue": "10", "spend": "1", "units": "1",
    }
    assert document["daily_entries"][entry.id]["date"] == "2025-08-04"


def test_delete_and_reset(local_store):
    engine = SalesEngine(local_store)
    entry = engine.add_daily_entry("2025-08-04", "Trendyol", 10, 1, 1).entry
    engine.delete_daily_entry(entry.id)
    engine.reset_periods(Granularity.WEEKLY)

    assert local_store.load_daily_entries() == []
    assert [p.key for p in local_store.load_periods()] == [("2025-08", Granularity.MONTHLY)]


def test_delete_missing_entry_is_not_an_error(local_store):
    local_store.delete_daily_entry("nope")
    assert not local_store.path.exists()


def test_corrupt_file_raises_persistence_error(local_store):
    local_store.path.parent.mkdir(parents=True)
    local_store.path.write_text("{not json")

    with pytest.raises(PersistenceError):
        local_store.load_periods()
