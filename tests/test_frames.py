import math

import pytest

from salesboard.frames import metrics_frame, roas_frame, series_frame, timeline_frame
from salesboard.models import Granularity


@pytest.fixture()
def weekly(engine):
    engine.import_weekly("\n".join([
        "2025-W32,Trendyol,110,0,12",
        "2025-W31,Trendyol,100,50,10",
        "2025-W31,Hepsiburada,40,20,4",
    ]))
    return engine


def test_series_frame_is_ordered_by_period(weekly):
    frame = series_frame(weekly.periods(Granularity.WEEKLY), "revenue")

    assert list(frame.index) == ["2025 W31", "2025 W32"]
    assert list(frame["Trendyol"]) == [100.0, 110.0]
    assert list(frame["Hepsiburada"]) == [40.0, 0.0]


def test_series_frame_rejects_unknown_metric(weekly):
    with pytest.raises(ValueError):
        series_frame(weekly.periods(Granularity.WEEKLY), "profit")


def test_metrics_frame_keeps_missing_values_missing(weekly):
    frame = metrics_frame(weekly.derived_metrics(Granularity.WEEKLY))

    assert len(frame) == 4
    row = frame[(frame["period"] == "2025-W32") & (frame["channel"] == "Trendyol")].iloc[0]
    assert row["revenue_change_pct"] == pytest.approx(10.0)
    assert math.isnan(row["roas"])
    first = frame[(frame["period"] == "2025-W31") & (frame["channel"] == "Trendyol")].iloc[0]
    assert first["roas"] == pytest.approx(2.0)
    assert math.isnan(first["revenue_change_pct"])


def test_roas_frame(weekly):
    frame = roas_frame(weekly.derived_metrics(Granularity.WEEKLY))
    assert frame.loc["2025 W31", "Hepsiburada"] == pytest.approx(2.0)
    assert math.isnan(frame.loc["2025 W32", "Trendyol"])


def test_timeline_sums_channels(weekly):
    frame = timeline_frame(weekly.periods(Granularity.WEEKLY))
    assert frame.to_dict("records") == [
        {"period": "2025 W31", "Revenue": 140.0, "Spend": 70.0, "Units": 14.0},
        {"period": "2025 W32", "Revenue": 110.0, "Spend": 0.0, "Units": 12.0},
    ]
