"""
Tabular views of periods and metrics for charts and tables.

These helpers sit outside the engine: they turn exact Decimal totals into
floats and "no value" metrics into missing cells for display.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import pandas as pd

from .metrics import PeriodMetrics
from .models import Channel, Period

METRICS = ("revenue", "spend", "units")


def _as_float(value) -> Optional[float]:
    return None if value is None else float(value)


def metrics_frame(rows: Sequence[PeriodMetrics]) -> pd.DataFrame:
    """One row per period and channel with totals and derived metrics."""
    records = []
    for row in rows:
        for channel in Channel:
            datum = row.period.data[channel]
            m = row.channels[channel]
            records.append({
                "period": row.id,
                "label": row.label,
                "channel": channel.value,
                "revenue": float(datum.revenue),
                "spend": float(datum.spend),
                "units": float(datum.units),
                "roas": _as_float(m.roas),
                "revenue_change_pct": _as_float(m.revenue_change),
                "spend_change_pct": _as_float(m.spend_change),
                "units_change_pct": _as_float(m.units_change),
                "roas_change_pct": _as_float(m.roas_change),
            })
    numeric = [
        "revenue", "spend", "units", "roas",
        "revenue_change_pct", "spend_change_pct", "units_change_pct", "roas_change_pct",
    ]
    frame = pd.DataFrame.from_records(records, columns=["period", "label", "channel"] + numeric)
    return frame.astype({col: "float64" for col in numeric})


def series_frame(periods: Sequence[Period], metric: str) -> pd.DataFrame:
    """Per-channel series of one total, indexed by period label."""
    if metric not in METRICS:
        raise ValueError(f"Unknown metric: {metric!r} (expected one of {METRICS})")

    ordered = sorted(periods, key=lambda p: p.id)
    data = {
        channel.value: [float(getattr(p.data[channel], metric)) for p in ordered]
        for channel in Channel
    }
    return pd.DataFrame(data, index=pd.Index([p.label for p in ordered], name="period"))


def roas_frame(rows: Sequence[PeriodMetrics]) -> pd.DataFrame:
    """Per-channel ROAS series, indexed by period label. Missing ROAS stays NaN."""
    data = {
        channel.value: [_as_float(r.channels[channel].roas) for r in rows]
        for channel in Channel
    }
    return pd.DataFrame(
        data, index=pd.Index([r.label for r in rows], name="period"), dtype="float64"
    )


def timeline_frame(periods: Sequence[Period]) -> pd.DataFrame:
    """Totals across all channels per period (the weekly timeline)."""
    ordered = sorted(periods, key=lambda p: p.id)
    records: List[dict] = []
    for p in ordered:
        records.append({
            "period": p.label,
            "Revenue": float(sum(p.data[ch].revenue for ch in Channel)),
            "Spend": float(sum(p.data[ch].spend for ch in Channel)),
            "Units": float(sum(p.data[ch].units for ch in Channel)),
        })
    return pd.DataFrame.from_records(records, columns=["period", "Revenue", "Spend", "Units"])
