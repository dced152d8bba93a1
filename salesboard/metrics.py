"""
Derived metrics over a chronological sequence of periods.

Computed on read, never stored. For every period and channel:

- ROAS: revenue / spend, or ``None`` when there is no spend
- Period-over-period change (%) of revenue, spend, units and ROAS against the
  previous period in the sequence, or ``None`` when there is no previous
  value or it is zero

``None`` means "no value" and is kept distinct from a zero return; turning it
into a display value is up to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Context, Decimal, DecimalException
from typing import Dict, List, Optional, Sequence

from .models import Channel, ChannelDatum, Period, to_decimal

HUNDRED = Decimal(100)

# Ratios round to 28 digits. One that overflows has no value.
RATIO = Context(prec=28)


def roas(revenue, spend) -> Optional[Decimal]:
    """Return on ad spend, ``None`` unless spend is positive."""
    spend = to_decimal(spend)
    if spend <= 0:
        return None
    try:
        return RATIO.divide(to_decimal(revenue), spend)
    except DecimalException:
        return None


def period_over_period(curr, prev) -> Optional[Decimal]:
    """Percentage change from ``prev`` to ``curr``."""
    if curr is None or prev is None:
        return None
    prev = to_decimal(prev)
    if prev == 0:
        return None
    curr = to_decimal(curr)
    try:
        return RATIO.multiply(RATIO.divide(RATIO.subtract(curr, prev), prev), HUNDRED)
    except DecimalException:
        return None


@dataclass(frozen=True)
class ChannelMetrics:
    """Derived metrics for one channel in one period."""
    roas: Optional[Decimal]
    revenue_change: Optional[Decimal]
    spend_change: Optional[Decimal]
    units_change: Optional[Decimal]
    roas_change: Optional[Decimal]


@dataclass(frozen=True)
class PeriodMetrics:
    """A period together with its per-channel derived metrics."""
    period: Period
    channels: Dict[Channel, ChannelMetrics]

    @property
    def id(self) -> str:
        return self.period.id

    @property
    def label(self) -> str:
        return self.period.label

    def __getitem__(self, channel: Channel) -> ChannelMetrics:
        return self.channels[channel]


def channel_metrics(curr: ChannelDatum, prev: Optional[ChannelDatum]) -> ChannelMetrics:
    curr_roas = roas(curr.revenue, curr.spend)
    if prev is None:
        return ChannelMetrics(curr_roas, None, None, None, None)
    return ChannelMetrics(
        roas=curr_roas,
        revenue_change=period_over_period(curr.revenue, prev.revenue),
        spend_change=period_over_period(curr.spend, prev.spend),
        units_change=period_over_period(curr.units, prev.units),
        roas_change=period_over_period(curr_roas, roas(prev.revenue, prev.spend)),
    )


def derive_metrics(periods: Sequence[Period]) -> List[PeriodMetrics]:
    """Compute metrics for periods of one granularity.

    The input is sorted by id first; ids are fixed width so this is
    chronological order.
    """
    ordered = sorted(periods, key=lambda p: p.id)
    results: List[PeriodMetrics] = []
    prev: Optional[Period] = None
    for period in ordered:
        results.append(PeriodMetrics(
            period=period,
            channels={
                ch: channel_metrics(period.data[ch], prev.data[ch] if prev else None)
                for ch in Channel
            },
        ))
        prev = period
    return results
