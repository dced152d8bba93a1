"""Period store and delta applicator.

Periods are only ever mutated through ``apply_delta``: it creates the period
on first contribution and adds a signed (revenue, spend, units) vector to a
single channel. Values are Decimals added in ``ARITHMETIC``, which raises
rather than rounds, so a +1 followed by a -1 of the same delta cancels exactly
and totals do not depend on application order.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from .models import ARITHMETIC, Channel, Delta, Granularity, Period, PeriodKey

logger = logging.getLogger(__name__)

SIGNS = (1, -1)


class PeriodStore:
    """Periods keyed by ``(period_id, granularity)``."""

    def __init__(self, periods: Optional[Iterable[Period]] = None) -> None:
        self._periods: Dict[PeriodKey, Period] = {}
        for period in periods or []:
            self._periods[period.key] = period

    def __len__(self) -> int:
        return len(self._periods)

    def __iter__(self) -> Iterator[Period]:
        return iter(self._periods.values())

    def __contains__(self, key: PeriodKey) -> bool:
        return key in self._periods

    def get(self, period_id: str, granularity: Granularity) -> Optional[Period]:
        return self._periods.get((period_id, granularity))

    def sorted(self, granularity: Granularity) -> List[Period]:
        """Periods of one granularity in chronological (id) order."""
        periods = [p for p in self._periods.values() if p.granularity is granularity]
        periods.sort(key=lambda p: p.id)
        return periods

    def ensure(self, period_id: str, granularity: Granularity, label: str) -> Period:
        """Get a period, creating it zeroed when absent."""
        key = (period_id, granularity)
        period = self._periods.get(key)
        if period is None:
            period = Period(id=period_id, label=label, granularity=granularity)
            self._periods[key] = period
            logger.debug("Created %s period %s", granularity.value, period_id)
        return period

    def reset(self, granularity: Granularity) -> int:
        """Drop every period of a granularity. Returns how many were removed."""
        doomed = [key for key in self._periods if key[1] is granularity]
        for key in doomed:
            del self._periods[key]
        return len(doomed)


def apply_delta(
    store: PeriodStore,
    granularity: Granularity,
    period_id: str,
    label: str,
    channel: Channel,
    delta: Delta,
    sign: int = 1,
) -> Period:
    """Add ``sign * delta`` to one channel of one period.

    Returns the mutated period, which is the one record that needs to be
    persisted. Negative results are kept as-is.
    """
    if sign not in SIGNS:
        raise ValueError(f"sign must be +1 or -1, got {sign!r}")

    period = store.ensure(period_id, granularity, label)
    datum = period.data[channel]
    op = ARITHMETIC.add if sign == 1 else ARITHMETIC.subtract
    # All three are computed before any is assigned
    revenue = op(datum.revenue, delta.revenue)
    spend = op(datum.spend, delta.spend)
    units = op(datum.units, delta.units)
    datum.revenue, datum.spend, datum.units = revenue, spend, units
    return period
