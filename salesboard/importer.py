"""
Bulk weekly import from pasted CSV text.

One record per line::

    # comment lines and blank lines are skipped
    2025-W31,Trendyol,12541,1097,50
    2025-W31,Hepsiburada,6865,297,24

Each valid line adds its values to the Weekly period of that id. Monthly
periods and the daily ledger are never touched, so imported totals cannot be
reverted line by line; only a weekly reset removes them.

A bad line is counted and skipped; it never aborts the batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from .aggregation import PeriodStore, apply_delta
from .calendar import week_label
from .errors import ValidationError
from .models import Channel, Delta, Granularity, Period, PeriodKey

if TYPE_CHECKING:
    from .outbox import WriteResult

logger = logging.getLogger(__name__)

FIELD_COUNT = 5


@dataclass(frozen=True)
class ImportRow:
    """A validated import line."""
    period_id: str
    channel: Channel
    delta: Delta


@dataclass
class ImportResult:
    """Outcome of a bulk import."""
    succeeded: int = 0
    failed: int = 0
    errors: List[Tuple[int, str]] = field(default_factory=list)
    periods: Dict[PeriodKey, Period] = field(default_factory=dict)
    # Set by the engine once the touched periods have been sent to storage
    write: Optional["WriteResult"] = None

    def to_dict(self) -> Dict[str, int]:
        return {"succeeded": self.succeeded, "failed": self.failed}


def parse_line(line: str) -> ImportRow:
    """Validate one trimmed, non-comment line."""
    parts = [part.strip() for part in line.split(",")]
    if len(parts) != FIELD_COUNT:
        raise ValidationError(f"Expected {FIELD_COUNT} fields, got {len(parts)}")

    period_id, channel_name, revenue, spend, units = parts
    if not period_id:
        raise ValidationError("Missing period id")

    return ImportRow(
        period_id=period_id,
        channel=Channel.parse(channel_name),
        delta=Delta.of(revenue, spend, units),
    )


def import_weekly(store: PeriodStore, text: str) -> ImportResult:
    """Apply every valid line of ``text`` to the weekly periods in ``store``."""
    result = ImportResult()

    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        try:
            row = parse_line(line)
        except ValidationError as e:
            logger.warning("Skipping import line %d: %s", line_no, e)
            result.failed += 1
            result.errors.append((line_no, str(e)))
            continue

        period = apply_delta(
            store,
            Granularity.WEEKLY,
            row.period_id,
            week_label(row.period_id),
            row.channel,
            row.delta,
            sign=1,
        )
        result.periods[period.key] = period
        result.succeeded += 1

    logger.info("Weekly import: %d lines applied, %d skipped", result.succeeded, result.failed)
    return result
