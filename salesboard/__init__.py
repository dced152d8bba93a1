"""
Channel sales rollups.

Monthly and ISO-weekly revenue, ad spend and units per sales channel, built
from daily entries and bulk weekly imports, with ROAS and period-over-period
metrics computed on read.
"""

from .aggregation import PeriodStore, apply_delta
from .calendar import iso_week, month_id, parse_date, week_id, week_label
from .engine import SalesEngine
from .errors import EntryNotFoundError, PersistenceError, SalesboardError, ValidationError
from .importer import ImportResult, import_weekly, parse_line
from .ledger import DailyLedger
from .metrics import ChannelMetrics, PeriodMetrics, derive_metrics, period_over_period, roas
from .models import Channel, ChannelDatum, DailyEntry, Delta, Granularity, Period
from .outbox import PendingWrite, WriteResult
from .storage import PersistenceAdapter, select_adapter

__version__ = "1.0.0"

__all__ = [
    # aggregation.py
    "PeriodStore",
    "apply_delta",
    # calendar.py
    "iso_week",
    "month_id",
    "parse_date",
    "week_id",
    "week_label",
    # engine.py
    "SalesEngine",
    # errors.py
    "EntryNotFoundError",
    "PersistenceError",
    "SalesboardError",
    "ValidationError",
    # importer.py
    "ImportResult",
    "import_weekly",
    "parse_line",
    # ledger.py
    "DailyLedger",
    # metrics.py
    "ChannelMetrics",
    "PeriodMetrics",
    "derive_metrics",
    "period_over_period",
    "roas",
    # models.py
    "Channel",
    "ChannelDatum",
    "DailyEntry",
    "Delta",
    "Granularity",
    "Period",
    # outbox.py
    "PendingWrite",
    "WriteResult",
    # storage.py
    "PersistenceAdapter",
    "select_adapter",
]
