"""Data models for the sales rollup engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import (
    Context,
    Decimal,
    DecimalException,
    DivisionByZero,
    Inexact,
    InvalidOperation,
    Overflow,
    Rounded,
    Underflow,
)
from enum import Enum
from typing import Any, Dict, Tuple, Union

from .calendar import parse_date
from .errors import ValidationError

Number = Union[Decimal, int, float, str]


class Channel(Enum):
    """Sales outlets tracked by the dashboard."""

    TRENDYOL = "Trendyol"
    HEPSIBURADA = "Hepsiburada"

    @classmethod
    def parse(cls, value: Union["Channel", str]) -> "Channel":
        """Resolve a channel from its exact name."""
        if isinstance(value, cls):
            return value
        for channel in cls:
            if channel.value == value:
                return channel
        raise ValidationError(f"Unknown channel: {value!r}")


class Granularity(Enum):
    """Calendar granularity of a period."""

    MONTHLY = "Monthly"
    WEEKLY = "Weekly"

    @classmethod
    def parse(cls, value: Union["Granularity", str]) -> "Granularity":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Unknown granularity: {value!r}") from None


# Amounts carry at most this many integer digits and decimal places. Sums of
# such amounts fit ARITHMETIC without rounding; any rounding there raises.
MAX_INTEGER_DIGITS = 30
MAX_SCALE = 10

ARITHMETIC = Context(
    prec=60,
    traps=[InvalidOperation, DivisionByZero, Overflow, Underflow, Inexact, Rounded],
)


def to_decimal(value: Number) -> Decimal:
    """Convert a number or numeric string to a finite Decimal.

    Floats go through ``str`` so that ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.
    """
    if isinstance(value, bool):
        raise ValidationError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    else:
        text = str(value).strip()
        if not text:
            raise ValidationError("Empty number")
        if "_" in text:
            raise ValidationError(f"Not a number: {value!r}")
        try:
            result = Decimal(text)
        except InvalidOperation:
            raise ValidationError(f"Not a number: {value!r}") from None
    if not result.is_finite():
        raise ValidationError(f"Not a finite number: {value!r}")
    try:
        return ARITHMETIC.plus(result)
    except DecimalException:
        raise ValidationError(f"Number out of range: {value!r}") from None


def to_amount(value: Number) -> Decimal:
    """Convert a revenue, spend or units input, enforcing the amount bounds."""
    result = to_decimal(value)
    if result.is_zero():
        return Decimal(0)
    if result.adjusted() >= MAX_INTEGER_DIGITS:
        raise ValidationError(
            f"Number too large: {value!r} (at most {MAX_INTEGER_DIGITS} integer digits)"
        )
    if result.as_tuple().exponent < -MAX_SCALE:
        # Trailing zeros past the scale are dropped, anything else is rejected
        scaled = result.quantize(
            Decimal(1).scaleb(-MAX_SCALE), context=Context(prec=ARITHMETIC.prec)
        )
        if scaled != result:
            raise ValidationError(
                f"Too many decimal places: {value!r} (at most {MAX_SCALE})"
            )
        result = scaled
    return result


@dataclass(frozen=True)
class Delta:
    """A (revenue, spend, units) vector applied to a channel datum."""
    revenue: Decimal = Decimal(0)
    spend: Decimal = Decimal(0)
    units: Decimal = Decimal(0)

    @classmethod
    def of(cls, revenue: Number, spend: Number, units: Number) -> "Delta":
        return cls(to_amount(revenue), to_amount(spend), to_amount(units))


@dataclass
class ChannelDatum:
    """Accumulated totals for one channel within one period."""
    revenue: Decimal = Decimal(0)
    spend: Decimal = Decimal(0)
    units: Decimal = Decimal(0)

    def to_dict(self) -> Dict[str, str]:
        return {
            "revenue": str(self.revenue),
            "spend": str(self.spend),
            "units": str(self.units),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChannelDatum":
        return cls(
            revenue=to_decimal(data.get("revenue", 0)),
            spend=to_decimal(data.get("spend", 0)),
            units=to_decimal(data.get("units", 0)),
        )


def empty_data() -> Dict[Channel, ChannelDatum]:
    """Zeroed data with an entry for every channel."""
    return {channel: ChannelDatum() for channel in Channel}


PeriodKey = Tuple[str, Granularity]


@dataclass
class Period:
    """Aggregate bucket for one calendar month or ISO week."""
    id: str
    label: str
    granularity: Granularity
    data: Dict[Channel, ChannelDatum] = field(default_factory=empty_data)

    @property
    def key(self) -> PeriodKey:
        return (self.id, self.granularity)

    def copy(self) -> "Period":
        return Period(
            id=self.id,
            label=self.label,
            granularity=self.granularity,
            data={
                ch: ChannelDatum(d.revenue, d.spend, d.units)
                for ch, d in self.data.items()
            },
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "granularity": self.granularity.value,
            "data": {ch.value: datum.to_dict() for ch, datum in self.data.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Period":
        # Stored rows may predate a channel; missing ones start at zero
        channel_data = empty_data()
        for name, datum in (data.get("data") or {}).items():
            channel_data[Channel.parse(name)] = ChannelDatum.from_dict(datum or {})
        return cls(
            id=str(data["id"]),
            label=str(data.get("label") or data["id"]),
            granularity=Granularity.parse(data["granularity"]),
            data=channel_data,
        )


@dataclass(frozen=True)
class DailyEntry:
    """An atomic daily contribution for one channel."""
    id: str
    date: date
    channel: Channel
    revenue: Decimal
    spend: Decimal
    units: Decimal

    @property
    def delta(self) -> Delta:
        return Delta(self.revenue, self.spend, self.units)

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "channel": self.channel.value,
            "revenue": str(self.revenue),
            "spend": str(self.spend),
            "units": str(self.units),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DailyEntry":
        return cls(
            id=str(data["id"]),
            date=parse_date(data["date"]),
            channel=Channel.parse(data["channel"]),
            revenue=to_decimal(data.get("revenue", 0)),
            spend=to_decimal(data.get("spend", 0)),
            units=to_decimal(data.get("units", 0)),
        )
