"""
Session pricing and platform fee split.

Amounts are ``Decimal`` throughout. Totals are not rounded; only the platform
fee is rounded to cents, and tutor earnings take the remainder so the split
always adds back up to the total.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from .enums import SessionDuration

PLATFORM_FEE_RATE = Decimal("0.04")
CENTS = Decimal("0.01")

Number = Union[Decimal, int, str]


def to_decimal(value: Union[Number, float]) -> Decimal:
    """Convert to Decimal; floats go through ``str`` so 45.1 stays 45.1."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round2(amount: Decimal) -> Decimal:
    """Round to cents, half up."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_total(hourly_rate: Union[Number, float], duration_minutes: int) -> Decimal:
    """
    Price of a session: hourly rate times duration in hours.

    Raises:
        ValueError: If the rate or the duration is not positive
    """
    rate = to_decimal(hourly_rate)
    minutes = int(duration_minutes)
    if rate <= 0:
        raise ValueError(f"Hourly rate must be positive, got {rate}")
    if minutes <= 0:
        raise ValueError(f"Duration must be positive, got {minutes}")
    return rate * Decimal(minutes) / Decimal(60)


@dataclass(frozen=True)
class FeeSplit:
    platform_fee: Decimal
    tutor_earnings: Decimal

    @property
    def total(self) -> Decimal:
        return self.platform_fee + self.tutor_earnings


def compute_fee_split(amount: Union[Number, float], fee_rate: Decimal = PLATFORM_FEE_RATE) -> FeeSplit:
    """Split an amount into the platform's commission and the tutor's share."""
    total = to_decimal(amount)
    platform_fee = round2(total * fee_rate)
    return FeeSplit(platform_fee=platform_fee, tutor_earnings=total - platform_fee)


@dataclass(frozen=True)
class Quote:
    """Price breakdown shown to a student before booking."""
    hourly_rate: Decimal
    duration: SessionDuration
    total: Decimal
    platform_fee: Decimal
    tutor_earnings: Decimal

    @property
    def display_total(self) -> Decimal:
        return round2(self.total)

    @property
    def display_tutor_earnings(self) -> Decimal:
        return round2(self.tutor_earnings)


def quote(
    hourly_rate: Union[Number, float],
    duration: SessionDuration,
    fee_rate: Decimal = PLATFORM_FEE_RATE,
) -> Quote:
    total = compute_total(hourly_rate, int(duration))
    split = compute_fee_split(total, fee_rate)
    return Quote(
        hourly_rate=to_decimal(hourly_rate),
        duration=SessionDuration(duration),
        total=total,
        platform_fee=split.platform_fee,
        tutor_earnings=split.tutor_earnings,
    )
