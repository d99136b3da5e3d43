"""
Earnings summary for a tutor's dashboard.

Earned amounts can be limited to a calendar period (this week, this month,
last month, this year) placed around a reference moment. A payment falls in
the period in which it was processed.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

import pendulum

from .enums import PaymentStatus
from .models import Payment
from .pricing import round2

_IN_FLIGHT = {PaymentStatus.PENDING, PaymentStatus.PROCESSING}

RECENT_PAYMENTS_LIMIT = 5


class EarningsPeriod(str, enum.Enum):
    THIS_WEEK = "thisWeek"
    THIS_MONTH = "thisMonth"
    LAST_MONTH = "lastMonth"
    THIS_YEAR = "thisYear"

    @property
    def display_name(self) -> str:
        return {
            EarningsPeriod.THIS_WEEK: "This Week",
            EarningsPeriod.THIS_MONTH: "This Month",
            EarningsPeriod.LAST_MONTH: "Last Month",
            EarningsPeriod.THIS_YEAR: "This Year",
        }[self]

    def bounds(self, reference: datetime) -> Tuple[datetime, datetime]:
        """
        Half-open [start, end) of the period around ``reference``.

        Boundaries are midnights in the reference's own timezone; weeks start
        on Monday.
        """
        moment = pendulum.instance(reference)
        if self is EarningsPeriod.THIS_WEEK:
            start = moment.start_of("week")
            return start, start.add(weeks=1)
        if self is EarningsPeriod.THIS_MONTH:
            start = moment.start_of("month")
            return start, start.add(months=1)
        if self is EarningsPeriod.LAST_MONTH:
            end = moment.start_of("month")
            return end.subtract(months=1), end
        start = moment.start_of("year")
        return start, start.add(years=1)


@dataclass(frozen=True)
class EarningsSummary:
    tutor_id: str
    gross_amount: Decimal
    platform_fees: Decimal
    total_earnings: Decimal
    pending_amount: Decimal
    session_count: int
    period: Optional[EarningsPeriod] = None

    @property
    def average_per_session(self) -> Decimal:
        if not self.session_count:
            return Decimal("0.00")
        return round2(self.total_earnings / self.session_count)


def settled_at(payment: Payment) -> datetime:
    """When the payment was processed, or created if it never was."""
    return payment.processed_at or payment.created_at


def summarize_earnings(
    payments: Iterable[Payment],
    tutor_id: str,
    period: Optional[EarningsPeriod] = None,
    reference: Optional[datetime] = None,
) -> EarningsSummary:
    """
    Aggregate settled and in-flight payments for one tutor.

    Args:
        payments: Candidate payments; other tutors' payments are skipped
        tutor_id: The tutor being summarized
        period: Limit earned amounts to this period; None means all time
        reference: Moment the period is placed around (default: now)

    Returns:
        EarningsSummary. The pending amount is never limited by the period,
        since in-flight payments have not been processed yet.
    """
    window = None
    if period is not None:
        window = period.bounds(reference or pendulum.now())

    gross = fees = earnings = pending = Decimal("0")
    count = 0

    for payment in payments:
        if payment.tutor_id != tutor_id:
            continue
        if payment.status is PaymentStatus.SUCCEEDED:
            if window is not None and not window[0] <= settled_at(payment) < window[1]:
                continue
            gross += payment.amount
            fees += payment.platform_fee
            earnings += payment.tutor_earnings
            count += 1
        elif payment.status in _IN_FLIGHT:
            pending += payment.tutor_earnings

    return EarningsSummary(
        tutor_id=tutor_id,
        gross_amount=gross,
        platform_fees=fees,
        total_earnings=earnings,
        pending_amount=pending,
        session_count=count,
        period=period,
    )


def recent_payments(
    payments: Iterable[Payment],
    tutor_id: str,
    limit: int = RECENT_PAYMENTS_LIMIT,
) -> List[Payment]:
    """The tutor's succeeded payments, most recently processed first."""
    settled = [
        payment for payment in payments
        if payment.tutor_id == tutor_id and payment.status is PaymentStatus.SUCCEEDED
    ]
    settled.sort(key=settled_at, reverse=True)
    return settled[:limit]
