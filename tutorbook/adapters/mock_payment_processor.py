"""
Mock payment processor for running without a payment gateway.
"""

import logging
from decimal import Decimal
from typing import Iterable, List, Tuple

from ..domain.models import ChargeResult

logger = logging.getLogger(__name__)


class MockPaymentProcessor:
    """
    Approves every charge except those whose reference is listed as failing.

    Every attempt is recorded in ``charges`` so tests can assert on them.
    """

    def __init__(self, fail_references: Iterable[str] = ()):
        self.fail_references = set(fail_references)
        self.charges: List[Tuple[Decimal, str]] = []

    def charge(self, amount: Decimal, reference: str) -> ChargeResult:
        """
        Simulate a charge.

        Args:
            amount: Amount to charge
            reference: Payment intent reference

        Returns:
            ChargeResult describing the outcome
        """
        self.charges.append((amount, reference))

        if reference in self.fail_references:
            logger.info("Mock charge %s for %s declined", reference, amount)
            return ChargeResult(succeeded=False, reference=reference, message="Card declined (mock)")

        logger.info("Mock charge %s for %s approved", reference, amount)
        return ChargeResult(succeeded=True, reference=reference)
