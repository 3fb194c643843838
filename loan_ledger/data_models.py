"""Data models for the loan ledger.

This module defines dataclasses representing the entities handled by the
accrual calculator: the terms a lender agrees with a borrower, the borrower's
contact details and the derived figures computed from the terms. The records
kept by the loan store embed one ``LoanTerms`` snapshot and the
``AccrualResult`` computed from it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional, Union

PERIOD_MONTH = "month"
PERIOD_YEAR = "year"
PERIOD_TYPES = (PERIOD_MONTH, PERIOD_YEAR)

STATUS_ACTIVE = "active"
STATUS_RETURNED = "returned"
STATUS_OVERDUE = "overdue"
LOAN_STATUSES = (STATUS_ACTIVE, STATUS_RETURNED, STATUS_OVERDUE)


@dataclass
class LoanTerms:
    """The agreed terms of a loan.

    Values are kept as received (numbers or numeric strings) and are only
    coerced by the calculator, so a request body can be passed through
    unchanged.

    Attributes
    ----------
    principal:
        The original loan amount before interest.
    rate_per_unit:
        Interest per 100 units of principal, per month. ``2`` means two units
        of interest every month for every 100 lent.
    period:
        The agreed tenor, in months or years depending on ``period_type``.
    period_type: str
        ``"month"`` or ``"year"``. Years are normalized to 12 months each.
    start_date:
        The day the loan started accruing interest.
    partial_payment:
        Amount already paid toward interest. Defaults to 0.
    interest_period_type: str
        ``"month"`` or ``"year"``; the period a partial payment covers.
    """

    principal: Any
    rate_per_unit: Any
    period: Any
    start_date: Union[date, datetime, str]
    period_type: str = PERIOD_MONTH
    partial_payment: Any = 0
    interest_period_type: str = PERIOD_MONTH

    @property
    def payment_period_months(self) -> int:
        """Months covered by one partial payment (informational only)."""
        from .utils import parse_period_type

        return 12 if parse_period_type(self.interest_period_type) == PERIOD_YEAR else 1


@dataclass(frozen=True)
class AccrualResult:
    """Derived figures for a loan at a given evaluation time.

    Results are never mutated; editing a loan produces a new result.
    """

    principal: float
    interest_per_month: float
    total_interest: float
    total_amount: float
    months_elapsed: int
    interest_for_elapsed_months: float
    total_amount_for_elapsed_months: float
    partial_payment: float
    remaining_interest: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "principal": self.principal,
            "interestPerMonth": self.interest_per_month,
            "totalInterest": self.total_interest,
            "totalAmount": self.total_amount,
            "monthsElapsed": self.months_elapsed,
            "interestForElapsedMonths": self.interest_for_elapsed_months,
            "totalAmountForElapsedMonths": self.total_amount_for_elapsed_months,
            "partialPayment": self.partial_payment,
            "remainingInterest": self.remaining_interest,
        }


@dataclass
class Borrower:
    """Contact details of the person who received the loan."""

    name: str
    phone_number: str
    address: str
    alternative_number: Optional[str] = None
    loan_document: Optional[str] = None  # URL of the signed document
