"""Core calculation engine for the loan ledger.

This module implements simple (non-compounding) interest accrual for personal
loans. The rate is quoted per 100 units of principal per month, so every
figure derives from a single monthly interest amount by multiplication.
Elapsed time is measured in whole 30-day months, which is a deliberate
approximation rather than a calendar-accurate month count.

The engine never reads the clock: callers pass the evaluation time in, which
keeps ``compute_accrual`` a pure function of its arguments.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from .data_models import PERIOD_YEAR, AccrualResult, LoanTerms
from .utils import (
    as_utc,
    parse_number,
    parse_partial_payment,
    parse_period,
    parse_period_type,
    parse_start_date,
)

logger = logging.getLogger(__name__)

ACCRUAL_MONTH = timedelta(days=30)


def tenor_in_months(period: int, period_type: str) -> int:
    """Return the tenor in months; years count as 12 months each."""
    return period * 12 if period_type == PERIOD_YEAR else period


def months_between(start: datetime, end: datetime) -> int:
    """Return the number of whole 30-day months from ``start`` to ``end``.

    The division floors toward negative infinity, so a start date 29 days ago
    gives 0 and a start date 10 days in the future gives -1.
    """
    return (as_utc(end) - as_utc(start)) // ACCRUAL_MONTH


def compute_accrual(terms: LoanTerms, evaluation_time: datetime) -> AccrualResult:
    """Compute the derived interest figures for a loan.

    Parameters
    ----------
    terms: LoanTerms
        The loan terms. Numeric fields may be numbers or numeric strings.
    evaluation_time: datetime
        The moment the figures are computed for ("now"). Naive datetimes are
        treated as UTC.

    Returns
    -------
    AccrualResult
        All derived figures. A partial payment is credited against the
        full-tenor interest and the result is floored at zero; the total
        amount is taken after the credit.

    Raises
    ------
    InvalidInput
        If principal, rate or period are not finite numbers, the partial
        payment is present but not numeric, or the start date is invalid.
    """
    principal = parse_number(terms.principal, "principal")
    rate_per_unit = parse_number(terms.rate_per_unit, "ratePerUnit")
    period = parse_period(terms.period)
    partial_payment = parse_partial_payment(terms.partial_payment)
    start = parse_start_date(terms.start_date)
    months = tenor_in_months(period, parse_period_type(terms.period_type))

    # Multiply before dividing to avoid drift for very small principals
    interest_per_month = (rate_per_unit * principal) / 100
    total_interest = interest_per_month * months

    months_elapsed = months_between(start, evaluation_time)
    interest_for_elapsed_months = interest_per_month * months_elapsed
    total_amount_for_elapsed_months = principal + interest_for_elapsed_months

    remaining_interest = 0.0
    if partial_payment > 0:
        total_interest = max(total_interest - partial_payment, 0.0)
        remaining_interest = total_interest

    total_amount = principal + total_interest

    logger.debug(
        "Accrual for principal=%s rate=%s months=%s: elapsed=%s remaining=%s",
        principal,
        rate_per_unit,
        months,
        months_elapsed,
        remaining_interest,
    )
    return AccrualResult(
        principal=principal,
        interest_per_month=interest_per_month,
        total_interest=total_interest,
        total_amount=total_amount,
        months_elapsed=months_elapsed,
        interest_for_elapsed_months=interest_for_elapsed_months,
        total_amount_for_elapsed_months=total_amount_for_elapsed_months,
        partial_payment=partial_payment,
        remaining_interest=remaining_interest,
    )
