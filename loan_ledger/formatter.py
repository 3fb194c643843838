"""Output helpers for the loan ledger.

This module renders accrual results in a tabular text format for the
terminal. Values are rounded to two decimals for display only; the results
themselves are never rounded.
"""

from __future__ import annotations

from .data_models import AccrualResult, LoanTerms

COMPARED_FIELDS = [
    "interestPerMonth",
    "totalInterest",
    "totalAmount",
    "interestForElapsedMonths",
    "remainingInterest",
]


def print_accrual(terms: LoanTerms, result: AccrualResult) -> None:
    """Print the derived figures of a loan in a human-readable format."""
    print("Accrual")
    print("-" * 72)
    print(f"Principal                  : {result.principal:.2f}")
    print(f"Rate per 100 / month       : {terms.rate_per_unit}")
    print(f"Tenor                      : {terms.period} {terms.period_type}(s)")
    print(f"Interest per month         : {result.interest_per_month:.2f}")
    print(f"Total interest             : {result.total_interest:.2f}")
    print(f"Total amount               : {result.total_amount:.2f}")
    print(f"Months elapsed             : {result.months_elapsed}")
    print(f"Interest (elapsed months)  : {result.interest_for_elapsed_months:.2f}")
    print(f"Total amount (elapsed)     : {result.total_amount_for_elapsed_months:.2f}")
    # Only meaningful once something has been paid toward interest
    if result.partial_payment > 0:
        print(f"Partial payment            : {result.partial_payment:.2f}")
        print(f"Remaining interest         : {result.remaining_interest:.2f}")
    print("-" * 72)


def print_comparison(r1: AccrualResult, r2: AccrualResult) -> None:
    """Print two accrual results side by side.

    The difference column is scenario2 - scenario1, so a negative value means
    the second scenario costs the borrower less.
    """
    d1 = r1.to_dict()
    d2 = r2.to_dict()
    print("Comparison")
    print("=" * 72)
    print(f"{'Metric':26s} {'Scenario1':>14s} {'Scenario2':>14s} {'Difference':>14s}")
    for key in COMPARED_FIELDS:
        v1 = d1[key]
        v2 = d2[key]
        print(f"{key:26s} {v1:14.2f} {v2:14.2f} {v2 - v1:14.2f}")
    print("=" * 72)
