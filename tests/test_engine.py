from datetime import date, datetime, timedelta, timezone

import pytest

from loan_ledger.data_models import LoanTerms
from loan_ledger.engine import compute_accrual, months_between, tenor_in_months
from loan_ledger.utils import InvalidInput

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_terms(**overrides):
    values = dict(principal=10000, rate_per_unit=2, period=12, period_type="month", start_date=NOW)
    values.update(overrides)
    return LoanTerms(**values)


def test_monthly_loan_started_now():
    result = compute_accrual(make_terms(), NOW)
    assert result.interest_per_month == 200
    assert result.total_interest == 2400
    assert result.total_amount == 12400
    assert result.months_elapsed == 0
    assert result.interest_for_elapsed_months == 0
    assert result.total_amount_for_elapsed_months == 10000
    assert result.remaining_interest == 0
    assert result.principal == 10000
    assert result.partial_payment == 0


def test_yearly_tenor_is_normalized_to_months():
    monthly = compute_accrual(make_terms(), NOW)
    yearly = compute_accrual(make_terms(period=1, period_type="year"), NOW)
    assert yearly.total_interest == monthly.total_interest == 2400


def test_partial_payment_is_credited_against_total_interest():
    result = compute_accrual(make_terms(partial_payment=1000), NOW)
    assert result.total_interest == 1400
    assert result.remaining_interest == 1400
    assert result.partial_payment == 1000


def test_partial_payment_larger_than_interest_floors_at_zero():
    result = compute_accrual(make_terms(partial_payment=5000), NOW)
    assert result.total_interest == 0
    assert result.remaining_interest == 0


def test_negative_partial_payment_is_ignored():
    result = compute_accrual(make_terms(partial_payment=-50), NOW)
    assert result.total_interest == 2400
    assert result.remaining_interest == 0
    assert result.partial_payment == -50


@pytest.mark.parametrize(
    "offset, expected",
    [
        (timedelta(days=-29), 0),
        (timedelta(days=-30), 1),
        (timedelta(days=-59), 1),
        (timedelta(days=-60), 2),
        (timedelta(days=10), -1),
        (timedelta(days=0), 0),
    ],
)
def test_elapsed_months_use_thirty_day_floor(offset, expected):
    result = compute_accrual(make_terms(start_date=NOW + offset), NOW)
    assert result.months_elapsed == expected
    assert result.interest_for_elapsed_months == 200 * expected
    assert result.total_amount_for_elapsed_months == 10000 + 200 * expected


def test_string_inputs_are_coerced():
    result = compute_accrual(
        make_terms(principal="10,000", rate_per_unit=" 2 ", period="12", start_date="2024-05-02"),
        NOW,
    )
    assert result.interest_per_month == 200
    assert result.total_interest == 2400
    assert result.months_elapsed == 1


def test_plain_date_start_is_midnight_utc():
    result = compute_accrual(make_terms(start_date=date(2024, 5, 2)), NOW)
    assert result.months_elapsed == 1


def test_naive_evaluation_time_is_treated_as_utc():
    naive_now = NOW.replace(tzinfo=None)
    assert compute_accrual(make_terms(), naive_now) == compute_accrual(make_terms(), NOW)


def test_rate_is_applied_before_dividing_by_hundred():
    result = compute_accrual(make_terms(principal=3, rate_per_unit=7), NOW)
    assert result.interest_per_month == (7 * 3) / 100


@pytest.mark.parametrize(
    "field, value",
    [
        ("principal", "abc"),
        ("principal", None),
        ("principal", float("nan")),
        ("principal", 10**400),
        ("principal", "1_000"),
        ("rate_per_unit", "two"),
        ("rate_per_unit", float("inf")),
        ("period", ""),
        ("period", True),
        ("start_date", "not-a-date"),
        ("start_date", "2024-02-30"),
        ("partial_payment", "some"),
    ],
)
def test_invalid_inputs_raise(field, value):
    with pytest.raises(InvalidInput):
        compute_accrual(make_terms(**{field: value}), NOW)


def test_invalid_input_names_the_field():
    with pytest.raises(InvalidInput) as excinfo:
        compute_accrual(make_terms(principal="abc"), NOW)
    assert excinfo.value.field == "principal"


def test_degenerate_inputs_are_accepted():
    result = compute_accrual(make_terms(principal=0, period=0), NOW)
    assert result.total_interest == 0
    assert result.total_amount == 0


def test_compute_is_idempotent():
    terms = make_terms(partial_payment=321.5, start_date=NOW - timedelta(days=95))
    assert compute_accrual(terms, NOW) == compute_accrual(terms, NOW)


@pytest.mark.parametrize("principal", [0.01, 1, 999.99, 10000, 2.5e6])
@pytest.mark.parametrize("rate", [0, 0.5, 2, 3.75])
@pytest.mark.parametrize("partial_payment", [0, 100, 1e9])
def test_totals_are_exact_identities(principal, rate, partial_payment):
    terms = make_terms(
        principal=principal,
        rate_per_unit=rate,
        partial_payment=partial_payment,
        start_date=NOW - timedelta(days=100),
    )
    result = compute_accrual(terms, NOW)
    assert result.total_amount == result.principal + result.total_interest
    assert result.total_amount_for_elapsed_months == result.principal + result.interest_for_elapsed_months
    assert result.total_interest >= 0
    if partial_payment == 0:
        assert result.remaining_interest == 0
        assert result.total_interest == result.interest_per_month * 12
    else:
        assert result.remaining_interest == result.total_interest


def test_longer_period_never_decreases_interest():
    totals = [compute_accrual(make_terms(period=p, partial_payment=700), NOW).total_interest for p in range(0, 25)]
    assert totals == sorted(totals)


def test_tenor_and_elapsed_helpers():
    assert tenor_in_months(2, "year") == 24
    assert tenor_in_months(5, "month") == 5
    assert months_between(NOW - timedelta(days=90), NOW) == 3


def test_payment_period_months():
    assert make_terms(interest_period_type="year").payment_period_months == 12
    assert make_terms(interest_period_type=" Year ").payment_period_months == 12
    assert make_terms().payment_period_months == 1
