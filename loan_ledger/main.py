"""Command‑line interface for the loan ledger.

This module uses the ``click`` library to implement a multi‑command
interface. Users can compute the accrued interest figures of a loan, export
them to JSON/CSV files or compare two sets of loan terms.
"""

from __future__ import annotations

import csv
import json
import shlex
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import click

from .config import Settings, setup_logging
from .data_models import PERIOD_TYPES, AccrualResult, LoanTerms
from .engine import compute_accrual
from .formatter import print_accrual, print_comparison
from .utils import InvalidInput, parse_start_date


def parse_as_of(value: Optional[str]) -> datetime:
    """Parse the evaluation time, defaulting to the current UTC time."""
    if not value:
        return datetime.now(timezone.utc)
    try:
        return parse_start_date(value)
    except InvalidInput as exc:
        raise click.BadParameter(f"Invalid evaluation time: {value}", param_hint="--as-of") from exc


def build_terms_from_options(
    principal: str,
    rate: str,
    period: str,
    period_type: str,
    start_date: str,
    partial_payment: Optional[str] = None,
    interest_period_type: str = "month",
) -> LoanTerms:
    # Values stay as strings; the engine owns their validation
    return LoanTerms(
        principal=principal,
        rate_per_unit=rate,
        period=period,
        period_type=period_type.lower(),
        start_date=start_date,
        partial_payment=partial_payment or 0,
        interest_period_type=interest_period_type.lower(),
    )


def compute_or_fail(terms: LoanTerms, as_of: datetime) -> AccrualResult:
    try:
        return compute_accrual(terms, as_of)
    except InvalidInput as exc:
        raise click.BadParameter(str(exc), param_hint=exc.field) from exc


def export_to_json(path: Path, terms: LoanTerms, result: AccrualResult, as_of: datetime) -> None:
    """Export the terms and computed figures to a JSON file."""
    data = {
        "evaluationTime": as_of.isoformat(),
        "terms": {
            "principal": str(terms.principal),
            "ratePerUnit": str(terms.rate_per_unit),
            "period": str(terms.period),
            "periodType": terms.period_type,
            "startDate": str(terms.start_date),
            "interestPeriodType": terms.interest_period_type,
        },
        "accrual": result.to_dict(),
    }
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, result: AccrualResult) -> None:
    """Export the computed figures to a two-column CSV file."""
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["Field", "Value"])
        for key, value in result.to_dict().items():
            writer.writerow([key, value])


@click.group()
@click.option("--log-level", "log_level", default=None, help="Logging level (defaults to LOAN_LEDGER_LOG_LEVEL)")
def cli(log_level: Optional[str]) -> None:
    """A personal-loan ledger computing simple interest accrual."""
    setup_logging(log_level or Settings.from_env().log_level)


@cli.command()
@click.option("--principal", "-p", "principal", required=True, help="Amount lent")
@click.option("--rate", "-r", "rate", required=True, help="Interest per 100 units of principal per month")
@click.option("--period", "-t", "period", required=True, help="Agreed tenor")
@click.option("--period-type", "period_type", type=click.Choice(PERIOD_TYPES), default="month", help="Unit of the tenor")
@click.option("--start-date", "-s", "start_date", required=True, help="Date the loan started (YYYY-MM-DD)")
@click.option("--partial-payment", "partial_payment", help="Amount already paid toward interest")
@click.option(
    "--interest-period-type",
    "interest_period_type",
    type=click.Choice(PERIOD_TYPES),
    default="month",
    help="Period covered by the partial payment",
)
@click.option("--as-of", "as_of", help="Evaluation time (ISO-8601); defaults to now")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def accrual(
    principal: str,
    rate: str,
    period: str,
    period_type: str,
    start_date: str,
    partial_payment: Optional[str],
    interest_period_type: str,
    as_of: Optional[str],
    output: Optional[str],
) -> None:
    """Compute and print the interest figures of a loan."""
    terms = build_terms_from_options(
        principal, rate, period, period_type, start_date, partial_payment, interest_period_type
    )
    evaluation_time = parse_as_of(as_of)
    result = compute_or_fail(terms, evaluation_time)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, terms, result, evaluation_time)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Accrual exported to {path}")
    else:
        print_accrual(terms, result)


@cli.command()
@click.option("--scenario1", "scenario1", required=True, help="First scenario options quoted string")
@click.option("--scenario2", "scenario2", required=True, help="Second scenario options quoted string")
@click.option("--as-of", "as_of", help="Evaluation time (ISO-8601); defaults to now")
def compare(scenario1: str, scenario2: str, as_of: Optional[str]) -> None:
    """Compare two sets of loan terms.

    Scenarios are provided as quoted option strings, for example:

        loan-ledger compare --scenario1 "-p 10000 -r 2 -t 12 -s 2024-01-01" --scenario2 "-p 10000 -r 1.5 -t 2 --period-type year -s 2024-01-01"
    """
    def parse_scenario_opts(opts: str) -> Dict[str, Any]:
        tokens = shlex.split(opts)
        params: Dict[str, Any] = {
            "principal": None,
            "rate": None,
            "period": None,
            "period_type": "month",
            "start_date": None,
            "partial_payment": None,
            "interest_period_type": "month",
        }
        flags = {
            "-p": "principal",
            "--principal": "principal",
            "-r": "rate",
            "--rate": "rate",
            "-t": "period",
            "--period": "period",
            "--period-type": "period_type",
            "-s": "start_date",
            "--start-date": "start_date",
            "--partial-payment": "partial_payment",
            "--interest-period-type": "interest_period_type",
        }
        i = 0
        while i < len(tokens):
            token = tokens[i]
            if token not in flags:
                raise click.BadParameter(f"Unknown option in scenario: {token}")
            if i + 1 >= len(tokens):
                raise click.BadParameter(f"Option {token} in scenario needs a value")
            params[flags[token]] = tokens[i + 1]
            i += 2
        for r in ("principal", "rate", "period", "start_date"):
            if params[r] is None:
                raise click.BadParameter(f"Scenario missing required option {r}")
        return params

    evaluation_time = parse_as_of(as_of)
    result1 = compute_or_fail(build_terms_from_options(**parse_scenario_opts(scenario1)), evaluation_time)
    result2 = compute_or_fail(build_terms_from_options(**parse_scenario_opts(scenario2)), evaluation_time)
    print_comparison(result1, result2)


if __name__ == "__main__":
    cli()
