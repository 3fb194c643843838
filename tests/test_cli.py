import csv
import json

from click.testing import CliRunner

from loan_ledger.main import cli

BASE_ARGS = ["accrual", "-p", "10000", "-r", "2", "-t", "12", "-s", "2024-01-01", "--as-of", "2024-01-01"]


def test_accrual_prints_figures():
    result = CliRunner().invoke(cli, BASE_ARGS)
    assert result.exit_code == 0, result.output
    assert "Interest per month         : 200.00" in result.output
    assert "Total interest             : 2400.00" in result.output
    assert "Total amount               : 12400.00" in result.output
    assert "Months elapsed             : 0" in result.output
    assert "Remaining interest" not in result.output


def test_accrual_with_partial_payment_shows_remaining_interest():
    result = CliRunner().invoke(cli, BASE_ARGS + ["--partial-payment", "1000"])
    assert result.exit_code == 0, result.output
    assert "Remaining interest         : 1400.00" in result.output


def test_invalid_principal_is_a_usage_error():
    args = list(BASE_ARGS)
    args[2] = "abc"
    result = CliRunner().invoke(cli, args)
    assert result.exit_code == 2
    assert "principal" in result.output


def test_invalid_as_of_is_a_usage_error():
    args = BASE_ARGS[:-1] + ["someday"]
    result = CliRunner().invoke(cli, args)
    assert result.exit_code == 2


def test_export_to_json(tmp_path):
    path = tmp_path / "accrual.json"
    result = CliRunner().invoke(cli, BASE_ARGS + ["--period-type", "year", "-t", "1", "--output", str(path)])
    assert result.exit_code == 0, result.output
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["accrual"]["totalInterest"] == 2400
    assert data["terms"]["periodType"] == "year"


def test_export_to_csv(tmp_path):
    path = tmp_path / "accrual.csv"
    result = CliRunner().invoke(cli, BASE_ARGS + ["--output", str(path)])
    assert result.exit_code == 0, result.output
    with path.open(newline="", encoding="utf-8") as f:
        rows = {row["Field"]: row["Value"] for row in csv.DictReader(f)}
    assert float(rows["totalAmount"]) == 12400


def test_unsupported_export_format(tmp_path):
    result = CliRunner().invoke(cli, BASE_ARGS + ["--output", str(tmp_path / "accrual.txt")])
    assert result.exit_code == 2


def test_compare_scenarios():
    result = CliRunner().invoke(
        cli,
        [
            "compare",
            "--scenario1",
            "-p 10000 -r 2 -t 12 -s 2024-01-01",
            "--scenario2",
            "-p 10000 -r 2 -t 12 -s 2024-01-01 --partial-payment 1000",
            "--as-of",
            "2024-01-01",
        ],
    )
    assert result.exit_code == 0, result.output
    line = next(l for l in result.output.splitlines() if l.startswith("totalInterest"))
    assert line.split() == ["totalInterest", "2400.00", "1400.00", "-1000.00"]


def test_compare_rejects_unknown_option():
    result = CliRunner().invoke(
        cli, ["compare", "--scenario1", "-p 1 -r 1 -t 1 -s 2024-01-01", "--scenario2", "--bogus 1"]
    )
    assert result.exit_code == 2
