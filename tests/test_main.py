from __future__ import annotations

import csv
import json

from click.testing import CliRunner

from escrow_disburse.main import cli


def _args(records_file, reference_accounts_file, *extra):
    return ["--records", str(records_file), "--reference-accounts", str(reference_accounts_file), *extra]


def test_compute_prints_table(records_file, reference_accounts_file) -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["compute", *_args(records_file, reference_accounts_file)])

    assert result.exit_code == 0, result.output
    assert "ESC-1" in result.output
    assert "ESC-2" in result.output
    assert "1180.00\tPMSFee" in result.output
    assert "Accounts           : 2" in result.output


def test_compute_exports_json(tmp_path, records_file, reference_accounts_file) -> None:
    out = tmp_path / "out.json"
    runner = CliRunner()

    result = runner.invoke(
        cli, ["compute", *_args(records_file, reference_accounts_file, "--user-id", "owner-1", "--output", str(out))]
    )

    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    [account] = data["disbursements"]
    assert account["escrowAccountNum"] == "ESC-1"
    assert account["alreadyDisbursedForTheMonth"] is False
    assert [d["amount"] for d in account["disbursements"]] == [1180.0, 8570.0, 250.0]
    assert [d["disbursementType"] for d in account["disbursements"]] == ["PMSFee", "Rent", "Expense"]


def test_compute_exports_csv(tmp_path, records_file, reference_accounts_file) -> None:
    out = tmp_path / "out.csv"
    runner = CliRunner()

    result = runner.invoke(cli, ["compute", *_args(records_file, reference_accounts_file, "--output", str(out))])

    assert result.exit_code == 0, result.output
    with out.open(newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0][0] == "Escrow Account #"
    assert len(rows) == 5


def test_compute_exports_xlsx(tmp_path, records_file, reference_accounts_file) -> None:
    out = tmp_path / "out.xlsx"
    runner = CliRunner()

    result = runner.invoke(cli, ["compute", *_args(records_file, reference_accounts_file, "--output", str(out))])

    assert result.exit_code == 0, result.output
    assert out.exists()
    assert "4 rows, 2 accounts" in result.output


def test_compute_rejects_unknown_format(tmp_path, records_file, reference_accounts_file) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli, ["compute", *_args(records_file, reference_accounts_file, "--output", str(tmp_path / "out.txt"))]
    )

    assert result.exit_code != 0
    assert "Unsupported output format" in result.output


def test_compute_missing_reference_account(tmp_path, records_file) -> None:
    refs = tmp_path / "refs.json"
    refs.write_text(json.dumps({}), encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(cli, ["compute", *_args(records_file, refs)])

    assert result.exit_code == 1
    assert "Did not find the ownership disbursement account for acme" in result.output


def test_report_uses_environment(tmp_path, records_file, reference_accounts_file) -> None:
    runner = CliRunner()
    env = {
        "ESCROW_RECORDS_PATH": str(records_file),
        "REFERENCE_ACCOUNTS_PATH": str(reference_accounts_file),
        "USER_ID": "owner-2",
        "REPORT_OUTPUT_PATH": str(tmp_path),
    }

    result = runner.invoke(cli, ["report"], env=env)

    assert result.exit_code == 0, result.output
    assert "\"statusCode\": 200" in result.output
    assert "\"accountCount\": 1" in result.output


def test_report_without_user_fails(monkeypatch, records_file, reference_accounts_file) -> None:
    monkeypatch.delenv("USER_ID", raising=False)
    runner = CliRunner()

    result = runner.invoke(cli, ["report", *_args(records_file, reference_accounts_file)])

    assert result.exit_code == 1
    assert "\"statusCode\": 400" in result.output
