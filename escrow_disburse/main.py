"""Command‑line interface for the escrow disbursement calculator.

This module uses the ``click`` library to implement a multi‑command
interface. Users can compute disbursements for a set of escrow records and
print them, export them to XLSX/JSON/CSV, or run the full report pipeline the
way the scheduled job does. Paths and the user id can also be supplied through
environment variables.
"""

from __future__ import annotations

import csv
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from .data_models import AccountDisbursement, ReferenceAccounts
from .engine import MissingReferenceAccountError, compute_account_disbursements
from .excel_export import REPORT_COLUMNS, generate_disbursements_excel, iter_report_rows
from .formatter import print_disbursements
from .ingest import JsonRecordSource, load_reference_accounts
from .service import USER_ID_ENV, handle_event


def _json_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, bool, int)):
        return value
    return float(value)


def disbursement_to_dict(account: AccountDisbursement) -> Dict[str, Any]:
    return {
        "escrowAccountNum": account.escrow_account_identifier,
        "propertyAddress": account.property_address,
        "ownership": account.ownership,
        "currentBalance": _json_value(account.current_balance),
        "rent": _json_value(account.rent),
        "disbursedThisMonth": _json_value(account.disbursed_this_month),
        "alreadyDisbursedForTheMonth": account.already_disbursed_for_the_month,
        "disbursements": [
            {
                "amount": _json_value(item.amount),
                "disbursementType": item.disbursement_type,
                "accountName": item.account_name,
                "bankName": item.bank_name,
                "ifscNum": item.ifsc_num,
                "accountNum": item.account_num,
                "accountType": item.account_type,
            }
            for item in account.disbursements
        ],
    }


def export_to_json(path: Path, accounts: List[AccountDisbursement]) -> None:
    """Export disbursements to a JSON file."""
    data = {"disbursements": [disbursement_to_dict(a) for a in accounts]}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, accounts: List[AccountDisbursement]) -> None:
    """Export disbursements to a CSV file, one row per line item."""
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow([header for header, _, _ in REPORT_COLUMNS])
        for account in accounts:
            for row in iter_report_rows(account):
                writer.writerow([_json_value(row[key]) for _, key, _ in REPORT_COLUMNS])


def _load_references(path: str) -> Dict[str, ReferenceAccounts]:
    try:
        return load_reference_accounts(Path(path))
    except (OSError, ValueError) as exc:
        raise click.BadParameter(str(exc), param_hint="--reference-accounts")


records_option = click.option(
    "--records",
    "records_path",
    required=True,
    envvar="ESCROW_RECORDS_PATH",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file with the escrow records",
)
references_option = click.option(
    "--reference-accounts",
    "references_path",
    required=True,
    envvar="REFERENCE_ACCOUNTS_PATH",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file with platform fee and expense accounts per ownership",
)
user_option = click.option(
    "--user-id",
    "user_id",
    envvar=USER_ID_ENV,
    help="Owner whose escrow accounts are processed",
)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose: bool) -> None:
    """Compute escrow disbursements and build the disbursement report."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@cli.command()
@records_option
@references_option
@user_option
@click.option("--output", "output", type=str, help="Output file path (.xlsx, .json or .csv)")
def compute(records_path: str, references_path: str, user_id: Optional[str], output: Optional[str]) -> None:
    """Compute disbursements and print them or export them to a file."""
    references = _load_references(references_path)
    source = JsonRecordSource(Path(records_path))
    try:
        records = source.fetch(user_id)
        accounts = compute_account_disbursements(records, references)
    except MissingReferenceAccountError as exc:
        raise click.ClickException(str(exc))
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--records")

    if output:
        path = Path(output)
        suffix = path.suffix.lower()
        if suffix == ".xlsx":
            result = generate_disbursements_excel(accounts, output_path=path)
            click.echo(f"Disbursements exported to {result.file_path} ({result.row_count} rows, {result.account_count} accounts)")
        elif suffix == ".json":
            export_to_json(path, accounts)
            click.echo(f"Disbursements exported to {path}")
        elif suffix == ".csv":
            export_to_csv(path, accounts)
            click.echo(f"Disbursements exported to {path}")
        else:
            raise click.BadParameter("Unsupported output format; use .xlsx, .json or .csv")
    else:
        print_disbursements(accounts)


@cli.command()
@records_option
@references_option
@user_option
@click.option(
    "--output",
    "output",
    envvar="REPORT_OUTPUT_PATH",
    type=str,
    help="Directory or .xlsx path for the report (defaults to the temp directory)",
)
def report(records_path: str, references_path: str, user_id: Optional[str], output: Optional[str]) -> None:
    """Run the report job and print its JSON response."""
    references = _load_references(references_path)
    source = JsonRecordSource(Path(records_path))
    response = handle_event({"userId": user_id}, source, references, output_path=output)
    click.echo(json.dumps(response, indent=2))
    if response["statusCode"] != 200:
        sys.exit(1)


if __name__ == "__main__":
    cli()
