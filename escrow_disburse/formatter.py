"""Output helpers for the escrow disbursement calculator.

This module renders computed disbursements as plain tab-separated tables for
the terminal. Spreadsheet output lives in ``excel_export``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List

from .data_models import AccountDisbursement


def _money(value) -> str:
    if value is None:
        return "-"
    return f"{value:.2f}"


def print_account(account: AccountDisbursement) -> None:
    """Print the header block and line items for one escrow account."""
    print(f"Escrow account     : {account.escrow_account_identifier}")
    print(f"Property           : {account.property_address or '-'}")
    print(f"Ownership          : {account.ownership}")
    print(f"Current balance    : {_money(account.current_balance)}")
    print(f"Rent               : {_money(account.rent)}")
    print(f"Disbursed (month)  : {_money(account.disbursed_this_month)}")
    if account.already_disbursed_for_the_month:
        print("Already disbursed for the month; amounts shown as zero")
    headers = ["Amount", "Type", "Beneficiary", "Bank", "IFSC", "Account", "AccType"]
    print("\t".join(headers))
    for item in account.disbursements:
        row = [
            _money(item.amount),
            item.disbursement_type,
            item.account_name or "",
            item.bank_name or "",
            item.ifsc_num or "",
            item.account_num or "",
            item.account_type,
        ]
        print("\t".join(row))
    print(f"Total              : {_money(account.total_amount)}")


def print_disbursements(accounts: Iterable[AccountDisbursement]) -> None:
    """Print every account followed by a batch summary."""
    rows: List[AccountDisbursement] = list(accounts)
    for account in rows:
        print_account(account)
        print("-" * 72)
    grand_total = sum((a.total_amount for a in rows), Decimal("0"))
    line_items = sum(len(a.disbursements) for a in rows)
    print("Summary")
    print("-" * 72)
    print(f"Accounts           : {len(rows)}")
    print(f"Line items         : {line_items}")
    print(f"Total disbursed    : {_money(grand_total)}")
    print("-" * 72)
