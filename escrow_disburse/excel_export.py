"""
Excel Export of Disbursements
=============================

Writes computed disbursements to an XLSX workbook with openpyxl: one row per
line item, account-level cells merged vertically so each account reads as a
block, and alternating fills between accounts.
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from .data_models import AccountDisbursement

logger = logging.getLogger(__name__)

# (header, key, width)
REPORT_COLUMNS: List[Tuple[str, str, int]] = [
    ("Escrow Account #", "escrow_account_num", 18),
    ("Property Address", "property_address", 30),
    ("Current Balance", "current_balance", 16),
    ("Rent", "rent", 12),
    ("Disbursed This Month", "disbursed_this_month", 20),
    ("Disbursement Amount", "amount", 18),
    ("Disbursement Type", "disbursement_type", 18),
    ("Beneficiary Name", "account_name", 24),
    ("Bank Name", "bank_name", 20),
    ("IFSC", "ifsc_num", 14),
    ("Beneficiary Account #", "account_num", 22),
    ("Beneficiary Account Type", "account_type", 22),
]

# Columns A-E hold account-level values
ACCOUNT_LEVEL_COLUMNS = 5
MONEY_COLUMNS = {"current_balance", "rent", "disbursed_this_month", "amount"}

HEADER_FILL = PatternFill(start_color="D9D9D9", end_color="D9D9D9", fill_type="solid")
EVEN_ACCOUNT_FILL = PatternFill(start_color="DDEBF7", end_color="DDEBF7", fill_type="solid")
ODD_ACCOUNT_FILL = PatternFill(start_color="FFFFFF", end_color="FFFFFF", fill_type="solid")


@dataclass
class ReportResult:
    file_path: Path
    row_count: int
    account_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filePath": str(self.file_path),
            "rowCount": self.row_count,
            "accountCount": self.account_count,
        }


def iter_report_rows(account: AccountDisbursement) -> Iterator[Dict[str, Any]]:
    """Yield one flat row per line item of ``account``, keyed like ``REPORT_COLUMNS``."""
    for item in account.disbursements:
        yield {
            "escrow_account_num": account.escrow_account_identifier,
            "property_address": account.property_address,
            "current_balance": account.current_balance,
            "rent": account.rent,
            "disbursed_this_month": account.disbursed_this_month,
            "amount": item.amount,
            "disbursement_type": item.disbursement_type,
            "account_name": item.account_name,
            "bank_name": item.bank_name,
            "ifsc_num": item.ifsc_num,
            "account_num": item.account_num,
            "account_type": item.account_type,
        }


def resolve_output_path(output_path: Optional[Union[str, Path]] = None, file_name: Optional[str] = None) -> Path:
    """Work out where the workbook goes.

    ``output_path`` ending in ``.xlsx`` is used as is; any other value is
    treated as a directory. Without one, the system temp directory is used.
    The file name defaults to ``disbursements-<timestamp>.xlsx``.
    """
    if output_path is not None and str(output_path).lower().endswith(".xlsx"):
        return Path(output_path)
    directory = Path(output_path) if output_path is not None else Path(tempfile.gettempdir())
    if not file_name:
        stamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S-%f")
        file_name = f"disbursements-{stamp}.xlsx"
    return directory / file_name


def generate_disbursements_excel(
    account_disbursements: Sequence[AccountDisbursement],
    output_path: Optional[Union[str, Path]] = None,
    file_name: Optional[str] = None,
) -> ReportResult:
    """Write the disbursements to an XLSX file.

    Accounts without line items are left out of the sheet.

    Returns
    -------
    ReportResult
        Path of the written file, number of data rows (header excluded) and
        number of accounts written.
    """
    if isinstance(account_disbursements, (str, bytes)) or not isinstance(account_disbursements, Sequence):
        raise TypeError("generate_disbursements_excel expected a sequence of account disbursements")

    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = "Disbursements"

    # Header styling
    worksheet.append([header for header, _, _ in REPORT_COLUMNS])
    for col_num, (_, _, width) in enumerate(REPORT_COLUMNS, 1):
        cell = worksheet.cell(row=1, column=col_num)
        cell.font = Font(bold=True)
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center")
        worksheet.column_dimensions[get_column_letter(col_num)].width = width

    account_count = 0
    for account in account_disbursements:
        if not account.disbursements:
            continue
        account_count += 1
        start_row = worksheet.max_row + 1

        for row in iter_report_rows(account):
            worksheet.append([_cell_value(row[key]) for _, key, _ in REPORT_COLUMNS])
        end_row = worksheet.max_row

        fill = EVEN_ACCOUNT_FILL if account_count % 2 == 0 else ODD_ACCOUNT_FILL
        for row_num in range(start_row, end_row + 1):
            for col_num, (_, key, _) in enumerate(REPORT_COLUMNS, 1):
                cell = worksheet.cell(row=row_num, column=col_num)
                cell.fill = fill
                if key in MONEY_COLUMNS:
                    cell.number_format = "#,##0.00"

        # Merge account-level cells vertically for this block
        if end_row > start_row:
            for col_num in range(1, ACCOUNT_LEVEL_COLUMNS + 1):
                letter = get_column_letter(col_num)
                worksheet.merge_cells(f"{letter}{start_row}:{letter}{end_row}")
                worksheet.cell(row=start_row, column=col_num).alignment = Alignment(vertical="center")

    path = resolve_output_path(output_path, file_name)
    path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(path)

    row_count = max(worksheet.max_row - 1, 0)
    logger.info("Generated disbursements Excel at %s with %d rows for %d accounts.", path, row_count, account_count)
    return ReportResult(file_path=path, row_count=row_count, account_count=account_count)


def _cell_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return value
