from __future__ import annotations

import json
from decimal import Decimal

import pytest

from escrow_disburse.data_models import (
    AccountRecord,
    DepositAccount,
    DisbursementRule,
    Expense,
    ReferenceAccounts,
)

PMS_ACCOUNT = DepositAccount("Platform Fees", "HDFC Bank", "HDFC0000001", "PMS-001")
EXPENSE_ACCOUNT = DepositAccount("Platform Expenses", "HDFC Bank", "HDFC0000001", "EXP-001")
LANDLORD_ACCOUNT = DepositAccount("A. Landlord", "State Bank", "SBIN0000001", "LL-001", "current")


def make_rule(account=LANDLORD_ACCOUNT, fixed=None, percentage=None, taxes_extra=False) -> DisbursementRule:
    return DisbursementRule(
        deposit_account=account,
        fixed_amount=Decimal(str(fixed)) if fixed is not None else None,
        percentage=Decimal(str(percentage)) if percentage is not None else None,
        taxes_extra=taxes_extra,
    )


def make_record(
    rules,
    balance="10000",
    rent="12000",
    disbursed="-200",
    expenses=(),
    ownership="acme",
    identifier="ESC-1",
) -> AccountRecord:
    return AccountRecord(
        ownership=ownership,
        balance=Decimal(balance),
        rent=Decimal(rent) if rent is not None else None,
        amount_disbursed_this_month=Decimal(disbursed),
        disbursement_rules=list(rules),
        expenses=[Expense(Decimal(str(a))) for a in expenses],
        property_address="12 Lake Road",
        escrow_account_identifier=identifier,
    )


@pytest.fixture
def reference_accounts():
    ref = ReferenceAccounts(platform_fee_account=PMS_ACCOUNT, expense_account=EXPENSE_ACCOUNT)
    return {"acme": ref, "gospaze": ref, "oroproptech": ref}


def raw_account(account: DepositAccount) -> dict:
    return {
        "accountName": account.account_name,
        "bankName": account.bank_name,
        "ifscNum": account.ifsc_num,
        "accountNum": account.account_num,
        "accountType": account.account_type,
    }


@pytest.fixture
def reference_accounts_file(tmp_path):
    path = tmp_path / "reference_accounts.json"
    data = {
        "acme": {
            "platformFeeAccount": raw_account(PMS_ACCOUNT),
            "expenseAccount": raw_account(EXPENSE_ACCOUNT),
        }
    }
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def raw_records():
    return [
        {
            "ownership": "acme",
            "balance": 10000,
            "rent": 12000,
            "disbursedThisMonth": -200,
            "propertyAddress": ["12 Lake Road"],
            "escrow": {"accountNum": "ESC-1", "ownerId": "owner-1"},
            "disbursementRules": [
                [
                    {"fixedAmount": 1000, "taxesExtra": True, "depositAccount": raw_account(PMS_ACCOUNT)},
                    {"percentage": 100, "depositAccount": raw_account(LANDLORD_ACCOUNT)},
                ]
            ],
            "expenses": [[{"amount": 250}]],
        },
        {
            "ownership": "acme",
            "balance": 5000,
            "rent": 6000,
            "disbursedThisMonth": 0,
            "propertyAddress": ["7 Hill Street"],
            "escrow": {"accountNum": "ESC-2", "ownerId": "owner-2"},
            "disbursementRules": [[{"percentage": 100, "depositAccount": raw_account(LANDLORD_ACCOUNT)}]],
        },
    ]


@pytest.fixture
def records_file(tmp_path, raw_records):
    path = tmp_path / "escrow_records.json"
    path.write_text(json.dumps(raw_records), encoding="utf-8")
    return path
