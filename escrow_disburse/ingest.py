"""Loading escrow records and reference accounts.

Upstream aggregation produces one document per escrow account with camelCase
keys, the rule list wrapped in an extra array and a few fields that may or may
not be lists. This module normalizes those documents into ``AccountRecord``
instances so the engine only ever sees flat, typed data.

``JsonRecordSource`` reads such documents from a JSON export. Any object with
a ``fetch(user_id)`` method returning account records can stand in for it.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol

from .data_models import (
    DEFAULT_ACCOUNT_TYPE,
    AccountRecord,
    DepositAccount,
    DisbursementRule,
    Expense,
    ReferenceAccounts,
)
from .utils import first_or_value, to_decimal, unwrap_nested

logger = logging.getLogger(__name__)


class RecordSource(Protocol):
    def fetch(self, user_id: str) -> List[AccountRecord]:
        ...


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def parse_deposit_account(raw: Optional[Mapping[str, Any]]) -> DepositAccount:
    """Build a ``DepositAccount`` from an upstream account mapping.

    ``accountNumber`` is accepted as an alias of ``accountNum``.
    """
    raw = raw or {}
    account_num = raw.get("accountNum", raw.get("accountNumber"))
    return DepositAccount(
        account_name=_text(raw.get("accountName")),
        bank_name=_text(raw.get("bankName")),
        ifsc_num=_text(raw.get("ifscNum")),
        account_num=_text(account_num),
        account_type=raw.get("accountType") or DEFAULT_ACCOUNT_TYPE,
    )


def parse_rule(raw: Mapping[str, Any]) -> DisbursementRule:
    return DisbursementRule(
        deposit_account=parse_deposit_account(raw.get("depositAccount")),
        fixed_amount=to_decimal(raw.get("fixedAmount")),
        percentage=to_decimal(raw.get("percentage")),
        taxes_extra=bool(raw.get("taxesExtra", False)),
    )


def parse_account_record(raw: Mapping[str, Any]) -> AccountRecord:
    """Normalize one upstream escrow document into an ``AccountRecord``.

    Documents without usable rules are returned with whatever ownership and
    balance they carry (empty and zero when absent); the engine skips them.

    Raises
    ------
    ValueError
        If a document with rules has no ownership or no numeric balance.
    """
    rules = [parse_rule(r) for r in unwrap_nested(raw.get("disbursementRules")) if isinstance(r, Mapping)]
    has_rules = bool(rules) and (rules[0].fixed_amount is not None or rules[0].percentage is not None)

    ownership = raw.get("ownership")
    balance = to_decimal(raw.get("balance"))
    if has_rules:
        if not ownership:
            raise ValueError("Escrow record is missing its ownership")
        if balance is None:
            raise ValueError(f"Escrow record for {ownership} has no numeric balance")

    escrow = raw.get("escrow") or {}
    identifier = raw.get("escrowAccountIdentifier") or escrow.get("accountNum")
    disbursed = raw.get("amountDisbursedThisMonth", raw.get("disbursedThisMonth"))

    expenses = [
        Expense(amount=to_decimal(e.get("amount")))
        for e in unwrap_nested(raw.get("expenses"))
        if isinstance(e, Mapping)
    ]

    return AccountRecord(
        ownership=str(ownership or ""),
        balance=balance if balance is not None else Decimal("0"),
        rent=to_decimal(raw.get("rent")),
        amount_disbursed_this_month=to_decimal(disbursed, default=Decimal("0")),
        disbursement_rules=rules,
        expenses=expenses,
        property_address=_text(first_or_value(raw.get("propertyAddress"))),
        escrow_account_identifier=_text(identifier),
    )


def parse_reference_accounts(mapping: Mapping[str, Mapping[str, Any]]) -> Dict[str, ReferenceAccounts]:
    """Convert ``{ownership: {platformFeeAccount, expenseAccount}}`` into typed entries."""
    accounts: Dict[str, ReferenceAccounts] = {}
    for ownership, entry in mapping.items():
        fee = entry.get("platformFeeAccount")
        expense = entry.get("expenseAccount")
        if not fee or not expense:
            raise ValueError(f"Reference accounts for {ownership} need both platformFeeAccount and expenseAccount")
        accounts[ownership] = ReferenceAccounts(
            platform_fee_account=parse_deposit_account(fee),
            expense_account=parse_deposit_account(expense),
        )
    return accounts


def load_reference_accounts(path: Path) -> Dict[str, ReferenceAccounts]:
    with Path(path).open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected an object keyed by ownership")
    return parse_reference_accounts(data)


def _owner_id(raw: Mapping[str, Any]) -> Optional[str]:
    escrow = raw.get("escrow") or {}
    owner = escrow.get("ownerId", raw.get("ownerId"))
    return _text(owner)


class JsonRecordSource:
    """Record source backed by a JSON file holding a list of escrow documents.

    Documents are matched to a user through ``escrow.ownerId`` (or a top-level
    ``ownerId``). Documents without an owner belong to nobody and are only
    returned by ``fetch(None)``, which returns all documents.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    def _load(self) -> List[Mapping[str, Any]]:
        with self._path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"{self._path}: expected a list of escrow records")
        return data

    def fetch(self, user_id: Optional[str]) -> List[AccountRecord]:
        documents = self._load()
        if user_id is None:
            matching = documents
        else:
            matching = [doc for doc in documents if _owner_id(doc) == str(user_id)]
        logger.info("Found %d escrow records for user %s in %s", len(matching), user_id, self._path)
        return [parse_account_record(doc) for doc in matching]
