"""Core allocation engine for escrow disbursements.

This module decides how much of each escrow account's balance is paid to
which beneficiary. Fixed-amount rules and pending expenses are taken off the
top, platform fees marked as tax-exclusive are grossed up for GST, and the
remainder is split between the percentage rules. Accounts that were already
paid out this month are itemized at zero, and accounts whose fixed
obligations exceed their balance are left out for manual review.

The engine performs no I/O; it is a function of the records and reference
accounts it is given.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from .data_models import (
    EXPENSE,
    PMS_FEE,
    RENT,
    AccountDisbursement,
    AccountRecord,
    DisbursementLineItem,
    DisbursementRule,
    ReferenceAccounts,
)
from .utils import round_money, round_up

logger = logging.getLogger(__name__)

TAX_MULTIPLIER = Decimal("1.18")  # 18 % GST on platform fees
DISBURSED_THRESHOLD = Decimal("1000")
DISBURSED_RENT_RATIO = Decimal("0.8")

# Ownerships allowed to carry fixed obligations larger than the balance
EXEMPT_OWNERSHIPS = ("gospaze", "oroproptech")

ZERO = Decimal("0")


class MissingReferenceAccountError(LookupError):
    """Raised when an ownership has no platform fee / expense accounts configured."""

    def __init__(self, ownership: str) -> None:
        super().__init__(f"Did not find the ownership disbursement account for {ownership}")
        self.ownership = ownership


def _has_rules(record: AccountRecord) -> bool:
    if not record.disbursement_rules:
        return False
    first = record.disbursement_rules[0]
    return first.fixed_amount is not None or first.percentage is not None


def is_already_disbursed(record: AccountRecord) -> bool:
    """Return True when this month's payouts already cover most of the rent.

    Both conditions must hold: at least ``DISBURSED_THRESHOLD`` went out, and
    that is more than ``DISBURSED_RENT_RATIO`` of the rent. Records without a
    rent never qualify.
    """
    disbursed = abs(record.amount_disbursed_this_month)
    if record.rent is None:
        return False
    return disbursed >= DISBURSED_THRESHOLD and disbursed > record.rent * DISBURSED_RENT_RATIO


def _classify(rule: DisbursementRule, reference: ReferenceAccounts) -> str:
    if rule.deposit_account.account_num == reference.platform_fee_account.account_num:
        return PMS_FEE
    return RENT


def _fixed_amount(rule: DisbursementRule, reference: ReferenceAccounts, zeroed: bool) -> Decimal:
    """Return the payout for a fixed-amount rule, including GST when due."""
    amount = ZERO if zeroed else rule.fixed_amount
    if rule.taxes_extra and _classify(rule, reference) == PMS_FEE:
        amount = round_up(round_money(amount * TAX_MULTIPLIER))
    return amount


def _percentage_amount(pool: Decimal, percentage: Decimal, zeroed: bool) -> Decimal:
    if zeroed:
        return ZERO
    return round_money(pool * percentage / Decimal(100))


def compute_disbursement(
    record: AccountRecord,
    reference: ReferenceAccounts,
    exempt_ownerships: Iterable[str] = EXEMPT_OWNERSHIPS,
) -> Optional[AccountDisbursement]:
    """Compute the disbursement breakdown for a single escrow account.

    Parameters
    ----------
    record: AccountRecord
        The account to allocate. It must carry at least one rule.
    reference: ReferenceAccounts
        Platform fee and expense accounts for ``record.ownership``.
    exempt_ownerships: Iterable[str]
        Ownerships whose records are kept even when fixed amounts and
        expenses exceed the balance.

    Returns
    -------
    Optional[AccountDisbursement]
        ``None`` when the record is insolvent and not exempt.
    """
    already_disbursed = is_already_disbursed(record)
    if already_disbursed:
        logger.info(
            "%s: Already disbursed %s of rent %s this month, amounts zeroed",
            record.escrow_account_identifier,
            record.amount_disbursed_this_month,
            record.rent,
        )

    # One slot per rule so the published order follows the rule list
    slots: List[Optional[DisbursementLineItem]] = [None] * len(record.disbursement_rules)
    total_fixed_amount = ZERO

    for i, rule in enumerate(record.disbursement_rules):
        if rule.fixed_amount is None:
            continue
        amount = _fixed_amount(rule, reference, already_disbursed)
        slots[i] = DisbursementLineItem.to_account(amount, _classify(rule, reference), rule.deposit_account)
        total_fixed_amount += amount

    expense_items: List[DisbursementLineItem] = []
    for expense in record.expenses:
        if expense.amount is None:
            continue
        amount = ZERO if already_disbursed else expense.amount
        expense_items.append(DisbursementLineItem.to_account(amount, EXPENSE, reference.expense_account))
        total_fixed_amount += amount

    if total_fixed_amount > record.balance and record.ownership not in exempt_ownerships:
        logger.error(
            "%s: Total fixed amounts %s exceed the current balance %s, skipping for review",
            record.escrow_account_identifier,
            total_fixed_amount,
            record.balance,
        )
        return None

    # Every percentage applies to the same remaining pool
    remaining = max(record.balance - total_fixed_amount, ZERO)
    for i, rule in enumerate(record.disbursement_rules):
        if rule.percentage is None:
            continue
        amount = _percentage_amount(remaining, rule.percentage, already_disbursed)
        slots[i] = DisbursementLineItem.to_account(amount, _classify(rule, reference), rule.deposit_account)

    line_items = [item for item in slots if item is not None] + expense_items

    return AccountDisbursement(
        escrow_account_identifier=record.escrow_account_identifier,
        property_address=record.property_address,
        ownership=record.ownership,
        current_balance=record.balance,
        rent=record.rent,
        disbursed_this_month=abs(record.amount_disbursed_this_month),
        already_disbursed_for_the_month=already_disbursed,
        disbursements=line_items,
    )


def compute_account_disbursements(
    records: Sequence[AccountRecord],
    reference_accounts: Dict[str, ReferenceAccounts],
    exempt_ownerships: Iterable[str] = EXEMPT_OWNERSHIPS,
) -> List[AccountDisbursement]:
    """Compute disbursement breakdowns for a batch of escrow accounts.

    Records without rules and insolvent records are skipped; the survivors
    keep their input order. A record whose ownership has no reference
    accounts aborts the whole batch with ``MissingReferenceAccountError``.
    """
    if isinstance(records, (str, bytes)) or not isinstance(records, Sequence):
        raise TypeError("compute_account_disbursements expected a sequence of account records")

    exempt = frozenset(exempt_ownerships)
    results: List[AccountDisbursement] = []
    for record in records:
        if not _has_rules(record):
            logger.debug("%s: No disbursement rules, skipping", record.escrow_account_identifier)
            continue
        reference = reference_accounts.get(record.ownership)
        if reference is None:
            raise MissingReferenceAccountError(record.ownership)
        disbursement = compute_disbursement(record, reference, exempt)
        if disbursement is not None:
            results.append(disbursement)

    logger.info("Computed disbursements for %d of %d accounts", len(results), len(records))
    return results
