"""Data models for the escrow disbursement calculator.

This module defines dataclasses for the records consumed by the allocator
(escrow accounts, their disbursement rules and pending expenses), the
per-ownership reference accounts, and the disbursement breakdowns it produces.
All money values are ``Decimal`` so that rounding is explicit.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional


PMS_FEE = "PMSFee"
EXPENSE = "Expense"
RENT = "Rent"

DEFAULT_ACCOUNT_TYPE = "savings"


@dataclass(frozen=True)
class DepositAccount:
    """A beneficiary bank account.

    Attributes
    ----------
    account_name: str
        Name of the beneficiary as registered with the bank.
    bank_name: str
        Name of the bank holding the account.
    ifsc_num: str
        Routing code of the branch.
    account_num: str
        Beneficiary account number. Used to match rules against the
        ownership's platform fee account.
    account_type: str
        ``"savings"`` unless the upstream record says otherwise.
    """

    account_name: Optional[str] = None
    bank_name: Optional[str] = None
    ifsc_num: Optional[str] = None
    account_num: Optional[str] = None
    account_type: str = DEFAULT_ACCOUNT_TYPE


@dataclass(frozen=True)
class DisbursementRule:
    """A configured instruction for splitting escrow funds.

    Exactly one of ``fixed_amount`` or ``percentage`` is expected to be set.
    ``percentage`` is expressed in percent (``Decimal("25")`` means 25 %).
    When ``taxes_extra`` is True and the deposit account is the ownership's
    platform fee account, the fixed amount is grossed up for GST.
    """

    deposit_account: DepositAccount
    fixed_amount: Optional[Decimal] = None
    percentage: Optional[Decimal] = None
    taxes_extra: bool = False


@dataclass(frozen=True)
class Expense:
    """A pending expense paid out of escrow to the ownership's expense account."""

    amount: Optional[Decimal]


@dataclass(frozen=True)
class ReferenceAccounts:
    """Accounts owned by an ownership that receive fees and expenses."""

    platform_fee_account: DepositAccount
    expense_account: DepositAccount


@dataclass(frozen=True)
class AccountRecord:
    """Aggregated state of one escrow account, ready for allocation.

    ``amount_disbursed_this_month`` keeps the upstream sign convention
    (outflows are negative); the allocator only looks at its absolute value.
    ``rent`` may be missing on accounts that were never leased.
    """

    ownership: str
    balance: Decimal
    rent: Optional[Decimal]
    amount_disbursed_this_month: Decimal
    disbursement_rules: List[DisbursementRule] = field(default_factory=list)
    expenses: List[Expense] = field(default_factory=list)
    property_address: Optional[str] = None
    escrow_account_identifier: Optional[str] = None


@dataclass
class DisbursementLineItem:
    """A single payout from an escrow account."""

    amount: Decimal
    disbursement_type: str  # PMS_FEE, EXPENSE or RENT
    account_name: Optional[str]
    bank_name: Optional[str]
    ifsc_num: Optional[str]
    account_num: Optional[str]
    account_type: str

    @classmethod
    def to_account(cls, amount: Decimal, disbursement_type: str, account: DepositAccount) -> "DisbursementLineItem":
        return cls(
            amount=amount,
            disbursement_type=disbursement_type,
            account_name=account.account_name,
            bank_name=account.bank_name,
            ifsc_num=account.ifsc_num,
            account_num=account.account_num,
            account_type=account.account_type,
        )


@dataclass
class AccountDisbursement:
    """The disbursement breakdown computed for one escrow account.

    When ``already_disbursed_for_the_month`` is True every line item carries a
    zero amount: the targets are listed so that the report shows what would
    have been paid.
    """

    escrow_account_identifier: Optional[str]
    property_address: Optional[str]
    ownership: str
    current_balance: Decimal
    rent: Optional[Decimal]
    disbursed_this_month: Decimal
    already_disbursed_for_the_month: bool
    disbursements: List[DisbursementLineItem] = field(default_factory=list)

    @property
    def total_amount(self) -> Decimal:
        return sum((d.amount for d in self.disbursements), Decimal("0"))
