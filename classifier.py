"""
Transaction classification.

Pure helpers shared by the monthly summary and the search results, so both
paths label and bucket a transaction the same way. They accept any object with
`type`, `expense_type` and `needs_wants` attributes.
"""
from enum import Enum
from typing import Any, Optional


class TransactionType(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"
    TRANSFER = "transfer"
    CREDIT_CARD_PAYMENT = "credit_card_payment"
    SAVED = "saved"

    @classmethod
    def parse(cls, value: Any) -> Optional["TransactionType"]:
        """Return the matching member, or None for unknown/missing types."""
        try:
            return cls(value)
        except ValueError:
            return None


class NeedsWants(str, Enum):
    NEEDS = "Needs"
    WANTS = "Wants"
    SAVINGS = "Savings"
    INVESTED = "Invested"
    FUND_TRANSFER = "Fund Transfer"

    @classmethod
    def parse(cls, value: Any) -> Optional["NeedsWants"]:
        try:
            return cls(value)
        except ValueError:
            return None


# Buckets tracked by the monthly goals
GOAL_BUCKETS = (NeedsWants.NEEDS, NeedsWants.WANTS, NeedsWants.SAVINGS, NeedsWants.INVESTED)

# Types counted as money going out in search totals
OUTFLOW_TYPES = (TransactionType.EXPENSE, TransactionType.SAVED, TransactionType.CREDIT_CARD_PAYMENT)

SAVED_LABEL = "Saved"
CC_PAYMENT_LABEL = "CC Payment"
EXPENSE_LABEL = "Expense"
CC_BILL_BUCKET = "CC Bill"


def transaction_type(txn) -> Optional[TransactionType]:
    return TransactionType.parse(txn.type)


def goal_bucket(txn) -> Optional[NeedsWants]:
    """Goal bucket an expense is tagged with, or None if it counts toward no goal."""
    bucket = NeedsWants.parse(txn.needs_wants)
    return bucket if bucket in GOAL_BUCKETS else None


def is_outflow(txn) -> bool:
    return transaction_type(txn) in OUTFLOW_TYPES


def is_income(txn) -> bool:
    return transaction_type(txn) is TransactionType.INCOME


def expense_category_label(txn) -> str:
    if txn.expense_type:
        return txn.expense_type
    kind = transaction_type(txn)
    if kind is TransactionType.SAVED:
        return SAVED_LABEL
    if kind is TransactionType.CREDIT_CARD_PAYMENT:
        return CC_PAYMENT_LABEL
    return EXPENSE_LABEL


def needs_wants_label(txn) -> Optional[str]:
    if txn.needs_wants:
        return txn.needs_wants
    kind = transaction_type(txn)
    if kind is TransactionType.SAVED:
        return NeedsWants.SAVINGS.value
    if kind is TransactionType.CREDIT_CARD_PAYMENT:
        return CC_BILL_BUCKET
    return None
