import logging
from typing import Any, Dict, List

from classifier import GOAL_BUCKETS, NeedsWants, TransactionType, goal_bucket, transaction_type
from database import BY_DATE_ASC
from query_filters import month_query, resolve_user
from schemas import GoalEntry, GoalProgress, MonthlySummary, Transaction

logger = logging.getLogger(__name__)

# Goal targets as a share of the month's income
NEEDS_SHARE = 0.40
WANTS_SHARE = 0.20
SAVINGS_SHARE = 0.40


def _total(transactions: List[Transaction]) -> float:
    return sum(t.amount for t in transactions)


class MonthlySummaryEngine:
    """Income/expense totals, category breakdowns and goal progress for one month."""

    def __init__(self, store):
        self._store = store

    def summarize(self, user_id: Any, month: Any, year: Any) -> MonthlySummary:
        user = resolve_user(self._store, user_id)
        query = month_query(user, month, year)
        logger.debug("Monthly summary for %s, window %s", user, query["date"])

        docs = self._store.find(query, sort=BY_DATE_ASC)
        transactions = [Transaction.from_document(d) for d in docs]
        return build_summary(transactions)


def build_summary(transactions: List[Transaction]) -> MonthlySummary:
    partitions: Dict[TransactionType, List[Transaction]] = {
        TransactionType.INCOME: [],
        TransactionType.EXPENSE: [],
        TransactionType.SAVED: [],
        TransactionType.CREDIT_CARD_PAYMENT: [],
    }
    for txn in transactions:
        kind = transaction_type(txn)
        # transfers and unknown types count toward no total
        if kind in partitions:
            partitions[kind].append(txn)

    income = partitions[TransactionType.INCOME]
    expenses = partitions[TransactionType.EXPENSE]
    savings = partitions[TransactionType.SAVED]
    cc_payments = partitions[TransactionType.CREDIT_CARD_PAYMENT]

    total_income = _total(income)
    total_expenses = _total(expenses)
    total_savings = _total(savings)
    total_cc_payments = _total(cc_payments)

    # Breakdowns come from expenses only so saved/CC amounts are not counted twice
    expenses_by_type: Dict[str, float] = {}
    by_bucket: Dict[NeedsWants, float] = {bucket: 0 for bucket in GOAL_BUCKETS}
    for txn in expenses:
        if txn.expense_type:
            expenses_by_type[txn.expense_type] = expenses_by_type.get(txn.expense_type, 0) + txn.amount
        bucket = goal_bucket(txn)
        if bucket is not None:
            by_bucket[bucket] += txn.amount

    # saved-type transactions carry no tag but still count toward Savings
    by_bucket[NeedsWants.SAVINGS] += total_savings

    needs = by_bucket[NeedsWants.NEEDS]
    wants = by_bucket[NeedsWants.WANTS]
    invested = by_bucket[NeedsWants.INVESTED]

    # Invested is folded into the savings goal; the invested goal stays zeroed
    # so consumers always see the same four keys.
    goal_progress = GoalProgress(
        needs=GoalEntry(amount=needs, target=total_income * NEEDS_SHARE),
        wants=GoalEntry(amount=wants, target=total_income * WANTS_SHARE),
        savings=GoalEntry(
            amount=by_bucket[NeedsWants.SAVINGS] + invested,
            target=total_income * SAVINGS_SHARE,
        ),
        invested=GoalEntry(amount=0, target=0),
    )

    return MonthlySummary(
        total_income=total_income,
        total_expenses=total_expenses,
        total_savings=total_savings,
        total_investments=invested,
        credit_card_payments=total_cc_payments,
        net_flow=total_income - total_expenses,
        income=income,
        expenses=expenses,
        savings=savings,
        cc_payments=cc_payments,
        expenses_by_type=expenses_by_type,
        expenses_by_needs_wants={bucket.value: amount for bucket, amount in by_bucket.items()},
        goal_progress=goal_progress,
    )
