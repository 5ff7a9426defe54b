import logging
from typing import Any, Dict, List, Sequence

from classifier import TransactionType
from query_filters import month_query, resolve_user
from schemas import CreditCardEntry

logger = logging.getLogger(__name__)


def _sum_when_type(kind: TransactionType) -> Dict[str, Any]:
    return {"$sum": {"$cond": [{"$eq": ["$type", kind.value]}, "$amount", 0]}}


class CreditCardAggregator:
    """
    Per-card spent/repaid/balance for one month.

    Cards are identified by exact match of the transaction's `mode` against the
    roster. The roster, not the data, decides which entries come back and in
    which order.
    """

    def __init__(self, store, roster: Sequence[str]):
        self._store = store
        self._roster = list(roster)

    def pipeline(self, user, month: Any, year: Any) -> List[Dict[str, Any]]:
        match = month_query(user, month, year)
        match["mode"] = {"$in": self._roster}
        match["type"] = {"$in": [TransactionType.EXPENSE.value, TransactionType.CREDIT_CARD_PAYMENT.value]}
        return [
            {"$match": match},
            {
                "$group": {
                    "_id": "$mode",
                    "totalSpent": _sum_when_type(TransactionType.EXPENSE),
                    "totalRepaid": _sum_when_type(TransactionType.CREDIT_CARD_PAYMENT),
                }
            },
        ]

    def summarize(self, user_id: Any, month: Any, year: Any) -> List[CreditCardEntry]:
        user = resolve_user(self._store, user_id)
        rows = self._store.aggregate(self.pipeline(user, month, year))
        by_card = {row["_id"]: row for row in rows}
        logger.debug("Credit card rollup for %s: %d of %d cards active", user, len(by_card), len(self._roster))

        entries = []
        for card in self._roster:
            row = by_card.get(card, {})
            spent = row.get("totalSpent") or 0
            repaid = row.get("totalRepaid") or 0
            entries.append(CreditCardEntry(card=card, total_spent=spent, total_repaid=repaid, balance=spent - repaid))
        return entries
