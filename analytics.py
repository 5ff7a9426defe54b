"""
Autocomplete suggestions and multi-month spending trends.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List

from dateutil.relativedelta import relativedelta

from classifier import OUTFLOW_TYPES
from database import utcnow
from errors import ValidationError
from query_filters import resolve_user
from schemas import CategorySpending, SpendingAnalytics, TrendPoint
from search_engine import parse_positive_int

logger = logging.getLogger(__name__)

# field -> (max suggestions, drop null group)
SUGGESTION_FIELDS = {
    "payee": (20, False),
    "expenseType": (15, True),
    "mode": (15, True),
}

TOP_CATEGORIES = 10


def months_before(now: datetime, months: int) -> datetime:
    """Same day-of-month `months` earlier, clamped to the end of shorter months."""
    return now - relativedelta(months=months)


class InsightsEngine:
    def __init__(self, store):
        self._store = store

    def suggestions(self, user_id: Any, field: str) -> List[str]:
        """Most frequently used values of `field` for the user, for autocomplete."""
        user = resolve_user(self._store, user_id)
        if field not in SUGGESTION_FIELDS:
            raise ValidationError(f"Unsupported suggestion field: {field!r}")
        limit, drop_null = SUGGESTION_FIELDS[field]

        pipeline: List[Dict[str, Any]] = [
            {"$match": {"user": user}},
            {"$group": {"_id": f"${field}", "count": {"$sum": 1}}},
        ]
        if drop_null:
            pipeline.append({"$match": {"_id": {"$ne": None}}})
        pipeline.extend([{"$sort": {"count": -1}}, {"$limit": limit}])

        return [row["_id"] for row in self._store.aggregate(pipeline) if row["_id"]]

    def spending_trends(self, user_id: Any, months: Any = 6) -> SpendingAnalytics:
        user = resolve_user(self._store, user_id)
        months = parse_positive_int(months, "months")
        end = utcnow()
        start = months_before(end, months)
        window = {"$gte": start, "$lte": end}
        logger.debug("Spending trends for %s from %s", user, start)

        trend_rows = self._store.aggregate([
            {"$match": {"user": user, "date": window}},
            {
                "$group": {
                    "_id": {"year": {"$year": "$date"}, "month": {"$month": "$date"}, "type": "$type"},
                    "totalAmount": {"$sum": "$amount"},
                    "count": {"$sum": 1},
                }
            },
            {"$sort": {"_id.year": 1, "_id.month": 1}},
        ])

        category_rows = self._store.aggregate([
            {"$match": {"user": user, "type": {"$in": [t.value for t in OUTFLOW_TYPES]}, "date": window}},
            {"$group": {"_id": "$expenseType", "totalAmount": {"$sum": "$amount"}, "count": {"$sum": 1}}},
            {"$sort": {"totalAmount": -1}},
            {"$limit": TOP_CATEGORIES},
        ])

        trends = [
            TrendPoint(
                year=row["_id"]["year"],
                month=row["_id"]["month"],
                type=row["_id"]["type"],
                total_amount=row["totalAmount"],
                count=row["count"],
            )
            for row in trend_rows
        ]
        category_spending = [
            CategorySpending(expense_type=row["_id"], total_amount=row["totalAmount"], count=row["count"])
            for row in category_rows
        ]
        return SpendingAnalytics(trends=trends, category_spending=category_spending, period=f"Last {months} months")
