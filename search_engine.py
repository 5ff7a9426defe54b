import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from classifier import is_income, is_outflow
from database import BY_DATE_DESC, utcnow
from errors import ValidationError
from query_filters import build_category_query, build_search_query, recent_query, resolve_user
from schemas import (
    CategorySearchResult,
    DateRange,
    RecentTransactions,
    SearchCriteria,
    SearchResult,
    Transaction,
)

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
CATEGORY_LIMIT = 50
RECENT_LIMIT = 50
DEFAULT_RECENT_DAYS = 30


def parse_criteria(params: Optional[Dict[str, Any]]) -> SearchCriteria:
    """Build SearchCriteria from raw (camelCase or snake_case) parameters."""
    try:
        return SearchCriteria.model_validate(params or {})
    except PydanticValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ValidationError(f"Invalid search criteria: {fields}") from e


def parse_positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a positive integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a positive integer, got {value!r}")
    if number < 1:
        raise ValidationError(f"{name} must be a positive integer, got {value!r}")
    return number


def outflow_total(transactions: List[Transaction]) -> float:
    return sum(t.amount for t in transactions if is_outflow(t))


def income_total(transactions: List[Transaction]) -> float:
    return sum(t.amount for t in transactions if is_income(t))


class SearchEngine:
    def __init__(self, store):
        self._store = store

    def _fetch(self, query: Dict[str, Any], limit: int) -> List[Transaction]:
        docs = self._store.find(query, sort=BY_DATE_DESC, limit=limit)
        return [Transaction.from_document(d) for d in docs]

    def search(self, user_id: Any, criteria: Any = None, limit: Any = DEFAULT_LIMIT) -> SearchResult:
        """
        Most recent `limit` transactions matching the criteria, with totals.

        `count` and every total describe the returned (limited) set, not all
        matches in the store.
        """
        user = resolve_user(self._store, user_id)
        if not isinstance(criteria, SearchCriteria):
            criteria = parse_criteria(criteria)
        limit = parse_positive_int(limit, "limit")

        query = build_search_query(user, criteria)
        logger.debug("Search for %s: %s (limit %d)", user, query, limit)
        transactions = self._fetch(query, limit)

        total_expenses = outflow_total(transactions)
        total_income = income_total(transactions)

        category_breakdown: Dict[str, float] = {}
        type_breakdown: Dict[str, float] = {}
        for txn in transactions:
            if txn.expense_type:
                category_breakdown[txn.expense_type] = category_breakdown.get(txn.expense_type, 0) + txn.amount
            type_breakdown[txn.type] = type_breakdown.get(txn.type, 0) + txn.amount

        dates = [t.date for t in transactions if t.date is not None]
        date_range = DateRange(earliest=min(dates), latest=max(dates)) if dates else DateRange()

        return SearchResult(
            transactions=transactions,
            count=len(transactions),
            total_expenses=total_expenses,
            total_income=total_income,
            net_amount=total_income - total_expenses,
            category_breakdown=category_breakdown,
            type_breakdown=type_breakdown,
            search_query=criteria.model_dump(mode="json", by_alias=True, exclude_none=True),
            date_range=date_range,
        )

    def search_by_category(self, user_id: Any, category: str, limit: Any = CATEGORY_LIMIT) -> CategorySearchResult:
        user = resolve_user(self._store, user_id)
        limit = parse_positive_int(limit, "limit")
        transactions = self._fetch(build_category_query(user, category), limit)
        return CategorySearchResult(
            transactions=transactions,
            count=len(transactions),
            total_amount=sum(t.amount for t in transactions),
            category=category,
        )

    def recent(self, user_id: Any, days: Any = DEFAULT_RECENT_DAYS) -> RecentTransactions:
        user = resolve_user(self._store, user_id)
        days = parse_positive_int(days, "days")
        transactions = self._fetch(recent_query(user, days, utcnow()), RECENT_LIMIT)
        return RecentTransactions(
            transactions=transactions,
            count=len(transactions),
            total_expenses=outflow_total(transactions),
            total_income=income_total(transactions),
            period=f"Last {days} days",
        )
