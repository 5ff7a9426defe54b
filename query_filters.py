"""
Builds MongoDB query documents from search criteria and reporting windows.

Nothing here touches the store; every function returns a plain query dict or
value that the store adapter can execute.
"""
import calendar
import re
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Tuple

from bson import ObjectId

from errors import InvalidTimeWindow, InvalidUser
from schemas import SearchCriteria

# Mongo stores millisecond precision, so this is the last representable instant of a day
END_OF_DAY = time(23, 59, 59, 999000)

# Fields matched by the free-text "search" criterion
SEARCH_FIELDS = ("payee", "remarks", "expenseType", "paymentMethod", "paymentApp")

# Criteria matched by exact equality, as (criteria attribute, stored field)
EXACT_FIELDS = (
    ("category", "category"),
    ("expense_type", "expenseType"),
    ("type", "type"),
    ("payment_method", "paymentMethod"),
    ("payment_app", "paymentApp"),
    ("needs_wants", "needsWants"),
)


def escape_pattern(text: str) -> str:
    """Escape regex metacharacters so the text matches literally."""
    return re.escape(text)


def contains_ci(text: str) -> Dict[str, str]:
    """Case-insensitive literal substring match."""
    return {"$regex": escape_pattern(text), "$options": "i"}


def parse_user_id(value: Any) -> ObjectId:
    """Convert a caller-supplied user id, rejecting anything that is not an ObjectId."""
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise InvalidUser()
    return ObjectId(value)


def resolve_user(store, user_id: Any) -> ObjectId:
    if not store.is_valid_user_identifier(user_id):
        raise InvalidUser()
    return parse_user_id(user_id)


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise InvalidTimeWindow(f"{name} must be a number, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidTimeWindow(f"{name} must be a number, got {value!r}")


def month_window(month: Any, year: Any) -> Tuple[datetime, datetime]:
    """Return the first and last instant of the calendar month, both inclusive."""
    month = _as_int(month, "month")
    year = _as_int(year, "year")
    if not 1 <= month <= 12:
        raise InvalidTimeWindow(f"month must be between 1 and 12, got {month}")
    if not 1 <= year <= 9999:
        raise InvalidTimeWindow(f"year out of range: {year}")

    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1)
    end = datetime.combine(date(year, month, last_day), END_OF_DAY)
    return start, end


def month_query(user: ObjectId, month: Any, year: Any) -> Dict[str, Any]:
    start, end = month_window(month, year)
    return {"user": user, "date": {"$gte": start, "$lte": end}}


def build_search_query(user: ObjectId, criteria: SearchCriteria) -> Dict[str, Any]:
    query: Dict[str, Any] = {"user": user}

    search = criteria.search.strip() if criteria.search else ""
    if search:
        pattern = contains_ci(search)
        query["$or"] = [{field: pattern} for field in SEARCH_FIELDS]

    for attr, field in EXACT_FIELDS:
        value = getattr(criteria, attr)
        if value:
            query[field] = value

    if criteria.mode:
        query["mode"] = contains_ci(criteria.mode)
    # "search" already covers payee
    if criteria.payee and not search:
        query["payee"] = contains_ci(criteria.payee)

    if criteria.start_date or criteria.end_date:
        date_filter = {}
        if criteria.start_date:
            date_filter["$gte"] = datetime.combine(criteria.start_date, time.min)
        if criteria.end_date:
            date_filter["$lte"] = datetime.combine(criteria.end_date, END_OF_DAY)
        query["date"] = date_filter

    if criteria.min_amount is not None or criteria.max_amount is not None:
        amount_filter = {}
        if criteria.min_amount is not None:
            amount_filter["$gte"] = float(criteria.min_amount)
        if criteria.max_amount is not None:
            amount_filter["$lte"] = float(criteria.max_amount)
        query["amount"] = amount_filter

    return query


def build_category_query(user: ObjectId, category: str) -> Dict[str, Any]:
    """Match a value against the legacy category, the expense type or the bucket."""
    return {
        "user": user,
        "$or": [
            {"category": category},
            {"expenseType": category},
            {"needsWants": category},
        ],
    }


def recent_query(user: ObjectId, days: int, now: datetime) -> Dict[str, Any]:
    return {"user": user, "date": {"$gte": now - timedelta(days=days)}}
