from datetime import datetime, timedelta

import pytest

from errors import InvalidUser, ValidationError
from schemas import SearchCriteria
from search_engine import SearchEngine


@pytest.fixture
def engine(store):
    return SearchEngine(store)


def test_limit_returns_most_recent_matches(engine, add_txn, user_id, march_2024):
    for day in (1, 5, 10, 15, 20):
        add_txn(1000, "expense", march_2024(day), payee="House rent", expenseType="Rent")
    add_txn(50, "expense", march_2024(25), payee="Coffee")

    result = engine.search(user_id, {"search": "rent"}, limit=2)

    assert result.count == 2
    assert [t.date for t in result.transactions] == [march_2024(20), march_2024(15)]
    assert result.date_range.earliest == march_2024(15)
    assert result.date_range.latest == march_2024(20)


def test_totals_and_breakdowns(engine, add_txn, user_id, march_2024):
    add_txn(5000, "income", march_2024(1), expenseType="Salary")
    add_txn(300, "expense", march_2024(2), expenseType="Food")
    add_txn(200, "saved", march_2024(3), expenseType="Food")
    add_txn(100, "credit_card_payment", march_2024(4))
    add_txn(40, "transfer", march_2024(5))

    result = engine.search(user_id)

    assert result.total_expenses == 600
    assert result.total_income == 5000
    assert result.net_amount == 4400
    # category breakdown spans every returned type
    assert result.category_breakdown == {"Salary": 5000, "Food": 500}
    assert result.type_breakdown == {
        "income": 5000,
        "expense": 300,
        "saved": 200,
        "credit_card_payment": 100,
        "transfer": 40,
    }


def test_empty_result(engine, user_id):
    result = engine.search(user_id, {"search": "nothing"})

    assert result.count == 0
    assert result.total_expenses == result.total_income == result.net_amount == 0
    assert result.date_range.earliest is None
    assert result.date_range.latest is None


def test_filters_combine(engine, add_txn, user_id, march_2024):
    add_txn(100, "expense", march_2024(2), mode="Coral GPay CC", needsWants="Wants")
    add_txn(900, "expense", march_2024(3), mode="Coral GPay CC", needsWants="Wants")
    add_txn(100, "expense", march_2024(4), mode="Cash", needsWants="Wants")
    add_txn(100, "expense", datetime(2024, 4, 2), mode="coral gpay cc", needsWants="Wants")

    criteria = SearchCriteria(
        mode="GPAY",
        needs_wants="Wants",
        max_amount=500,
        start_date="2024-03-01",
        end_date="2024-03-31",
    )
    result = engine.search(user_id, criteria)

    assert result.count == 1
    assert result.transactions[0].amount == 100
    assert result.transactions[0].mode == "Coral GPay CC"


def test_end_date_includes_late_evening(engine, add_txn, user_id):
    add_txn(1, "expense", datetime(2024, 3, 5, 23, 59, 59))
    add_txn(1, "expense", datetime(2024, 3, 6, 0, 0, 0))

    result = engine.search(user_id, {"endDate": "2024-03-05"})

    assert result.count == 1


def test_search_query_is_echoed(engine, user_id):
    result = engine.search(user_id, {"search": "rent", "minAmount": "10"})
    assert result.search_query == {"search": "rent", "minAmount": 10.0}


def test_search_is_scoped_to_user(engine, add_txn, user_id, other_user_id, march_2024):
    add_txn(10, "expense", march_2024(1), payee="rent")
    add_txn(10, "expense", march_2024(1), payee="rent", user=other_user_id)

    assert engine.search(user_id, {"search": "rent"}).count == 1


@pytest.mark.parametrize("params", [{"minAmount": "ten"}, {"startDate": "yesterday"}, {"maxAmount": "1,000"}])
def test_unparseable_criteria(engine, user_id, params):
    with pytest.raises(ValidationError):
        engine.search(user_id, params)


@pytest.mark.parametrize("limit", ["abc", 0, -5, None])
def test_bad_limit(engine, user_id, limit):
    with pytest.raises(ValidationError):
        engine.search(user_id, {}, limit=limit)


def test_invalid_user_never_reaches_store(recording_store):
    store = recording_store()
    with pytest.raises(InvalidUser):
        SearchEngine(store).search("someone", {"search": "rent"})
    assert store.calls == []


def test_store_receives_sort_and_limit(recording_store, user_id):
    store = recording_store()
    SearchEngine(store).search(user_id, {}, limit="25")

    _, predicate, sort, limit = store.calls[0]
    assert sort == [("date", -1)]
    assert limit == 25


def test_search_by_category(engine, add_txn, user_id, march_2024):
    add_txn(100, "expense", march_2024(1), category="Food")
    add_txn(200, "expense", march_2024(2), expenseType="Food")
    add_txn(300, "income", march_2024(3), needsWants="Food")
    add_txn(400, "expense", march_2024(4), expenseType="Travel")

    result = engine.search_by_category(user_id, "Food")

    assert result.count == 3
    assert result.total_amount == 600
    assert result.category == "Food"
    assert [t.amount for t in result.transactions] == [300, 200, 100]


def test_recent_window(engine, add_txn, user_id):
    now = datetime.utcnow()
    add_txn(100, "expense", now - timedelta(days=2))
    add_txn(40, "income", now - timedelta(days=10))
    add_txn(999, "expense", now - timedelta(days=45))

    result = engine.recent(user_id, days="30")

    assert result.count == 2
    assert result.total_expenses == 100
    assert result.total_income == 40
    assert result.period == "Last 30 days"
