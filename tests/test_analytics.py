from datetime import datetime

import pytest

from analytics import InsightsEngine, months_before
from errors import InvalidUser, ValidationError


def test_payee_suggestions_by_frequency(store, add_txn, user_id, march_2024):
    for _ in range(3):
        add_txn(1, "expense", march_2024(1), payee="Swiggy")
    add_txn(1, "expense", march_2024(2), payee="Landlord")
    for _ in range(2):
        add_txn(1, "expense", march_2024(3), payee="Uber")

    assert InsightsEngine(store).suggestions(user_id, "payee") == ["Swiggy", "Uber", "Landlord"]


def test_suggestions_drop_missing_values(store, add_txn, user_id, march_2024):
    add_txn(1, "expense", march_2024(1), mode="Cash")
    add_txn(1, "expense", march_2024(1))
    add_txn(1, "expense", march_2024(1))
    add_txn(1, "expense", march_2024(1), mode="")

    assert InsightsEngine(store).suggestions(user_id, "mode") == ["Cash"]


def test_unsupported_suggestion_field(store, user_id):
    with pytest.raises(ValidationError):
        InsightsEngine(store).suggestions(user_id, "remarks")


def test_suggestions_reject_bad_user(recording_store):
    with pytest.raises(InvalidUser):
        InsightsEngine(recording_store()).suggestions("nope", "payee")


def test_spending_trends_shape(recording_store, user_id):
    store = recording_store(responses=[
        [
            {"_id": {"year": 2024, "month": 2, "type": "expense"}, "totalAmount": 120.0, "count": 3},
            {"_id": {"year": 2024, "month": 3, "type": "income"}, "totalAmount": 900.0, "count": 1},
        ],
        [
            {"_id": "Food", "totalAmount": 80.0, "count": 2},
            {"_id": None, "totalAmount": 40.0, "count": 1},
        ],
    ])

    analytics = InsightsEngine(store).spending_trends(user_id, months="3")

    assert analytics.period == "Last 3 months"
    assert [(t.year, t.month, t.type) for t in analytics.trends] == [(2024, 2, "expense"), (2024, 3, "income")]
    assert analytics.category_spending[0].expense_type == "Food"
    assert analytics.category_spending[1].expense_type is None

    category_match = store.calls[1][1][0]["$match"]
    assert category_match["type"] == {"$in": ["expense", "saved", "credit_card_payment"]}


@pytest.mark.parametrize(
    "now, months, expected",
    [
        (datetime(2024, 3, 31, 10), 1, datetime(2024, 2, 29, 10)),
        (datetime(2024, 8, 15), 6, datetime(2024, 2, 15)),
        (datetime(2024, 1, 31), 2, datetime(2023, 11, 30)),
        (datetime(2025, 3, 1), 12, datetime(2024, 3, 1)),
    ],
)
def test_months_before(now, months, expected):
    assert months_before(now, months) == expected
