from datetime import datetime

import mongomock
import pytest
from bson import ObjectId

from database import MongoTransactionStore
from schemas import TRANSACTION_COLLECTION


class RecordingStore:
    """Store double that returns canned rows and records every call."""

    def __init__(self, docs=None, responses=None):
        self.docs = list(docs or [])
        # one list of result rows per aggregate call, in call order
        self.responses = list(responses or [])
        self.calls = []

    def find(self, predicate, sort=None, limit=None):
        self.calls.append(("find", predicate, sort, limit))
        return list(self.docs)

    def aggregate(self, pipeline):
        self.calls.append(("aggregate", pipeline))
        return self.responses.pop(0) if self.responses else []

    def is_valid_user_identifier(self, value):
        return isinstance(value, ObjectId) or (isinstance(value, str) and ObjectId.is_valid(value))


@pytest.fixture
def collection():
    return mongomock.MongoClient().db[TRANSACTION_COLLECTION]


@pytest.fixture
def store(collection):
    return MongoTransactionStore(collection)


@pytest.fixture
def user_id():
    return str(ObjectId())


@pytest.fixture
def other_user_id():
    return str(ObjectId())


@pytest.fixture
def add_txn(collection, user_id):
    """Insert a transaction document for the default user (or `user=`)."""

    def _add(amount, type, date, user=None, **fields):
        doc = {
            "amount": amount,
            "type": type,
            "date": date,
            "payee": fields.pop("payee", "Someone"),
            "user": ObjectId(user or user_id),
        }
        doc.update(fields)
        collection.insert_one(doc)
        return doc

    return _add


@pytest.fixture
def march_2024():
    return lambda day, hour=12: datetime(2024, 3, day, hour, 0, 0)


@pytest.fixture
def recording_store():
    return RecordingStore
