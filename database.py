"""
MongoDB access for the finance tracker.

`db` is None when DATABASE_URL / DATABASE_NAME are not configured; callers
check for that before building a store.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from config import DATABASE_NAME, DATABASE_URL, STORE_TIMEOUT_MS
from errors import StoreUnavailable
from schemas import TRANSACTION_COLLECTION

logger = logging.getLogger(__name__)

Sort = Sequence[Tuple[str, int]]

BY_DATE_ASC: Sort = [("date", ASCENDING)]
BY_DATE_DESC: Sort = [("date", DESCENDING)]

_client = None
db = None

if DATABASE_URL and DATABASE_NAME:
    _client = MongoClient(
        DATABASE_URL,
        serverSelectionTimeoutMS=STORE_TIMEOUT_MS,
        socketTimeoutMS=STORE_TIMEOUT_MS,
    )
    db = _client[DATABASE_NAME]


class MongoTransactionStore:
    """
    Read/aggregate access to the transaction collection.

    Every pymongo failure, timeouts included, surfaces as StoreUnavailable so
    callers can tell a retryable outage from bad input.
    """

    def __init__(self, collection: Collection):
        self._collection = collection

    def find(self, predicate: Dict[str, Any], sort: Optional[Sort] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        try:
            cursor = self._collection.find(predicate)
            if sort:
                cursor = cursor.sort(list(sort))
            if limit:
                cursor = cursor.limit(int(limit))
            return list(cursor)
        except PyMongoError as e:
            logger.error("Transaction find failed: %s", e)
            raise StoreUnavailable(f"Transaction store unavailable: {e}") from e

    def aggregate(self, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        try:
            return list(self._collection.aggregate(pipeline))
        except PyMongoError as e:
            logger.error("Transaction aggregate failed: %s", e)
            raise StoreUnavailable(f"Transaction store unavailable: {e}") from e

    def is_valid_user_identifier(self, value: Any) -> bool:
        return isinstance(value, ObjectId) or (isinstance(value, str) and ObjectId.is_valid(value))

    # -------- writes used by the HTTP layer --------

    def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        doc = dict(doc)
        try:
            result = self._collection.insert_one(doc)
        except PyMongoError as e:
            logger.error("Transaction insert failed: %s", e)
            raise StoreUnavailable(f"Transaction store unavailable: {e}") from e
        doc["_id"] = result.inserted_id
        return doc

    def update_owned(self, transaction_id: ObjectId, user: ObjectId, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            return self._collection.find_one_and_update(
                {"_id": transaction_id, "user": user},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error("Transaction update failed: %s", e)
            raise StoreUnavailable(f"Transaction store unavailable: {e}") from e

    def delete_owned(self, transaction_id: ObjectId, user: ObjectId) -> bool:
        try:
            result = self._collection.delete_one({"_id": transaction_id, "user": user})
        except PyMongoError as e:
            logger.error("Transaction delete failed: %s", e)
            raise StoreUnavailable(f"Transaction store unavailable: {e}") from e
        return result.deleted_count > 0

    def find_by_user(self, user: ObjectId) -> List[Dict[str, Any]]:
        return self.find({"user": user})


def transaction_store() -> Optional[MongoTransactionStore]:
    if db is None:
        return None
    return MongoTransactionStore(db[TRANSACTION_COLLECTION])


def utcnow() -> datetime:
    return datetime.utcnow()
