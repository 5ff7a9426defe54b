import logging
from typing import List, Optional

from bson import ObjectId
from fastapi import Body, Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

import database
from analytics import InsightsEngine
from config import ALLOWED_ORIGINS, CREDIT_CARD_ROSTER, LOG_LEVEL, PORT
from credit_cards import CreditCardAggregator
from database import MongoTransactionStore, utcnow
from errors import FinanceError, TransactionNotFound
from logging_config import setup_logging
from query_filters import parse_user_id
from schemas import (
    CategorySearchResult,
    CreditCardSummary,
    MonthlySummary,
    RecentTransactions,
    SearchResult,
    SpendingAnalytics,
    Transaction,
    TransactionCreate,
    TransactionUpdate,
)
from search_engine import SearchEngine
from summary_engine import MonthlySummaryEngine

setup_logging(LOG_LEVEL)
logger = logging.getLogger("finance.api")

app = FastAPI(title="Personal Finance Tracker API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FinanceError)
async def finance_error_handler(_, exc: FinanceError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def get_store() -> MongoTransactionStore:
    store = database.transaction_store()
    if store is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return store


def get_card_roster() -> List[str]:
    return CREDIT_CARD_ROSTER


@app.get("/")
def read_root():
    return {"message": "Finance Tracker Backend Running"}


@app.get("/test")
def test_database():
    """Verify database connectivity and show collections"""
    status = {
        "backend": "✅ Running",
        "database": "❌ Not Connected",
        "collections": [],
    }
    try:
        if database.db is None:
            status["database"] = "❌ Not Configured"
        else:
            status["database"] = "✅ Connected"
            status["collections"] = database.db.list_collection_names()
    except Exception as e:
        status["database"] = f"⚠️ {str(e)[:80]}"
    return status


# ---------------- Transactions -----------------

class OwnerPayload(BaseModel):
    user: str


def _object_id(value: str) -> ObjectId:
    if not ObjectId.is_valid(value):
        raise TransactionNotFound()
    return ObjectId(value)


@app.post("/api/transactions/add", response_model=Transaction, status_code=201)
def add_transaction(payload: TransactionCreate, store: MongoTransactionStore = Depends(get_store)):
    doc = payload.model_dump(by_alias=True, exclude_none=True)
    doc["user"] = parse_user_id(payload.user)
    # A missing or unparseable date means "now"
    doc["date"] = payload.date or utcnow()
    saved = store.insert(doc)
    logger.info("Saved transaction %s for user %s", saved["_id"], payload.user)
    return Transaction.from_document(saved)


@app.get("/api/transactions/user/{user_id}", response_model=List[Transaction])
def list_user_transactions(user_id: str, store: MongoTransactionStore = Depends(get_store)):
    docs = store.find_by_user(parse_user_id(user_id))
    return [Transaction.from_document(d) for d in docs]


@app.put("/api/transactions/{transaction_id}", response_model=Transaction)
def update_transaction(transaction_id: str, payload: TransactionUpdate, store: MongoTransactionStore = Depends(get_store)):
    user = parse_user_id(payload.user)
    changes = payload.model_dump(by_alias=True, exclude_none=True, exclude={"user"})
    if not changes:
        docs = store.find({"_id": _object_id(transaction_id), "user": user}, limit=1)
        if not docs:
            raise TransactionNotFound()
        return Transaction.from_document(docs[0])

    updated = store.update_owned(_object_id(transaction_id), user, changes)
    if updated is None:
        raise TransactionNotFound()
    logger.info("Updated transaction %s (%s)", transaction_id, ", ".join(sorted(changes)))
    return Transaction.from_document(updated)


@app.delete("/api/transactions/{transaction_id}")
def delete_transaction(transaction_id: str, payload: OwnerPayload = Body(...), store: MongoTransactionStore = Depends(get_store)):
    user = parse_user_id(payload.user)
    if not store.delete_owned(_object_id(transaction_id), user):
        raise TransactionNotFound()
    logger.info("Deleted transaction %s", transaction_id)
    return {"message": "Transaction deleted successfully"}


# ---------------- Search -----------------

@app.get("/api/transactions/search/{user_id}", response_model=SearchResult)
def search_transactions(
    user_id: str,
    search: Optional[str] = None,
    category: Optional[str] = None,
    expense_type: Optional[str] = Query(None, alias="expenseType"),
    type: Optional[str] = None,
    mode: Optional[str] = None,
    payee: Optional[str] = None,
    payment_method: Optional[str] = Query(None, alias="paymentMethod"),
    payment_app: Optional[str] = Query(None, alias="paymentApp"),
    needs_wants: Optional[str] = Query(None, alias="needsWants"),
    start_date: Optional[str] = Query(None, alias="startDate", description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, alias="endDate", description="YYYY-MM-DD"),
    min_amount: Optional[str] = Query(None, alias="minAmount"),
    max_amount: Optional[str] = Query(None, alias="maxAmount"),
    limit: str = "100",
    store: MongoTransactionStore = Depends(get_store),
):
    criteria = {
        "search": search,
        "category": category,
        "expenseType": expense_type,
        "type": type,
        "mode": mode,
        "payee": payee,
        "paymentMethod": payment_method,
        "paymentApp": payment_app,
        "needsWants": needs_wants,
        "startDate": start_date,
        "endDate": end_date,
        "minAmount": min_amount,
        "maxAmount": max_amount,
    }
    return SearchEngine(store).search(user_id, criteria, limit)


@app.get("/api/transactions/recent/{user_id}", response_model=RecentTransactions)
def recent_transactions(user_id: str, days: str = "30", store: MongoTransactionStore = Depends(get_store)):
    return SearchEngine(store).recent(user_id, days)


@app.get("/api/transactions/category/{user_id}/{category}", response_model=CategorySearchResult)
def category_transactions(user_id: str, category: str, limit: str = "50", store: MongoTransactionStore = Depends(get_store)):
    return SearchEngine(store).search_by_category(user_id, category, limit)


@app.get("/api/transactions/suggestions/{user_id}", response_model=List[str])
def suggestions(user_id: str, field: str = Query(..., description="payee, expenseType or mode"), store: MongoTransactionStore = Depends(get_store)):
    return InsightsEngine(store).suggestions(user_id, field)


@app.get("/api/transactions/analytics/{user_id}", response_model=SpendingAnalytics)
def analytics(user_id: str, months: str = "6", store: MongoTransactionStore = Depends(get_store)):
    return InsightsEngine(store).spending_trends(user_id, months)


# ---------------- Summaries -----------------

@app.get("/api/transactions/summary/{user_id}", response_model=MonthlySummary)
def monthly_summary(
    user_id: str,
    month: Optional[str] = Query(None, description="1-12"),
    year: Optional[str] = Query(None, description="YYYY"),
    store: MongoTransactionStore = Depends(get_store),
):
    return MonthlySummaryEngine(store).summarize(user_id, month, year)


@app.get("/api/creditcards/summary/{user_id}", response_model=CreditCardSummary)
def credit_card_summary(
    user_id: str,
    month: Optional[str] = Query(None, description="1-12"),
    year: Optional[str] = Query(None, description="YYYY"),
    store: MongoTransactionStore = Depends(get_store),
    roster: List[str] = Depends(get_card_roster),
):
    cards = CreditCardAggregator(store, roster).summarize(user_id, month, year)
    return CreditCardSummary(cards=cards, query={"month": int(month), "year": int(year)})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
