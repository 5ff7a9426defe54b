"""
Schemas for the Personal Finance Tracker

Stored transactions live in the "transaction" MongoDB collection. Derived
structures (summaries, search results, card rollups) are never persisted; they
are built per request and serialized with camelCase field names.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, computed_field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

import classifier
from classifier import NeedsWants, TransactionType

TRANSACTION_COLLECTION = "transaction"

_DATETIME = TypeAdapter(datetime)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------- Stored transactions -----------------

class Transaction(CamelModel):
    """
    Transactions collection schema (read side)
    Collection name: "transaction"

    Reads are tolerant: an unknown `type` is kept as-is so it can be reported
    without counting toward any total.
    """
    id: Optional[str] = Field(None, description="Store-assigned identifier")
    amount: float = Field(..., description="Non-negative amount")
    date: Optional[datetime] = Field(None, description="Transaction date/time (UTC)")
    type: str = Field(..., description="expense | income | transfer | credit_card_payment | saved")
    payee: Optional[str] = Field(None, description="'From' for income, 'To' for everything else")
    mode: Optional[str] = Field(None, description="Payment rail, e.g. a credit card account")
    payment_method: Optional[str] = None
    payment_app: Optional[str] = None
    expense_type: Optional[str] = Field(None, description="Food, Essentials, Travel, ...")
    needs_wants: Optional[str] = None
    category: Optional[str] = Field(None, description="Legacy alias of expenseType")
    remarks: Optional[str] = None
    user: Optional[str] = None

    @computed_field(alias="categoryLabel")
    @property
    def category_label(self) -> str:
        return classifier.expense_category_label(self)

    @computed_field(alias="needsWantsLabel")
    @property
    def needs_wants_label(self) -> Optional[str]:
        return classifier.needs_wants_label(self)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Transaction":
        data = dict(doc)
        _id = data.pop("_id", None)
        data["id"] = str(_id) if _id is not None else None
        if data.get("user") is not None:
            data["user"] = str(data["user"])
        return cls.model_validate(data)


class TransactionCreate(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    amount: float = Field(..., ge=0)
    date: Optional[datetime] = None
    type: TransactionType
    payee: str = Field(..., min_length=1)
    mode: Optional[str] = None
    payment_method: Optional[str] = None
    payment_app: Optional[str] = None
    expense_type: Optional[str] = None
    needs_wants: Optional[NeedsWants] = None
    category: Optional[str] = None
    remarks: Optional[str] = None
    user: str

    @field_validator("needs_wants", mode="before")
    @classmethod
    def _blank_bucket(cls, value):
        return None if value == "" else value

    @field_validator("date", mode="before")
    @classmethod
    def _unparseable_date(cls, value):
        # blank or invalid dates fall back to "now" when the record is saved
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        try:
            return _DATETIME.validate_python(value)
        except PydanticValidationError:
            return None


class TransactionUpdate(CamelModel):
    """Partial update; `user` identifies the owner and is never written."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    user: str
    amount: Optional[float] = Field(None, ge=0)
    date: Optional[datetime] = None
    type: Optional[TransactionType] = None
    payee: Optional[str] = None
    mode: Optional[str] = None
    payment_method: Optional[str] = None
    payment_app: Optional[str] = None
    expense_type: Optional[str] = None
    # "" clears the bucket tag; None leaves it unchanged
    needs_wants: Optional[Union[NeedsWants, Literal[""]]] = None
    category: Optional[str] = None
    remarks: Optional[str] = None

# ---------------- Search criteria -----------------

class SearchCriteria(CamelModel):
    """Optional filters for transaction search. Blank values mean "no constraint"."""
    search: Optional[str] = None
    category: Optional[str] = None
    expense_type: Optional[str] = None
    type: Optional[str] = None
    mode: Optional[str] = None
    payee: Optional[str] = None
    payment_method: Optional[str] = None
    payment_app: Optional[str] = None
    needs_wants: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None

    @field_validator("*", mode="before")
    @classmethod
    def _blank_is_missing(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


# ---------------- Monthly summary -----------------

class GoalEntry(CamelModel):
    amount: float = 0.0
    target: float = 0.0

    @computed_field
    @property
    def percent(self) -> float:
        return self.amount / self.target * 100 if self.target > 0 else 0.0


class GoalProgress(CamelModel):
    needs: GoalEntry
    wants: GoalEntry
    savings: GoalEntry
    invested: GoalEntry


class MonthlySummary(CamelModel):
    total_income: float = 0.0
    total_expenses: float = 0.0
    total_savings: float = 0.0
    total_investments: float = 0.0
    credit_card_payments: float = 0.0
    net_flow: float = 0.0
    income: List[Transaction] = Field(default_factory=list)
    expenses: List[Transaction] = Field(default_factory=list)
    savings: List[Transaction] = Field(default_factory=list)
    cc_payments: List[Transaction] = Field(default_factory=list)
    expenses_by_type: Dict[str, float] = Field(default_factory=dict)
    # Keys are bucket names, kept verbatim ("Needs", "Wants", ...)
    expenses_by_needs_wants: Dict[str, float] = Field(default_factory=dict)
    goal_progress: GoalProgress


# ---------------- Search results -----------------

class DateRange(CamelModel):
    earliest: Optional[datetime] = None
    latest: Optional[datetime] = None


class SearchResult(CamelModel):
    transactions: List[Transaction] = Field(default_factory=list)
    count: int = 0
    total_expenses: float = 0.0
    total_income: float = 0.0
    net_amount: float = 0.0
    category_breakdown: Dict[str, float] = Field(default_factory=dict)
    type_breakdown: Dict[str, float] = Field(default_factory=dict)
    search_query: Dict[str, Any] = Field(default_factory=dict)
    date_range: DateRange = Field(default_factory=DateRange)


class CategorySearchResult(CamelModel):
    transactions: List[Transaction] = Field(default_factory=list)
    count: int = 0
    total_amount: float = 0.0
    category: str


class RecentTransactions(CamelModel):
    transactions: List[Transaction] = Field(default_factory=list)
    count: int = 0
    total_expenses: float = 0.0
    total_income: float = 0.0
    period: str


# ---------------- Credit cards -----------------

class CreditCardEntry(CamelModel):
    card: str
    total_spent: float = 0.0
    total_repaid: float = 0.0
    balance: float = 0.0


class CreditCardSummary(CamelModel):
    cards: List[CreditCardEntry] = Field(default_factory=list)
    query: Dict[str, int] = Field(default_factory=dict)


# ---------------- Analytics -----------------

class TrendPoint(CamelModel):
    year: int
    month: int
    type: str
    total_amount: float = 0.0
    count: int = 0


class CategorySpending(CamelModel):
    expense_type: Optional[str] = None
    total_amount: float = 0.0
    count: int = 0


class SpendingAnalytics(CamelModel):
    trends: List[TrendPoint] = Field(default_factory=list)
    category_spending: List[CategorySpending] = Field(default_factory=list)
    period: str
