"""
Transaction Models for BudgetBuddy

A transaction is a single income or expense record. Once saved it is
never edited, only deleted, so the persisted model is frozen.

DESIGN DECISION: Amounts are Decimal. Many small float additions drift;
Decimal sums of two-place amounts never do.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from budgetbuddy.models.base import ensure_utc, utc_now


# =============================================================================
# ENUMS
# =============================================================================

class TransactionKind(str, Enum):
    """Direction of money flow."""
    EXPENSE = "expense"
    INCOME = "income"


# =============================================================================
# TRANSACTION MODELS
# =============================================================================

class NewTransaction(BaseModel):
    """
    A transaction as submitted by the user.

    Category is optional here: when it is missing the classifier
    assigns one before the transaction is saved.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    owner_id: str = Field(
        ...,
        min_length=1,
        description="Owning user"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Amount in the user's currency"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Free-text description"
    )
    category: Optional[str] = Field(
        default=None,
        max_length=50,
        description="Category label; classified automatically when omitted"
    )
    kind: TransactionKind = Field(
        default=TransactionKind.EXPENSE,
        description="Expense or income"
    )
    occurred_at: datetime = Field(
        default_factory=utc_now,
        description="When the money moved"
    )

    @field_validator('category')
    @classmethod
    def blank_category_is_missing(cls, v: Optional[str]) -> Optional[str]:
        """An empty category string means 'classify for me'."""
        if v is not None and not v:
            return None
        return v.lower() if v else v

    @field_validator('occurred_at')
    @classmethod
    def normalize_occurred_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class Transaction(BaseModel):
    """
    A persisted transaction.

    INVARIANTS:
    - amount > 0
    - category is never empty (owner-assigned or classified)
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        description="Owning user"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Amount in the user's currency"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Category label (required)"
    )
    kind: TransactionKind = TransactionKind.EXPENSE
    occurred_at: datetime = Field(
        default_factory=utc_now,
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the transaction was saved"
    )

    @field_validator('occurred_at', 'created_at')
    @classmethod
    def normalize_timestamps(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @property
    def is_expense(self) -> bool:
        return self.kind == TransactionKind.EXPENSE

    @property
    def is_income(self) -> bool:
        return self.kind == TransactionKind.INCOME

    @classmethod
    def from_submission(cls, submission: NewTransaction, category: str) -> "Transaction":
        """Build the persisted form of a submission with its final category."""
        return cls(
            owner_id=submission.owner_id,
            amount=submission.amount,
            description=submission.description,
            category=category,
            kind=submission.kind,
            occurred_at=submission.occurred_at,
        )


class QuickEntry(BaseModel):
    """
    Result of interpreting a one-line quick entry such as
    "paid 250 for lunch at cafe" or "received salary".
    """

    kind: TransactionKind
    description: str
    category: str
