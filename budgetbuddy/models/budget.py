"""
Budget Models for BudgetBuddy

A user's budget is a set of per-category spending limits. Reports
derived from it are read-only snapshots: they are recomputed from the
transactions every time and never stored.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from budgetbuddy.models.base import ensure_utc, utc_now


class BudgetStatus(str, Enum):
    """
    Where a category stands against its limit.

    Thresholds (defaults, configurable):
    - over_budget: progress > 100%
    - near_limit:  80% < progress <= 100%
    - on_track:    everything else
    """
    ON_TRACK = "on_track"
    NEAR_LIMIT = "near_limit"
    OVER_BUDGET = "over_budget"


# =============================================================================
# BUDGET DEFINITION
# =============================================================================

class BudgetCategory(BaseModel):
    """A spending limit for one category."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Category label, matched against transaction categories"
    )
    limit: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Spending ceiling for the period"
    )

    @field_validator('name')
    @classmethod
    def lowercase_name(cls, v: str) -> str:
        return v.lower()


class BudgetSet(BaseModel):
    """
    All budget categories owned by one user.

    Category names are unique within a set. Categories are never removed;
    limits are changed through with_limit().
    """

    owner_id: str = Field(
        ...,
        min_length=1,
    )
    categories: list[BudgetCategory] = Field(
        default_factory=list,
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
    )

    @field_validator('updated_at')
    @classmethod
    def normalize_updated_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode='after')
    def validate_unique_names(self) -> 'BudgetSet':
        seen = set()
        for category in self.categories:
            if category.name in seen:
                raise ValueError(f"Duplicate budget category: {category.name}")
            seen.add(category.name)
        return self

    def find(self, name: str) -> Optional[BudgetCategory]:
        """Find a category by name (case-insensitive)."""
        wanted = name.strip().lower()
        for category in self.categories:
            if category.name == wanted:
                return category
        return None

    def with_limit(self, name: str, limit: Decimal) -> 'BudgetSet':
        """
        Return a copy with the limit for `name` set to `limit`.

        Unknown names are appended as new categories.
        """
        updated = BudgetCategory(name=name, limit=limit)
        categories = []
        replaced = False
        for category in self.categories:
            if category.name == updated.name:
                categories.append(updated)
                replaced = True
            else:
                categories.append(category)
        if not replaced:
            categories.append(updated)

        return BudgetSet(
            owner_id=self.owner_id,
            categories=categories,
            updated_at=utc_now(),
        )


# =============================================================================
# BUDGET REPORTS
# =============================================================================

class CategoryBudgetReport(BaseModel):
    """Spend against one category's limit."""
    model_config = ConfigDict(frozen=True)

    name: str
    limit: Decimal
    spent: Decimal
    remaining: Decimal = Field(
        ...,
        description="limit - spent; negative when over budget"
    )
    progress_percent: Optional[Decimal] = Field(
        ...,
        description=(
            "spent / limit * 100 rounded to 2 places. None means unbounded: "
            "a zero limit with some spend"
        )
    )
    status: BudgetStatus


class BudgetTotals(BaseModel):
    """Totals across all budgeted categories."""
    model_config = ConfigDict(frozen=True)

    total_budget: Decimal
    total_spent: Decimal
    total_remaining: Decimal
    over_budget_count: int = Field(ge=0)


class BudgetReport(BaseModel):
    """
    Complete budget view for one user.

    Expense spend in categories with no budget entry is reported in
    uncategorized_spend rather than dropped.
    """
    model_config = ConfigDict(frozen=True)

    per_category: list[CategoryBudgetReport] = Field(default_factory=list)
    totals: BudgetTotals
    uncategorized_spend: Decimal = Decimal("0")
    uncategorized_breakdown: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Unbudgeted category -> expense total"
    )

    def for_category(self, name: str) -> Optional[CategoryBudgetReport]:
        for item in self.per_category:
            if item.name == name:
                return item
        return None


class CashFlowSummary(BaseModel):
    """Income vs expenses for a set of transactions."""
    model_config = ConfigDict(frozen=True)

    total_income: Decimal
    total_expenses: Decimal
    balance: Decimal
    income_count: int = Field(ge=0)
    expense_count: int = Field(ge=0)
    savings_rate_percent: Decimal = Field(
        ...,
        description="balance / total_income * 100, or 0 without income"
    )


class DailyCashFlow(BaseModel):
    """One day of income/expense movement with the running balance."""
    model_config = ConfigDict(frozen=True)

    day: date
    income: Decimal
    expense: Decimal
    net: Decimal
    running_balance: Decimal
