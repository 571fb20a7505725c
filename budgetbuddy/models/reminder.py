"""
Reminder Models for BudgetBuddy

Reminders are time-bound obligations: rent, utility bills, insurance
premiums. Their urgency is derived at read time from the due date, the
completion flag and the current time; it is never stored.
"""

from datetime import datetime
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


class ReminderCategory(str, Enum):
    """Closed set of reminder categories."""
    UTILITIES = "utilities"
    RENT = "rent"
    SUBSCRIPTIONS = "subscriptions"
    INSURANCE = "insurance"
    OTHER = "other"


class UrgencyState(str, Enum):
    """
    Urgency of a reminder at a point in time.

    Time moves a reminder UPCOMING -> URGENT -> OVERDUE.
    Completing it moves any of those to COMPLETED, which is terminal.
    """
    UPCOMING = "upcoming"
    URGENT = "urgent"
    OVERDUE = "overdue"
    COMPLETED = "completed"


class Reminder(BaseModel):
    """
    A persisted reminder.

    Mutations go through apply(), which returns a new model with
    updated_at refreshed.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique reminder ID"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
    )
    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What is due"
    )
    due_date: datetime = Field(
        ...,
        description="When it is due (UTC)"
    )
    category: ReminderCategory = Field(
        default=ReminderCategory.OTHER,
    )
    is_completed: bool = False
    created_at: datetime = Field(
        default_factory=utc_now,
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
    )

    @field_validator('due_date', 'created_at', 'updated_at')
    @classmethod
    def normalize_timestamps(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    def apply(
        self,
        title: Optional[str] = None,
        due_date: Optional[datetime] = None,
        category: Optional[ReminderCategory] = None,
        is_completed: Optional[bool] = None,
    ) -> 'Reminder':
        """Return a copy with the given fields changed and updated_at bumped."""
        changes = {
            "title": title,
            "due_date": due_date,
            "category": category,
            "is_completed": is_completed,
        }
        data = self.model_dump()
        data.update({k: v for k, v in changes.items() if v is not None})
        data["updated_at"] = utc_now()
        # Re-validate so edited fields get the same checks as new ones
        return Reminder.model_validate(data)


class ReminderUpdate(BaseModel):
    """Partial edit of a reminder; None means 'leave unchanged'."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=200,
    )
    due_date: Optional[datetime] = None
    category: Optional[ReminderCategory] = None
    is_completed: Optional[bool] = None


class ReminderState(BaseModel):
    """A reminder together with its computed urgency."""
    model_config = ConfigDict(frozen=True)

    reminder: Reminder
    state: UrgencyState
    notify_worthy: bool


class ReminderAlertSummary(BaseModel):
    """
    What an alerting surface needs to know after a poll.

    requires_attention is True when anything is overdue; urgent-only
    results warrant a gentle notice rather than an interruption.
    """
    model_config = ConfigDict(frozen=True)

    urgent_count: int = Field(ge=0)
    overdue_count: int = Field(ge=0)
    notify_count: int = Field(ge=0)
    requires_attention: bool
    message: Optional[str] = None
