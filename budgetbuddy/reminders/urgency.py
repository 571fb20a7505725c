"""
Reminder Urgency Engine

Each reminder is in exactly one urgency state, computed by a single
pure function of (due_date, is_completed, now):

    COMPLETED  is_completed
    OVERDUE    due_date <  now
    URGENT     now <= due_date <= now + window   (window defaults to 24h)
    UPCOMING   due_date >  now + window

DESIGN DECISION: List views and alert views both go through
compute_urgency(). There is no second copy of the thresholds anywhere,
so the two can never disagree about a reminder.

A batch evaluation samples "now" once, so every reminder in one
response is judged against the same instant.
"""

from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from budgetbuddy.models.base import ensure_utc, utc_now
from budgetbuddy.models.reminder import (
    Reminder,
    ReminderAlertSummary,
    ReminderState,
    UrgencyState,
)


DEFAULT_URGENT_WINDOW = timedelta(hours=24)

NOTIFY_STATES = frozenset({UrgencyState.URGENT, UrgencyState.OVERDUE})


def compute_urgency(
    due_date: datetime,
    is_completed: bool,
    now: datetime,
    *,
    urgent_window: timedelta = DEFAULT_URGENT_WINDOW,
) -> UrgencyState:
    """
    Urgency state transition function.

    A reminder due exactly at `now` is URGENT, not OVERDUE.
    """
    if is_completed:
        return UrgencyState.COMPLETED

    remaining = ensure_utc(due_date) - ensure_utc(now)
    if remaining < timedelta(0):
        return UrgencyState.OVERDUE
    if remaining <= urgent_window:
        return UrgencyState.URGENT
    return UrgencyState.UPCOMING


def notification_worthy(state: UrgencyState) -> bool:
    """True for states that should surface an alert."""
    return state in NOTIFY_STATES


def _sort_key(reminder: Reminder) -> tuple:
    return (reminder.due_date, reminder.is_completed)


def sort_reminders(reminders: Iterable[Reminder]) -> list[Reminder]:
    """
    Display order: due date ascending, incomplete before completed.

    sorted() is stable, so equal keys keep their input order and
    re-sorting a sorted list is a no-op.
    """
    return sorted(reminders, key=_sort_key)


def evaluate_reminder(
    reminder: Reminder,
    now: datetime,
    *,
    urgent_window: timedelta = DEFAULT_URGENT_WINDOW,
) -> ReminderState:
    state = compute_urgency(
        reminder.due_date,
        reminder.is_completed,
        now,
        urgent_window=urgent_window,
    )
    return ReminderState(
        reminder=reminder,
        state=state,
        notify_worthy=notification_worthy(state),
    )


def compute_reminder_states(
    reminders: Iterable[Reminder],
    now: Optional[datetime] = None,
    *,
    urgent_window: timedelta = DEFAULT_URGENT_WINDOW,
) -> list[ReminderState]:
    """
    Evaluate every reminder against one instant, in display order.

    Args:
        reminders: Reminders to evaluate
        now: Evaluation instant; sampled once when omitted
        urgent_window: How far ahead a due date counts as urgent

    Returns:
        One ReminderState per reminder, sorted by sort_reminders()
    """
    instant = ensure_utc(now) if now is not None else utc_now()
    return [
        evaluate_reminder(reminder, instant, urgent_window=urgent_window)
        for reminder in sort_reminders(reminders)
    ]


def partition_reminders(
    states: Sequence[ReminderState],
) -> dict[UrgencyState, list[ReminderState]]:
    """Group evaluated reminders by state, keeping their order."""
    groups: dict[UrgencyState, list[ReminderState]] = {
        state: [] for state in UrgencyState
    }
    for item in states:
        groups[item.state].append(item)
    return groups


def summarize_alerts(states: Sequence[ReminderState]) -> ReminderAlertSummary:
    """
    Condense a poll result into what the alerting surface shows.

    Delivery (toasts, browser notifications) is not done here.
    """
    urgent = sum(1 for item in states if item.state == UrgencyState.URGENT)
    overdue = sum(1 for item in states if item.state == UrgencyState.OVERDUE)
    notify = urgent + overdue

    message = None
    if overdue:
        message = f"You have {overdue} overdue reminder(s) that need attention"
    elif urgent:
        message = f"You have {urgent} urgent reminder(s)"

    return ReminderAlertSummary(
        urgent_count=urgent,
        overdue_count=overdue,
        notify_count=notify,
        requires_attention=overdue > 0,
        message=message,
    )
