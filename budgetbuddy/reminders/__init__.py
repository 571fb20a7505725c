"""Reminder urgency package."""

from budgetbuddy.reminders.urgency import (
    DEFAULT_URGENT_WINDOW,
    compute_reminder_states,
    compute_urgency,
    evaluate_reminder,
    notification_worthy,
    partition_reminders,
    sort_reminders,
    summarize_alerts,
)

__all__ = [
    "DEFAULT_URGENT_WINDOW",
    "compute_reminder_states",
    "compute_urgency",
    "evaluate_reminder",
    "notification_worthy",
    "partition_reminders",
    "sort_reminders",
    "summarize_alerts",
]
