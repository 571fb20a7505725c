"""Tests for the reminder urgency engine."""

from datetime import datetime, timedelta, timezone

from budgetbuddy.models import Reminder, UrgencyState
from budgetbuddy.reminders import (
    compute_reminder_states,
    compute_urgency,
    notification_worthy,
    partition_reminders,
    sort_reminders,
    summarize_alerts,
)


NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def reminder(title: str, due_in: timedelta, completed: bool = False) -> Reminder:
    return Reminder(
        owner_id="asha",
        title=title,
        due_date=NOW + due_in,
        is_completed=completed,
    )


class TestComputeUrgency:
    """Tests for the urgency transition function."""

    def test_past_due_is_overdue(self):
        """Test overdue detection."""
        assert compute_urgency(NOW - timedelta(seconds=1), False, NOW) == UrgencyState.OVERDUE

    def test_due_exactly_now_is_urgent(self):
        """Test the boundary at now."""
        assert compute_urgency(NOW, False, NOW) == UrgencyState.URGENT

    def test_due_at_window_edge_is_urgent(self):
        """Test the boundary at now + 24h."""
        assert compute_urgency(NOW + timedelta(hours=24), False, NOW) == UrgencyState.URGENT

    def test_beyond_window_is_upcoming(self):
        """Test upcoming detection."""
        due = NOW + timedelta(hours=24, seconds=1)
        assert compute_urgency(due, False, NOW) == UrgencyState.UPCOMING

    def test_completed_overrides_dates(self):
        """Test that completion wins over any due date."""
        assert compute_urgency(NOW - timedelta(days=3), True, NOW) == UrgencyState.COMPLETED
        assert compute_urgency(NOW + timedelta(days=3), True, NOW) == UrgencyState.COMPLETED

    def test_custom_window(self):
        """Test a configurable urgency window."""
        due = NOW + timedelta(hours=36)
        assert compute_urgency(due, False, NOW) == UrgencyState.UPCOMING
        assert compute_urgency(
            due, False, NOW, urgent_window=timedelta(hours=48)
        ) == UrgencyState.URGENT

    def test_naive_inputs_are_utc(self):
        """Test that naive datetimes compare as UTC."""
        naive_now = NOW.replace(tzinfo=None)
        assert compute_urgency(NOW + timedelta(hours=1), False, naive_now) == UrgencyState.URGENT

    def test_time_moves_reminder_forward(self):
        """Test the UPCOMING -> URGENT -> OVERDUE progression."""
        due = NOW + timedelta(days=2)
        states = [
            compute_urgency(due, False, NOW),
            compute_urgency(due, False, NOW + timedelta(days=1, hours=1)),
            compute_urgency(due, False, NOW + timedelta(days=3)),
        ]
        assert states == [UrgencyState.UPCOMING, UrgencyState.URGENT, UrgencyState.OVERDUE]


class TestNotificationWorthy:
    """Tests for notify flags."""

    def test_only_urgent_and_overdue_notify(self):
        """Test which states are notification-worthy."""
        assert notification_worthy(UrgencyState.URGENT)
        assert notification_worthy(UrgencyState.OVERDUE)
        assert not notification_worthy(UrgencyState.UPCOMING)
        assert not notification_worthy(UrgencyState.COMPLETED)


class TestSorting:
    """Tests for display ordering."""

    def test_sorted_by_due_date(self):
        """Test ascending due date order."""
        later = reminder("later", timedelta(days=5))
        sooner = reminder("sooner", timedelta(days=1))
        past = reminder("past", -timedelta(days=1))
        assert [r.title for r in sort_reminders([later, sooner, past])] == [
            "past",
            "sooner",
            "later",
        ]

    def test_open_before_completed_on_same_due_date(self):
        """Test the completion tie-break."""
        done = reminder("done", timedelta(hours=2), completed=True)
        open_ = reminder("open", timedelta(hours=2))
        assert [r.title for r in sort_reminders([done, open_])] == ["open", "done"]

    def test_sort_is_idempotent(self):
        """Test that sorting a sorted list changes nothing."""
        items = [
            reminder("a", timedelta(days=2)),
            reminder("b", timedelta(hours=1), completed=True),
            reminder("c", timedelta(hours=1)),
            reminder("d", timedelta(hours=1)),
        ]
        once = sort_reminders(items)
        assert sort_reminders(once) == once

    def test_equal_keys_keep_input_order(self):
        """Test stability for reminders with the same due date and completion."""
        first = reminder("water", timedelta(hours=5))
        second = reminder("gas", timedelta(hours=5))
        earlier = reminder("rent", timedelta(hours=1))
        assert [r.title for r in sort_reminders([first, earlier, second])] == [
            "rent",
            "water",
            "gas",
        ]
        assert [r.title for r in sort_reminders([second, earlier, first])] == [
            "rent",
            "gas",
            "water",
        ]


class TestComputeReminderStates:
    """Tests for batch evaluation."""

    def test_states_and_flags(self):
        """Test one reminder in each state."""
        states = compute_reminder_states(
            [
                reminder("upcoming", timedelta(days=3)),
                reminder("urgent", timedelta(hours=3)),
                reminder("overdue", -timedelta(hours=3)),
                reminder("done", -timedelta(days=1), completed=True),
            ],
            NOW,
        )
        by_title = {item.reminder.title: item for item in states}
        assert by_title["upcoming"].state == UrgencyState.UPCOMING
        assert by_title["urgent"].state == UrgencyState.URGENT
        assert by_title["overdue"].state == UrgencyState.OVERDUE
        assert by_title["done"].state == UrgencyState.COMPLETED
        assert [item.notify_worthy for item in states] == [
            item.state in (UrgencyState.URGENT, UrgencyState.OVERDUE) for item in states
        ]

    def test_output_is_in_display_order(self):
        """Test that results come back sorted."""
        states = compute_reminder_states(
            [reminder("b", timedelta(days=2)), reminder("a", timedelta(days=1))],
            NOW,
        )
        assert [item.reminder.title for item in states] == ["a", "b"]

    def test_now_defaults_to_current_time(self):
        """Test evaluation without an explicit instant."""
        far = Reminder(
            owner_id="asha",
            title="far",
            due_date=datetime.now(timezone.utc) + timedelta(days=30),
        )
        states = compute_reminder_states([far])
        assert states[0].state == UrgencyState.UPCOMING

    def test_empty_input(self):
        """Test that no reminders gives no states."""
        assert compute_reminder_states([], NOW) == []


class TestAlerts:
    """Tests for partitioning and alert summaries."""

    def test_partition_has_every_state(self):
        """Test grouping by state."""
        states = compute_reminder_states([reminder("urgent", timedelta(hours=1))], NOW)
        groups = partition_reminders(states)
        assert set(groups) == set(UrgencyState)
        assert len(groups[UrgencyState.URGENT]) == 1
        assert groups[UrgencyState.OVERDUE] == []

    def test_overdue_requires_attention(self):
        """Test the overdue alert message."""
        states = compute_reminder_states(
            [
                reminder("overdue", -timedelta(hours=1)),
                reminder("urgent", timedelta(hours=1)),
            ],
            NOW,
        )
        summary = summarize_alerts(states)
        assert summary.overdue_count == 1
        assert summary.urgent_count == 1
        assert summary.notify_count == 2
        assert summary.requires_attention
        assert summary.message == "You have 1 overdue reminder(s) that need attention"

    def test_urgent_only_is_a_notice(self):
        """Test the urgent-only alert message."""
        states = compute_reminder_states(
            [reminder("a", timedelta(hours=1)), reminder("b", timedelta(hours=2))],
            NOW,
        )
        summary = summarize_alerts(states)
        assert not summary.requires_attention
        assert summary.message == "You have 2 urgent reminder(s)"

    def test_nothing_due_has_no_message(self):
        """Test a quiet poll."""
        states = compute_reminder_states([reminder("later", timedelta(days=4))], NOW)
        summary = summarize_alerts(states)
        assert summary.notify_count == 0
        assert summary.message is None
