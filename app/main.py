"""
Streamlit Frontend for BudgetBuddy

This is the user interface for day-to-day money tracking.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Clear error messages in simple language
3. Visual feedback for all operations
4. No hidden actions

The UI never computes budgets or urgency itself. Every number and
every reminder state on screen comes from the flows.
"""

import asyncio
from datetime import datetime, time, timezone

import streamlit as st

from budgetbuddy.classification import CATEGORIES, INCOME_CATEGORY
from budgetbuddy.config import get_settings, validate_all_settings
from budgetbuddy.models.budget import BudgetStatus
from budgetbuddy.models.reminder import ReminderCategory, UrgencyState
from budgetbuddy.models.transaction import TransactionKind
from budgetbuddy.orchestrator import (
    BudgetFlow,
    InvalidReminderTransition,
    ReminderFlow,
    TransactionFlow,
    create_app_components,
)
from budgetbuddy.reminders import partition_reminders
from budgetbuddy.services.storage import NotFoundError, StorageError
from budgetbuddy.validation import SubmissionRejected, SubmissionValidator


# Page configuration
st.set_page_config(
    page_title="BudgetBuddy",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


STATUS_BADGES = {
    BudgetStatus.ON_TRACK: "🟢 On track",
    BudgetStatus.NEAR_LIMIT: "🟡 Near limit",
    BudgetStatus.OVER_BUDGET: "🔴 Over budget",
}

URGENCY_BADGES = {
    UrgencyState.OVERDUE: "🔴 Overdue",
    UrgencyState.URGENT: "🟠 Due soon",
    UrgencyState.UPCOMING: "🔵 Upcoming",
    UrgencyState.COMPLETED: "✅ Done",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def money(amount) -> str:
    return f"{get_settings().app.currency_symbol}{amount:,.2f}"


def show_rejection(error: SubmissionRejected):
    summary = SubmissionValidator().get_user_friendly_summary(error.result)
    st.markdown(f"""
    <div class="error-box">
        <h4>❌ Not saved</h4>
        <pre>{summary}</pre>
    </div>
    """, unsafe_allow_html=True)


def show_warnings(result):
    for warning in result.warnings:
        st.warning(f"⚠️ {warning}")


@st.fragment(run_every=get_settings().app.reminder_poll_interval_seconds)
def render_alerts(flow: ReminderFlow, owner_id: str):
    """Re-evaluate reminder urgency and show the alert summary."""
    try:
        alerts = run_async(flow.alerts(owner_id))
    except StorageError as e:
        st.error(f"Could not check reminders: {e}")
        return

    if alerts.message:
        if alerts.requires_attention:
            st.error(f"🔔 {alerts.message}")
        else:
            st.warning(f"🔔 {alerts.message}")


def main():
    """Main application entry point."""
    # Initialize components
    transaction_flow, budget_flow, reminder_flow, sheets_client = get_components()

    # Sidebar navigation
    st.sidebar.title("💰 BudgetBuddy")
    owner_id = st.sidebar.text_input("Your name", value="me").strip() or "me"
    if sheets_client is None:
        st.sidebar.caption("Data is kept in memory for this session only.")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["💸 Transactions", "📊 Budget", "⏰ Reminders", "⚙️ Settings"],
        index=0,
    )

    # Alert poll: reruns on its own every poll interval, and with the page
    with st.sidebar:
        render_alerts(reminder_flow, owner_id)

    # Route to appropriate page
    if page == "💸 Transactions":
        render_transactions_page(transaction_flow, owner_id)
    elif page == "📊 Budget":
        render_budget_page(budget_flow, owner_id)
    elif page == "⏰ Reminders":
        render_reminders_page(reminder_flow, owner_id)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_transactions_page(flow: TransactionFlow, owner_id: str):
    """Render the transactions page."""
    st.title("💸 Transactions")

    quick_tab, form_tab = st.tabs(["⚡ Quick entry", "📝 Detailed entry"])

    with quick_tab:
        st.markdown('Type something like "paid for lunch at cafe" or "received salary".')
        with st.form("quick_entry", clear_on_submit=True):
            text = st.text_input("What happened?")
            amount = st.text_input("Amount")
            submitted = st.form_submit_button("💾 Save", type="primary")
        if submitted:
            try:
                transaction, result = run_async(flow.quick_entry(owner_id, text, amount))
                st.success(
                    f"Saved {transaction.kind.value} of {money(transaction.amount)} "
                    f"as **{transaction.category}**"
                )
                show_warnings(result)
            except SubmissionRejected as e:
                show_rejection(e)
            except StorageError as e:
                st.error(f"Could not save: {e}")

    with form_tab:
        with st.form("transaction", clear_on_submit=True):
            col1, col2 = st.columns(2)
            with col1:
                kind = st.selectbox(
                    "Type",
                    options=list(TransactionKind),
                    format_func=lambda k: k.value.title(),
                )
                amount = st.text_input("Amount")
                occurred_on = st.date_input("Date", value=datetime.now(timezone.utc).date())
            with col2:
                description = st.text_input("Description")
                category = st.selectbox(
                    "Category",
                    options=[""] + list(CATEGORIES),
                    format_func=lambda c: "Auto-detect" if c == "" else c.title(),
                )
            submitted = st.form_submit_button("💾 Save", type="primary")
        if submitted:
            try:
                transaction, result = run_async(flow.submit(
                    owner_id=owner_id,
                    amount=amount,
                    description=description,
                    category=category or None,
                    kind=kind,
                    occurred_at=datetime.combine(occurred_on, time.min, tzinfo=timezone.utc),
                ))
                st.success(f"Saved {money(transaction.amount)} as **{transaction.category}**")
                show_warnings(result)
            except SubmissionRejected as e:
                show_rejection(e)
            except StorageError as e:
                st.error(f"Could not save: {e}")

    st.markdown("---")

    try:
        summary = run_async(flow.cash_flow(owner_id))
        transactions = run_async(flow.list(owner_id))
    except StorageError as e:
        st.error(f"Could not load transactions: {e}")
        return

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Income", money(summary.total_income))
    col2.metric("Expenses", money(summary.total_expenses))
    col3.metric("Balance", money(summary.balance))
    col4.metric("Savings rate", f"{summary.savings_rate_percent}%")

    if not transactions:
        st.info("📋 Your transactions will appear here once you add them.")
        return

    daily = run_async(flow.daily_cash_flow(owner_id))
    if len(daily) > 1:
        st.line_chart(
            {"Balance": [float(d.running_balance) for d in daily]},
        )

    st.subheader("Recent transactions")
    for transaction in transactions:
        col1, col2, col3, col4 = st.columns([2, 4, 2, 1])
        col1.write(transaction.occurred_at.strftime("%d %b %Y"))
        col2.write(f"{transaction.description} · *{transaction.category}*")
        sign = "+" if transaction.is_income else "-"
        col3.write(f"{sign}{money(transaction.amount)}")
        if col4.button("🗑️", key=f"del-{transaction.id}"):
            try:
                run_async(flow.delete(owner_id, transaction.id))
                st.rerun()
            except NotFoundError:
                st.warning("That transaction was already deleted.")


def render_budget_page(flow: BudgetFlow, owner_id: str):
    """Render the budget page."""
    st.title("📊 Budget")

    with st.expander("Set a category limit"):
        with st.form("budget_limit", clear_on_submit=True):
            name = st.selectbox(
                "Category",
                options=[c for c in CATEGORIES if c != INCOME_CATEGORY],
                format_func=str.title,
            )
            limit = st.text_input("Monthly limit")
            submitted = st.form_submit_button("💾 Save limit", type="primary")
        if submitted:
            try:
                updated = run_async(flow.set_limit(owner_id, name, limit))
                st.success(f"Limit for {name} set to {money(updated.find(name).limit)}")
            except SubmissionRejected as e:
                show_rejection(e)
            except StorageError as e:
                st.error(f"Could not save: {e}")

    try:
        report = run_async(flow.report(owner_id))
    except StorageError as e:
        st.error(f"Could not load budget: {e}")
        return

    totals = report.totals
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total budget", money(totals.total_budget))
    col2.metric("Spent", money(totals.total_spent))
    col3.metric("Remaining", money(totals.total_remaining))
    col4.metric("Over budget", totals.over_budget_count)

    if not report.per_category:
        st.info("No budget limits yet. Set one above to start tracking.")

    for item in report.per_category:
        st.markdown(f"**{item.name.title()}** · {STATUS_BADGES[item.status]}")
        if item.progress_percent is None:
            st.progress(1.0, text=f"{money(item.spent)} spent with no limit")
        else:
            st.progress(
                min(float(item.progress_percent) / 100, 1.0),
                text=(
                    f"{money(item.spent)} of {money(item.limit)} "
                    f"({item.progress_percent}%)"
                ),
            )

    if report.uncategorized_spend:
        st.markdown("---")
        st.subheader(f"Spending without a budget: {money(report.uncategorized_spend)}")
        for name, amount in report.uncategorized_breakdown.items():
            st.write(f"• {name.title()}: {money(amount)}")


def render_reminders_page(flow: ReminderFlow, owner_id: str):
    """Render the reminders page."""
    st.title("⏰ Reminders")

    with st.expander("Add a reminder", expanded=False):
        with st.form("reminder", clear_on_submit=True):
            title = st.text_input("What is due?")
            col1, col2, col3 = st.columns(3)
            with col1:
                due_on = st.date_input("Due date")
            with col2:
                due_at = st.time_input("Due time", value=time(9, 0))
            with col3:
                category = st.selectbox(
                    "Category",
                    options=list(ReminderCategory),
                    format_func=lambda c: c.value.title(),
                )
            submitted = st.form_submit_button("💾 Save reminder", type="primary")
        if submitted:
            try:
                run_async(flow.create(
                    owner_id=owner_id,
                    title=title,
                    due_date=datetime.combine(due_on, due_at, tzinfo=timezone.utc),
                    category=category,
                ))
                st.success("Reminder saved")
            except SubmissionRejected as e:
                show_rejection(e)
            except StorageError as e:
                st.error(f"Could not save: {e}")

    try:
        states = run_async(flow.list_with_states(owner_id))
    except StorageError as e:
        st.error(f"Could not load reminders: {e}")
        return

    if not states:
        st.info("📋 No reminders yet.")
        return

    groups = partition_reminders(states)
    for state in (
        UrgencyState.OVERDUE,
        UrgencyState.URGENT,
        UrgencyState.UPCOMING,
        UrgencyState.COMPLETED,
    ):
        if not groups[state]:
            continue
        st.subheader(f"{URGENCY_BADGES[state]} ({len(groups[state])})")
        for item in groups[state]:
            reminder = item.reminder
            col1, col2, col3, col4 = st.columns([4, 2, 1, 1])
            col1.write(f"**{reminder.title}** · *{reminder.category.value}*")
            col2.write(reminder.due_date.strftime("%d %b %Y %H:%M"))
            if not reminder.is_completed and col3.button("✔️", key=f"done-{reminder.id}"):
                run_async(flow.complete(owner_id, reminder.id))
                st.rerun()
            if col4.button("🗑️", key=f"del-{reminder.id}"):
                try:
                    run_async(flow.delete(owner_id, reminder.id))
                except NotFoundError:
                    st.warning("That reminder was already deleted.")
                st.rerun()

            if not reminder.is_completed:
                with st.expander("Edit", expanded=False):
                    with st.form(f"edit-{reminder.id}"):
                        new_title = st.text_input("Title", value=reminder.title)
                        new_due = st.date_input("Due date", value=reminder.due_date.date())
                        saved = st.form_submit_button("Update")
                    if saved:
                        try:
                            run_async(flow.update(
                                owner_id,
                                reminder.id,
                                title=new_title,
                                due_date=datetime.combine(
                                    new_due,
                                    reminder.due_date.timetz(),
                                ),
                            ))
                            st.rerun()
                        except SubmissionRejected as e:
                            show_rejection(e)
                        except (InvalidReminderTransition, NotFoundError, StorageError) as e:
                            st.error(str(e))


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Application settings", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    if status.get("app"):
        app = get_settings().app
        st.markdown("### Current values")
        st.write(f"Near-limit warning at {app.near_limit_percent}% of a budget")
        st.write(f"Over budget above {app.over_limit_percent}%")
        st.write(f"Reminders become urgent {app.urgent_window_hours} hours before they are due")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
