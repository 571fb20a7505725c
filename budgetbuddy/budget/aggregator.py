"""
Budget Aggregation

Given a user's transactions and budget categories, compute spent,
remaining, progress and status per category plus totals.

DESIGN DECISION: Aggregation is pure and recomputed on every read.
Nothing here touches storage, so the same snapshot always produces
the same report.

ZERO-LIMIT POLICY: a category with limit 0 never divides. Any spend in
it is over budget with unbounded progress (progress_percent=None); no
spend is 0% and on track.
"""

from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

from budgetbuddy.models.budget import (
    BudgetCategory,
    BudgetReport,
    BudgetStatus,
    BudgetTotals,
    CashFlowSummary,
    CategoryBudgetReport,
    DailyCashFlow,
)
from budgetbuddy.models.transaction import Transaction


DEFAULT_NEAR_LIMIT_PERCENT = Decimal("80")
DEFAULT_OVER_LIMIT_PERCENT = Decimal("100")

ZERO = Decimal("0")
HUNDRED = Decimal("100")
_CENTS = Decimal("0.01")


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def _expense_totals(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Sum expense amounts per category. Income is ignored."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for transaction in transactions:
        if transaction.is_expense:
            totals[transaction.category.lower()] += transaction.amount
    return dict(totals)


def budget_status(
    progress: Optional[Decimal],
    near_limit_percent: Decimal = DEFAULT_NEAR_LIMIT_PERCENT,
    over_limit_percent: Decimal = DEFAULT_OVER_LIMIT_PERCENT,
) -> BudgetStatus:
    """
    Classify a progress percentage.

    None means unbounded progress (zero limit with spend).
    """
    if progress is None or progress > over_limit_percent:
        return BudgetStatus.OVER_BUDGET
    if progress > near_limit_percent:
        return BudgetStatus.NEAR_LIMIT
    return BudgetStatus.ON_TRACK


def _category_report(
    category: BudgetCategory,
    spent: Decimal,
    near_limit_percent: Decimal,
    over_limit_percent: Decimal,
) -> CategoryBudgetReport:
    if category.limit > 0:
        progress: Optional[Decimal] = spent / category.limit * HUNDRED
    elif spent > 0:
        progress = None
    else:
        progress = ZERO

    # Status uses the exact value; only the reported figure is rounded
    status = budget_status(progress, near_limit_percent, over_limit_percent)

    return CategoryBudgetReport(
        name=category.name,
        limit=category.limit,
        spent=spent,
        remaining=category.limit - spent,
        progress_percent=_quantize(progress) if progress is not None else None,
        status=status,
    )


def aggregate_budget(
    transactions: Sequence[Transaction],
    categories: Sequence[BudgetCategory],
    *,
    near_limit_percent: Decimal = DEFAULT_NEAR_LIMIT_PERCENT,
    over_limit_percent: Decimal = DEFAULT_OVER_LIMIT_PERCENT,
) -> BudgetReport:
    """
    Build the budget report for one user.

    Args:
        transactions: The user's transactions (any mix of kinds)
        categories: The user's budget categories
        near_limit_percent: Progress above this is "near_limit"
        over_limit_percent: Progress above this is "over_budget"

    Returns:
        BudgetReport with per-category figures in the order of
        `categories`, totals over budgeted categories, and expense
        spend in unbudgeted categories kept aside.
    """
    near_limit_percent = Decimal(near_limit_percent)
    over_limit_percent = Decimal(over_limit_percent)

    spending = _expense_totals(transactions)

    per_category = []
    budgeted_names = set()
    for category in categories:
        budgeted_names.add(category.name)
        per_category.append(
            _category_report(
                category,
                spending.get(category.name, ZERO),
                near_limit_percent,
                over_limit_percent,
            )
        )

    uncategorized_breakdown = {
        name: amount
        for name, amount in sorted(spending.items())
        if name not in budgeted_names
    }

    total_budget = sum((item.limit for item in per_category), ZERO)
    total_spent = sum((item.spent for item in per_category), ZERO)

    totals = BudgetTotals(
        total_budget=total_budget,
        total_spent=total_spent,
        total_remaining=total_budget - total_spent,
        over_budget_count=sum(
            1 for item in per_category if item.status == BudgetStatus.OVER_BUDGET
        ),
    )

    return BudgetReport(
        per_category=per_category,
        totals=totals,
        uncategorized_spend=sum(uncategorized_breakdown.values(), ZERO),
        uncategorized_breakdown=uncategorized_breakdown,
    )


# =============================================================================
# CASH FLOW
# =============================================================================

def summarize_cash_flow(transactions: Sequence[Transaction]) -> CashFlowSummary:
    """Total income, total expenses, balance and savings rate."""
    total_income = ZERO
    total_expenses = ZERO
    income_count = 0
    expense_count = 0

    for transaction in transactions:
        if transaction.is_income:
            total_income += transaction.amount
            income_count += 1
        else:
            total_expenses += transaction.amount
            expense_count += 1

    balance = total_income - total_expenses
    savings_rate = (
        _quantize(balance / total_income * HUNDRED) if total_income > 0 else ZERO
    )

    return CashFlowSummary(
        total_income=total_income,
        total_expenses=total_expenses,
        balance=balance,
        income_count=income_count,
        expense_count=expense_count,
        savings_rate_percent=savings_rate,
    )


def daily_cash_flow(transactions: Sequence[Transaction]) -> list[DailyCashFlow]:
    """
    Per-day income, expense and net flow with a running balance.

    Days are UTC calendar days, sorted ascending. Days without any
    transaction are omitted.
    """
    income: dict = defaultdict(lambda: ZERO)
    expense: dict = defaultdict(lambda: ZERO)

    for transaction in transactions:
        day = transaction.occurred_at.date()
        if transaction.is_income:
            income[day] += transaction.amount
        else:
            expense[day] += transaction.amount

    series = []
    running = ZERO
    for day in sorted(set(income) | set(expense)):
        net = income[day] - expense[day]
        running += net
        series.append(
            DailyCashFlow(
                day=day,
                income=income[day],
                expense=expense[day],
                net=net,
                running_balance=running,
            )
        )
    return series
