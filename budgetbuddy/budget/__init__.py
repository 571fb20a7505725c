"""Budget aggregation package."""

from budgetbuddy.budget.aggregator import (
    DEFAULT_NEAR_LIMIT_PERCENT,
    DEFAULT_OVER_LIMIT_PERCENT,
    aggregate_budget,
    budget_status,
    daily_cash_flow,
    summarize_cash_flow,
)

__all__ = [
    "DEFAULT_NEAR_LIMIT_PERCENT",
    "DEFAULT_OVER_LIMIT_PERCENT",
    "aggregate_budget",
    "budget_status",
    "daily_cash_flow",
    "summarize_cash_flow",
]
