"""
BudgetBuddy - Source Package

A personal budgeting assistant: record income and expenses, let the
system classify them, watch spend against per-category budgets and
get reminded before bills fall due.

DESIGN PRINCIPLES:
1. Decision logic is pure (classifier, budget aggregation, reminder urgency)
2. Money is Decimal, never float
3. Storage layer is swappable
4. Every write is auditable
"""

__version__ = "1.0.0"
__author__ = "BudgetBuddy Team"
