"""
Keyword Transaction Classifier

Maps a free-text description (plus the declared kind) to one category
label. Rule-based on purpose: it is fast, explainable and needs no
external calls.

DESIGN DECISION: The rules are a data table, not a chain of if/elif.
Adding a category means adding a row; the matching loop never changes.
Ordering matters: earlier rows win.
"""

import re
from typing import Optional, Union

from budgetbuddy.models.transaction import QuickEntry, TransactionKind


INCOME_CATEGORY = "income"
FALLBACK_CATEGORY = "other"


# Ordering matters: first category with a substring hit wins.
CATEGORY_KEYWORDS: tuple[tuple[str, frozenset[str]], ...] = (
    ("groceries", frozenset({
        "grocery", "supermarket", "bigbasket", "vegetables", "fruits", "milk", "bread",
    })),
    ("transport", frozenset({
        "uber", "ola", "rapido", "bus", "train", "taxi", "auto", "petrol", "diesel",
    })),
    ("food", frozenset({
        "restaurant", "lunch", "dinner", "breakfast", "cafe", "coffee", "tea",
        "zomato", "swiggy",
    })),
    ("entertainment", frozenset({
        "movie", "netflix", "prime", "hotstar", "concert", "game", "outing",
    })),
    ("shopping", frozenset({
        "clothes", "shoes", "amazon", "flipkart", "myntra", "ajio", "shopping",
    })),
    ("utilities", frozenset({
        "electricity", "water", "internet", "wifi", "mobile", "recharge", "bill",
    })),
    ("healthcare", frozenset({
        "hospital", "doctor", "medicine", "medical", "pharmacy",
    })),
    ("education", frozenset({
        "books", "course", "tuition", "school", "college",
    })),
)

CATEGORIES: tuple[str, ...] = tuple(name for name, _ in CATEGORY_KEYWORDS) + (
    INCOME_CATEGORY,
    FALLBACK_CATEGORY,
)


def _is_income(kind: Union[TransactionKind, str, None]) -> bool:
    if isinstance(kind, TransactionKind):
        return kind == TransactionKind.INCOME
    return (kind or "").strip().lower() == TransactionKind.INCOME.value


def classify(
    description: Optional[str],
    kind: Union[TransactionKind, str, None] = TransactionKind.EXPENSE,
) -> str:
    """
    Classify a transaction description.

    Income is never sub-categorized. For expenses the description is
    lower-cased and checked against CATEGORY_KEYWORDS in order; the first
    category with any keyword as a substring wins. Anything else,
    including empty text, is "other".

    Never raises.
    """
    if _is_income(kind):
        return INCOME_CATEGORY

    text = (description or "").lower()
    if not text:
        return FALLBACK_CATEGORY

    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return category

    return FALLBACK_CATEGORY


# =============================================================================
# QUICK ENTRY (one-line text or voice transcript)
# =============================================================================

INCOME_KEYWORDS: tuple[str, ...] = (
    "salary", "income", "received", "got", "earned", "bonus", "payment",
    "refund", "credited", "deposit", "gift", "reward", "dividend", "interest",
    "profit", "freelance", "client", "money received", "cashback", "reimbursement",
)

EXPENSE_KEYWORDS: tuple[str, ...] = (
    "spent", "paid", "bought", "purchased", "shopped", "ordered", "booked",
    "subscription", "bill", "fee", "charge", "cost", "price", "rent",
    "food", "lunch", "dinner", "breakfast", "coffee", "tea", "snacks",
    "groceries", "transport", "bus", "train", "metro", "taxi", "auto", "petrol",
    "entertainment", "movie", "shopping", "clothes", "health", "hospital",
)

# Words that settle an entry as income when both keyword lists match
STRONG_INCOME_MARKERS: tuple[str, ...] = ("received", "credited", "salary")

FILLER_PHRASES: tuple[str, ...] = (
    "i received", "i got", "received", "got paid", "salary of", "income of",
    "i spent", "i paid", "spent on", "paid for", "bought", "purchased",
)

_FILLER_PATTERNS = [re.compile(re.escape(p), re.IGNORECASE) for p in FILLER_PHRASES]
_WHITESPACE = re.compile(r"\s+")


def detect_transaction_kind(text: Optional[str]) -> TransactionKind:
    """
    Guess whether a quick entry is income or expense.

    Expense is the default. When both keyword lists match, a strong
    income marker decides for income.
    """
    lower = (text or "").lower()
    is_income = any(keyword in lower for keyword in INCOME_KEYWORDS)
    is_expense = any(keyword in lower for keyword in EXPENSE_KEYWORDS)

    if is_income and not is_expense:
        return TransactionKind.INCOME
    if is_income and is_expense:
        if any(marker in lower for marker in STRONG_INCOME_MARKERS):
            return TransactionKind.INCOME
    return TransactionKind.EXPENSE


def clean_quick_entry(text: Optional[str]) -> str:
    """
    Strip filler phrases ("i paid", "spent on", ...) from a quick entry.

    Falls back to the original text if nothing meaningful is left.
    """
    original = (text or "").strip()
    cleaned = original
    for pattern in _FILLER_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    return cleaned or original


def parse_quick_entry(text: Optional[str]) -> QuickEntry:
    """Detect kind, clean the description and classify it in one go."""
    kind = detect_transaction_kind(text)
    description = clean_quick_entry(text)
    return QuickEntry(
        kind=kind,
        description=description,
        category=classify(description, kind),
    )
