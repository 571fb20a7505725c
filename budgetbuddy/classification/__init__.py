"""Transaction classification package."""

from budgetbuddy.classification.classifier import (
    CATEGORIES,
    CATEGORY_KEYWORDS,
    FALLBACK_CATEGORY,
    INCOME_CATEGORY,
    classify,
    clean_quick_entry,
    detect_transaction_kind,
    parse_quick_entry,
)

__all__ = [
    "CATEGORIES",
    "CATEGORY_KEYWORDS",
    "FALLBACK_CATEGORY",
    "INCOME_CATEGORY",
    "classify",
    "clean_quick_entry",
    "detect_transaction_kind",
    "parse_quick_entry",
]
