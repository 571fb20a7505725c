"""Submission validation package."""

from budgetbuddy.validation.validator import (
    SubmissionRejected,
    SubmissionValidator,
    parse_amount,
    parse_datetime,
)

__all__ = [
    "SubmissionRejected",
    "SubmissionValidator",
    "parse_amount",
    "parse_datetime",
]
