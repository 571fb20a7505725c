"""
Submission Validation

DESIGN DECISION: Raw user input is checked before it becomes a model.

STAGE 1 - SCHEMA CHECKS:
- Required field presence
- Parseable amounts and dates
- Values inside closed sets (transaction kind, reminder category)

STAGE 2 - SANITY CHECKS (only when stage 1 passes):
- Unusually large amounts
- Transactions dated in the future
- Reminders already far in the past

Schema problems are errors and block the submission. Sanity problems
are warnings: the submission goes through and the UI shows them.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for human review.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from budgetbuddy.config import get_settings
from budgetbuddy.models.base import ensure_utc, utc_now
from budgetbuddy.models.reminder import ReminderCategory
from budgetbuddy.models.transaction import TransactionKind
from budgetbuddy.models.validation import ValidationIssue, ValidationResult


# Mirror the model field limits so oversize input is reported, not raised
MAX_DESCRIPTION_LENGTH = 500
MAX_CATEGORY_LENGTH = 50
MAX_TITLE_LENGTH = 200


class SubmissionRejected(Exception):
    """A submission failed validation."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(f"{result.entity_type.capitalize()} rejected: {messages}")


# =============================================================================
# PARSING HELPERS
# =============================================================================

def parse_amount(value: Any) -> Optional[Decimal]:
    """Parse a user-entered amount; None if it isn't a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip().replace(",", ""))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a datetime from a datetime, a date or an ISO string.

    Plain dates mean midnight UTC. Returns None when unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return ensure_utc(datetime.combine(value, time.min))
    if isinstance(value, str) and value.strip():
        try:
            return ensure_utc(datetime.fromisoformat(value.strip()))
        except ValueError:
            return None
    return None


class SubmissionValidator:
    """
    Validates raw transaction, reminder and budget submissions.
    """

    def __init__(self):
        self._settings = get_settings().app

    def _result(self, entity_type: str, issues: list[ValidationIssue]) -> ValidationResult:
        return ValidationResult(
            entity_type=entity_type,
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
        )

    def validate_transaction(
        self,
        amount: Any,
        description: Any,
        kind: Any = None,
        occurred_at: Any = None,
        category: Any = None,
    ) -> ValidationResult:
        """
        Validate a transaction submission.

        Args:
            amount: Entered amount (str, int, Decimal...)
            description: Free text
            kind: "expense" / "income" or None for expense
            occurred_at: Optional date/datetime/ISO string
            category: Optional label; blank means classify
        """
        issues = []

        parsed_amount = parse_amount(amount)
        if parsed_amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing" if amount in (None, "") else "invalid_format",
                message="Valid amount is required",
                severity="error",
                suggested_fix="Enter a number such as 250 or 99.50",
            ))
        elif parsed_amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))
        elif parsed_amount.as_tuple().exponent < -2:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount can have at most two decimal places",
                severity="error",
            ))

        if not isinstance(description, str) or not description.strip():
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
            ))
        elif len(description.strip()) > MAX_DESCRIPTION_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description can be at most {MAX_DESCRIPTION_LENGTH} characters",
                severity="error",
            ))

        if category is not None and len(str(category).strip()) > MAX_CATEGORY_LENGTH:
            issues.append(ValidationIssue(
                field="category",
                issue_type="too_long",
                message=f"Category can be at most {MAX_CATEGORY_LENGTH} characters",
                severity="error",
            ))

        if kind not in (None, ""):
            valid_kinds = {k.value for k in TransactionKind}
            if str(getattr(kind, "value", kind)).lower() not in valid_kinds:
                issues.append(ValidationIssue(
                    field="kind",
                    issue_type="invalid_value",
                    message=f"Type must be one of: {', '.join(sorted(valid_kinds))}",
                    severity="error",
                ))

        parsed_when = None
        if occurred_at not in (None, ""):
            parsed_when = parse_datetime(occurred_at)
            if parsed_when is None:
                issues.append(ValidationIssue(
                    field="occurred_at",
                    issue_type="invalid_format",
                    message="Date could not be understood",
                    severity="error",
                    suggested_fix="Use YYYY-MM-DD",
                ))

        # Stage 2 only when stage 1 is clean
        if not any(issue.severity == "error" for issue in issues):
            if parsed_amount > self._settings.max_transaction_amount:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="suspicious_value",
                    message=(
                        f"Amount ({self._settings.currency_symbol}{parsed_amount:,.2f}) "
                        "seems unusually high"
                    ),
                    severity="warning",
                    suggested_fix="Please verify this amount is correct",
                ))
            if parsed_when and parsed_when > utc_now() + timedelta(days=1):
                issues.append(ValidationIssue(
                    field="occurred_at",
                    issue_type="future_date",
                    message=f"Transaction date ({parsed_when.date()}) is in the future",
                    severity="warning",
                ))

        return self._result("transaction", issues)

    def validate_reminder(
        self,
        title: Any,
        due_date: Any,
        category: Any = None,
    ) -> ValidationResult:
        """Validate a new reminder submission."""
        issues = []

        if not isinstance(title, str) or not title.strip():
            issues.append(ValidationIssue(
                field="title",
                issue_type="missing",
                message="Title is required",
                severity="error",
            ))
        elif len(title.strip()) > MAX_TITLE_LENGTH:
            issues.append(ValidationIssue(
                field="title",
                issue_type="too_long",
                message=f"Title can be at most {MAX_TITLE_LENGTH} characters",
                severity="error",
            ))

        issues.extend(self._due_date_issues(due_date, required=True))
        issues.extend(self._reminder_category_issues(category))

        return self._result("reminder", issues)

    def validate_reminder_update(
        self,
        title: Any = None,
        due_date: Any = None,
        category: Any = None,
    ) -> ValidationResult:
        """Validate a partial reminder edit; omitted fields are not checked."""
        issues = []

        if title is not None and (not isinstance(title, str) or not title.strip()):
            issues.append(ValidationIssue(
                field="title",
                issue_type="invalid_value",
                message="Title cannot be empty",
                severity="error",
            ))
        elif title is not None and len(title.strip()) > MAX_TITLE_LENGTH:
            issues.append(ValidationIssue(
                field="title",
                issue_type="too_long",
                message=f"Title can be at most {MAX_TITLE_LENGTH} characters",
                severity="error",
            ))

        issues.extend(self._due_date_issues(due_date, required=False))
        issues.extend(self._reminder_category_issues(category))

        return self._result("reminder", issues)

    def validate_budget_limit(self, name: Any, limit: Any) -> ValidationResult:
        """Validate a budget limit change."""
        issues = []

        if not isinstance(name, str) or not name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Category name is required",
                severity="error",
            ))
        elif len(name.strip()) > MAX_CATEGORY_LENGTH:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message=f"Category can be at most {MAX_CATEGORY_LENGTH} characters",
                severity="error",
            ))

        parsed = parse_amount(limit)
        if parsed is None:
            issues.append(ValidationIssue(
                field="limit",
                issue_type="invalid_format",
                message="Valid budget amount is required",
                severity="error",
            ))
        elif parsed < 0:
            issues.append(ValidationIssue(
                field="limit",
                issue_type="invalid_value",
                message="Budget amount cannot be negative",
                severity="error",
            ))
        elif parsed.as_tuple().exponent < -2:
            issues.append(ValidationIssue(
                field="limit",
                issue_type="invalid_value",
                message="Budget amount can have at most two decimal places",
                severity="error",
            ))

        return self._result("budget", issues)

    def _due_date_issues(self, due_date: Any, required: bool) -> list[ValidationIssue]:
        if due_date in (None, ""):
            if not required:
                return []
            return [ValidationIssue(
                field="due_date",
                issue_type="missing",
                message="Due date is required",
                severity="error",
            )]

        parsed = parse_datetime(due_date)
        if parsed is None:
            return [ValidationIssue(
                field="due_date",
                issue_type="invalid_format",
                message="Due date could not be understood",
                severity="error",
                suggested_fix="Use YYYY-MM-DD or YYYY-MM-DDTHH:MM",
            )]

        if parsed < utc_now() - timedelta(days=365):
            return [ValidationIssue(
                field="due_date",
                issue_type="suspicious_date",
                message=f"Due date ({parsed.date()}) is more than a year ago",
                severity="warning",
            )]
        return []

    def _reminder_category_issues(self, category: Any) -> list[ValidationIssue]:
        if category in (None, ""):
            return []
        valid = {c.value for c in ReminderCategory}
        if str(getattr(category, "value", category)).lower() not in valid:
            return [ValidationIssue(
                field="category",
                issue_type="invalid_value",
                message=f"Category must be one of: {', '.join(sorted(valid))}",
                severity="error",
            )]
        return []

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a user-friendly summary of validation results.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []

        if not result.is_valid:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
