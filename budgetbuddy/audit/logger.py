"""
Audit Logger

DESIGN DECISION: Every write in the system is logged.
This provides:
1. Complete traceability
2. Debugging capability
3. User can see history of their changes

The audit logger:
- Is async so storage-backed logging doesn't block the event loop
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from budgetbuddy.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from budgetbuddy.models.reminder import Reminder
from budgetbuddy.models.transaction import Transaction
from budgetbuddy.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store (for persistence and user visibility), if configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("budgetbuddy.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Audit must not break the main flow
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transaction_saved(
        self,
        transaction: Transaction,
        correlation_id: UUID,
    ) -> None:
        """Log a saved transaction."""
        event = AuditEventBuilder.transaction_saved(
            transaction_id=transaction.id,
            owner_id=transaction.owner_id,
            amount=str(transaction.amount),
            category=transaction.category,
            kind=transaction.kind.value,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_category_auto_assigned(
        self,
        transaction: Transaction,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.category_auto_assigned(
            transaction_id=transaction.id,
            owner_id=transaction.owner_id,
            category=transaction.category,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_deleted(
        self,
        owner_id: str,
        transaction_id: UUID,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            owner_id=owner_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_budget_limit_updated(
        self,
        owner_id: str,
        category: str,
        old_limit: Optional[str],
        new_limit: str,
        correlation_id: UUID,
    ) -> None:
        """Log a budget limit change."""
        event = AuditEventBuilder.budget_limit_updated(
            owner_id=owner_id,
            category=category,
            old_limit=old_limit,
            new_limit=new_limit,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_reminder_event(
        self,
        event_type: AuditEventType,
        reminder: Reminder,
        correlation_id: UUID,
        details: Optional[dict] = None,
    ) -> None:
        """Log a reminder create/update/complete/delete."""
        event = AuditEventBuilder.reminder_event(
            event_type=event_type,
            reminder_id=reminder.id,
            owner_id=reminder.owner_id,
            title=reminder.title,
            correlation_id=correlation_id,
            details=details,
        )
        await self.log(event)

    async def log_submission_rejected(
        self,
        entity_type: str,
        owner_id: Optional[str],
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log a submission that failed validation."""
        event = AuditEventBuilder.submission_rejected(
            entity_type=entity_type,
            owner_id=owner_id,
            issues=issues,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., adding a transaction).
    Pass it through all subsequent operations.
    """
    return uuid4()
