"""
Audit Logger

Every write to the expense log or the profile, every rejected input and
every achievement unlock becomes an AuditEvent. Events go to the
structured log first and then, if a storage backend is wired in, to the
audit trail the user can browse.

Persisting an event is best effort: a failing audit store is logged and
never propagates into the action being audited. Events caused by one user
action share a correlation id.
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from expense_tracker.models.expense import Expense
from expense_tracker.models.profile import UserProfile
from expense_tracker.models.tracker import Achievement
from expense_tracker.services.storage import AuditStorageInterface
from expense_tracker.validation import InvalidInputError


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


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through the stdlib root logger at `level`."""
    logging.basicConfig(format="%(message)s", level=level.upper())
    logging.getLogger().setLevel(level.upper())


# structlog method used for each audit severity
LOG_METHODS = {
    AuditSeverity.DEBUG: "debug",
    AuditSeverity.INFO: "info",
    AuditSeverity.WARNING: "warning",
    AuditSeverity.ERROR: "error",
    AuditSeverity.CRITICAL: "critical",
}


class AuditLogger:
    """
    Writes audit events to the structured log and, when configured, to the
    audit trail in storage.

    Helpers take the domain objects involved, so callers never assemble
    event details by hand.
    """

    def __init__(self, storage: Optional[AuditStorageInterface] = None):
        """
        Args:
            storage: Where events are persisted. Without one, events only
                     reach the structured log.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Record one event.

        Returns False only when persisting the event failed; the failure is
        logged and swallowed so an edit never fails because of its audit.
        """
        emit = getattr(self._logger, LOG_METHODS[event.severity])
        emit("audit_event", **event.to_log_dict())

        if self._storage is None:
            return True
        try:
            return await self._storage.append_event(event)
        except Exception as e:
            self._logger.error(
                "audit_persist_failed",
                event_id=str(event.event_id),
                event_type=event.event_type.value,
                error=str(e),
            )
            return False

    # =========================================================================
    # EXPENSE LOG
    # =========================================================================

    async def log_expense_added(
        self,
        expense: Expense,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_added(
            expense.id, expense.category.value, str(expense.amount), correlation_id
        ))

    async def log_expense_updated(
        self,
        expense: Expense,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_updated(
            expense.id, sorted(changed_fields), correlation_id
        ))

    async def log_expense_deleted(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_deleted(expense_id, correlation_id))

    async def log_expenses_cleared(
        self,
        removed: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expenses_cleared(removed, correlation_id))

    # =========================================================================
    # PROFILE AND VALIDATION
    # =========================================================================

    async def log_profile_saved(
        self,
        profile: UserProfile,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.profile_saved(
            profile.id, str(profile.daily_limit), correlation_id
        ))

    async def log_validation_failed(
        self,
        entity_type: str,
        error: InvalidInputError,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Record input rejected before it reached storage."""
        await self.log(AuditEventBuilder.validation_failed(
            entity_type, error.to_dict(), correlation_id
        ))

    # =========================================================================
    # DERIVED STATE AND FAILURES
    # =========================================================================

    async def log_achievement_unlocked(
        self,
        achievement: Achievement,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.achievement_unlocked(
            achievement.id, achievement.title, correlation_id
        ))

    async def log_analytics_recomputed(
        self,
        reference_date: date,
        expense_count: int,
        health_score: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.analytics_recomputed(
            reference_date.isoformat(), expense_count, health_score, correlation_id
        ))

    async def log_storage_error(
        self,
        operation: str,
        error: Exception,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.storage_error(operation, str(error), correlation_id))

    async def log_error(
        self,
        error: Exception,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Record an unexpected failure, typed by its exception class."""
        await self.log(AuditEventBuilder.system_error(
            type(error).__name__, str(error), details, correlation_id
        ))


def create_correlation_id() -> UUID:
    """
    A fresh id shared by every event one user action causes.

    Generate it where the action starts and hand it down.
    """
    return uuid4()
