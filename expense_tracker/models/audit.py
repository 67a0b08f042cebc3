"""
Audit Trail Models

An AuditEvent records one thing that happened to the expense log, the
profile or the derived state: an edit, a rejected input, an unlock, a
recomputation or a failure. The trail is append-only; events are never
edited once written.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from expense_tracker.models.expense import utc_now


class AuditEventType(str, Enum):
    # Expense log
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    EXPENSES_CLEARED = "expenses_cleared"

    # Profile
    PROFILE_SAVED = "profile_saved"

    # Boundary validation
    VALIDATION_FAILED = "validation_failed"

    # Derived state
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
    ANALYTICS_RECOMPUTED = "analytics_recomputed"

    # Failures
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Also selects the log level the event is emitted at."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """One entry of the audit trail."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="UTC time the event was recorded"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What the event is about: 'expense', 'profile', 'achievement', 'snapshot'
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Shared by all events caused by one user action"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="False for events the engine raises on its own (unlocks, recomputes)"
    )

    def to_log_dict(self) -> dict:
        """Flat JSON-safe fields for the structured log."""
        return self.model_dump(mode="json")

    def to_record(self) -> dict:
        """JSON-ready representation for the key-value store."""
        return self.model_dump(mode="json")


class AuditEventBuilder:
    """
    One factory per event type, so descriptions and details stay uniform
    across the trail.

        event = AuditEventBuilder.expense_added(expense_id, "Food", "12.50", cid)
        event = AuditEventBuilder.achievement_unlocked("streak-7", "Week Warrior", cid)
    """

    @staticmethod
    def expense_added(
        expense_id: str,
        category: str,
        amount: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense added: {category} {amount}",
            details={
                "category": category,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_updated(
        expense_id: str,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense updated: {', '.join(changed_fields) or 'no changes'}",
            details={
                "changed_fields": changed_fields,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        expense_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description="Expense deleted",
            is_user_action=True,
        )

    @staticmethod
    def expenses_cleared(
        count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSES_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            correlation_id=correlation_id,
            description=f"All expenses cleared ({count} removed)",
            details={"removed": count},
            is_user_action=True,
        )

    @staticmethod
    def profile_saved(
        profile_id: str,
        daily_limit: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_SAVED,
            entity_type="profile",
            entity_id=profile_id,
            correlation_id=correlation_id,
            description=f"Profile saved with daily limit {daily_limit}",
            details={"daily_limit": daily_limit},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        entity_type: str,
        error: dict,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            correlation_id=correlation_id,
            description=f"Rejected {entity_type}: {error.get('message', 'invalid input')}"[:500],
            details=error,
        )

    @staticmethod
    def achievement_unlocked(
        achievement_id: str,
        title: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACHIEVEMENT_UNLOCKED,
            entity_type="achievement",
            entity_id=achievement_id,
            correlation_id=correlation_id,
            description=f"Achievement unlocked: {title}",
            details={"title": title},
        )

    @staticmethod
    def analytics_recomputed(
        reference_date: str,
        expense_count: int,
        health_score: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ANALYTICS_RECOMPUTED,
            severity=AuditSeverity.DEBUG,
            entity_type="snapshot",
            correlation_id=correlation_id,
            description=f"Analytics recomputed for {reference_date}",
            details={
                "reference_date": reference_date,
                "expense_count": expense_count,
                "health_score": health_score,
            },
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
