"""
Audit Models for TrackIt

Every user action and every degraded path (corrupt storage, failed
advice call) produces an audit event. This provides:
1. A readable history of what the user did
2. Debugging information when something degrades silently
3. A record of every external service failure

DESIGN DECISION: Audit logs are append-only. We never modify events.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Identity
    USER_SIGNED_UP = "user_signed_up"
    SIGNUP_REJECTED = "signup_rejected"
    USER_LOGGED_IN = "user_logged_in"
    LOGIN_FAILED = "login_failed"
    USER_LOGGED_OUT = "user_logged_out"

    # Dataset edits
    EXPENSE_ADDED = "expense_added"
    EXPENSE_DELETED = "expense_deleted"
    CATEGORY_ADDED = "category_added"
    CATEGORY_BUDGET_UPDATED = "category_budget_updated"

    # Persistence
    DATASET_LOADED = "dataset_loaded"
    STORAGE_RECOVERED = "storage_recovered"

    # Advice
    ADVICE_REQUESTED = "advice_requested"
    ADVICE_GENERATED = "advice_generated"
    ADVICE_FAILED = "advice_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'user', 'expense', 'category')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity (expense/category id, or user email)"
    )
    user_email: Optional[str] = Field(
        default=None,
        description="Owner of the dataset the event touched"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "user_email": self.user_email,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_storage_dict(self) -> dict:
        """JSON-safe form for audit storage."""
        return self.model_dump(mode="json")


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_added(email, expense_id, amount)
        event = AuditEventBuilder.login_failed(email, reason)
    """

    @staticmethod
    def user_signed_up(email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_UP,
            entity_type="user",
            entity_id=email,
            user_email=email,
            description="New user signed up",
            is_user_action=True,
        )

    @staticmethod
    def signup_rejected(email: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNUP_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=email,
            description="Sign-up rejected",
            details={"reason": reason},
            is_user_action=True,
        )

    @staticmethod
    def user_logged_in(email: str, method: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_IN,
            entity_type="user",
            entity_id=email,
            user_email=email,
            description=f"User logged in via {method}",
            details={"method": method},
            is_user_action=True,
        )

    @staticmethod
    def login_failed(email: str, method: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=email,
            description="Login failed: unknown email or wrong password",
            details={"method": method},
            is_user_action=True,
        )

    @staticmethod
    def user_logged_out(email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_OUT,
            entity_type="user",
            entity_id=email,
            user_email=email,
            description="User signed out",
            is_user_action=True,
        )

    @staticmethod
    def expense_added(
        email: str,
        expense_id: str,
        amount: float,
        category_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            user_email=email,
            description=f"Expense added: ${amount:,.2f}",
            details={"amount": amount, "category_id": category_id},
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(email: str, expense_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            user_email=email,
            description="Expense deleted",
            is_user_action=True,
        )

    @staticmethod
    def category_added(
        email: str,
        category_id: str,
        name: str,
        budget: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_ADDED,
            entity_type="category",
            entity_id=category_id,
            user_email=email,
            description=f"Category added: {name}",
            details={"name": name, "budget": budget},
            is_user_action=True,
        )

    @staticmethod
    def category_budget_updated(
        email: str,
        category_id: str,
        old_budget: float,
        new_budget: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_BUDGET_UPDATED,
            entity_type="category",
            entity_id=category_id,
            user_email=email,
            description=f"Budget changed from ${old_budget:,.2f} to ${new_budget:,.2f}",
            details={"old_budget": old_budget, "new_budget": new_budget},
            is_user_action=True,
        )

    @staticmethod
    def dataset_loaded(
        email: str,
        expense_count: int,
        category_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATASET_LOADED,
            severity=AuditSeverity.DEBUG,
            entity_type="dataset",
            entity_id=email,
            user_email=email,
            description="Dataset loaded",
            details={
                "expense_count": expense_count,
                "category_count": category_count,
            },
        )

    @staticmethod
    def storage_recovered(key: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_RECOVERED,
            severity=AuditSeverity.WARNING,
            entity_type="storage_key",
            entity_id=key,
            description="Unreadable stored data replaced with defaults",
            error_message=reason,
        )

    @staticmethod
    def advice_requested(email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADVICE_REQUESTED,
            entity_type="advice",
            user_email=email,
            description="Financial advice requested",
            is_user_action=True,
        )

    @staticmethod
    def advice_generated(email: str, length: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADVICE_GENERATED,
            entity_type="advice",
            user_email=email,
            description="Financial advice generated",
            details={"length": length},
        )

    @staticmethod
    def advice_failed(email: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADVICE_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="advice",
            user_email=email,
            description="Financial advice unavailable, fallback shown",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        user_email: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            user_email=user_email,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        user_email: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            user_email=user_email,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service},
        )
