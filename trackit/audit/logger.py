"""
Audit Logger

DESIGN DECISION: Every user action and every silent degradation is logged.
This provides:
1. Traceability of edits to a user's dataset
2. Debugging capability when storage or the advice service degrade
3. A history the user can see on the settings tab

The audit logger:
- Always writes a structured local log line
- Optionally persists events to an AuditStorageInterface
- Gracefully handles failures (doesn't crash the app if logging fails)
"""

from typing import Optional

import structlog

from trackit.models.audit import AuditEvent, AuditEventBuilder
from trackit.services.storage import AuditStorageInterface


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
    2. Audit storage (for persistence and user visibility)
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
        self._logger = structlog.get_logger("trackit.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def recent_events(self, user_email: str, limit: int = 20) -> list[AuditEvent]:
        """A user's recent events, newest first. Empty without storage."""
        if not self._storage:
            return []
        try:
            return self._storage.get_events_for_user(user_email, limit=limit)
        except Exception as e:
            self._logger.error("audit_read_failed", error=str(e))
            return []

    # -------------------------------------------------------------------------
    # Convenience wrappers, one per event kind
    # -------------------------------------------------------------------------

    def log_user_signed_up(self, email: str) -> None:
        self.log(AuditEventBuilder.user_signed_up(email))

    def log_signup_rejected(self, email: str, reason: str) -> None:
        self.log(AuditEventBuilder.signup_rejected(email, reason))

    def log_user_logged_in(self, email: str, method: str) -> None:
        self.log(AuditEventBuilder.user_logged_in(email, method))

    def log_login_failed(self, email: str, method: str) -> None:
        self.log(AuditEventBuilder.login_failed(email, method))

    def log_user_logged_out(self, email: str) -> None:
        self.log(AuditEventBuilder.user_logged_out(email))

    def log_expense_added(
        self,
        email: str,
        expense_id: str,
        amount: float,
        category_id: str,
    ) -> None:
        self.log(
            AuditEventBuilder.expense_added(
                email=email,
                expense_id=expense_id,
                amount=amount,
                category_id=category_id,
            )
        )

    def log_expense_deleted(self, email: str, expense_id: str) -> None:
        self.log(AuditEventBuilder.expense_deleted(email, expense_id))

    def log_category_added(
        self,
        email: str,
        category_id: str,
        name: str,
        budget: float,
    ) -> None:
        self.log(
            AuditEventBuilder.category_added(
                email=email,
                category_id=category_id,
                name=name,
                budget=budget,
            )
        )

    def log_category_budget_updated(
        self,
        email: str,
        category_id: str,
        old_budget: float,
        new_budget: float,
    ) -> None:
        self.log(
            AuditEventBuilder.category_budget_updated(
                email=email,
                category_id=category_id,
                old_budget=old_budget,
                new_budget=new_budget,
            )
        )

    def log_dataset_loaded(
        self,
        email: str,
        expense_count: int,
        category_count: int,
    ) -> None:
        self.log(
            AuditEventBuilder.dataset_loaded(
                email=email,
                expense_count=expense_count,
                category_count=category_count,
            )
        )

    def log_advice_requested(self, email: str) -> None:
        self.log(AuditEventBuilder.advice_requested(email))

    def log_advice_generated(self, email: str, length: int) -> None:
        self.log(AuditEventBuilder.advice_generated(email, length))

    def log_advice_failed(self, email: str, error_message: str) -> None:
        self.log(AuditEventBuilder.advice_failed(email, error_message))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        user_email: Optional[str] = None,
    ) -> None:
        self.log(
            AuditEventBuilder.system_error(
                error_type=error_type,
                error_message=error_message,
                details=details,
                user_email=user_email,
            )
        )

    def log_external_service_error(
        self,
        service: str,
        error_message: str,
        user_email: Optional[str] = None,
    ) -> None:
        self.log(
            AuditEventBuilder.external_service_error(
                service=service,
                error_message=error_message,
                user_email=user_email,
            )
        )
