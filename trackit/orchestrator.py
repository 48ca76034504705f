"""
Main Orchestrator for TrackIt

Ties together the auth gate, the dashboard controller, storage, the
advice client and the audit logger, and defines the app-level flow:

    landing -> auth -> dashboard -> (sign out) -> landing

The app shell also owns the light/dark theme flag, which survives
sign-out (it belongs to the viewer, not to the user).
"""

from pathlib import Path
from typing import Optional

import structlog

from trackit.agents import AdviceClient
from trackit.audit import AuditLogger
from trackit.auth import AuthGate
from trackit.config import get_settings
from trackit.dashboard import DashboardController
from trackit.models.auth import AuthMode, AuthResult, User, ViewState
from trackit.services.storage import (
    FinanceStore,
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueAuditStorage,
    KeyValueStore,
)


logger = structlog.get_logger(__name__)


class TrackItApp:
    """
    One viewer's session of the application.

    Creates a DashboardController after a successful sign-up or log-in
    and drops it on sign-out.
    """

    def __init__(
        self,
        store: FinanceStore,
        advice_client: Optional[AdviceClient] = None,
        audit_logger: Optional[AuditLogger] = None,
        dark_mode: bool = False,
        recent_limit: int = 5,
        activity_days: int = 7,
    ):
        self._store = store
        self._advice_client = advice_client
        self._audit_logger = audit_logger
        self._gate = AuthGate(store, audit_logger=audit_logger)
        self._dashboard: Optional[DashboardController] = None
        self._recent_limit = recent_limit
        self._activity_days = activity_days
        self.dark_mode = dark_mode

    @property
    def view(self) -> ViewState:
        return self._gate.view

    @property
    def gate(self) -> AuthGate:
        return self._gate

    @property
    def user(self) -> Optional[User]:
        return self._gate.current_user

    @property
    def dashboard(self) -> Optional[DashboardController]:
        return self._dashboard

    @property
    def audit_logger(self) -> Optional[AuditLogger]:
        return self._audit_logger

    def toggle_theme(self) -> bool:
        self.dark_mode = not self.dark_mode
        return self.dark_mode

    def report_error(self, action: str, error: Exception) -> str:
        """
        Record a failed action and return the message to show the user.

        Used by the UI for storage and connection failures, which are
        shown as a message rather than raised.
        """
        user = self.user
        if self._audit_logger:
            self._audit_logger.log_error(
                error_type=type(error).__name__,
                error_message=str(error),
                details={"action": action},
                user_email=user.email if user else None,
            )
        else:
            logger.error("action_failed", action=action, error=str(error))
        return f"Could not {action}: {error}"

    # -------------------------------------------------------------------------
    # Navigation and auth
    # -------------------------------------------------------------------------

    def get_started(self, mode: AuthMode = AuthMode.SIGN_UP) -> None:
        self._gate.get_started(mode)

    def back_to_landing(self) -> None:
        self._gate.back()

    def sign_up(self, name: str, email: str, password: str) -> AuthResult:
        return self._after_auth(self._gate.sign_up(name, email, password))

    def log_in(self, email: str, password: str) -> AuthResult:
        return self._after_auth(self._gate.log_in(email, password))

    def log_in_external(self, email: str, provider: str = "google") -> AuthResult:
        return self._after_auth(self._gate.log_in_external(email, provider))

    def _after_auth(self, result: AuthResult) -> AuthResult:
        if result.success and result.user:
            self._dashboard = DashboardController(
                user=result.user,
                repository=self._store,
                advice_client=self._advice_client,
                audit_logger=self._audit_logger,
                recent_limit=self._recent_limit,
                activity_days=self._activity_days,
            )
            self._dashboard.load()
        return result

    def sign_out(self) -> None:
        self._gate.sign_out()
        self._dashboard = None


def create_key_value_store(backend: Optional[str] = None) -> KeyValueStore:
    """
    Build the configured key-value backend.

    Args:
        backend: Override STORAGE_BACKEND ('json', 'memory', 'google_sheets')
    """
    storage_settings = get_settings().storage
    backend = backend or storage_settings.backend

    if backend == "memory":
        return InMemoryKeyValueStore()
    if backend == "google_sheets":
        return GoogleSheetsKeyValueStore(GoogleSheetsClient())
    if backend == "json":
        return JsonFileKeyValueStore(Path(storage_settings.data_path))
    raise ValueError(f"Unknown storage backend: {backend}")


def create_app_components(
    backend: Optional[str] = None,
    use_ai: bool = True,
) -> tuple[FinanceStore, Optional[AdviceClient], AuditLogger]:
    """
    Factory function to create all shared application components.

    Args:
        backend: Storage backend override. Falls back to in-memory
                 storage if the configured backend cannot be created.
        use_ai: Whether to create the Gemini advice client.

    Returns:
        (finance_store, advice_client, audit_logger)
    """
    app_settings = get_settings().app

    try:
        kv = create_key_value_store(backend)
    except Exception as e:
        # Storage not configured - continue in memory
        logger.warning("storage_not_configured", error=str(e))
        kv = InMemoryKeyValueStore()

    audit_storage = None
    if app_settings.persist_audit_events:
        audit_storage = KeyValueAuditStorage(
            kv,
            max_events=app_settings.audit_log_max_events,
        )
    audit_logger = AuditLogger(audit_storage)

    store = FinanceStore(kv, audit_logger=audit_logger)
    advice_client = AdviceClient(audit_logger=audit_logger) if use_ai else None

    return store, advice_client, audit_logger


def create_app(
    store: FinanceStore,
    advice_client: Optional[AdviceClient] = None,
    audit_logger: Optional[AuditLogger] = None,
    dark_mode: bool = False,
) -> TrackItApp:
    """A fresh viewer session sharing the given components."""
    app_settings = get_settings().app
    if app_settings.default_dark_mode is not None:
        dark_mode = app_settings.default_dark_mode
    return TrackItApp(
        store=store,
        advice_client=advice_client,
        audit_logger=audit_logger,
        dark_mode=dark_mode,
        recent_limit=app_settings.recent_transactions_limit,
        activity_days=app_settings.activity_window_days,
    )
