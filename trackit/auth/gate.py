"""
Session / Auth Gate

A small state machine over the three top-level views:

    landing --get_started--> auth --(sign_up | log_in)--> dashboard
    auth    --back---------> landing
    dashboard --sign_out---> landing

The gate owns the in-memory session identity (the signed-in User).
There is no token and no expiry: the session lives as long as the
gate object does.

DESIGN DECISION: Bad credentials are an expected outcome, not a fault.
`sign_up` and `log_in` return an AuthResult and keep the user on the
auth view with a message. Only calling an action from the wrong view
raises (InvalidTransitionError), because that is a programming error.
"""

from typing import Optional

from pydantic import ValidationError

from trackit.audit import AuditLogger
from trackit.models.auth import (
    AuthMode,
    AuthResult,
    ExternalAssertion,
    IdentityAssertion,
    PasswordAssertion,
    User,
    ViewState,
)
from trackit.services.storage import DuplicateIdentityError, FinanceStore


INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


class InvalidTransitionError(Exception):
    """An auth action was attempted from a view that does not allow it."""

    def __init__(self, action: str, view: ViewState):
        self.action = action
        self.view = view
        super().__init__(f"Cannot {action} from the {view.value} view")


class AuthGate:
    """Validates sign-up/log-in against the credential registry and tracks the view."""

    def __init__(
        self,
        store: FinanceStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self._view = ViewState.LANDING
        self._mode = AuthMode.LOG_IN
        self._user: Optional[User] = None

    @property
    def view(self) -> ViewState:
        return self._view

    @property
    def mode(self) -> AuthMode:
        return self._mode

    @property
    def current_user(self) -> Optional[User]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def _require(self, action: str, *views: ViewState) -> None:
        if self._view not in views:
            raise InvalidTransitionError(action, self._view)

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def get_started(self, mode: AuthMode = AuthMode.SIGN_UP) -> None:
        """Landing page call-to-action: open the auth view."""
        self._require("get started", ViewState.LANDING)
        self._mode = mode
        self._view = ViewState.AUTH

    def back(self) -> None:
        """Leave the auth view without signing in."""
        self._require("go back", ViewState.AUTH)
        self._view = ViewState.LANDING

    def switch_mode(self, mode: Optional[AuthMode] = None) -> AuthMode:
        """Toggle (or set) sign-up vs log-in on the auth view."""
        self._require("switch auth mode", ViewState.AUTH)
        if mode is None:
            mode = AuthMode.LOG_IN if self._mode == AuthMode.SIGN_UP else AuthMode.SIGN_UP
        self._mode = mode
        return mode

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    def sign_up(self, name: str, email: str, password: str) -> AuthResult:
        """
        Create a new identity and sign it in.

        Fails (without raising) when a field is missing or the email is
        already registered.
        """
        self._require("sign up", ViewState.AUTH)

        if not (name or "").strip() or not (email or "").strip() or not password:
            return AuthResult.failed("Please fill in your name, email and password")

        try:
            user = User(name=name, email=email)
        except ValidationError:
            return AuthResult.failed("Please enter a valid name and email")

        try:
            self._store.create_user(user, password)
        except DuplicateIdentityError as e:
            if self._audit_logger:
                self._audit_logger.log_signup_rejected(user.email, str(e))
            return AuthResult.failed(str(e))

        if self._audit_logger:
            self._audit_logger.log_user_signed_up(user.email)
        return self._establish(user)

    def log_in(self, email: str, password: str) -> AuthResult:
        """Verify email + password and sign in."""
        self._require("log in", ViewState.AUTH)

        if not (email or "").strip() or not password:
            return AuthResult.failed("Please enter your email and password")

        assertion = PasswordAssertion(email=email.strip(), password=password)
        return self._verify(assertion, method="password")

    def log_in_external(self, email: str, provider: str = "google") -> AuthResult:
        """
        Sign in on the word of an external identity provider.

        The provider flow is mocked: the email only has to be registered.
        """
        self._require("log in", ViewState.AUTH)

        if not (email or "").strip():
            return AuthResult.failed("Please enter your email")

        assertion = ExternalAssertion(email=email.strip(), provider=provider)
        return self._verify(assertion, method=provider)

    def _verify(self, assertion: IdentityAssertion, method: str) -> AuthResult:
        user = self._store.verify_credentials(assertion)
        if user is None:
            if self._audit_logger:
                self._audit_logger.log_login_failed(assertion.email, method)
            return AuthResult.failed(INVALID_CREDENTIALS_MESSAGE)

        if self._audit_logger:
            self._audit_logger.log_user_logged_in(user.email, method)
        return self._establish(user)

    def _establish(self, user: User) -> AuthResult:
        self._user = user
        self._view = ViewState.DASHBOARD
        return AuthResult.ok(user)

    def sign_out(self) -> None:
        """Drop the session and return to the landing page."""
        self._require("sign out", ViewState.DASHBOARD)
        if self._audit_logger and self._user:
            self._audit_logger.log_user_logged_out(self._user.email)
        self._user = None
        self._view = ViewState.LANDING
