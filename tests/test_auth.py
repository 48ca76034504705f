"""Tests for the session/auth gate."""

import pytest

from trackit.auth import INVALID_CREDENTIALS_MESSAGE, AuthGate, InvalidTransitionError
from trackit.models.audit import AuditEventType
from trackit.models.auth import AuthMode, ViewState


@pytest.fixture
def gate(store, audit_logger):
    return AuthGate(store, audit_logger=audit_logger)


@pytest.fixture
def registered(store, alice):
    store.create_user(alice, "secret")
    return alice


class TestNavigation:
    """View transitions."""

    def test_starts_on_landing(self, gate):
        assert gate.view == ViewState.LANDING
        assert gate.current_user is None
        assert gate.is_authenticated is False

    def test_get_started_opens_sign_up(self, gate):
        gate.get_started()
        assert gate.view == ViewState.AUTH
        assert gate.mode == AuthMode.SIGN_UP

    def test_get_started_in_log_in_mode(self, gate):
        gate.get_started(AuthMode.LOG_IN)
        assert gate.mode == AuthMode.LOG_IN

    def test_back_returns_to_landing(self, gate):
        gate.get_started()
        gate.back()
        assert gate.view == ViewState.LANDING

    def test_switch_mode_toggles(self, gate):
        gate.get_started()
        assert gate.switch_mode() == AuthMode.LOG_IN
        assert gate.switch_mode() == AuthMode.SIGN_UP
        assert gate.switch_mode(AuthMode.SIGN_UP) == AuthMode.SIGN_UP

    def test_cannot_log_in_from_landing(self, gate):
        with pytest.raises(InvalidTransitionError):
            gate.log_in("alice@example.com", "secret")

    def test_cannot_sign_out_without_session(self, gate):
        with pytest.raises(InvalidTransitionError):
            gate.sign_out()

    def test_cannot_go_back_from_landing(self, gate):
        with pytest.raises(InvalidTransitionError):
            gate.back()


class TestSignUp:
    def test_sign_up_establishes_session(self, gate, store):
        gate.get_started()
        result = gate.sign_up("Bob Jones", "bob@example.com", "pw")
        assert result.success is True
        assert result.user.email == "bob@example.com"
        assert gate.view == ViewState.DASHBOARD
        assert gate.current_user == result.user
        assert store.find_user("bob@example.com") is not None

    def test_duplicate_email_fails_without_raising(self, gate, registered, audit_storage):
        gate.get_started()
        result = gate.sign_up("Another Alice", registered.email, "pw")
        assert result.success is False
        assert result.error == "User with this email already exists"
        assert gate.view == ViewState.AUTH
        assert gate.current_user is None
        types = [e.event_type for e in audit_storage.get_recent_events()]
        assert AuditEventType.SIGNUP_REJECTED in types

    @pytest.mark.parametrize(
        "name,email,password",
        [("", "bob@example.com", "pw"), ("Bob", "  ", "pw"), ("Bob", "bob@example.com", "")],
    )
    def test_missing_fields(self, gate, name, email, password):
        gate.get_started()
        result = gate.sign_up(name, email, password)
        assert result.success is False
        assert gate.view == ViewState.AUTH

    def test_signed_up_user_can_log_in_later(self, gate):
        gate.get_started()
        gate.sign_up("Bob", "bob@example.com", "pw")
        gate.sign_out()
        gate.get_started(AuthMode.LOG_IN)
        assert gate.log_in("bob@example.com", "pw").success is True


class TestLogIn:
    def test_correct_password(self, gate, registered, audit_storage):
        gate.get_started(AuthMode.LOG_IN)
        result = gate.log_in(registered.email, "secret")
        assert result.success is True
        assert result.user == registered
        assert gate.view == ViewState.DASHBOARD
        events = audit_storage.get_events_for_user(registered.email)
        assert any(e.event_type == AuditEventType.USER_LOGGED_IN for e in events)

    def test_wrong_password(self, gate, registered):
        gate.get_started(AuthMode.LOG_IN)
        result = gate.log_in(registered.email, "nope")
        assert result.success is False
        assert result.error == INVALID_CREDENTIALS_MESSAGE
        assert gate.view == ViewState.AUTH

    def test_unknown_email_fails_without_raising(self, gate):
        gate.get_started(AuthMode.LOG_IN)
        result = gate.log_in("ghost@example.com", "x")
        assert result.success is False
        assert result.error == INVALID_CREDENTIALS_MESSAGE

    def test_blank_password_is_rejected(self, gate, registered):
        gate.get_started(AuthMode.LOG_IN)
        result = gate.log_in(registered.email, "")
        assert result.success is False
        assert gate.current_user is None

    def test_email_is_trimmed(self, gate, registered):
        gate.get_started(AuthMode.LOG_IN)
        assert gate.log_in(f"  {registered.email} ", "secret").success is True


class TestExternalLogIn:
    def test_registered_email_is_accepted(self, gate, registered):
        gate.get_started(AuthMode.LOG_IN)
        result = gate.log_in_external(registered.email)
        assert result.success is True
        assert gate.current_user == registered

    def test_unregistered_email_is_rejected(self, gate):
        gate.get_started(AuthMode.LOG_IN)
        result = gate.log_in_external("ghost@example.com")
        assert result.success is False
        assert gate.view == ViewState.AUTH


class TestSignOut:
    def test_sign_out_clears_session(self, gate, registered, audit_storage):
        gate.get_started(AuthMode.LOG_IN)
        gate.log_in(registered.email, "secret")
        gate.sign_out()
        assert gate.view == ViewState.LANDING
        assert gate.current_user is None
        events = audit_storage.get_events_for_user(registered.email)
        assert any(e.event_type == AuditEventType.USER_LOGGED_OUT for e in events)
