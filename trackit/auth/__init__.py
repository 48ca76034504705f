"""Session and authentication package."""

from trackit.auth.gate import (
    INVALID_CREDENTIALS_MESSAGE,
    AuthGate,
    InvalidTransitionError,
)

__all__ = [
    "INVALID_CREDENTIALS_MESSAGE",
    "AuthGate",
    "InvalidTransitionError",
]
