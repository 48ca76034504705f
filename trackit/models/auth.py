"""
Identity and Session Models

DESIGN DECISION: A login is an explicit *assertion* of identity, and there
are exactly two kinds:

1. PasswordAssertion - the user typed a password; it must match.
2. ExternalAssertion - a federated provider (the mocked "Continue with
   Google" button) vouches for the email; no password is checked.

Keeping these as separate types means a missing password can never
silently skip verification on the password path.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ViewState(str, Enum):
    """Top-level screens of the application."""
    LANDING = "landing"
    AUTH = "auth"
    DASHBOARD = "dashboard"


class AuthMode(str, Enum):
    """Sub-modes of the auth screen."""
    SIGN_UP = "sign_up"
    LOG_IN = "log_in"


class User(BaseModel):
    """A signed-up user. `email` is the identity key."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254)

    @property
    def first_name(self) -> str:
        return self.name.split(" ")[0]

    @property
    def initial(self) -> str:
        return self.name[:1].upper()


class CredentialRecord(BaseModel):
    """
    One entry in the credential registry.

    New records only carry `password_hash`. `password` is read (never
    written) so registries created before hashing keep working.
    """
    model_config = ConfigDict(extra="ignore")

    name: str
    email: str
    password_hash: Optional[str] = None
    password: Optional[str] = Field(
        default=None,
        description="Legacy plaintext password, read-only"
    )

    def to_user(self) -> User:
        return User(name=self.name, email=self.email)

    def to_storage_dict(self) -> dict:
        return self.model_dump(exclude_none=True)


class PasswordAssertion(BaseModel):
    """Email + password typed into the login form."""

    email: str
    password: str = Field(..., min_length=1)


class ExternalAssertion(BaseModel):
    """Identity vouched for by an external provider (mocked)."""

    email: str
    provider: str = "google"


IdentityAssertion = Union[PasswordAssertion, ExternalAssertion]


class AuthResult(BaseModel):
    """
    Outcome of a sign-up or log-in attempt.

    Failures are values, not exceptions: the auth screen just shows `error`.
    """

    success: bool
    user: Optional[User] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, user: User) -> "AuthResult":
        return cls(success=True, user=user)

    @classmethod
    def failed(cls, error: str) -> "AuthResult":
        return cls(success=False, error=error)
