"""
Finance Store - users, credentials and per-user datasets

Built on any KeyValueStore. Two namespaces share the key space:

    trackit_users           -> JSON list of credential records
    trackit_data_<email>    -> JSON {"expenses": [...], "categories": [...]}

DESIGN DECISION: Reads fail soft. A missing, unparseable or partially
malformed value is treated as absent (or the malformed records are
skipped) and logged, so a bad byte on disk never takes the app down.
Writes are unconditional overwrites: last writer wins.

Passwords are stored as salted hashes (werkzeug). Registries written by
older builds with a plaintext `password` field still verify.
"""

import json
from typing import TYPE_CHECKING, Any, Optional

import structlog
from pydantic import ValidationError
from werkzeug.security import check_password_hash, generate_password_hash

from trackit.models.audit import AuditEventBuilder
from trackit.models.auth import (
    CredentialRecord,
    ExternalAssertion,
    IdentityAssertion,
    PasswordAssertion,
    User,
)
from trackit.models.finance import (
    Category,
    Dataset,
    Expense,
    default_dataset,
)
from trackit.services.storage.interface import (
    DatasetRepository,
    DuplicateIdentityError,
    KeyValueStore,
)

if TYPE_CHECKING:
    from trackit.audit import AuditLogger


USERS_KEY = "trackit_users"
DATA_PREFIX = "trackit_data_"


logger = structlog.get_logger(__name__)


def data_key(email: str) -> str:
    """Storage key for one user's dataset."""
    return DATA_PREFIX + email


class FinanceStore(DatasetRepository):
    """
    Persistence for TrackIt.

    Implements the DatasetRepository interface (load/save by email) plus
    the credential registry used by the auth gate.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        audit_logger: Optional["AuditLogger"] = None,
    ):
        self._kv = kv
        self._audit_logger = audit_logger

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _read_json(self, key: str) -> Optional[Any]:
        """Parse the JSON stored under `key`; None if absent or corrupt."""
        raw = self._kv.get(key)
        if raw is None or raw == "":
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            self._report_recovery(key, str(e))
            return None

    def _write_json(self, key: str, value: Any) -> None:
        self._kv.set(key, json.dumps(value))

    def _report_recovery(self, key: str, reason: str) -> None:
        logger.warning("storage_recovered", key=key, error=reason)
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.storage_recovered(key, reason))

    # -------------------------------------------------------------------------
    # User management
    # -------------------------------------------------------------------------

    def get_users(self) -> list[CredentialRecord]:
        """
        All credential records.

        Returns an empty list if none are stored or the registry is
        unreadable. Malformed records are skipped.
        """
        data = self._read_json(USERS_KEY)
        if not isinstance(data, list):
            if data is not None:
                self._report_recovery(USERS_KEY, "credential registry is not a list")
            return []

        records = []
        for item in data:
            try:
                record = CredentialRecord.model_validate(item)
                # A record must resolve to a valid User to be usable at login
                record.to_user()
            except ValidationError:
                logger.warning("credential_record_skipped", key=USERS_KEY)
                continue  # Skip malformed records
            records.append(record)
        return records

    def find_user(self, email: str) -> Optional[CredentialRecord]:
        for record in self.get_users():
            if record.email == email:
                return record
        return None

    def create_user(self, user: User, password: str) -> User:
        """
        Register a new user and seed their dataset.

        Raises:
            DuplicateIdentityError: If the email is already registered
        """
        users = self.get_users()
        if any(record.email == user.email for record in users):
            raise DuplicateIdentityError(user.email)

        users.append(
            CredentialRecord(
                name=user.name,
                email=user.email,
                password_hash=generate_password_hash(password),
            )
        )
        self._write_json(USERS_KEY, [record.to_storage_dict() for record in users])

        self.save(user.email, default_dataset())

        logger.info("user_created", email=user.email)
        return user

    def verify_credentials(self, assertion: IdentityAssertion) -> Optional[User]:
        """
        Resolve an identity assertion to a user.

        PasswordAssertion: the password must match the stored credential.
        ExternalAssertion: accepted once the email is registered. This is
        the mocked federated login and is a deliberate trust boundary.

        Returns None for an unknown email or a wrong password.
        """
        record = self.find_user(assertion.email)
        if record is None:
            return None

        if isinstance(assertion, ExternalAssertion):
            return record.to_user()

        if isinstance(assertion, PasswordAssertion):
            if self._password_matches(record, assertion.password):
                return record.to_user()
            return None

        return None

    @staticmethod
    def _password_matches(record: CredentialRecord, password: str) -> bool:
        if record.password_hash:
            try:
                return check_password_hash(record.password_hash, password)
            except ValueError:
                # Unknown hash method in a hand-edited registry
                return False
        if record.password is not None:
            return record.password == password
        return False

    # -------------------------------------------------------------------------
    # Data management
    # -------------------------------------------------------------------------

    def get_user_data(self, email: str) -> Dataset:
        """
        Load a user's dataset.

        Returns the default dataset if nothing is stored or the stored
        document is unreadable. Malformed expenses/categories are skipped.
        """
        key = data_key(email)
        data = self._read_json(key)
        if not isinstance(data, dict):
            if data is not None:
                self._report_recovery(key, "dataset is not an object")
            return default_dataset()

        expenses = self._parse_records(key, data.get("expenses"), Expense)
        categories = self._parse_records(key, data.get("categories"), Category)
        return Dataset(expenses=expenses, categories=categories)

    @staticmethod
    def _parse_records(key: str, items: Any, model: type) -> list:
        if not isinstance(items, list):
            return []
        parsed = []
        for item in items:
            try:
                parsed.append(model.model_validate(item))
            except ValidationError as e:
                logger.warning(
                    "record_skipped",
                    key=key,
                    model=model.__name__,
                    error_count=e.error_count(),
                )
                continue
        return parsed

    def save_user_data(
        self,
        email: str,
        expenses: list[Expense],
        categories: list[Category],
    ) -> None:
        """Overwrite a user's dataset. No versioning, no merge."""
        dataset = Dataset(expenses=list(expenses), categories=list(categories))
        self._write_json(data_key(email), dataset.to_storage_dict())

    # DatasetRepository interface

    def load(self, user_id: str) -> Dataset:
        return self.get_user_data(user_id)

    def save(self, user_id: str, dataset: Dataset) -> None:
        self.save_user_data(user_id, dataset.expenses, dataset.categories)
