"""
Abstract Storage Interfaces

DESIGN DECISION: Persistence is split into two layers.

1. KeyValueStore - a dumb string-to-string namespace (the equivalent of
   browser localStorage). Backends: in-memory, JSON file, Google Sheets.
2. DatasetRepository / FinanceStore - the domain operations (users,
   credentials, per-user datasets) written once on top of any backend.

This allows us to:
1. Use in-memory storage for tests
2. Swap the JSON file for Google Sheets without touching business logic
3. Inject the repository into controllers instead of reaching for a
   process-wide singleton

All operations are synchronous: a write returns once the backend has
accepted it. There is no locking; the last writer wins.
"""

from abc import ABC, abstractmethod
from typing import Optional

from trackit.models.audit import AuditEvent
from trackit.models.finance import Dataset


class KeyValueStore(ABC):
    """
    A flat namespace of string keys to string values.

    Values are opaque to the store; callers serialize them (JSON).
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read a value.

        Returns:
            The stored string, or None if the key is absent

        Raises:
            ConnectionError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Write a value, replacing any previous one.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed
        """
        pass

    @abstractmethod
    def keys(self, prefix: str = "") -> list[str]:
        """List stored keys starting with `prefix`, sorted."""
        pass


class DatasetRepository(ABC):
    """
    Per-user dataset persistence, scoped by user identity (email).

    Controllers depend on this interface only.
    """

    @abstractmethod
    def load(self, user_id: str) -> Dataset:
        """
        Load a user's dataset.

        Returns the default dataset (default categories, no expenses)
        if nothing usable is stored. Never raises for bad stored data.
        """
        pass

    @abstractmethod
    def save(self, user_id: str, dataset: Dataset) -> None:
        """Overwrite a user's dataset (last writer wins, no merge)."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only: stored events are never modified.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass

    @abstractmethod
    def get_events_for_user(
        self,
        user_email: str,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Recent events touching one user's dataset (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class DuplicateIdentityError(DuplicateError):
    """A user with this email is already registered."""

    def __init__(self, email: str):
        self.email = email
        super().__init__("User with this email already exists")


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
