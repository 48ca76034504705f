"""Services package."""

from trackit.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DatasetRepository,
    DuplicateError,
    DuplicateIdentityError,
    FinanceStore,
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueAuditStorage,
    KeyValueStore,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "DatasetRepository",
    "DuplicateError",
    "DuplicateIdentityError",
    "FinanceStore",
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueAuditStorage",
    "KeyValueStore",
    "StorageError",
]
