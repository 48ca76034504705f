"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
The finance store works on top of any key-value backend: in-memory,
a local JSON file, or a Google Sheets worksheet.
"""

from trackit.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DatasetRepository,
    DuplicateError,
    DuplicateIdentityError,
    KeyValueStore,
    StorageError,
)
from trackit.services.storage.local import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
)
from trackit.services.storage.finance_store import (
    DATA_PREFIX,
    USERS_KEY,
    FinanceStore,
    data_key,
)
from trackit.services.storage.audit_store import AUDIT_KEY, KeyValueAuditStorage
from trackit.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "DatasetRepository",
    "KeyValueStore",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "DuplicateIdentityError",
    "StorageError",
    # Key-value backends
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    # Google Sheets implementation
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStore",
    # Domain stores
    "AUDIT_KEY",
    "DATA_PREFIX",
    "USERS_KEY",
    "FinanceStore",
    "KeyValueAuditStorage",
    "data_key",
]
