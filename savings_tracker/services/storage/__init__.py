"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
In-memory storage is the default; Google Sheets is the persistent backend.
"""

from savings_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    NotFoundError,
    SavingsStorageInterface,
    StorageError,
)
from savings_tracker.services.storage.memory import (
    InMemoryAuditStorage,
    InMemorySavingsStorage,
)
from savings_tracker.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsSavingsStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "SavingsStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemorySavingsStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsSavingsStorage",
]
