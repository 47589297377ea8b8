"""Services package."""

from savings_tracker.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsSavingsStorage,
    InMemoryAuditStorage,
    InMemorySavingsStorage,
    NotFoundError,
    SavingsStorageInterface,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsSavingsStorage",
    "InMemoryAuditStorage",
    "InMemorySavingsStorage",
    "NotFoundError",
    "SavingsStorageInterface",
    "StorageError",
]
