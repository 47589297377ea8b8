"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Add caching layers transparently
4. Keep interest calculations decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Just the get/create/update/delete operations accounts and zones need.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from savings_tracker.models.audit import AuditEvent
from savings_tracker.models.savings import (
    SavingsAccount,
    SavingsAccountCreate,
    SavingsAccountZone,
    SavingsAccountZoneCreate,
)


class SavingsStorageInterface(ABC):
    """
    Abstract interface for savings account and zone storage.

    Zones are owned by their account: deleting an account
    must delete its zones as well.
    """

    @abstractmethod
    async def list_accounts(self) -> list[SavingsAccount]:
        """
        List all savings accounts, ordered by name.

        Returned accounts are NOT enriched with interest figures.
        """
        pass

    @abstractmethod
    async def get_account(self, account_id: UUID) -> Optional[SavingsAccount]:
        """
        Retrieve an account by its ID.

        Returns:
            The account if found, None otherwise
        """
        pass

    @abstractmethod
    async def create_account(
        self,
        data: SavingsAccountCreate,
        default_currency: str = "CZK",
    ) -> SavingsAccount:
        """
        Create a new account.

        Args:
            data: Account fields
            default_currency: Used when data.currency is not set

        Returns:
            The stored account

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def update_account(
        self,
        account_id: UUID,
        data: SavingsAccountCreate,
    ) -> SavingsAccount:
        """
        Update an existing account.

        Name and balance are always replaced; optional fields left as
        None keep their stored value.

        Raises:
            NotFoundError: If the account doesn't exist
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete_account(self, account_id: UUID) -> bool:
        """
        Delete an account and all of its zones.

        Raises:
            NotFoundError: If the account doesn't exist
        """
        pass

    @abstractmethod
    async def get_zones(self, account_id: UUID) -> list[SavingsAccountZone]:
        """
        Get the zones of an account, ordered by from_amount.

        Returns:
            List of zones (empty if the account has none)
        """
        pass

    @abstractmethod
    async def create_zone(self, data: SavingsAccountZoneCreate) -> SavingsAccountZone:
        """
        Add a zone to an account.

        Overlaps with existing zones are not checked.

        Raises:
            NotFoundError: If the owning account doesn't exist
        """
        pass

    @abstractmethod
    async def delete_zone(self, zone_id: UUID) -> bool:
        """
        Delete a zone.

        Returns:
            True if a zone was deleted, False if it did not exist
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID.

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Args:
            entity_type: Type of entity (e.g., 'account', 'zone')
            entity_id: The entity's ID

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
