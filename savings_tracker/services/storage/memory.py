"""
In-Memory Storage Implementation

Keeps accounts, zones and audit events in process memory.
Used for tests and when no persistent backend is configured.
Nothing survives a restart.
"""

from typing import Optional
from uuid import UUID

from savings_tracker.interest import parse_amount
from savings_tracker.models.audit import AuditEvent
from savings_tracker.models.savings import (
    SavingsAccount,
    SavingsAccountCreate,
    SavingsAccountZone,
    SavingsAccountZoneCreate,
)
from savings_tracker.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    SavingsStorageInterface,
)


class InMemorySavingsStorage(SavingsStorageInterface):
    """Dict-backed account and zone storage."""

    def __init__(self):
        self._accounts: dict[UUID, SavingsAccount] = {}
        self._zones: dict[UUID, SavingsAccountZone] = {}

    async def list_accounts(self) -> list[SavingsAccount]:
        return sorted(self._accounts.values(), key=lambda a: a.name)

    async def get_account(self, account_id: UUID) -> Optional[SavingsAccount]:
        return self._accounts.get(account_id)

    async def create_account(
        self,
        data: SavingsAccountCreate,
        default_currency: str = "CZK",
    ) -> SavingsAccount:
        account = SavingsAccount.from_create(data, default_currency)
        self._accounts[account.id] = account
        return account

    async def update_account(
        self,
        account_id: UUID,
        data: SavingsAccountCreate,
    ) -> SavingsAccount:
        existing = self._accounts.get(account_id)
        if existing is None:
            raise NotFoundError(f"Savings account not found: {account_id}")

        updated, _ = existing.apply_update(data)
        self._accounts[account_id] = updated
        return updated

    async def delete_account(self, account_id: UUID) -> bool:
        if self._accounts.pop(account_id, None) is None:
            raise NotFoundError(f"Savings account not found: {account_id}")

        owned = [
            zone_id for zone_id, zone in self._zones.items()
            if zone.savings_account_id == account_id
        ]
        for zone_id in owned:
            del self._zones[zone_id]
        return True

    async def get_zones(self, account_id: UUID) -> list[SavingsAccountZone]:
        zones = [
            zone for zone in self._zones.values()
            if zone.savings_account_id == account_id
        ]
        zones.sort(key=lambda z: parse_amount(z.from_amount))
        return zones

    async def create_zone(self, data: SavingsAccountZoneCreate) -> SavingsAccountZone:
        if data.savings_account_id not in self._accounts:
            raise NotFoundError(f"Savings account not found: {data.savings_account_id}")

        zone = SavingsAccountZone(**data.model_dump())
        self._zones[zone.id] = zone
        return zone

    async def delete_zone(self, zone_id: UUID) -> bool:
        return self._zones.pop(zone_id, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        # Newest first; events appended in the same instant keep append order reversed
        events = list(reversed(self._events))
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
