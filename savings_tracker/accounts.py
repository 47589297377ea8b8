"""
Savings Account Service

This module ties together storage, the tiered interest calculator and
the audit trail. It is what the presentation layer talks to.

Flows:
1. Read (list/get account → fetch zones → enrich with interest figures)
2. Configure (create/update/delete accounts and zones → invalidate cache → audit)

DESIGN DECISION: Interest figures are never stored. They are computed on
every read from the current balance and the current zone list, so an
edited zone is reflected immediately once its cache entry is dropped.
"""

import logging
import time
from typing import Callable, Optional
from uuid import UUID

import structlog

from savings_tracker.audit import AuditLogger
from savings_tracker.config import get_settings
from savings_tracker.interest import flat_rate_zones, parse_amount, summarize_interest
from savings_tracker.models.savings import (
    InterestSummary,
    InterestZone,
    SavingsAccount,
    SavingsAccountCreate,
    SavingsAccountZone,
    SavingsAccountZoneCreate,
)
from savings_tracker.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsSavingsStorage,
    InMemoryAuditStorage,
    InMemorySavingsStorage,
    NotFoundError,
    SavingsStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


class ZoneCache:
    """
    Short-lived cache of zone lists keyed by account.

    Entries older than ttl_seconds are treated as missing.
    A ttl of 0 disables caching entirely.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[UUID, tuple[float, list[SavingsAccountZone]]] = {}

    def get(self, account_id: UUID) -> Optional[list[SavingsAccountZone]]:
        entry = self._entries.get(account_id)
        if entry is None:
            return None

        fetched_at, zones = entry
        if self._clock() - fetched_at >= self._ttl:
            del self._entries[account_id]
            return None
        return list(zones)

    def put(self, account_id: UUID, zones: list[SavingsAccountZone]) -> None:
        if self._ttl <= 0:
            return
        self._entries[account_id] = (self._clock(), list(zones))

    def invalidate(self, account_id: UUID) -> None:
        self._entries.pop(account_id, None)

    def clear(self) -> None:
        self._entries.clear()


class SavingsAccountService:
    """
    Account and zone management with interest enrichment.

    GUARANTEES:
    - Zoned accounts carry projected_earnings and effective_interest_rate
      computed from their zones
    - Any zone or account mutation drops the cached zone list
    - Storage failures are audited and re-raised, never hidden
    """

    def __init__(
        self,
        storage: SavingsStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        zone_cache: Optional[ZoneCache] = None,
        default_currency: Optional[str] = None,
    ):
        app_settings = None
        if zone_cache is None or default_currency is None:
            app_settings = get_settings().app

        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._zone_cache = zone_cache or ZoneCache(app_settings.zone_cache_ttl_seconds)
        self._default_currency = default_currency or app_settings.default_currency

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def list_accounts(self) -> list[SavingsAccount]:
        """All accounts, enriched with interest figures."""
        accounts = await self._call("list_accounts", self._storage.list_accounts())
        return [await self._enrich(account) for account in accounts]

    async def get_account(self, account_id: UUID) -> Optional[SavingsAccount]:
        """One account, enriched, or None if it doesn't exist."""
        account = await self._call("get_account", self._storage.get_account(account_id))
        if account is None:
            return None
        return await self._enrich(account)

    async def fetch_zones(
        self,
        account_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> list[SavingsAccountZone]:
        """Zones of an account, served from cache while fresh."""
        cached = self._zone_cache.get(account_id)
        if cached is not None:
            await self._audit_logger.log_zones_fetched(
                account_id, len(cached), from_cache=True, correlation_id=correlation_id
            )
            return cached

        zones = await self._call("get_zones", self._storage.get_zones(account_id))
        self._zone_cache.put(account_id, zones)
        await self._audit_logger.log_zones_fetched(
            account_id, len(zones), from_cache=False, correlation_id=correlation_id
        )
        return zones

    async def calculate_interest(
        self,
        account_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> InterestSummary:
        """
        Interest summary for one account.

        Zoned accounts use their zones. Other accounts are treated as a
        single unbounded zone at their flat rate.

        Raises:
            NotFoundError: If the account doesn't exist
        """
        account = await self._call("get_account", self._storage.get_account(account_id))
        if account is None:
            raise NotFoundError(f"Savings account not found: {account_id}")

        summary = await self._summarize(account, correlation_id)
        display = summary.rounded()
        await self._audit_logger.log_interest_calculated(
            account_id=account.id,
            yearly_interest=str(display.yearly_interest),
            effective_rate=str(display.effective_rate),
            correlation_id=correlation_id,
        )
        return summary

    # -------------------------------------------------------------------------
    # Account mutations
    # -------------------------------------------------------------------------

    async def create_account(
        self,
        data: SavingsAccountCreate,
        correlation_id: Optional[UUID] = None,
        zones: Optional[list[InterestZone]] = None,
    ) -> SavingsAccount:
        """
        Create an account, optionally with its initial zones.

        Each zone is linked to the new account and audited like a
        separate create_zone call. A blank to_amount is stored as None.
        """
        account = await self._call(
            "create_account",
            self._storage.create_account(data, self._default_currency),
            correlation_id,
        )
        await self._audit_logger.log_account_created(
            account.id, account.name, correlation_id
        )

        for zone in zones or []:
            await self.create_zone(
                SavingsAccountZoneCreate(
                    savings_account_id=account.id,
                    from_amount=zone.from_amount,
                    to_amount=zone.to_amount or None,
                    interest_rate=zone.interest_rate,
                ),
                correlation_id,
            )

        return await self._enrich(account)

    async def update_account(
        self,
        account_id: UUID,
        data: SavingsAccountCreate,
        correlation_id: Optional[UUID] = None,
    ) -> SavingsAccount:
        """
        Update an account.

        Raises:
            NotFoundError: If the account doesn't exist
        """
        before = await self._call("get_account", self._storage.get_account(account_id))
        if before is None:
            raise NotFoundError(f"Savings account not found: {account_id}")

        _, changed = before.apply_update(data)
        account = await self._call(
            "update_account",
            self._storage.update_account(account_id, data),
            correlation_id,
        )
        self._zone_cache.invalidate(account_id)
        await self._audit_logger.log_account_updated(account_id, changed, correlation_id)
        return await self._enrich(account)

    async def delete_account(
        self,
        account_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Delete an account together with its zones.

        Raises:
            NotFoundError: If the account doesn't exist
        """
        deleted = await self._call(
            "delete_account",
            self._storage.delete_account(account_id),
            correlation_id,
        )
        self._zone_cache.invalidate(account_id)
        await self._audit_logger.log_account_deleted(account_id, correlation_id)
        return deleted

    # -------------------------------------------------------------------------
    # Zone mutations
    # -------------------------------------------------------------------------

    async def create_zone(
        self,
        data: SavingsAccountZoneCreate,
        correlation_id: Optional[UUID] = None,
    ) -> SavingsAccountZone:
        """
        Add a zone to an account.

        Overlapping zones are accepted; they will be counted twice.
        """
        zone = await self._call("create_zone", self._storage.create_zone(data), correlation_id)
        self._zone_cache.invalidate(zone.savings_account_id)
        await self._audit_logger.log_zone_created(
            zone_id=zone.id,
            account_id=zone.savings_account_id,
            from_amount=zone.from_amount,
            to_amount=zone.to_amount,
            interest_rate=zone.interest_rate,
            correlation_id=correlation_id,
        )
        return zone

    async def delete_zone(
        self,
        zone_id: UUID,
        account_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Delete a zone. Missing zones are not an error.

        Without account_id the owning account is unknown, so the whole
        zone cache is dropped.
        """
        deleted = await self._call("delete_zone", self._storage.delete_zone(zone_id), correlation_id)
        if account_id is not None:
            self._zone_cache.invalidate(account_id)
        else:
            self._zone_cache.clear()

        if deleted:
            await self._audit_logger.log_zone_deleted(zone_id, correlation_id)
        return deleted

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _summarize(
        self,
        account: SavingsAccount,
        correlation_id: Optional[UUID] = None,
    ) -> InterestSummary:
        if account.has_zone_designation:
            zones = await self.fetch_zones(account.id, correlation_id)
        else:
            zones = flat_rate_zones(account.interest_rate)
        return summarize_interest(account.balance, zones)

    async def _enrich(self, account: SavingsAccount) -> SavingsAccount:
        summary = await self._summarize(account)
        if account.has_zone_designation:
            rate = summary.effective_rate
        else:
            rate = parse_amount(account.interest_rate)

        return account.model_copy(update={
            "projected_earnings": summary.yearly_interest,
            "effective_interest_rate": rate,
        })

    async def _call(self, operation: str, awaitable, correlation_id: Optional[UUID] = None):
        """Await a storage call, auditing any failure before re-raising it."""
        try:
            return await awaitable
        except NotFoundError:
            raise
        except StorageError as e:
            logger.error("storage_call_failed", operation=operation, error=str(e))
            await self._audit_logger.log_storage_error(operation, str(e), correlation_id)
            raise
        except Exception as e:
            logger.error("storage_call_crashed", operation=operation, error=str(e))
            await self._audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                details={"operation": operation},
                correlation_id=correlation_id,
            )
            raise


def create_app_components(
    use_storage: bool = True,
) -> tuple[SavingsAccountService, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize the configured persistent backend.
                    Set to False to run entirely in memory.

    Returns:
        (account_service, sheets_client)
    """
    app_settings = get_settings().app
    log_level = "DEBUG" if app_settings.debug_mode else app_settings.log_level
    logging.getLogger("savings_tracker").setLevel(log_level)

    sheets_client = None
    storage: SavingsStorageInterface = InMemorySavingsStorage()
    audit_logger = AuditLogger(InMemoryAuditStorage())

    if use_storage and app_settings.storage_backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient()
            storage = GoogleSheetsSavingsStorage(
                sheets_client, default_currency=app_settings.default_currency
            )
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None

    service = SavingsAccountService(
        storage=storage,
        audit_logger=audit_logger,
        zone_cache=ZoneCache(app_settings.zone_cache_ttl_seconds),
        default_currency=app_settings.default_currency,
    )
    return service, sheets_client
