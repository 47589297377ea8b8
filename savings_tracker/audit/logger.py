"""
Audit Logger

DESIGN DECISION: Every change to accounts and zones is logged.
This provides:
1. Complete traceability of what changed an account's interest figures
2. Debugging capability
3. A history the user can inspect

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from savings_tracker.models.audit import AuditEvent, AuditEventBuilder
from savings_tracker.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("savings_tracker.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_account_created(
        self,
        account_id: UUID,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log account creation."""
        await self.log(AuditEventBuilder.account_created(
            account_id=account_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_account_updated(
        self,
        account_id: UUID,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log account update."""
        await self.log(AuditEventBuilder.account_updated(
            account_id=account_id,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        ))

    async def log_account_deleted(
        self,
        account_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log account deletion."""
        await self.log(AuditEventBuilder.account_deleted(
            account_id=account_id,
            correlation_id=correlation_id,
        ))

    async def log_zone_created(
        self,
        zone_id: UUID,
        account_id: UUID,
        from_amount: str,
        to_amount: Optional[str],
        interest_rate: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log zone creation."""
        await self.log(AuditEventBuilder.zone_created(
            zone_id=zone_id,
            account_id=account_id,
            from_amount=from_amount,
            to_amount=to_amount,
            interest_rate=interest_rate,
            correlation_id=correlation_id,
        ))

    async def log_zone_deleted(
        self,
        zone_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log zone deletion."""
        await self.log(AuditEventBuilder.zone_deleted(
            zone_id=zone_id,
            correlation_id=correlation_id,
        ))

    async def log_zones_fetched(
        self,
        account_id: UUID,
        zone_count: int,
        from_cache: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.zones_fetched(
            account_id=account_id,
            zone_count=zone_count,
            from_cache=from_cache,
            correlation_id=correlation_id,
        ))

    async def log_interest_calculated(
        self,
        account_id: UUID,
        yearly_interest: str,
        effective_rate: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.interest_calculated(
            account_id=account_id,
            yearly_interest=yearly_interest,
            effective_rate=effective_rate,
            correlation_id=correlation_id,
        ))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a storage backend failure."""
        await self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., editing an account's zones).
    Pass it through all subsequent operations.
    """
    return uuid4()
