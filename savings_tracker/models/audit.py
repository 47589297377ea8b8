"""
Audit Models for Savings Tracker

Every change to an account or its zones is logged for audit purposes.
This provides:
1. Traceability of configuration changes that affect interest figures
2. Debugging information when storage misbehaves
3. Ability to reconstruct how an account's tiers evolved

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Accounts
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_DELETED = "account_deleted"

    # Zones
    ZONE_CREATED = "zone_created"
    ZONE_DELETED = "zone_deleted"
    ZONES_FETCHED = "zones_fetched"

    # Calculations
    INTEREST_CALCULATED = "interest_calculated"

    # System events
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'zone')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one account edit session)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.account_created(account_id, name, correlation_id)
        event = AuditEventBuilder.zone_deleted(zone_id, account_id, correlation_id)
    """

    @staticmethod
    def account_created(
        account_id: UUID,
        name: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATED,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Savings account created: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def account_updated(
        account_id: UUID,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_UPDATED,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Savings account updated ({len(changed_fields)} fields)",
            details={"changed_fields": changed_fields},
            is_user_action=True,
        )

    @staticmethod
    def account_deleted(
        account_id: UUID,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETED,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description="Savings account deleted together with its zones",
            is_user_action=True,
        )

    @staticmethod
    def zone_created(
        zone_id: UUID,
        account_id: UUID,
        from_amount: str,
        to_amount: Optional[str],
        interest_rate: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        upper = to_amount or "unbounded"
        return AuditEvent(
            event_type=AuditEventType.ZONE_CREATED,
            entity_type="zone",
            entity_id=zone_id,
            correlation_id=correlation_id,
            description=f"Zone {from_amount}-{upper} at {interest_rate}% added",
            details={
                "account_id": str(account_id),
                "from_amount": from_amount,
                "to_amount": to_amount,
                "interest_rate": interest_rate,
            },
            is_user_action=True,
        )

    @staticmethod
    def zone_deleted(
        zone_id: UUID,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ZONE_DELETED,
            entity_type="zone",
            entity_id=zone_id,
            correlation_id=correlation_id,
            description="Zone deleted",
            is_user_action=True,
        )

    @staticmethod
    def zones_fetched(
        account_id: UUID,
        zone_count: int,
        from_cache: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ZONES_FETCHED,
            severity=AuditSeverity.DEBUG,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Fetched {zone_count} zones",
            details={
                "zone_count": zone_count,
                "from_cache": from_cache,
            },
        )

    @staticmethod
    def interest_calculated(
        account_id: UUID,
        yearly_interest: str,
        effective_rate: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INTEREST_CALCULATED,
            severity=AuditSeverity.DEBUG,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Interest calculated: {yearly_interest} per year at {effective_rate}%",
            details={
                "yearly_interest": yearly_interest,
                "effective_rate": effective_rate,
            },
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
