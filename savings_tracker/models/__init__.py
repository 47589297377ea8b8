"""
Data Models Package

This package contains all Pydantic models used in the Savings Tracker.
All data flowing through the system must conform to these schemas.
"""

from savings_tracker.models.savings import (
    InterestSummary,
    InterestZone,
    SavingsAccount,
    SavingsAccountCreate,
    SavingsAccountZone,
    SavingsAccountZoneCreate,
)
from savings_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Savings models
    "InterestSummary",
    "InterestZone",
    "SavingsAccount",
    "SavingsAccountCreate",
    "SavingsAccountZone",
    "SavingsAccountZoneCreate",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
