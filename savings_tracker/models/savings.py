"""
Savings Account Models

These models define the schemas for savings accounts and the balance
tiers ("zones") that some banks use to pay interest.

DESIGN DECISION: Monetary amounts and rates are carried as STRINGS,
exactly as they are serialized by the backend. They are only parsed
into Decimal at the point of calculation (see savings_tracker.interest).
This avoids float precision loss in transit and keeps the
"tolerate bad input" policy in one place instead of failing validation
on a malformed zone that the user still needs to see and fix.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _quantize(value: Decimal, exp: Decimal) -> Decimal:
    try:
        return value.quantize(exp)
    except InvalidOperation:
        return value


# Shared by every model that is exchanged with the API layer:
# camelCase on the wire, snake_case in Python, numbers accepted as strings.
_API_CONFIG = ConfigDict(
    populate_by_name=True,
    str_strip_whitespace=True,
    coerce_numbers_to_str=True,
)


# =============================================================================
# ZONES
# =============================================================================

class InterestZone(BaseModel):
    """
    A single interest tier.

    The tier covers the part of the balance between from_amount and
    to_amount. A to_amount of "0" (or None) means the tier is unbounded
    and covers the rest of the balance.
    """
    model_config = _API_CONFIG

    from_amount: str = Field(
        default="0",
        alias="fromAmount",
        description="Inclusive lower bound of the tier"
    )
    to_amount: Optional[str] = Field(
        default=None,
        alias="toAmount",
        description="Upper bound of the tier; 0 or empty means unbounded"
    )
    interest_rate: str = Field(
        default="0",
        alias="interestRate",
        description="Annual rate in percent (2.5 means 2.5%)"
    )


class SavingsAccountZoneCreate(InterestZone):
    """Payload for creating a zone on an account."""

    savings_account_id: UUID = Field(
        ...,
        alias="savingsAccountId",
        description="Account that owns this zone"
    )


class SavingsAccountZone(SavingsAccountZoneCreate):
    """
    A stored zone.

    Zones are owned by exactly one account and are deleted with it.
    Overlaps between zones of one account are NOT validated here.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique zone ID"
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        alias="createdAt",
    )

    def to_api_dict(self) -> dict:
        """Serialize with the camelCase field names used by the API."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# ACCOUNTS
# =============================================================================

class SavingsAccountCreate(BaseModel):
    """
    Payload for creating or updating a savings account.

    On update, optional fields left as None keep their stored value.
    """
    model_config = _API_CONFIG

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name of the account"
    )
    balance: str = Field(
        default="0",
        description="Current balance in the account currency"
    )
    currency: Optional[str] = Field(
        default=None,
        min_length=3,
        max_length=3,
        description="ISO 4217 currency code"
    )
    interest_rate: Optional[str] = Field(
        default=None,
        alias="interestRate",
        description="Flat annual rate in percent, used when the account has no zones"
    )
    has_zone_designation: Optional[bool] = Field(
        default=None,
        alias="hasZoneDesignation",
        description="Whether interest is paid per zone"
    )


class SavingsAccount(BaseModel):
    """A stored savings account, optionally enriched with interest figures."""
    model_config = _API_CONFIG

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique account ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    balance: str = "0"
    currency: str = Field(
        default="CZK",
        min_length=3,
        max_length=3,
    )
    interest_rate: str = Field(
        default="0",
        alias="interestRate",
    )
    has_zone_designation: bool = Field(
        default=False,
        alias="hasZoneDesignation",
    )

    created_at: datetime = Field(
        default_factory=_utcnow,
        alias="createdAt",
    )
    updated_at: datetime = Field(
        default_factory=_utcnow,
        alias="updatedAt",
    )

    # Filled in by SavingsAccountService, never stored
    effective_interest_rate: Optional[Decimal] = Field(
        default=None,
        alias="effectiveInterestRate",
        description="Blended annual rate in percent"
    )
    projected_earnings: Optional[Decimal] = Field(
        default=None,
        alias="projectedEarnings",
        description="Expected interest over one year"
    )

    @classmethod
    def from_create(
        cls,
        data: SavingsAccountCreate,
        default_currency: str = "CZK",
    ) -> "SavingsAccount":
        """Build a new account, filling unset optional fields with defaults."""
        return cls(
            name=data.name,
            balance=data.balance,
            currency=(data.currency or default_currency).upper(),
            interest_rate=data.interest_rate or "0",
            has_zone_designation=bool(data.has_zone_designation),
        )

    def apply_update(
        self,
        data: SavingsAccountCreate,
    ) -> tuple["SavingsAccount", list[str]]:
        """
        Return an updated copy and the names of the fields that changed.

        Name and balance are always taken from data. Currency, rate and
        zone designation are only replaced when data provides them.
        """
        changes = {"name": data.name, "balance": data.balance}
        if data.currency is not None:
            changes["currency"] = data.currency.upper()
        if data.interest_rate is not None:
            changes["interest_rate"] = data.interest_rate
        if data.has_zone_designation is not None:
            changes["has_zone_designation"] = data.has_zone_designation

        changed = [
            field for field, value in changes.items()
            if getattr(self, field) != value
        ]
        changes["updated_at"] = _utcnow()
        return self.model_copy(update=changes), changed

    def to_api_dict(self) -> dict:
        """Serialize with camelCase names, omitting figures that were not computed."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# CALCULATION RESULTS
# =============================================================================

class InterestSummary(BaseModel):
    """Result of walking an account's zones for a given balance."""

    balance: Decimal = Field(
        ...,
        description="Balance the figures were computed for"
    )
    yearly_interest: Decimal = Field(
        ...,
        description="Total interest over one year"
    )
    effective_rate: Decimal = Field(
        ...,
        description="Blended annual rate in percent"
    )
    contributing_zones: int = Field(
        default=0,
        ge=0,
        description="Number of zones that added interest"
    )

    @property
    def monthly_interest(self) -> Decimal:
        return self.yearly_interest / 12

    def rounded(self, places: int = 2) -> "InterestSummary":
        """
        Copy with every amount quantized for display.

        Values with more digits than the decimal context can hold at the
        requested scale are returned unchanged.
        """
        exp = Decimal(1).scaleb(-places)
        return self.model_copy(update={
            "balance": _quantize(self.balance, exp),
            "yearly_interest": _quantize(self.yearly_interest, exp),
            "effective_rate": _quantize(self.effective_rate, exp),
        })
