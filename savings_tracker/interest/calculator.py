"""
Tiered Interest Calculator

Computes interest for savings accounts that pay different rates on
different portions of the balance ("zones").

Zone walk, for each zone in ascending from_amount order:
- an upper bound of 0 means the zone is unbounded and caps at the balance
- a zone that starts above the balance contributes nothing
- the part of the balance between from_amount and min(balance, to_amount)
  earns the zone's rate

Every zone is measured against the full balance, not against what the
previous zones left over. Overlapping zones therefore count the shared
range twice. Zone lists are expected to be non-overlapping by
construction; this module does not normalize them.

All functions are pure and never raise on bad data: unparsable values
count as zero, and a balance <= 0, an empty zone list or a result
too large for the decimal context gives zero.
"""

from decimal import Decimal
from typing import Iterable, Optional

from savings_tracker.interest.parsing import ZERO, AmountLike, parse_amount
from savings_tracker.models.savings import InterestSummary, InterestZone

HUNDRED = Decimal("100")


def _sorted_zones(zones: Iterable[InterestZone]) -> list[InterestZone]:
    return sorted(zones, key=lambda zone: parse_amount(zone.from_amount))


def _walk_zones(
    balance: Decimal,
    zones: Optional[Iterable[InterestZone]],
) -> tuple[Decimal, int]:
    """Return (total yearly interest, number of zones that contributed)."""
    if not zones or balance <= 0:
        return ZERO, 0

    interest = ZERO
    contributing = 0

    try:
        for zone in _sorted_zones(zones):
            zone_from = parse_amount(zone.from_amount)
            zone_to = parse_amount(zone.to_amount)
            rate = parse_amount(zone.interest_rate)

            effective_to = balance if zone_to == 0 else zone_to

            if balance < zone_from:
                continue

            amount_in_zone = min(balance, effective_to) - zone_from
            if amount_in_zone <= 0:
                continue

            interest += amount_in_zone * rate / HUNDRED
            contributing += 1
    except ArithmeticError:
        # Product or sum does not fit the decimal context
        return ZERO, 0

    return interest, contributing


def _blended_rate(interest: Decimal, amount: Decimal) -> Decimal:
    if amount <= 0:
        return ZERO
    try:
        return interest / amount * HUNDRED
    except ArithmeticError:
        return ZERO


def yearly_interest(
    balance: AmountLike,
    zones: Optional[Iterable[InterestZone]],
) -> Decimal:
    """
    Total interest earned over one year on the given balance.

    Args:
        balance: Account balance, as stored (string) or numeric
        zones: The account's zones, in any order

    Returns:
        Interest in the account currency, unrounded
    """
    interest, _ = _walk_zones(parse_amount(balance), zones)
    return interest


def effective_rate(
    balance: AmountLike,
    zones: Optional[Iterable[InterestZone]],
) -> Decimal:
    """
    Blended annual rate in percent: the single rate that, applied to the
    whole balance, yields the same yearly interest as the zone walk.
    """
    amount = parse_amount(balance)
    interest, _ = _walk_zones(amount, zones)
    return _blended_rate(interest, amount)


def summarize_interest(
    balance: AmountLike,
    zones: Optional[Iterable[InterestZone]],
) -> InterestSummary:
    """Compute yearly interest and effective rate in a single zone walk."""
    amount = parse_amount(balance)
    zone_list = list(zones) if zones else []
    interest, contributing = _walk_zones(amount, zone_list)
    rate = _blended_rate(interest, amount)

    return InterestSummary(
        balance=amount,
        yearly_interest=interest,
        effective_rate=rate,
        contributing_zones=contributing,
    )


def flat_rate_zones(interest_rate: AmountLike) -> list[InterestZone]:
    """A single unbounded zone paying the given rate on the whole balance."""
    return [
        InterestZone(
            from_amount="0",
            to_amount="0",
            interest_rate=str(parse_amount(interest_rate)),
        )
    ]
