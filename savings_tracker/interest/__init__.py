"""Tiered interest calculation package."""

from savings_tracker.interest.calculator import (
    effective_rate,
    flat_rate_zones,
    summarize_interest,
    yearly_interest,
)
from savings_tracker.interest.parsing import parse_amount

__all__ = [
    "effective_rate",
    "flat_rate_zones",
    "parse_amount",
    "summarize_interest",
    "yearly_interest",
]
