"""
Tests for the tiered interest calculator.

The calculator is pure: no storage, no settings, no mocks needed.
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from savings_tracker.interest import (
    effective_rate,
    flat_rate_zones,
    parse_amount,
    summarize_interest,
    yearly_interest,
)
from savings_tracker.models.savings import InterestZone, SavingsAccountZone


EPSILON = Decimal("1e-6")


def zone(from_amount, to_amount, rate) -> InterestZone:
    return InterestZone(
        from_amount=from_amount,
        to_amount=to_amount,
        interest_rate=rate,
    )


@pytest.fixture
def two_tiers():
    """1% up to 100 000, 2% on everything above."""
    return [
        zone("0", "100000", "1.0"),
        zone("100000", "0", "2.0"),
    ]


class TestParseAmount:
    """Tests for the lenient amount parser."""

    def test_parses_decimal_strings(self):
        assert parse_amount("12.50") == Decimal("12.50")
        assert parse_amount("  7 ") == Decimal("7")
        assert parse_amount("-3.25") == Decimal("-3.25")

    def test_missing_values_are_zero(self):
        assert parse_amount(None) == 0
        assert parse_amount("") == 0
        assert parse_amount("   ") == 0

    def test_garbage_is_zero(self):
        assert parse_amount("abc") == 0
        assert parse_amount("12,5.3") == 0

    def test_non_finite_values_are_zero(self):
        assert parse_amount("NaN") == 0
        assert parse_amount("Infinity") == 0
        assert parse_amount(float("inf")) == 0
        assert parse_amount(float("nan")) == 0

    def test_numeric_inputs(self):
        assert parse_amount(150000) == Decimal("150000")
        assert parse_amount(0.1) == Decimal("0.1")
        assert parse_amount(Decimal("2.5")) == Decimal("2.5")

    def test_booleans_are_not_amounts(self):
        assert parse_amount(True) == 0


class TestYearlyInterest:
    """Tests for yearly_interest."""

    @pytest.mark.parametrize("balance", ["0", "-1", "-150000", 0, None, "junk"])
    def test_non_positive_balance_yields_zero(self, balance, two_tiers):
        assert yearly_interest(balance, two_tiers) == 0

    @pytest.mark.parametrize("zones", [[], None])
    def test_no_zones_yields_zero(self, zones):
        assert yearly_interest("150000", zones) == 0

    def test_single_unbounded_zone(self):
        result = yearly_interest("12345.67", [zone("0", "0", "2.5")])
        assert result == Decimal("12345.67") * Decimal("2.5") / 100

    def test_missing_upper_bound_is_unbounded(self):
        result = yearly_interest("1000", [zone("0", None, "3")])
        assert result == Decimal("30")

    def test_two_tier_example(self, two_tiers):
        assert yearly_interest("150000", two_tiers) == Decimal("2000")

    def test_balance_inside_first_tier(self, two_tiers):
        assert yearly_interest("50000", two_tiers) == Decimal("500")

    def test_balance_below_first_tier(self):
        assert yearly_interest("50", [zone("100", "0", "5")]) == 0

    def test_balance_equal_to_tier_start_contributes_nothing(self):
        assert yearly_interest("100", [zone("100", "0", "5")]) == 0

    def test_order_independent(self, two_tiers):
        reversed_zones = list(reversed(two_tiers))
        assert yearly_interest("150000", reversed_zones) == yearly_interest("150000", two_tiers)

    def test_mixed_order_tiers(self):
        zones = [
            zone("200", "0", "2"),
            zone("1000", "0", "0"),
            zone("0", "200", "1"),
        ]
        # 200 * 1% + (300 - 200) * 2%
        assert yearly_interest("300", zones) == Decimal("4")

    def test_gap_between_tiers_earns_nothing(self):
        zones = [zone("0", "100", "1"), zone("200", "0", "2")]
        # 100 * 1% + (300 - 200) * 2%
        assert yearly_interest("300", zones) == Decimal("3")

    def test_overlapping_zones_are_counted_twice(self):
        zones = [zone("0", "1000", "1"), zone("500", "1500", "1")]
        # 1000 * 1% + 500 * 1%, the 500-1000 range is counted in both
        assert yearly_interest("1000", zones) == Decimal("15")

    def test_upper_bound_below_lower_bound_is_ignored(self):
        assert yearly_interest("1000", [zone("100", "50", "5")]) == 0

    def test_negative_rate_is_applied_as_is(self):
        assert yearly_interest("100", [zone("0", "0", "-1")]) == Decimal("-1")

    def test_large_balance_within_precision(self):
        balance = "1" + "0" * 27
        assert yearly_interest(balance, [zone("0", "0", "2")]) == Decimal("2e25")

    def test_overflowing_result_degrades_to_zero(self):
        huge = "1e999999"
        assert yearly_interest(huge, [zone("0", "0", huge)]) == 0

    def test_malformed_zone_fields_degrade_to_zero(self):
        zones = [
            zone("abc", "100", "1"),    # from -> 0
            zone("100", "0", "oops"),   # rate -> 0
        ]
        assert yearly_interest("500", zones) == Decimal("1")

    def test_numeric_balance_accepted(self, two_tiers):
        assert yearly_interest(150000.0, two_tiers) == Decimal("2000")

    def test_accepts_stored_zones_and_generators(self, two_tiers):
        account_id = uuid4()
        stored = [
            SavingsAccountZone(savings_account_id=account_id, **z.model_dump())
            for z in two_tiers
        ]
        assert yearly_interest("150000", stored) == Decimal("2000")
        assert yearly_interest("150000", (z for z in stored)) == Decimal("2000")

    def test_idempotent(self, two_tiers):
        first = yearly_interest("123456.78", two_tiers)
        second = yearly_interest("123456.78", two_tiers)
        assert first == second

    def test_does_not_reorder_caller_list(self):
        zones = [zone("100", "0", "2"), zone("0", "100", "1")]
        yearly_interest("500", zones)
        assert zones[0].from_amount == "100"


class TestEffectiveRate:
    """Tests for effective_rate."""

    def test_two_tier_example(self, two_tiers):
        rate = effective_rate("150000", two_tiers)
        assert abs(rate - Decimal("1.333333333")) < EPSILON

    @pytest.mark.parametrize("balance", ["0", "-10"])
    def test_non_positive_balance_yields_zero(self, balance, two_tiers):
        assert effective_rate(balance, two_tiers) == 0

    def test_no_zones_yields_zero(self):
        assert effective_rate("1000", []) == 0

    def test_single_unbounded_zone_equals_its_rate(self):
        rate = effective_rate("98765.43", [zone("0", "0", "3.1")])
        assert abs(rate - Decimal("3.1")) < EPSILON

    def test_consistent_with_yearly_interest(self, two_tiers):
        balance = Decimal("175000.55")
        expected = yearly_interest(balance, two_tiers) / balance * 100
        assert effective_rate(balance, two_tiers) == expected

    def test_overflowing_interest_yields_zero(self):
        huge = "1e999999"
        assert effective_rate(huge, [zone("0", "0", huge)]) == 0

    def test_idempotent(self, two_tiers):
        assert effective_rate("150000", two_tiers) == effective_rate("150000", two_tiers)


class TestSummarizeInterest:
    """Tests for summarize_interest and helpers."""

    def test_summary_matches_individual_functions(self, two_tiers):
        summary = summarize_interest("150000", two_tiers)
        assert summary.balance == Decimal("150000")
        assert summary.yearly_interest == yearly_interest("150000", two_tiers)
        assert summary.effective_rate == effective_rate("150000", two_tiers)
        assert summary.contributing_zones == 2

    def test_contributing_zones_excludes_unreached_tiers(self, two_tiers):
        assert summarize_interest("50000", two_tiers).contributing_zones == 1

    def test_monthly_interest(self, two_tiers):
        summary = summarize_interest("150000", two_tiers)
        assert abs(summary.monthly_interest - Decimal("166.666667")) < Decimal("1e-5")

    def test_rounded_for_display(self, two_tiers):
        summary = summarize_interest("150000", two_tiers).rounded()
        assert summary.effective_rate == Decimal("1.33")
        assert summary.yearly_interest == Decimal("2000.00")
        assert str(summary.yearly_interest) == "2000.00"

    def test_rounded_keeps_values_too_wide_to_quantize(self):
        summary = summarize_interest("1" + "0" * 27, [zone("0", "0", "2")]).rounded()
        assert summary.balance == Decimal("1e27")
        assert summary.yearly_interest == Decimal("2e25")
        assert summary.effective_rate == Decimal("2.00")

    def test_overflowing_summary_is_zero(self):
        huge = "1e999999"
        summary = summarize_interest(huge, [zone("0", "0", huge)])
        assert summary.yearly_interest == 0
        assert summary.effective_rate == 0
        assert summary.contributing_zones == 0
        assert summary.rounded().yearly_interest == 0

    def test_zero_balance_summary(self, two_tiers):
        summary = summarize_interest("0", two_tiers)
        assert summary.yearly_interest == 0
        assert summary.effective_rate == 0
        assert summary.contributing_zones == 0

    def test_flat_rate_zones(self):
        zones = flat_rate_zones("2.5")
        assert len(zones) == 1
        assert yearly_interest("1000", zones) == Decimal("25")

    def test_flat_rate_zones_with_bad_rate(self):
        assert yearly_interest("1000", flat_rate_zones("n/a")) == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
