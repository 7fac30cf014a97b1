"""
Tests for the membership tier table.
"""
from decimal import Decimal

import pytest

from community_hub.exceptions import InvalidInput
from community_hub.loyalty.tiers import Tier, TierTable


def _tier(name, low, high, point_value="1000", discount="0"):
    return Tier(
        name=name,
        min_spend=Decimal(low),
        max_spend=Decimal(high) if high is not None else None,
        point_value=Decimal(point_value),
        discount_percent=Decimal(discount),
    )


@pytest.mark.parametrize(
    "spend, expected",
    [
        (0, "bronze"),
        (1, "bronze"),
        (1999999, "bronze"),
        (Decimal("1999999.99"), "bronze"),
        (2000000, "silver"),
        (4999999, "silver"),
        (5000000, "gold"),
        (9999999, "gold"),
        (10000000, "platinum"),
        (10 ** 12, "platinum"),
    ],
)
def test_tier_for_default_table(tier_table, spend, expected):
    """Lower bounds are inclusive, upper bounds exclusive."""
    assert tier_table.tier_for(spend).name == expected


def test_tier_for_accepts_float_and_string(tier_table):
    assert tier_table.tier_for(2500000.5).name == "silver"
    assert tier_table.tier_for("5000000").name == "gold"


def test_exactly_one_tier_matches_every_spend(tier_table):
    """The tiers partition [0, inf): every spend is contained by exactly one tier."""
    samples = [Decimal(n) * 12345 for n in range(0, 1200)]
    samples += [tier.min_spend for tier in tier_table.tiers]
    samples += [tier.max_spend - Decimal("0.01") for tier in tier_table.tiers if tier.max_spend]

    for spend in samples:
        matching = [tier for tier in tier_table.tiers if tier.contains(spend)]
        assert len(matching) == 1
        assert tier_table.tier_for(spend) == matching[0]


def test_tier_for_is_monotonic_in_spend(tier_table):
    order = {tier.name: index for index, tier in enumerate(tier_table.tiers)}
    previous = -1
    for spend in range(0, 15000000, 250000):
        index = order[tier_table.tier_for(spend).name]
        assert index >= previous
        previous = index


def test_negative_spend_is_invalid(tier_table):
    with pytest.raises(InvalidInput):
        tier_table.tier_for(-1)


@pytest.mark.parametrize("value", ["abc", float("nan"), float("inf"), None, True])
def test_non_numeric_spend_is_invalid(tier_table, value):
    with pytest.raises(InvalidInput):
        tier_table.tier_for(value)


def test_default_point_values_and_discounts(tier_table):
    values = {tier.name: (tier.point_value, tier.discount_percent) for tier in tier_table.tiers}
    assert values == {
        "bronze": (Decimal("1000"), Decimal("0")),
        "silver": (Decimal("1200"), Decimal("2")),
        "gold": (Decimal("1400"), Decimal("5")),
        "platinum": (Decimal("1500"), Decimal("10")),
    }


def test_next_tier_and_amount_to_next(tier_table):
    bronze = tier_table.get("bronze")
    assert tier_table.next_tier(bronze).name == "silver"
    assert tier_table.next_tier(tier_table.get("platinum")) is None

    assert tier_table.amount_to_next_tier(1500000) == Decimal("500000")
    assert tier_table.amount_to_next_tier(12000000) is None


def test_progress_within_tier(tier_table):
    assert tier_table.progress(0) == 0.0
    assert tier_table.progress(1000000) == pytest.approx(0.5)
    # silver spans 2M..5M
    assert tier_table.progress(3500000) == pytest.approx(0.5)
    assert tier_table.progress(2000000) == 0.0


def test_progress_is_one_at_top_tier(tier_table):
    assert tier_table.progress(10000000) == 1.0
    assert tier_table.progress(50000000) == 1.0


class TestTierTableValidation:
    """A malformed table is rejected when the table is built."""

    def test_empty_table(self):
        with pytest.raises(InvalidInput):
            TierTable([])

    def test_first_tier_must_start_at_zero(self):
        with pytest.raises(InvalidInput):
            TierTable([_tier("a", "100", "200"), _tier("b", "200", None)])

    def test_gap_between_tiers(self):
        with pytest.raises(InvalidInput):
            TierTable([_tier("a", "0", "100"), _tier("b", "150", None)])

    def test_overlapping_tiers(self):
        with pytest.raises(InvalidInput):
            TierTable([_tier("a", "0", "100"), _tier("b", "50", None)])

    def test_unbounded_tier_must_be_last(self):
        with pytest.raises(InvalidInput):
            TierTable([_tier("a", "0", None), _tier("b", "100", None)])

    def test_last_tier_must_be_unbounded(self):
        with pytest.raises(InvalidInput):
            TierTable([_tier("a", "0", "100"), _tier("b", "100", "200")])

    def test_empty_range(self):
        with pytest.raises(InvalidInput):
            TierTable([_tier("a", "0", "0"), _tier("b", "0", None)])

    def test_duplicate_names(self):
        with pytest.raises(InvalidInput):
            TierTable([_tier("a", "0", "100"), _tier("a", "100", None)])

    def test_point_value_must_be_positive(self):
        with pytest.raises(InvalidInput):
            TierTable([_tier("a", "0", None, point_value="0")])

    def test_discount_out_of_range(self):
        with pytest.raises(InvalidInput):
            TierTable([_tier("a", "0", None, discount="120")])

    def test_single_unbounded_tier_is_valid(self):
        table = TierTable([_tier("only", "0", None)])
        assert table.tier_for(10 ** 9).name == "only"
        assert table.progress(123) == 1.0


def test_base_tier_is_the_lowest(tier_table):
    assert tier_table.base_tier.name == "bronze"
    assert tier_table.base_tier == tier_table.tier_for(0)
