"""
Unit conversion and height tier resolution.

Tests:
1-3.  feet <-> meters
4-10. Height tier selection: inclusive bounds, open-ended top tier,
      overlap resolution, fallback multiplier
"""

from decimal import Decimal

from fencequote.pricing.domain import HeightTier
from fencequote.pricing.height_tiers import NO_SURCHARGE, find_height_tier, resolve_height_multiplier
from fencequote.pricing.units import METERS_PER_FOOT, feet_to_meters, meters_to_feet


def _tiers():
    return [
        HeightTier(Decimal("0"), Decimal("1.8"), Decimal("1.0"), "Standard"),
        HeightTier(Decimal("1.8"), Decimal("2.1"), Decimal("1.25"), "Tall"),
        HeightTier(Decimal("2.1"), None, Decimal("1.5"), "Extra tall"),
    ]


# ============================================================
# Units
# ============================================================

def test_feet_to_meters_is_exact():
    assert feet_to_meters(Decimal("100")) == Decimal("30.48")
    assert feet_to_meters(Decimal("6")) == Decimal("1.8288")
    assert feet_to_meters(Decimal("0")) == Decimal("0")


def test_meters_to_feet_inverts():
    assert meters_to_feet(Decimal("30.48")) == Decimal("100")
    assert meters_to_feet(METERS_PER_FOOT) == Decimal("1")


def test_feet_to_meters_accepts_ints():
    assert feet_to_meters(7) == Decimal("2.1336")


# ============================================================
# Height tiers
# ============================================================

def test_seven_foot_fence_lands_in_top_tier():
    # 7 ft = 2.1336 m
    assert resolve_height_multiplier(_tiers(), Decimal("7")) == Decimal("1.5")


def test_six_foot_fence_lands_in_tall_tier():
    # 6 ft = 1.8288 m
    assert resolve_height_multiplier(_tiers(), Decimal("6")) == Decimal("1.25")


def test_height_equal_to_max_is_inside_tier():
    tiers = [
        HeightTier(Decimal("0"), Decimal("1.8288"), Decimal("1.0")),
        HeightTier(Decimal("1.9"), Decimal("2.5"), Decimal("1.25")),
    ]
    assert resolve_height_multiplier(tiers, Decimal("6")) == Decimal("1.0")


def test_height_equal_to_next_min_is_in_next_tier():
    tiers = [
        HeightTier(Decimal("0"), Decimal("1.8"), Decimal("1.0")),
        HeightTier(Decimal("1.8288"), Decimal("2.5"), Decimal("1.25")),
    ]
    assert resolve_height_multiplier(tiers, Decimal("6")) == Decimal("1.25")


def test_shared_boundary_goes_to_lower_tier():
    # 1.8 m is the max of one tier and the min of the next
    height_feet = Decimal("1.8") / METERS_PER_FOOT
    tier = find_height_tier(_tiers(), height_feet)
    assert tier.description == "Standard"


def test_tier_order_in_config_does_not_matter():
    tiers = list(reversed(_tiers()))
    assert resolve_height_multiplier(tiers, Decimal("7")) == Decimal("1.5")
    assert resolve_height_multiplier(tiers, Decimal("3")) == Decimal("1.0")


def test_no_tiers_or_no_match_falls_back_to_one():
    assert resolve_height_multiplier([], Decimal("6")) == NO_SURCHARGE
    assert resolve_height_multiplier(None, Decimal("6")) == NO_SURCHARGE
    gap = [HeightTier(Decimal("3"), Decimal("4"), Decimal("2.0"))]
    assert resolve_height_multiplier(gap, Decimal("6")) == Decimal("1.0")
    assert find_height_tier(gap, Decimal("6")) is None
