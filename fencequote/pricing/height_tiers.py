"""
Height tier resolution.

A pricing config may define bands of fence height (in meters), each with a
price multiplier. Bands are [min, max] with an inclusive upper bound; a
missing max means no upper bound. Height tiers are optional, so an empty
list or a height outside every band resolves to 1.0.
"""

from decimal import Decimal
from typing import Iterable, Optional

from .domain import HeightTier
from .units import feet_to_meters

NO_SURCHARGE = Decimal("1.0")


def find_height_tier(tiers: Iterable[HeightTier], height_feet: Decimal) -> Optional[HeightTier]:
    """Return the matching tier with the smallest min height, or None."""
    height_m = feet_to_meters(height_feet)
    matching = [
        t for t in tiers
        if height_m >= t.min_height_meters
        and (t.max_height_meters is None or height_m <= t.max_height_meters)
    ]
    if not matching:
        return None
    # sorted() is stable, so equal mins keep their configured order
    return sorted(matching, key=lambda t: t.min_height_meters)[0]


def resolve_height_multiplier(tiers: Iterable[HeightTier], height_feet: Decimal) -> Decimal:
    tier = find_height_tier(tiers or [], height_feet)
    return tier.multiplier if tier is not None else NO_SURCHARGE
