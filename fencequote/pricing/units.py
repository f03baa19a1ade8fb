"""Length conversion. Pricing configs are metric, jobs are measured in feet."""

from decimal import Decimal

METERS_PER_FOOT = Decimal("0.3048")


def feet_to_meters(feet: Decimal) -> Decimal:
    return Decimal(feet) * METERS_PER_FOOT


def meters_to_feet(meters: Decimal) -> Decimal:
    return Decimal(meters) / METERS_PER_FOOT
