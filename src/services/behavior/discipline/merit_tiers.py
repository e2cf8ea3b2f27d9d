"""Merit tiers and the points each one is worth."""

from typing import Dict

from ..base.validators import ValidationError

MERIT_TIER_POINTS: Dict[str, float] = {
    "Bronze": 1,
    "Silver": 2,
    "Gold": 3,
    "Diamond": 3.5,
    "Platinum": 4,
}


def merit_points(tier: str) -> float:
    """
    Points awarded for a merit tier.

    Raises:
        ValidationError: If the tier is unknown
    """
    tier = getattr(tier, "value", tier)
    if tier not in MERIT_TIER_POINTS:
        raise ValidationError(
            f"Invalid merit tier '{tier}'. Must be one of: {', '.join(MERIT_TIER_POINTS)}"
        )
    return MERIT_TIER_POINTS[tier]
